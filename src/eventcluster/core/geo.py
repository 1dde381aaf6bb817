"""Great-circle distance helpers.

Distances are computed with the Haversine formula on a spherical Earth.
Altitude and accuracy are never part of the calculation.

Example:
    >>> from eventcluster.core.models import GeoPoint
    >>> from eventcluster.core.geo import haversine_meters
    >>>
    >>> sf = GeoPoint(latitude=37.7749, longitude=-122.4194)
    >>> nyc = GeoPoint(latitude=40.7128, longitude=-74.0060)
    >>> haversine_meters(sf, nyc)  # ~4.13 million meters
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from eventcluster.core.models import GeoPoint


# Mean Earth radius in meters
EARTH_RADIUS_METERS: float = 6_371_000.0


def haversine_meters(a: GeoPoint, b: GeoPoint) -> float:
    """Calculate the great-circle distance between two points.

    Args:
        a: First point
        b: Second point

    Returns:
        Distance in meters (0.0 for identical coordinates)
    """
    lat1_rad = math.radians(a.latitude)
    lat2_rad = math.radians(b.latitude)
    dlat = lat2_rad - lat1_rad
    dlon = math.radians(b.longitude - a.longitude)

    h = math.sin(dlat / 2) ** 2 + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon / 2) ** 2

    # Rounding can push h a hair past 1.0 for antipodal points
    h = min(1.0, max(0.0, h))
    c = 2 * math.asin(math.sqrt(h))

    return EARTH_RADIUS_METERS * c


def centroid(points: Sequence[GeoPoint]) -> GeoPoint | None:
    """Arithmetic mean of latitudes and longitudes.

    Altitude is dropped. The place name is kept only when every point
    shares it. A single point is returned as-is.

    Args:
        points: Points to average

    Returns:
        Centre point, or None if no points were given
    """
    from eventcluster.core.models import GeoPoint

    if not points:
        return None
    if len(points) == 1:
        return points[0]

    lat = sum(p.latitude for p in points) / len(points)
    lon = sum(p.longitude for p in points) / len(points)
    names = {p.place_name for p in points}
    place_name = names.pop() if len(names) == 1 else None
    return GeoPoint(latitude=lat, longitude=lon, place_name=place_name)


def median_point(points: Sequence[GeoPoint]) -> GeoPoint | None:
    """Per-axis median of a set of points.

    For an even count the upper median is used. The place name is kept
    only when every point shares it.

    Args:
        points: Points to summarize

    Returns:
        Median point, or None if no points were given
    """
    from eventcluster.core.models import GeoPoint

    if not points:
        return None

    latitudes = sorted(p.latitude for p in points)
    longitudes = sorted(p.longitude for p in points)
    accuracies = [p.accuracy_meters for p in points if p.accuracy_meters is not None]
    names = {p.place_name for p in points}

    return GeoPoint(
        latitude=latitudes[len(latitudes) // 2],
        longitude=longitudes[len(longitudes) // 2],
        accuracy_meters=sum(accuracies) / len(accuracies) if accuracies else None,
        place_name=names.pop() if len(names) == 1 else None,
    )
