"""Core data models and geometry helpers."""

from eventcluster.core.geo import EARTH_RADIUS_METERS, centroid, haversine_meters, median_point
from eventcluster.core.models import (
    AssetType,
    ContextType,
    EventCluster,
    GeoPoint,
    MediaAsset,
    TimelineEvent,
)

__all__ = [
    "EARTH_RADIUS_METERS",
    "AssetType",
    "ContextType",
    "EventCluster",
    "GeoPoint",
    "MediaAsset",
    "TimelineEvent",
    "centroid",
    "haversine_meters",
    "median_point",
]
