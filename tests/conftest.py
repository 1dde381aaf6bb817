"""Shared pytest fixtures for the eventcluster test suite.

Fixtures included:
- Time: base_time (a fixed weekday morning in UTC)
- Factories: make_asset, make_series
- Locations: home, office, paris
- Configuration: default_config, isolated_config (no env or config file leakage)
"""

import os
from datetime import datetime, timedelta, timezone
from typing import Callable

import pytest

from eventcluster.clustering.configuration import ClusteringConfiguration
from eventcluster.config import reset_config
from eventcluster.core.models import AssetType, GeoPoint, MediaAsset

# =============================================================================
# Helper Functions
# =============================================================================


def make_media_asset(
    asset_id: str,
    created_at: datetime,
    location: GeoPoint | None = None,
    face_ids: tuple[str, ...] = (),
    exif_complete: bool = False,
    asset_type: AssetType = AssetType.PHOTO,
) -> MediaAsset:
    """Build a MediaAsset with the fields the engine reads."""
    return MediaAsset(
        id=asset_id,
        created_at=created_at,
        location=location,
        face_ids=frozenset(face_ids),
        exif_complete=exif_complete,
        type=asset_type,
    )


# =============================================================================
# Time and Location Fixtures
# =============================================================================


@pytest.fixture
def base_time() -> datetime:
    """Wednesday 2024-03-13 10:00 UTC (not a weekend or holiday)."""
    return datetime(2024, 3, 13, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def home() -> GeoPoint:
    return GeoPoint(latitude=37.7749, longitude=-122.4194, place_name="San Francisco")


@pytest.fixture
def office() -> GeoPoint:
    """About 4 km from home."""
    return GeoPoint(latitude=37.7897, longitude=-122.3972)


@pytest.fixture
def paris() -> GeoPoint:
    return GeoPoint(latitude=48.8566, longitude=2.3522)


# =============================================================================
# Factories
# =============================================================================


@pytest.fixture
def make_asset() -> Callable[..., MediaAsset]:
    """Factory: make_asset("id", created_at, location=None, face_ids=(), ...)."""
    return make_media_asset


@pytest.fixture
def make_series(base_time) -> Callable[..., list[MediaAsset]]:
    """Factory for assets at second offsets from base_time.

    Example:
        >>> make_series([0, 5, 10])  # ids p0, p1, p2
    """

    def _make(
        offsets_seconds: list[float],
        prefix: str = "p",
        location: GeoPoint | None = None,
        start: datetime | None = None,
        face_ids: tuple[str, ...] = (),
    ) -> list[MediaAsset]:
        origin = start or base_time
        return [
            make_media_asset(
                f"{prefix}{i}",
                origin + timedelta(seconds=offset),
                location=location,
                face_ids=face_ids,
            )
            for i, offset in enumerate(offsets_seconds)
        ]

    return _make


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def default_config() -> ClusteringConfiguration:
    return ClusteringConfiguration()


@pytest.fixture
def isolated_config(monkeypatch, tmp_path):
    """Run in an empty directory with no EVENTCLUSTER_* variables set."""
    for key in list(os.environ):
        if key.upper().startswith("EVENTCLUSTER_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    reset_config()
    yield tmp_path
    reset_config()
