"""Tests for the core data models.

Tests cover:
- GeoPoint validation and display
- MediaAsset defaults, timezone handling, immutability
- EventCluster key asset invariant and derived properties
"""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from eventcluster.core.models import AssetType, ContextType, EventCluster, GeoPoint, MediaAsset


class TestEnums:
    """Test enum definitions."""

    def test_asset_type_values(self):
        assert AssetType.PHOTO.value == "photo"
        assert AssetType.VIDEO.value == "video"

    def test_context_type_values(self):
        assert ContextType.PET.value == "pet"
        assert ContextType.BUSINESS.value == "business"


class TestGeoPoint:
    """Test GeoPoint model."""

    def test_invalid_latitude(self):
        with pytest.raises(ValueError, match="Latitude must be between -90 and 90"):
            GeoPoint(latitude=91.0, longitude=0.0)

    def test_invalid_longitude(self):
        with pytest.raises(ValueError, match="Longitude must be between -180 and 180"):
            GeoPoint(latitude=0.0, longitude=-181.0)

    @pytest.mark.parametrize(
        "latitude, longitude, message",
        [
            (float("nan"), 0.0, "Latitude must be between -90 and 90"),
            (0.0, float("nan"), "Longitude must be between -180 and 180"),
        ],
    )
    def test_nan_coordinates_rejected(self, latitude, longitude, message):
        with pytest.raises(ValueError, match=message):
            GeoPoint(latitude=latitude, longitude=longitude)

    def test_display_prefers_place_name(self):
        assert GeoPoint(latitude=1, longitude=2, place_name="Lisbon").to_display_string() == "Lisbon"

    def test_display_falls_back_to_coordinates(self):
        assert GeoPoint(latitude=48.85661, longitude=2.35222).to_display_string() == "48.86, 2.35"

    def test_frozen(self):
        p = GeoPoint(latitude=1, longitude=2)
        with pytest.raises(ValidationError):
            p.latitude = 3


class TestMediaAsset:
    """Test MediaAsset model."""

    def test_minimal_asset(self, base_time):
        """Test all optional fields may be absent."""
        asset = MediaAsset(id="a", created_at=base_time)
        assert asset.type == AssetType.PHOTO
        assert asset.location is None
        assert asset.face_ids == frozenset()
        assert not asset.is_key_asset
        assert not asset.has_location

    def test_naive_datetime_becomes_utc(self):
        asset = MediaAsset(id="a", created_at=datetime(2024, 1, 1, 12, 0))
        assert asset.created_at.tzinfo == timezone.utc

    def test_missing_created_at_rejected(self):
        with pytest.raises(ValidationError):
            MediaAsset(id="a")

    def test_empty_id_rejected(self, base_time):
        with pytest.raises(ValidationError):
            MediaAsset(id="", created_at=base_time)

    def test_caption_normalized(self, base_time):
        assert MediaAsset(id="a", created_at=base_time, caption="   ").caption is None
        assert MediaAsset(id="a", created_at=base_time, caption=" hi ").caption == "hi"

    def test_with_key_flag_returns_copy(self, base_time):
        asset = MediaAsset(id="a", created_at=base_time)
        flagged = asset.with_key_flag(True)
        assert flagged.is_key_asset
        assert not asset.is_key_asset
        assert asset.with_key_flag(False) is asset


class TestEventCluster:
    """Test EventCluster invariants."""

    def _assets(self, base_time, n=3, key_index=1):
        return [
            MediaAsset(
                id=f"a{i}",
                created_at=base_time + timedelta(minutes=i),
                is_key_asset=(i == key_index),
            )
            for i in range(n)
        ]

    def test_valid_cluster(self, base_time):
        cluster = EventCluster(assets=self._assets(base_time), key_asset_id="a1")
        assert cluster.key_asset.id == "a1"
        assert cluster.asset_count == 3
        assert cluster.duration == timedelta(minutes=2)
        assert cluster.duration_minutes == 2
        assert cluster.asset_ids == ["a0", "a1", "a2"]
        assert cluster.start_time == base_time

    def test_empty_cluster_rejected(self):
        with pytest.raises(ValidationError):
            EventCluster(assets=[], key_asset_id="x")

    def test_no_key_asset_rejected(self, base_time):
        with pytest.raises(ValidationError, match="exactly one key asset"):
            EventCluster(assets=self._assets(base_time, key_index=-1), key_asset_id="a0")

    def test_two_key_assets_rejected(self, base_time):
        assets = self._assets(base_time)
        assets[0] = assets[0].with_key_flag(True)
        with pytest.raises(ValidationError, match="exactly one key asset"):
            EventCluster(assets=assets, key_asset_id="a1")

    def test_mismatched_key_id_rejected(self, base_time):
        with pytest.raises(ValidationError, match="does not match"):
            EventCluster(assets=self._assets(base_time), key_asset_id="a2")

    def test_center_location(self, base_time):
        assets = [
            MediaAsset(id="a", created_at=base_time, location=GeoPoint(latitude=0, longitude=0), is_key_asset=True),
            MediaAsset(id="b", created_at=base_time, location=GeoPoint(latitude=2, longitude=2)),
            MediaAsset(id="c", created_at=base_time),
        ]
        center = EventCluster(assets=assets, key_asset_id="a").center_location
        assert center.latitude == pytest.approx(1.0)

    def test_center_location_none_without_gps(self, base_time):
        cluster = EventCluster(assets=self._assets(base_time), key_asset_id="a1")
        assert cluster.center_location is None
