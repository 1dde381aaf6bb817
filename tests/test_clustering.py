"""Tests for the temporal/spatial clustering engine.

Tests cover:
- Empty and single-asset input
- Concrete burst/non-burst/gap scenarios
- Spatial gating with and without GPS
- Randomized checks of the partition, determinism, burst bound,
  single key asset and temporal window invariants
- Performance on a 1000-asset library
- The async wrapper
"""

import asyncio
import math
import random
import time
from collections import Counter
from datetime import datetime, timedelta, timezone

import pytest

from eventcluster.clustering import ClusteringConfiguration, EventClusteringService, cluster_assets
from eventcluster.core.models import GeoPoint, MediaAsset

# =============================================================================
# Helpers
# =============================================================================

LOCATIONS = [
    GeoPoint(latitude=37.7749, longitude=-122.4194),
    GeoPoint(latitude=37.7750, longitude=-122.4195),
    GeoPoint(latitude=37.8044, longitude=-122.2712),
    GeoPoint(latitude=48.8566, longitude=2.3522),
]


def random_library(rng: random.Random, size: int) -> list[MediaAsset]:
    """Assets with a mix of burst, minute and multi-hour gaps."""
    current = datetime(2023, 6, 1, 8, 0, tzinfo=timezone.utc)
    assets = []
    for i in range(size):
        gap_kind = rng.random()
        if gap_kind < 0.4:
            gap = timedelta(seconds=rng.randint(1, 40))
        elif gap_kind < 0.8:
            gap = timedelta(minutes=rng.randint(1, 90))
        else:
            gap = timedelta(hours=rng.randint(2, 400))
        current = current + gap
        location = rng.choice(LOCATIONS) if rng.random() < 0.6 else None
        assets.append(
            MediaAsset(
                id=f"a{i}",
                created_at=current,
                location=location,
                exif_complete=rng.random() < 0.5,
            )
        )
    rng.shuffle(assets)
    return assets


def random_config(rng: random.Random) -> ClusteringConfiguration:
    min_burst = rng.randint(2, 6)
    return ClusteringConfiguration(
        temporal_threshold_minutes=rng.choice([5, 30, 60, 240, 1440]),
        spatial_threshold_meters=rng.choice([50.0, 1000.0, 50_000.0, math.inf]),
        burst_threshold_seconds=rng.choice([5, 15, 30, 60]),
        min_burst_size=min_burst,
        max_burst_size=rng.randint(min_burst, min_burst + 10),
    )


def signature(clusters):
    return [(c.asset_ids, c.is_burst, c.key_asset_id) for c in clusters]


# =============================================================================
# Basic Behaviour
# =============================================================================


class TestBasics:
    """Test degenerate inputs."""

    def test_empty_input(self):
        assert cluster_assets([]) == []

    def test_single_asset(self, make_series):
        clusters = cluster_assets(make_series([0]))
        assert len(clusters) == 1
        assert not clusters[0].is_burst
        assert clusters[0].key_asset.id == "p0"
        assert clusters[0].key_asset.is_key_asset

    def test_assets_without_optional_fields(self, base_time):
        """Test assets with no location and no faces cluster normally."""
        assets = [MediaAsset(id=f"x{i}", created_at=base_time + timedelta(minutes=i)) for i in range(4)]
        clusters = cluster_assets(assets)
        assert len(clusters) == 1
        assert clusters[0].asset_count == 4

    def test_unsorted_input_is_sorted(self, make_series):
        assets = make_series([600, 0, 300])
        clusters = cluster_assets(assets)
        assert clusters[0].asset_ids == ["p1", "p2", "p0"]

    def test_input_not_mutated(self, make_series):
        assets = make_series([0, 5, 10])
        cluster_assets(assets)
        assert not any(a.is_key_asset for a in assets)


class TestScenarios:
    """Test the concrete documented scenarios."""

    def test_rapid_sequence_is_one_burst(self, make_series):
        """Five photos five seconds apart form a single burst."""
        config = ClusteringConfiguration(burst_threshold_seconds=30, min_burst_size=3, max_burst_size=20)
        clusters = cluster_assets(make_series([0, 5, 10, 15, 20]), config)

        assert len(clusters) == 1
        assert clusters[0].is_burst
        assert clusters[0].asset_count == 5

    def test_slow_pair_in_wide_window_is_not_burst(self, make_series):
        """Two photos ten minutes apart with a 24h window: one plain cluster."""
        config = ClusteringConfiguration(temporal_threshold_minutes=1440, burst_threshold_seconds=30)
        clusters = cluster_assets(make_series([0, 600]), config)

        assert len(clusters) == 1
        assert not clusters[0].is_burst
        assert clusters[0].asset_count == 2

    @pytest.mark.parametrize("threshold", [30, 60, 1440, 4320])
    def test_two_week_gap_splits(self, make_series, threshold):
        two_weeks = 14 * 24 * 3600
        offsets = [0, 600, 1200, two_weeks, two_weeks + 600, two_weeks + 1200]
        config = ClusteringConfiguration(temporal_threshold_minutes=threshold)

        clusters = cluster_assets(make_series(offsets), config)

        assert len(clusters) == 2
        assert [c.asset_count for c in clusters] == [3, 3]

    def test_gap_exactly_at_threshold_joins(self, make_series):
        config = ClusteringConfiguration(temporal_threshold_minutes=10)
        assert len(cluster_assets(make_series([0, 600]), config)) == 1
        assert len(cluster_assets(make_series([0, 601]), config)) == 2

    def test_cluster_span_bounded_by_window(self, make_series):
        """Chained small gaps still start a new cluster once the window is used up."""
        config = ClusteringConfiguration(temporal_threshold_minutes=60)
        offsets = [i * 20 * 60 for i in range(7)]  # every 20 minutes for two hours

        clusters = cluster_assets(make_series(offsets), config)

        for cluster in clusters:
            assert cluster.duration <= timedelta(minutes=60)
        assert len(clusters) == 2


class TestBurstRefinement:
    """Test burst splitting inside proximity clusters."""

    def test_burst_followed_by_slow_photos(self, make_series):
        config = ClusteringConfiguration(burst_threshold_seconds=30, min_burst_size=3)
        clusters = cluster_assets(make_series([0, 5, 10, 15, 600, 1200]), config)

        assert [(c.asset_count, c.is_burst) for c in clusters] == [(4, True), (2, False)]

    def test_remainder_positioned_at_first_member(self, make_series):
        config = ClusteringConfiguration(burst_threshold_seconds=30, min_burst_size=3)
        clusters = cluster_assets(make_series([0, 300, 305, 310, 900]), config)

        assert [(c.asset_ids, c.is_burst) for c in clusters] == [
            (["p0", "p4"], False),
            (["p1", "p2", "p3"], True),
        ]

    def test_oversized_run_split_into_windows(self, make_series):
        config = ClusteringConfiguration(burst_threshold_seconds=30, min_burst_size=3, max_burst_size=3)
        clusters = cluster_assets(make_series([0, 1, 2, 3, 4, 5, 6]), config)

        bursts = [c for c in clusters if c.is_burst]
        assert [c.asset_ids for c in bursts] == [["p0", "p1", "p2"], ["p3", "p4", "p5"]]
        plain = [c for c in clusters if not c.is_burst]
        assert [c.asset_ids for c in plain] == [["p6"]]

    def test_run_shorter_than_min_is_not_burst(self, make_series):
        config = ClusteringConfiguration(burst_threshold_seconds=30, min_burst_size=3)
        clusters = cluster_assets(make_series([0, 5]), config)
        assert len(clusters) == 1
        assert not clusters[0].is_burst


class TestSpatialGating:
    """Test distance checks between consecutive assets."""

    def test_far_apart_splits(self, base_time, make_asset, home, paris):
        assets = [
            make_asset("a", base_time, location=home),
            make_asset("b", base_time + timedelta(minutes=1), location=paris),
        ]
        assert len(cluster_assets(assets)) == 2

    def test_nearby_joins(self, base_time, make_asset, home):
        nearby = GeoPoint(latitude=home.latitude + 0.001, longitude=home.longitude)
        assets = [
            make_asset("a", base_time, location=home),
            make_asset("b", base_time + timedelta(minutes=1), location=nearby),
        ]
        assert len(cluster_assets(assets)) == 1

    def test_missing_location_does_not_split(self, base_time, make_asset, home):
        assets = [
            make_asset("a", base_time, location=home),
            make_asset("b", base_time + timedelta(minutes=1)),
        ]
        assert len(cluster_assets(assets)) == 1

    def test_infinite_threshold_ignores_distance(self, base_time, make_asset, home, paris):
        config = ClusteringConfiguration(spatial_threshold_meters=math.inf)
        assets = [
            make_asset("a", base_time, location=home),
            make_asset("b", base_time + timedelta(minutes=1), location=paris),
        ]
        assert len(cluster_assets(assets, config)) == 1


# =============================================================================
# Randomized Invariants
# =============================================================================


class TestInvariants:
    """Check documented invariants over seeded random libraries and configs."""

    @pytest.fixture
    def cases(self):
        rng = random.Random(1234)
        return [(random_library(rng, rng.randint(0, 120)), random_config(rng)) for _ in range(60)]

    def test_partition(self, cases):
        """Every input id appears exactly once across clusters."""
        for assets, config in cases:
            clusters = cluster_assets(assets, config)
            out = Counter(a.id for c in clusters for a in c.assets)
            assert out == Counter(a.id for a in assets)

    def test_determinism(self, cases):
        for assets, config in cases:
            assert signature(cluster_assets(assets, config)) == signature(cluster_assets(assets, config))

    def test_input_order_independent(self, cases):
        rng = random.Random(99)
        for assets, config in cases:
            shuffled = list(assets)
            rng.shuffle(shuffled)
            assert signature(cluster_assets(assets, config)) == signature(cluster_assets(shuffled, config))

    def test_burst_bounds(self, cases):
        for assets, config in cases:
            for cluster in cluster_assets(assets, config):
                if not cluster.is_burst:
                    continue
                assert config.min_burst_size <= cluster.asset_count <= config.max_burst_size
                for prev, nxt in zip(cluster.assets, cluster.assets[1:]):
                    gap = (nxt.created_at - prev.created_at).total_seconds()
                    assert gap <= config.burst_threshold_seconds

    def test_single_key_asset(self, cases):
        for assets, config in cases:
            for cluster in cluster_assets(assets, config):
                flagged = [a for a in cluster.assets if a.is_key_asset]
                assert len(flagged) == 1
                assert flagged[0].id == cluster.key_asset_id
                assert flagged[0] in cluster.assets

    def test_temporal_window(self, cases):
        for assets, config in cases:
            for cluster in cluster_assets(assets, config):
                if cluster.is_burst or cluster.asset_count < 2:
                    continue
                span_minutes = cluster.duration.total_seconds() / 60
                assert span_minutes <= config.temporal_threshold_minutes

    def test_single_asset_never_burst(self, cases):
        for assets, config in cases:
            for cluster in cluster_assets(assets, config):
                if cluster.asset_count == 1:
                    assert not cluster.is_burst

    def test_clusters_ordered_and_sorted(self, cases):
        for assets, config in cases:
            clusters = cluster_assets(assets, config)
            starts = [c.start_time for c in clusters]
            assert starts == sorted(starts)
            for cluster in clusters:
                times = [a.created_at for a in cluster.assets]
                assert times == sorted(times)


# =============================================================================
# Service
# =============================================================================


class TestService:
    """Test EventClusteringService configuration handling and scale."""

    def test_per_call_override(self, make_series):
        service = EventClusteringService(ClusteringConfiguration(temporal_threshold_minutes=5))
        assets = make_series([0, 3600])
        assert len(service.cluster_assets(assets)) == 2
        wide = ClusteringConfiguration(temporal_threshold_minutes=120)
        assert len(service.cluster_assets(assets, wide)) == 1

    def test_thousand_assets_fast(self):
        assets = random_library(random.Random(7), 1000)
        service = EventClusteringService()

        start = time.perf_counter()
        clusters = service.cluster_assets(assets)
        elapsed = time.perf_counter() - start

        assert sum(c.asset_count for c in clusters) == 1000
        assert elapsed < 3.0

    def test_async_wrapper_matches_sync(self, make_series):
        service = EventClusteringService()
        assets = make_series([0, 5, 10, 900, 5000])

        async_result = asyncio.run(service.cluster_assets_async(assets))

        assert signature(async_result) == signature(service.cluster_assets(assets))
