"""Temporal/spatial clustering engine.

This module partitions a collection of media assets into timeline events. It
is a pure function of (assets, configuration): the same input always yields
the same clusters, burst flags and key assets.

The pipeline for one call:
1. Stable sort by ``created_at`` (ties keep input order)
2. Single forward pass grouping assets by time gap, cluster window and hop
   distance (the proximity pass)
3. Burst refinement inside each proximity cluster
4. Key asset selection for every resulting cluster

Complexity is O(n log n) for the sort plus a linear scan, which keeps a
thousand-asset library well under a second.

Example:
    >>> from eventcluster.clustering import EventClusteringService, ClusteringConfiguration
    >>>
    >>> service = EventClusteringService(ClusteringConfiguration(temporal_threshold_minutes=90))
    >>> clusters = service.cluster_assets(assets)
    >>> for cluster in clusters:
    ...     print(cluster.asset_count, cluster.is_burst, cluster.key_asset.id)
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Sequence

from eventcluster.clustering.bursts import BurstDetector
from eventcluster.clustering.configuration import ClusteringConfiguration
from eventcluster.clustering.key_asset import mark_key_asset
from eventcluster.core.models import EventCluster, MediaAsset

logger = logging.getLogger(__name__)


class EventClusteringService:
    """Clusters media assets into timeline events.

    The service holds a default configuration; every call may override it.
    It keeps no state between calls and is safe to share across threads.

    Attributes:
        config: Default clustering thresholds
    """

    def __init__(self, config: ClusteringConfiguration | None = None):
        self.config = config or ClusteringConfiguration()

    def cluster_assets(
        self,
        assets: Iterable[MediaAsset],
        config: ClusteringConfiguration | None = None,
    ) -> list[EventCluster]:
        """Partition assets into clusters.

        Args:
            assets: Assets in any order
            config: Per-call override of the service configuration

        Returns:
            Clusters ordered by start time. Every input asset appears in
            exactly one cluster.
        """
        config = config or self.config
        sorted_assets = sorted(assets, key=lambda a: a.created_at)

        if not sorted_assets:
            return []

        detector = BurstDetector(config)
        clusters: list[EventCluster] = []

        for group in self._cluster_by_proximity(sorted_assets, config):
            for members, is_burst in detector.split_cluster(group):
                clusters.append(self._build_cluster(members, is_burst))

        burst_count = sum(1 for c in clusters if c.is_burst)
        logger.debug(
            f"Clustered {len(sorted_assets)} assets into {len(clusters)} clusters "
            f"({burst_count} bursts)"
        )

        return clusters

    async def cluster_assets_async(
        self,
        assets: Iterable[MediaAsset],
        config: ClusteringConfiguration | None = None,
    ) -> list[EventCluster]:
        """Run ``cluster_assets`` in a worker thread.

        For callers on an event loop; the computation itself never awaits.
        """
        return await asyncio.to_thread(self.cluster_assets, list(assets), config)

    def _cluster_by_proximity(
        self,
        assets: Sequence[MediaAsset],
        config: ClusteringConfiguration,
    ) -> list[list[MediaAsset]]:
        """Forward pass over sorted assets.

        Args:
            assets: Chronologically sorted assets
            config: Thresholds

        Returns:
            Proximity groups in order
        """
        groups: list[list[MediaAsset]] = []
        current: list[MediaAsset] = []

        for asset in assets:
            if current and not self._should_add_to_cluster(current, asset, config):
                groups.append(current)
                current = []
            current.append(asset)

        if current:
            groups.append(current)

        return groups

    def _should_add_to_cluster(
        self,
        current: Sequence[MediaAsset],
        asset: MediaAsset,
        config: ClusteringConfiguration,
    ) -> bool:
        """Decide whether an asset extends the open cluster.

        The time gap is measured against the last asset added, and the
        whole cluster must also stay within the temporal window. Distance is
        only checked when both the last asset and the new one have GPS.
        """
        last = current[-1]
        window_seconds = config.temporal_threshold_seconds

        gap_seconds = (asset.created_at - last.created_at).total_seconds()
        if gap_seconds > window_seconds:
            return False

        span_seconds = (asset.created_at - current[0].created_at).total_seconds()
        if span_seconds > window_seconds:
            return False

        if config.spatial_gating_enabled and last.location is not None and asset.location is not None:
            if last.location.distance_meters(asset.location) > config.spatial_threshold_meters:
                return False

        return True

    @staticmethod
    def _build_cluster(members: Sequence[MediaAsset], is_burst: bool) -> EventCluster:
        """Create a cluster with its key asset flagged."""
        updated, key = mark_key_asset(members)
        return EventCluster(assets=updated, is_burst=is_burst, key_asset_id=key.id)


def cluster_assets(
    assets: Iterable[MediaAsset],
    config: ClusteringConfiguration | None = None,
) -> list[EventCluster]:
    """Cluster assets with a one-off service.

    Args:
        assets: Assets in any order
        config: Thresholds (defaults if omitted)

    Returns:
        Clusters ordered by start time
    """
    return EventClusteringService(config).cluster_assets(assets)
