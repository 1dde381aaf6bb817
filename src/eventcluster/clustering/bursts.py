"""Burst detection.

A burst is a rapid-fire photo sequence: a run of consecutive assets where
every adjacent gap is at most ``burst_threshold_seconds`` and whose length
lies within ``[min_burst_size, max_burst_size]``.

The detector works inside one proximity cluster at a time, so it can only
tighten grouping and never joins assets the proximity pass separated.

Runs longer than ``max_burst_size`` are split into consecutive windows of
``max_burst_size`` assets. Each window that still reaches ``min_burst_size``
is a burst; a short trailing window is handed back to the ordinary cluster.

Example:
    >>> detector = BurstDetector(ClusteringConfiguration(burst_threshold_seconds=30))
    >>> for members, is_burst in detector.split_cluster(sorted_assets):
    ...     print(len(members), is_burst)
"""

from __future__ import annotations

import logging
from typing import Sequence

from eventcluster.clustering.configuration import ClusteringConfiguration
from eventcluster.core.models import MediaAsset

logger = logging.getLogger(__name__)


class BurstDetector:
    """Finds burst sequences inside a chronologically sorted cluster.

    Attributes:
        config: Thresholds used for detection
    """

    def __init__(self, config: ClusteringConfiguration | None = None):
        self.config = config or ClusteringConfiguration()

    def find_runs(self, assets: Sequence[MediaAsset]) -> list[list[MediaAsset]]:
        """Split assets into maximal runs of burst-spaced neighbours.

        Args:
            assets: Chronologically sorted assets

        Returns:
            Runs in order; every asset appears in exactly one run
        """
        runs: list[list[MediaAsset]] = []
        current: list[MediaAsset] = []
        threshold = self.config.burst_threshold_seconds

        for asset in assets:
            if current:
                gap = (asset.created_at - current[-1].created_at).total_seconds()
                if gap > threshold:
                    runs.append(current)
                    current = []
            current.append(asset)

        if current:
            runs.append(current)

        return runs

    def burst_windows(self, run: Sequence[MediaAsset]) -> list[tuple[list[MediaAsset], bool]]:
        """Cut a run into windows and flag the ones that qualify as bursts.

        Args:
            run: One run from ``find_runs``

        Returns:
            List of (members, is_burst) pairs covering the run in order
        """
        min_size = self.config.min_burst_size
        max_size = self.config.max_burst_size

        if len(run) < min_size:
            return [(list(run), False)]

        windows: list[tuple[list[MediaAsset], bool]] = []
        for start in range(0, len(run), max_size):
            window = list(run[start : start + max_size])
            windows.append((window, len(window) >= min_size))

        if len(windows) > 1:
            logger.debug(
                f"Split run of {len(run)} assets into {len(windows)} windows "
                f"(max_burst_size={max_size})"
            )

        return windows

    def split_cluster(self, assets: Sequence[MediaAsset]) -> list[tuple[list[MediaAsset], bool]]:
        """Separate the bursts of a proximity cluster from its other assets.

        The non-burst assets stay together as a single ordinary group placed
        at the position of its first member.

        Args:
            assets: Chronologically sorted members of one proximity cluster

        Returns:
            List of (members, is_burst) pairs ordered by first member; every
            input asset appears exactly once
        """
        if len(assets) < self.config.min_burst_size:
            return [(list(assets), False)] if assets else []

        bursts: list[list[MediaAsset]] = []
        remainder: list[MediaAsset] = []
        remainder_position: int | None = None

        position = 0
        groups: list[tuple[int, list[MediaAsset], bool]] = []

        for run in self.find_runs(assets):
            for members, is_burst in self.burst_windows(run):
                if is_burst:
                    bursts.append(members)
                    groups.append((position, members, True))
                else:
                    if remainder_position is None:
                        remainder_position = position
                    remainder.extend(members)
                position += len(members)

        if remainder:
            groups.append((remainder_position or 0, remainder, False))

        groups.sort(key=lambda g: g[0])

        if bursts:
            logger.debug(f"Detected {len(bursts)} burst(s) in cluster of {len(assets)} assets")

        return [(members, is_burst) for _, members, is_burst in groups]
