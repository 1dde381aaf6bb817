"""Key asset selection.

Every cluster is represented on the timeline by one asset. Selection narrows
the candidates to the best-documented assets (complete EXIF, then GPS) and
picks the one closest to the temporal midpoint of those candidates, so a
cluster is never represented by whichever photo happened to come first.

Selection is deterministic: ties on distance to the midpoint go to the
earliest asset in cluster order.
"""

from __future__ import annotations

import logging
from typing import Sequence

from eventcluster.core.models import MediaAsset

logger = logging.getLogger(__name__)


class ClusteringError(Exception):
    """Base exception for clustering errors."""

    pass


class EmptyClusterError(ClusteringError):
    """Raised when a key asset is requested for an empty cluster."""

    pass


def select_key_asset(assets: Sequence[MediaAsset]) -> MediaAsset:
    """Pick the representative asset of a cluster.

    Args:
        assets: Chronologically sorted cluster members

    Returns:
        The selected asset (one of ``assets``)

    Raises:
        EmptyClusterError: If ``assets`` is empty
    """
    if not assets:
        raise EmptyClusterError("Cannot select key asset from empty cluster")
    if len(assets) == 1:
        return assets[0]

    candidates = [a for a in assets if a.exif_complete]
    if candidates:
        with_gps = [a for a in candidates if a.has_location]
        if with_gps:
            candidates = with_gps
    else:
        candidates = list(assets)

    return _select_temporal_center(candidates)


def _select_temporal_center(assets: Sequence[MediaAsset]) -> MediaAsset:
    """Asset closest to the midpoint between the first and last candidate."""
    if len(assets) == 1:
        return assets[0]

    start = assets[0].created_at
    half_span = (assets[-1].created_at - start) / 2
    center = start + half_span

    closest = assets[0]
    min_difference = abs(assets[0].created_at - center)

    for asset in assets[1:]:
        difference = abs(asset.created_at - center)
        if difference < min_difference:
            min_difference = difference
            closest = asset

    return closest


def mark_key_asset(assets: Sequence[MediaAsset]) -> tuple[list[MediaAsset], MediaAsset]:
    """Flag the selected key asset and clear the flag on all others.

    Args:
        assets: Chronologically sorted cluster members

    Returns:
        Tuple of (updated assets, updated key asset)

    Raises:
        EmptyClusterError: If ``assets`` is empty
    """
    key = select_key_asset(assets)
    key_index = next(i for i, asset in enumerate(assets) if asset is key)

    updated = [asset.with_key_flag(i == key_index) for i, asset in enumerate(assets)]

    return updated, updated[key_index]
