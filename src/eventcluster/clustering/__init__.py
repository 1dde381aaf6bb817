"""Event clustering: proximity grouping, burst detection, key assets."""

from eventcluster.clustering.bursts import BurstDetector
from eventcluster.clustering.configuration import ClusteringConfiguration
from eventcluster.clustering.engine import EventClusteringService, cluster_assets
from eventcluster.clustering.events import (
    classify_cluster,
    create_timeline_events,
    generate_event_description,
    generate_event_title,
)
from eventcluster.clustering.key_asset import (
    ClusteringError,
    EmptyClusterError,
    mark_key_asset,
    select_key_asset,
)

__all__ = [
    "BurstDetector",
    "ClusteringConfiguration",
    "ClusteringError",
    "EmptyClusterError",
    "EventClusteringService",
    "classify_cluster",
    "cluster_assets",
    "create_timeline_events",
    "generate_event_description",
    "generate_event_title",
    "mark_key_asset",
    "select_key_asset",
]
