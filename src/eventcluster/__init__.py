"""Event clustering and smart suggestion engine.

Partitions a photo library into timeline events (with burst detection and
key asset selection) and suggests calendar-like events ranked by a
feedback-adjusted confidence score.
"""

from eventcluster.clustering import (
    ClusteringConfiguration,
    EventClusteringService,
    cluster_assets,
)
from eventcluster.core import EventCluster, GeoPoint, MediaAsset, TimelineEvent
from eventcluster.intelligence import (
    EventCorrelationService,
    EventSuggestion,
    EventType,
    SmartEventSuggestionsService,
)
from eventcluster.pipeline import TimelineAnalysis, TimelinePipeline

__version__ = "1.0.0"

__all__ = [
    "ClusteringConfiguration",
    "EventCluster",
    "EventClusteringService",
    "EventCorrelationService",
    "EventSuggestion",
    "EventType",
    "GeoPoint",
    "MediaAsset",
    "SmartEventSuggestionsService",
    "TimelineAnalysis",
    "TimelineEvent",
    "TimelinePipeline",
    "__version__",
    "cluster_assets",
]
