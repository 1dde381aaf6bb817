"""Timeline pipeline: clustering, event materialization and suggestions.

Owns one instance of each service, built from an AppConfig, so an
application wires the engine once and passes the pipeline around instead
of reaching for process-wide singletons.

Example:
    >>> from eventcluster.pipeline import TimelinePipeline
    >>>
    >>> pipeline = TimelinePipeline()
    >>> analysis = pipeline.process(assets, context_id="ctx-1", owner_id="user-1")
    >>> print(analysis.to_summary())
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Sequence

from eventcluster.clustering.engine import EventClusteringService
from eventcluster.clustering.events import create_timeline_events
from eventcluster.config import AppConfig
from eventcluster.core.models import EventCluster, MediaAsset, TimelineEvent
from eventcluster.intelligence.correlation import EventCorrelationService
from eventcluster.intelligence.models import EventSuggestion
from eventcluster.intelligence.suggestions import SmartEventSuggestionsService
from eventcluster.utils.logging import LogContext

logger = logging.getLogger(__name__)


@dataclass
class TimelineAnalysis:
    """Result of one pipeline run.

    Attributes:
        clusters: Clusters in chronological order.
        events: One timeline event per cluster.
        suggestions: Ranked event suggestions.
        elapsed_seconds: Wall time of the run.
    """

    clusters: list[EventCluster] = field(default_factory=list)
    events: list[TimelineEvent] = field(default_factory=list)
    suggestions: list[EventSuggestion] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    @property
    def asset_count(self) -> int:
        return sum(c.asset_count for c in self.clusters)

    @property
    def burst_count(self) -> int:
        return sum(1 for c in self.clusters if c.is_burst)

    def to_summary(self) -> str:
        """Multi-line human-readable summary."""
        lines = [
            "Timeline Analysis:",
            f"  Assets: {self.asset_count}",
            f"  Clusters: {len(self.clusters)} ({self.burst_count} bursts)",
            f"  Events: {len(self.events)}",
            f"  Suggestions: {len(self.suggestions)}",
            f"  Time: {self.elapsed_seconds:.2f}s",
        ]
        return "\n".join(lines)


class TimelinePipeline:
    """Runs clustering and suggestions over one user's library.

    Attributes:
        config: Application configuration the services were built from.
        clustering: Clustering engine.
        correlation: Event correlation engine.
        suggestions: Feedback-aware suggestion service.
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        clustering: EventClusteringService | None = None,
        suggestions: SmartEventSuggestionsService | None = None,
    ):
        self.config = config or AppConfig()
        if clustering is None:
            clustering = EventClusteringService(self.config.clustering)
        self.clustering = clustering
        if suggestions is None:
            suggestions = SmartEventSuggestionsService(
                correlation=EventCorrelationService(self.config.correlation),
                config=self.config.suggestions,
            )
        self.suggestions = suggestions
        self.correlation = suggestions.correlation

    def process(
        self,
        assets: Sequence[MediaAsset],
        context_id: str,
        owner_id: str,
        people_data: Mapping[str, Iterable[str]] | None = None,
    ) -> TimelineAnalysis:
        """Cluster assets into events and compute suggestions.

        Args:
            assets: The user's assets, in any order.
            context_id: Timeline context receiving the events.
            owner_id: Owning user.
            people_data: Asset id to person ids, for suggestions.

        Returns:
            TimelineAnalysis with clusters, events and suggestions.
        """
        start = time.perf_counter()

        with LogContext(f"Clustering {len(assets)} assets", level=logging.DEBUG, logger=logger):
            clusters = self.clustering.cluster_assets(assets)
            events = create_timeline_events(clusters, context_id=context_id, owner_id=owner_id)

        with LogContext("Computing suggestions", level=logging.DEBUG, logger=logger):
            suggestions = self.suggestions.get_suggestions(assets, people_data=people_data)

        analysis = TimelineAnalysis(
            clusters=clusters,
            events=events,
            suggestions=suggestions,
            elapsed_seconds=time.perf_counter() - start,
        )
        logger.info(
            f"Processed {len(assets)} assets: {len(clusters)} clusters, "
            f"{len(suggestions)} suggestions in {analysis.elapsed_seconds:.2f}s"
        )
        return analysis
