"""Materialize clusters into timeline events.

The persistence layer stores one TimelineEvent per EventCluster. This module
derives the event type, title and description from the cluster shape.
"""

from __future__ import annotations

import logging
import uuid
from typing import Callable, Iterable

from eventcluster.core.models import EventCluster, TimelineEvent

logger = logging.getLogger(__name__)

# Clusters larger than this become "photo_collection" events
COLLECTION_MIN_ASSETS: int = 10


def classify_cluster(cluster: EventCluster) -> str:
    """Event type string for a cluster."""
    if cluster.is_burst:
        return "photo_burst"
    if cluster.asset_count > COLLECTION_MIN_ASSETS:
        return "photo_collection"
    return "photo"


def generate_event_title(cluster: EventCluster) -> str | None:
    """Auto title; single photos get none."""
    if cluster.is_burst:
        return f"Photo Burst ({cluster.asset_count} photos)"
    if cluster.asset_count > 1:
        return f"{cluster.asset_count} Photos"
    return None


def generate_event_description(cluster: EventCluster) -> str | None:
    """Duration and location summary, or None if there is nothing to say."""
    parts: list[str] = []

    if cluster.duration_minutes > 0:
        parts.append(f"Duration: {cluster.duration_minutes} minutes")

    center = cluster.center_location
    if center is not None and center.place_name:
        parts.append(f"Location: {center.place_name}")

    return " • ".join(parts) if parts else None


def create_timeline_events(
    clusters: Iterable[EventCluster],
    context_id: str,
    owner_id: str,
    id_factory: Callable[[], str] | None = None,
) -> list[TimelineEvent]:
    """Convert clusters into timeline events.

    Args:
        clusters: Output of the clustering engine
        context_id: Timeline context for the events
        owner_id: Owning user
        id_factory: Event id generator (uuid4 strings by default)

    Returns:
        One TimelineEvent per cluster, in cluster order
    """
    make_id = id_factory or (lambda: str(uuid.uuid4()))
    events: list[TimelineEvent] = []

    for cluster in clusters:
        event_id = make_id()
        assets = [asset.with_event_id(event_id) for asset in cluster.assets]

        events.append(
            TimelineEvent(
                id=event_id,
                context_id=context_id,
                owner_id=owner_id,
                timestamp=cluster.start_time,
                event_type=classify_cluster(cluster),
                title=generate_event_title(cluster),
                description=generate_event_description(cluster),
                location=cluster.center_location,
                assets=assets,
            )
        )

    logger.debug(f"Created {len(events)} timeline events for context {context_id}")
    return events
