"""Event correlation: group photos and score them as suggested events.

Photos are grouped by temporal and spatial proximity, groups that share
most of their people are merged, and every surviving group is scored for
"event-worthiness" from four weighted signals:

- time: ``1 - span_hours / 24``
- location: ``1.0`` when any photo has GPS, otherwise ``0.5``
- people: ``people_count / 10``
- density: ``photos_per_hour / 30``

Each sub-score is clamped to [0, 1] before weighting, and the weighted sum
is clamped again, so the confidence always lies in [0, 1].

Example:
    >>> service = EventCorrelationService()
    >>> suggestions = service.analyze_and_suggest_events(assets)
    >>> for s in suggestions:
    ...     print(f"{s.title}: {s.confidence:.2f}")
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, Mapping, Sequence

from pydantic import BaseModel, ConfigDict, Field

from eventcluster.core.geo import median_point
from eventcluster.core.models import AssetType, GeoPoint, MediaAsset
from eventcluster.intelligence.models import (
    DEFAULT_HOLIDAYS,
    CorrelationConfig,
    CorrelationWeights,
    EventSuggestion,
    EventType,
    HolidayWindow,
    PhotoGroup,
)

logger = logging.getLogger(__name__)

PeopleData = Mapping[str, Iterable[str]]

# Normalization constants of the sub-scores
TIME_SCORE_HOURS: float = 24.0
PEOPLE_SCORE_COUNT: float = 10.0
DENSITY_SCORE_PER_HOUR: float = 30.0
MISSING_LOCATION_SCORE: float = 0.5


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


# =============================================================================
# Signals
# =============================================================================


def calculate_time_span(photos: Sequence[MediaAsset]) -> timedelta:
    """Time between the earliest and latest photo (zero for < 2 photos)."""
    if len(photos) < 2:
        return timedelta(0)
    times = [p.created_at for p in photos]
    return max(times) - min(times)


def calculate_photo_density(photos: Sequence[MediaAsset]) -> float:
    """Photos per hour.

    Fewer than two photos have no density. A group shot within the same
    instant has a density equal to its photo count.
    """
    count = len(photos)
    if count < 2:
        return 0.0

    hours = calculate_time_span(photos).total_seconds() / 3600
    if hours == 0:
        return float(count)
    return count / hours


def representative_location(photos: Sequence[MediaAsset]) -> GeoPoint | None:
    """Median point of the located photos, or None if none has GPS."""
    return median_point([p.location for p in photos if p.location is not None])


def collect_people(photos: Sequence[MediaAsset], people_data: PeopleData | None = None) -> set[str]:
    """People seen in the photos.

    ``people_data`` maps asset id to person ids; assets missing from it fall
    back to their own ``face_ids``.
    """
    people: set[str] = set()
    for photo in photos:
        if people_data is not None and photo.id in people_data:
            people.update(people_data[photo.id])
        else:
            people.update(photo.face_ids)
    return people


class GroupSignals(BaseModel):
    """Inputs of the confidence score for one group.

    Attributes:
        time_span_hours: Hours between first and last photo
        has_location: Whether any photo has GPS
        people_count: Distinct people across the group
        density: Photos per hour
        photo_count: Number of photos
    """

    model_config = ConfigDict(frozen=True)

    time_span_hours: float = Field(default=0.0, ge=0.0)
    has_location: bool = False
    people_count: int = Field(default=0, ge=0)
    density: float = Field(default=0.0, ge=0.0)
    photo_count: int = Field(default=0, ge=0)

    @classmethod
    def from_photos(
        cls,
        photos: Sequence[MediaAsset],
        people: set[str] | None = None,
    ) -> GroupSignals:
        return cls(
            time_span_hours=calculate_time_span(photos).total_seconds() / 3600,
            has_location=any(p.has_location for p in photos),
            people_count=len(people or ()),
            density=calculate_photo_density(photos),
            photo_count=len(photos),
        )


def calculate_confidence_score(
    signals: GroupSignals,
    weights: CorrelationWeights | None = None,
) -> float:
    """Weighted event-worthiness of a group, in [0, 1].

    Args:
        signals: Group measurements
        weights: Sub-score weights (defaults 0.5/0.3/0.15/0.05)

    Returns:
        Confidence score

    Example:
        >>> calculate_confidence_score(GroupSignals(
        ...     time_span_hours=2, has_location=True, people_count=5, density=10, photo_count=15
        ... ))
        0.85
    """
    weights = weights or CorrelationWeights()

    time_score = _clamp(1.0 - signals.time_span_hours / TIME_SCORE_HOURS)
    location_score = 1.0 if signals.has_location else MISSING_LOCATION_SCORE
    people_score = _clamp(signals.people_count / PEOPLE_SCORE_COUNT)
    density_score = _clamp(signals.density / DENSITY_SCORE_PER_HOUR)

    total = (
        time_score * weights.time
        + location_score * weights.location
        + people_score * weights.people
        + density_score * weights.density
    )
    return _clamp(total)


# =============================================================================
# Classification
# =============================================================================


def find_holiday(
    when: datetime,
    holidays: Sequence[HolidayWindow] = DEFAULT_HOLIDAYS,
) -> HolidayWindow | None:
    """First holiday window containing the UTC date of ``when``."""
    day = when.astimezone(timezone.utc).date()
    for holiday in holidays:
        if holiday.contains(day):
            return holiday
    return None


def determine_event_type(
    photos: Sequence[MediaAsset],
    holidays: Sequence[HolidayWindow] = DEFAULT_HOLIDAYS,
    celebration_density: float = 20.0,
) -> EventType:
    """Classify a group; first match wins.

    The representative date is the UTC date of the earliest photo.

    Args:
        photos: Group members
        holidays: Holiday windows
        celebration_density: Photos per hour above which a group is a celebration

    Returns:
        holiday, weekend, celebration or general
    """
    if not photos:
        return EventType.GENERAL

    first = min(p.created_at for p in photos).astimezone(timezone.utc)

    if find_holiday(first, holidays) is not None:
        return EventType.HOLIDAY
    if first.weekday() >= 5:
        return EventType.WEEKEND
    if calculate_photo_density(photos) > celebration_density:
        return EventType.CELEBRATION
    return EventType.GENERAL


def generate_event_title(
    event_type: EventType,
    photos: Sequence[MediaAsset],
    location: GeoPoint | None,
    holidays: Sequence[HolidayWindow] = DEFAULT_HOLIDAYS,
) -> str:
    """Display title for a suggestion."""
    if event_type == EventType.HOLIDAY and photos:
        first = min(p.created_at for p in photos).astimezone(timezone.utc)
        holiday = find_holiday(first, holidays)
        name = holiday.name if holiday else "Holiday"
        return f"{name} {first.year}"

    if event_type == EventType.WEEKEND:
        return "Weekend Getaway"

    if event_type == EventType.CELEBRATION:
        return "Celebration"

    if location is not None:
        return f"Day at {location.to_display_string()}"
    return "Photo Collection"


# =============================================================================
# Service
# =============================================================================


class EventCorrelationService:
    """Turns a photo library into ranked event suggestions.

    Stateless between calls; the configuration is fixed at construction.

    Attributes:
        config: Grouping thresholds and scoring weights
    """

    def __init__(
        self,
        config: CorrelationConfig | None = None,
        id_factory: Callable[[], str] | None = None,
    ):
        self.config = config or CorrelationConfig()
        self._make_id = id_factory or (lambda: str(uuid.uuid4()))

    def analyze_and_suggest_events(
        self,
        assets: Iterable[MediaAsset],
        people_data: PeopleData | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        limit: int | None = None,
    ) -> list[EventSuggestion]:
        """Group photos and return suggestions, most confident first.

        Args:
            assets: Library assets; non-photo assets are ignored
            people_data: Asset id to person ids
            start_date: Ignore photos taken before this instant
            end_date: Ignore photos taken after this instant
            limit: Maximum number of suggestions (config default if omitted)

        Returns:
            Suggestions sorted by descending confidence
        """
        photos = [
            a
            for a in assets
            if a.type == AssetType.PHOTO
            and (start_date is None or a.created_at >= start_date)
            and (end_date is None or a.created_at <= end_date)
        ]

        groups = self.group_photos(photos)
        groups = self.merge_groups_by_people(groups, people_data)

        suggestions = [self._create_suggestion(group, people_data) for group in groups]
        suggestions.sort(key=lambda s: (-s.confidence, s.start_date))

        limit = self.config.suggestion_limit if limit is None else limit
        logger.info(
            f"Generated {len(suggestions)} event suggestions from {len(photos)} photos"
        )
        return suggestions[:limit]

    def group_photos(self, photos: Iterable[MediaAsset]) -> list[PhotoGroup]:
        """Chain photos into groups by time gap and location hop.

        Consecutive photos join the same group while the gap is within
        ``max_time_gap_hours`` and, when both have GPS, the distance is within
        ``max_location_distance_meters``. Groups smaller than
        ``min_photos_for_event`` are dropped.
        """
        max_gap = timedelta(hours=self.config.max_time_gap_hours)
        groups: list[list[MediaAsset]] = []
        current: list[MediaAsset] = []

        for photo in sorted(photos, key=lambda p: p.created_at):
            if current and not self._is_related(current[-1], photo, max_gap):
                groups.append(current)
                current = []
            current.append(photo)

        if current:
            groups.append(current)

        return [
            PhotoGroup(photos=g) for g in groups if len(g) >= self.config.min_photos_for_event
        ]

    def _is_related(self, last: MediaAsset, photo: MediaAsset, max_gap: timedelta) -> bool:
        if photo.created_at - last.created_at > max_gap:
            return False
        if last.location is not None and photo.location is not None:
            return last.location.distance_meters(photo.location) <= self.config.max_location_distance_meters
        return True

    def merge_groups_by_people(
        self,
        groups: Sequence[PhotoGroup],
        people_data: PeopleData | None = None,
    ) -> list[PhotoGroup]:
        """Merge groups whose people sets overlap strongly.

        Two groups merge when the Jaccard index of their people exceeds
        ``people_overlap_threshold``. Groups without people never merge.
        Merged groups keep the position of their earliest member.
        """
        merged: list[tuple[list[MediaAsset], set[str]]] = []

        for group in groups:
            people = collect_people(group.photos, people_data)
            target = None
            if people:
                for photos, existing in merged:
                    if _jaccard(people, existing) > self.config.people_overlap_threshold:
                        target = (photos, existing)
                        break

            if target is None:
                merged.append((list(group.photos), set(people)))
            else:
                target[0].extend(group.photos)
                target[1].update(people)

        if len(merged) < len(groups):
            logger.debug(f"Merged {len(groups)} photo groups into {len(merged)} by shared people")

        return [
            PhotoGroup(photos=sorted(photos, key=lambda p: p.created_at)) for photos, _ in merged
        ]

    def _create_suggestion(
        self,
        group: PhotoGroup,
        people_data: PeopleData | None,
    ) -> EventSuggestion:
        photos = group.photos
        people = collect_people(photos, people_data)
        signals = GroupSignals.from_photos(photos, people)
        location = representative_location(photos)

        event_type = determine_event_type(
            photos,
            holidays=self.config.holidays,
            celebration_density=self.config.celebration_density_threshold,
        )

        return EventSuggestion(
            id=self._make_id(),
            title=generate_event_title(event_type, photos, location, self.config.holidays),
            type=event_type,
            start_date=photos[0].created_at,
            end_date=photos[-1].created_at,
            location=location,
            photo_ids=group.photo_ids,
            people_ids=sorted(people),
            confidence=calculate_confidence_score(signals, self.config.weights),
            metadata={
                "photoCount": signals.photo_count,
                "timeSpanHours": round(signals.time_span_hours, 2),
                "peopleCount": signals.people_count,
                "density": round(signals.density, 2),
            },
        )


def _jaccard(a: set[str], b: set[str]) -> float:
    union = a | b
    if not union:
        return 0.0
    return len(a & b) / len(union)
