"""Smart event suggestions with a user feedback loop.

Wraps EventCorrelationService with:
- Personalization: confidence is scaled by a per-event-type weight learned
  from accepted and rejected suggestions
- Suppression of event types the user keeps rejecting
- Contextual suggestions (upcoming holidays, anniversaries, seasons)
- Deduplication by (type, start) and a TTL cache of correlation results

All shared state (preferences, cache, issued suggestions) is guarded by
locks, so one service instance may be used from several threads.

Example:
    >>> service = SmartEventSuggestionsService()
    >>> suggestions = service.get_suggestions(assets)
    >>> service.accept_suggestion(suggestions[0].id)
    >>> service.preferences.weight(suggestions[0].type) > 1.0
    True
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections import OrderedDict, deque
from datetime import date, datetime, time, timedelta, timezone
from typing import Callable, Iterable, Mapping, Sequence

from eventcluster.core.models import AssetType, MediaAsset
from eventcluster.intelligence.cache import SuggestionCache, fingerprint_assets
from eventcluster.intelligence.correlation import EventCorrelationService
from eventcluster.intelligence.models import (
    EventSuggestion,
    EventType,
    Season,
    SuggestionConfig,
    UserPreference,
)

logger = logging.getLogger(__name__)

# Fixed confidences of contextual suggestions
UPCOMING_HOLIDAY_CONFIDENCE: float = 0.7
ANNIVERSARY_CONFIDENCE: float = 0.6
SEASONAL_CONFIDENCE: float = 0.5

# Last year's photos within this many days of a holiday back an upcoming one
HOLIDAY_LOOKBACK_DAYS: int = 3


# =============================================================================
# Exceptions
# =============================================================================


class SuggestionError(Exception):
    """Base exception for suggestion feedback errors."""

    pass


class SuggestionNotFoundError(SuggestionError):
    """Feedback was given for a suggestion id this service never issued."""

    def __init__(self, suggestion_id: str):
        super().__init__(f"Unknown suggestion id: {suggestion_id}")
        self.suggestion_id = suggestion_id


# =============================================================================
# Preferences
# =============================================================================


class PreferenceStore:
    """Lock-guarded map of event type to learned preference.

    Accepts move the weight a fixed fraction of the way towards
    ``max_weight``; rejects move it towards ``min_weight``. Each feedback
    changes the weight strictly until it is within float resolution of the
    bound (a few hundred consecutive updates with the default rates), after
    which it holds. The weight never leaves ``[min_weight, max_weight]``.
    """

    def __init__(self, config: SuggestionConfig | None = None):
        self.config = config or SuggestionConfig()
        self._preferences: dict[EventType, UserPreference] = {}
        self._lock = threading.Lock()

    def get(self, event_type: EventType) -> UserPreference:
        """Copy of the preference for a type (neutral if never seen)."""
        with self._lock:
            pref = self._preferences.get(event_type)
            return pref.model_copy() if pref else UserPreference()

    def weight(self, event_type: EventType) -> float:
        return self.get(event_type).weight

    def record_acceptance(self, event_type: EventType) -> UserPreference:
        with self._lock:
            pref = self._preferences.get(event_type, UserPreference())
            weight = pref.weight + (self.config.max_weight - pref.weight) * self.config.accept_rate
            updated = UserPreference(weight=weight, accepts=pref.accepts + 1, rejects=pref.rejects)
            self._preferences[event_type] = updated
        logger.debug(f"Accepted {event_type.value}: weight {pref.weight:.3f} -> {weight:.3f}")
        return updated.model_copy()

    def record_rejection(self, event_type: EventType) -> UserPreference:
        with self._lock:
            pref = self._preferences.get(event_type, UserPreference())
            floor = self.config.min_weight
            weight = floor + (pref.weight - floor) * (1.0 - self.config.reject_rate)
            updated = UserPreference(weight=weight, accepts=pref.accepts, rejects=pref.rejects + 1)
            self._preferences[event_type] = updated
        logger.debug(f"Rejected {event_type.value}: weight {pref.weight:.3f} -> {weight:.3f}")
        return updated.model_copy()

    def record_edit(self, original_type: EventType, edited_type: EventType) -> None:
        """Boost the type a user corrected a suggestion to."""
        if original_type == edited_type:
            return
        with self._lock:
            pref = self._preferences.get(edited_type, UserPreference())
            weight = min(self.config.max_weight, pref.weight * (1.0 + self.config.edit_rate))
            self._preferences[edited_type] = pref.model_copy(update={"weight": weight})

    def should_suggest(self, event_type: EventType) -> bool:
        """False once rejections dominate the type's history."""
        pref = self.get(event_type)
        return not pref.rejects > pref.accepts * self.config.rejection_ratio

    def snapshot(self) -> dict[EventType, UserPreference]:
        with self._lock:
            return {k: v.model_copy() for k, v in self._preferences.items()}


# =============================================================================
# Service
# =============================================================================


class SmartEventSuggestionsService:
    """Personalized, cached event suggestions.

    Attributes:
        correlation: Grouping and scoring engine
        config: Feedback and cache settings
        preferences: Learned per-type weights
        cache: Correlation results by query and asset fingerprint
    """

    def __init__(
        self,
        correlation: EventCorrelationService | None = None,
        config: SuggestionConfig | None = None,
        clock: Callable[[], datetime] | None = None,
        cache: SuggestionCache | None = None,
        id_factory: Callable[[], str] | None = None,
    ):
        self.correlation = correlation if correlation is not None else EventCorrelationService()
        self.config = config or SuggestionConfig()
        self.preferences = PreferenceStore(self.config)
        if cache is None:
            cache = SuggestionCache(ttl_seconds=self.config.cache_ttl_seconds)
        self.cache = cache
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._make_id = id_factory or (lambda: str(uuid.uuid4()))

        self._lock = threading.Lock()
        self._issued: OrderedDict[str, EventSuggestion] = OrderedDict()
        self._accepted: deque[EventSuggestion] = deque(maxlen=self.config.accepted_history_size)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_suggestions(
        self,
        assets: Sequence[MediaAsset],
        people_data: Mapping[str, Iterable[str]] | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        album_id: str | None = None,
        force_refresh: bool = False,
        now: datetime | None = None,
    ) -> list[EventSuggestion]:
        """Suggestions for a library, most confident first.

        Args:
            assets: Library assets (already filtered to ``album_id`` by the caller)
            people_data: Asset id to person ids
            start_date: Analysis window start
            end_date: Analysis window end
            album_id: Album filter, part of the cache key
            force_refresh: Recompute even when a fresh cache entry exists
            now: Reference time for contextual suggestions (clock if omitted)

        Returns:
            Deduplicated suggestions, at most ``correlation.config.suggestion_limit``
        """
        now = now or self._clock()
        analyzed = self._analyze(assets, people_data, start_date, end_date, album_id, force_refresh)

        personalized = [
            self._personalize(s) for s in analyzed if self.preferences.should_suggest(s.type)
        ]
        contextual = [
            s for s in self._contextual_suggestions(assets, now)
            if self.preferences.should_suggest(s.type)
        ]

        combined = sorted(personalized + contextual, key=lambda s: -s.confidence)
        result = remove_duplicate_suggestions(combined)[: self.correlation.config.suggestion_limit]

        with self._lock:
            for suggestion in result:
                self._issued[suggestion.id] = suggestion
                self._issued.move_to_end(suggestion.id)
            while len(self._issued) > self.config.issued_history_size:
                self._issued.popitem(last=False)

        logger.info(
            f"Returning {len(result)} suggestions "
            f"({len(personalized)} analyzed, {len(contextual)} contextual)"
        )
        return result

    def _analyze(
        self,
        assets: Sequence[MediaAsset],
        people_data: Mapping[str, Iterable[str]] | None,
        start_date: datetime | None,
        end_date: datetime | None,
        album_id: str | None,
        force_refresh: bool,
    ) -> list[EventSuggestion]:
        key = self.cache.build_key(start_date, end_date, album_id, fingerprint_assets(assets, people_data))

        if not force_refresh:
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug("Using cached correlation results")
                return cached

        suggestions = self.correlation.analyze_and_suggest_events(
            assets,
            people_data=people_data,
            start_date=start_date,
            end_date=end_date,
            limit=len(assets) or 1,
        )
        self.cache.set(key, suggestions)
        return suggestions

    def _personalize(self, suggestion: EventSuggestion) -> EventSuggestion:
        weight = self.preferences.weight(suggestion.type)
        confidence = min(1.0, suggestion.confidence * weight)
        return suggestion.model_copy(update={"confidence": confidence})

    # -------------------------------------------------------------------------
    # Contextual suggestions
    # -------------------------------------------------------------------------

    def _contextual_suggestions(
        self,
        assets: Sequence[MediaAsset],
        now: datetime,
    ) -> list[EventSuggestion]:
        photos = [a for a in assets if a.type == AssetType.PHOTO]
        today = now.date()
        return [
            *self._suggest_upcoming_holidays(photos, today),
            *self._suggest_anniversaries(today),
            *self._suggest_seasonal(photos, today),
        ]

    def _suggest_upcoming_holidays(
        self,
        photos: Sequence[MediaAsset],
        today: date,
    ) -> list[EventSuggestion]:
        suggestions = []
        for holiday in self.correlation.config.holidays:
            upcoming = holiday.start_in(today.year)
            if upcoming < today:
                upcoming = holiday.start_in(today.year + 1)
            if (upcoming - today).days > self.config.upcoming_holiday_days:
                continue

            last_year = holiday.start_in(upcoming.year - 1)
            window = timedelta(days=HOLIDAY_LOOKBACK_DAYS)
            backing = [p for p in photos if abs(_utc_date(p) - last_year) <= window]
            if not backing:
                continue

            start = _start_of_day(upcoming)
            suggestions.append(
                EventSuggestion(
                    id=self._make_id(),
                    title=f"{holiday.name} {upcoming.year}",
                    type=EventType.HOLIDAY,
                    start_date=start,
                    end_date=start + timedelta(days=1),
                    photo_ids=[p.id for p in backing],
                    confidence=UPCOMING_HOLIDAY_CONFIDENCE,
                    metadata={"suggestionType": "upcoming_holiday", "basedOnYear": last_year.year},
                )
            )
        return suggestions

    def _suggest_anniversaries(self, today: date) -> list[EventSuggestion]:
        with self._lock:
            accepted = list(self._accepted)

        suggestions = []
        for event in accepted:
            years_since = today.year - event.start_date.year
            if event.start_date.month != today.month or years_since <= 0:
                continue

            plural = "s" if years_since > 1 else ""
            start = _same_day_in_year(event.start_date, today.year)
            suggestions.append(
                EventSuggestion(
                    id=self._make_id(),
                    title=f"{event.title} - {years_since} Year{plural} Anniversary",
                    type=event.type,
                    start_date=start,
                    end_date=start + (event.end_date - event.start_date),
                    location=event.location,
                    confidence=ANNIVERSARY_CONFIDENCE,
                    metadata={
                        "suggestionType": "anniversary",
                        "originalEventId": event.id,
                        "yearsSince": years_since,
                    },
                )
            )
        return suggestions

    def _suggest_seasonal(
        self,
        photos: Sequence[MediaAsset],
        today: date,
    ) -> list[EventSuggestion]:
        season = Season.for_date(today)
        # Winter that started last December belongs to the previous year
        season_year = today.year - 1 if season is Season.WINTER and today.month <= 3 else today.year

        last_start, last_end = season.date_range(season_year - 1)
        seasonal = [p for p in photos if last_start <= _utc_date(p) <= last_end]
        if len(seasonal) < self.config.seasonal_min_photos:
            return []

        start, end = season.date_range(season_year)
        return [
            EventSuggestion(
                id=self._make_id(),
                title=f"{season.value} {season_year}",
                type=EventType.GENERAL,
                start_date=_start_of_day(start),
                end_date=_start_of_day(end + timedelta(days=1)),
                photo_ids=[p.id for p in seasonal],
                confidence=SEASONAL_CONFIDENCE,
                metadata={
                    "suggestionType": "seasonal",
                    "season": season.value,
                    "photoCount": len(seasonal),
                },
            )
        ]

    # -------------------------------------------------------------------------
    # Feedback
    # -------------------------------------------------------------------------

    def accept_suggestion(self, suggestion_id: str) -> UserPreference:
        """Record that the user created an event from a suggestion.

        Raises:
            SuggestionNotFoundError: If the id was never issued
        """
        suggestion = self._lookup(suggestion_id)
        with self._lock:
            self._accepted.append(suggestion)
        pref = self.preferences.record_acceptance(suggestion.type)
        self.cache.clear()
        return pref

    def reject_suggestion(self, suggestion_id: str) -> UserPreference:
        """Record that the user dismissed a suggestion.

        Raises:
            SuggestionNotFoundError: If the id was never issued
        """
        suggestion = self._lookup(suggestion_id)
        pref = self.preferences.record_rejection(suggestion.type)
        self.cache.clear()
        return pref

    def edit_suggestion(self, suggestion_id: str, edited: EventSuggestion) -> None:
        """Record that the user created an event from an edited suggestion.

        Raises:
            SuggestionNotFoundError: If the id was never issued
        """
        original = self._lookup(suggestion_id)
        with self._lock:
            self._accepted.append(edited)
        self.preferences.record_edit(original.type, edited.type)
        self.cache.clear()

    def accept_event_type(self, event_type: EventType) -> UserPreference:
        pref = self.preferences.record_acceptance(event_type)
        self.cache.clear()
        return pref

    def reject_event_type(self, event_type: EventType) -> UserPreference:
        pref = self.preferences.record_rejection(event_type)
        self.cache.clear()
        return pref

    def should_suggest_event_type(self, event_type: EventType) -> bool:
        return self.preferences.should_suggest(event_type)

    def _lookup(self, suggestion_id: str) -> EventSuggestion:
        with self._lock:
            suggestion = self._issued.get(suggestion_id)
        if suggestion is None:
            raise SuggestionNotFoundError(suggestion_id)
        return suggestion


# =============================================================================
# Helpers
# =============================================================================


def remove_duplicate_suggestions(suggestions: Iterable[EventSuggestion]) -> list[EventSuggestion]:
    """Keep the first suggestion of every (type, start) pair, in order."""
    seen: set[tuple[EventType, datetime]] = set()
    unique = []
    for suggestion in suggestions:
        if suggestion.dedup_key in seen:
            continue
        seen.add(suggestion.dedup_key)
        unique.append(suggestion)
    return unique


def _utc_date(asset: MediaAsset) -> date:
    return asset.created_at.astimezone(timezone.utc).date()


def _start_of_day(d: date) -> datetime:
    return datetime.combine(d, time.min, tzinfo=timezone.utc)


def _same_day_in_year(when: datetime, year: int) -> datetime:
    """``when`` moved to ``year``; February 29 falls back to the 28th."""
    try:
        return when.replace(year=year)
    except ValueError:
        return when.replace(year=year, day=28)
