"""Data models for event correlation and smart suggestions.

Example:
    >>> suggestion = EventSuggestion(
    ...     id="s1",
    ...     title="Christmas 2023",
    ...     type=EventType.HOLIDAY,
    ...     start_date=datetime(2023, 12, 25, 9, tzinfo=timezone.utc),
    ...     end_date=datetime(2023, 12, 25, 21, tzinfo=timezone.utc),
    ...     photo_ids=["a", "b", "c"],
    ...     confidence=0.82,
    ... )
"""

from __future__ import annotations

import calendar
import math
from datetime import date, datetime
from enum import Enum
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from eventcluster.core.models import GeoPoint, MediaAsset


# =============================================================================
# Enums
# =============================================================================


class EventType(str, Enum):
    """Classification of a suggested event.

    Checked in priority order: holiday, weekend, celebration, general.
    """

    HOLIDAY = "holiday"
    WEEKEND = "weekend"
    CELEBRATION = "celebration"
    GENERAL = "general"


# =============================================================================
# Configuration Value Objects
# =============================================================================


class CorrelationWeights(BaseModel):
    """Weights of the confidence sub-scores. Must sum to 1.0."""

    model_config = ConfigDict(frozen=True)

    time: float = Field(default=0.5, ge=0.0, le=1.0)
    location: float = Field(default=0.3, ge=0.0, le=1.0)
    people: float = Field(default=0.15, ge=0.0, le=1.0)
    density: float = Field(default=0.05, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def validate_sum(self) -> Self:
        """Weights must add up to one."""
        total = self.time + self.location + self.people + self.density
        if not math.isclose(total, 1.0, abs_tol=1e-9):
            raise ValueError(f"Correlation weights must sum to 1.0, got {total}")
        return self


class HolidayWindow(BaseModel):
    """A recurring date window treated as a holiday.

    Attributes:
        name: Used in suggestion titles ("Christmas 2023")
        month: Month of the window (1-12)
        start_day: First day, inclusive
        end_day: Last day, inclusive
    """

    model_config = ConfigDict(frozen=True)

    name: str
    month: int = Field(ge=1, le=12)
    start_day: int = Field(ge=1, le=31)
    end_day: int = Field(ge=1, le=31)

    @model_validator(mode="after")
    def validate_days(self) -> Self:
        # Leap year, so February 29 is a valid window day
        last_day = calendar.monthrange(2000, self.month)[1]
        if self.end_day > last_day:
            raise ValueError(
                f"Holiday {self.name!r}: month {self.month} has at most {last_day} days, "
                f"got end_day {self.end_day}"
            )
        if self.start_day > self.end_day:
            raise ValueError(
                f"Holiday {self.name!r}: start_day {self.start_day} after end_day {self.end_day}"
            )
        return self

    def contains(self, d: date) -> bool:
        return d.month == self.month and self.start_day <= d.day <= self.end_day

    def start_in(self, year: int) -> date:
        """First day of the window in ``year``, clamped to the month's length."""
        last_day = calendar.monthrange(year, self.month)[1]
        return date(year, self.month, min(self.start_day, last_day))


DEFAULT_HOLIDAYS: tuple[HolidayWindow, ...] = (
    HolidayWindow(name="Christmas", month=12, start_day=20, end_day=31),
    HolidayWindow(name="New Year", month=1, start_day=1, end_day=3),
)


class Season(str, Enum):
    """Meteorological seasons (northern hemisphere, solstice/equinox bounded)."""

    WINTER = "Winter"
    SPRING = "Spring"
    SUMMER = "Summer"
    FALL = "Fall"

    @classmethod
    def for_date(cls, d: date) -> Season:
        key = (d.month, d.day)
        if (3, 21) <= key <= (6, 20):
            return cls.SPRING
        if (6, 21) <= key <= (9, 20):
            return cls.SUMMER
        if (9, 21) <= key <= (12, 20):
            return cls.FALL
        return cls.WINTER

    def date_range(self, year: int) -> tuple[date, date]:
        """Start and end date of the season that begins in ``year``.

        Winter starts on December 21 of ``year`` and ends March 20 of the
        following year.
        """
        bounds = {
            Season.SPRING: ((3, 21), (6, 20)),
            Season.SUMMER: ((6, 21), (9, 20)),
            Season.FALL: ((9, 21), (12, 20)),
        }
        if self is Season.WINTER:
            return date(year, 12, 21), date(year + 1, 3, 20)
        (sm, sd), (em, ed) = bounds[self]
        return date(year, sm, sd), date(year, em, ed)


# =============================================================================
# Suggestions
# =============================================================================


class PhotoGroup(BaseModel):
    """Candidate group of photos considered for an event suggestion."""

    photos: list[MediaAsset] = Field(default_factory=list)

    @property
    def photo_ids(self) -> list[str]:
        return [p.id for p in self.photos]


class EventSuggestion(BaseModel):
    """An event the user may want to add to the timeline.

    Attributes:
        id: Suggestion identifier
        title: Display title
        type: Event classification
        start_date: First photo time (or suggested start)
        end_date: Last photo time (or suggested end)
        location: Representative location, if any photo had GPS
        photo_ids: Assets backing the suggestion
        people_ids: People seen in those assets
        confidence: Score in [0, 1]
        metadata: Signals and provenance (photoCount, density, suggestionType...)
    """

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    type: EventType
    start_date: datetime
    end_date: datetime
    location: GeoPoint | None = None
    photo_ids: list[str] = Field(default_factory=list)
    people_ids: list[str] = Field(default_factory=list)
    confidence: float = Field(ge=0.0, le=1.0)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def dedup_key(self) -> tuple[EventType, datetime]:
        """Suggestions with the same type and start are duplicates."""
        return (self.type, self.start_date)


class UserPreference(BaseModel):
    """Feedback state for one event type.

    Attributes:
        weight: Multiplier applied to suggestion confidence (starts at 1.0)
        accepts: Number of accepted suggestions
        rejects: Number of rejected suggestions
    """

    weight: float = Field(default=1.0, gt=0.0)
    accepts: int = Field(default=0, ge=0)
    rejects: int = Field(default=0, ge=0)

    @field_validator("weight")
    @classmethod
    def validate_weight(cls, v: float) -> float:
        if math.isnan(v) or math.isinf(v):
            raise ValueError(f"Preference weight must be finite, got {v}")
        return v


# =============================================================================
# Service Settings
# =============================================================================


class CorrelationConfig(BaseModel):
    """Settings for grouping photos into event suggestions.

    Attributes:
        max_time_gap_hours: Largest gap between consecutive photos of a group.
        max_location_distance_meters: Largest hop between located photos.
        min_photos_for_event: Groups smaller than this are not suggested.
        people_overlap_threshold: Jaccard overlap above which two groups merge.
        celebration_density_threshold: Photos per hour that mark a celebration.
        suggestion_limit: Maximum suggestions returned per analysis.
        weights: Confidence sub-score weights.
        holidays: Date windows classified as holidays.
    """

    max_time_gap_hours: float = Field(default=6.0, gt=0)
    max_location_distance_meters: float = Field(default=500.0, gt=0)
    min_photos_for_event: int = Field(default=3, ge=1)
    people_overlap_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    celebration_density_threshold: float = Field(default=20.0, gt=0)
    suggestion_limit: int = Field(default=20, ge=1)
    weights: CorrelationWeights = Field(default_factory=CorrelationWeights)
    holidays: list[HolidayWindow] = Field(default_factory=lambda: list(DEFAULT_HOLIDAYS))


class SuggestionConfig(BaseModel):
    """Settings for the suggestion feedback loop and cache.

    Attributes:
        cache_ttl_seconds: Age after which cached suggestions are recomputed.
        max_weight: Upper bound approached by accepted event types.
        min_weight: Floor approached by rejected event types (always > 0).
        accept_rate: Fraction of the distance to max_weight gained per accept.
        reject_rate: Fraction of the distance to min_weight lost per reject.
        edit_rate: Growth rate applied to the type a user edited a suggestion to.
        rejection_ratio: A type is suppressed once rejects > accepts * ratio.
        upcoming_holiday_days: Look-ahead window for holiday suggestions.
        seasonal_min_photos: Photos needed in last year's season to suggest it.
        issued_history_size: Most recent issued suggestions that accept feedback by id.
        accepted_history_size: Most recent accepted events kept for anniversaries.
    """

    cache_ttl_seconds: float = Field(default=3600.0, gt=0)
    max_weight: float = Field(default=2.0, gt=0)
    min_weight: float = Field(default=0.1, gt=0)
    accept_rate: float = Field(default=0.1, gt=0, lt=1)
    reject_rate: float = Field(default=0.1, gt=0, lt=1)
    edit_rate: float = Field(default=0.05, gt=0, lt=1)
    rejection_ratio: float = Field(default=2.0, gt=0)
    upcoming_holiday_days: int = Field(default=30, ge=0)
    seasonal_min_photos: int = Field(default=5, ge=1)
    issued_history_size: int = Field(default=500, ge=1)
    accepted_history_size: int = Field(default=1000, ge=1)

    @model_validator(mode="after")
    def validate_weight_bounds(self) -> Self:
        """The floor must sit below the neutral weight and the cap above it."""
        if not self.min_weight < 1.0 < self.max_weight:
            raise ValueError(
                f"Expected min_weight < 1.0 < max_weight, got "
                f"min_weight={self.min_weight}, max_weight={self.max_weight}"
            )
        return self

