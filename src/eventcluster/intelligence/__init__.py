"""Event correlation, confidence scoring and smart suggestions."""

from eventcluster.intelligence.cache import SuggestionCache, fingerprint_assets
from eventcluster.intelligence.correlation import (
    EventCorrelationService,
    GroupSignals,
    calculate_confidence_score,
    calculate_photo_density,
    calculate_time_span,
    determine_event_type,
    generate_event_title,
    representative_location,
)
from eventcluster.intelligence.models import (
    DEFAULT_HOLIDAYS,
    CorrelationConfig,
    CorrelationWeights,
    EventSuggestion,
    EventType,
    HolidayWindow,
    PhotoGroup,
    Season,
    SuggestionConfig,
    UserPreference,
)
from eventcluster.intelligence.suggestions import (
    PreferenceStore,
    SmartEventSuggestionsService,
    SuggestionError,
    SuggestionNotFoundError,
    remove_duplicate_suggestions,
)

__all__ = [
    "DEFAULT_HOLIDAYS",
    "CorrelationConfig",
    "CorrelationWeights",
    "EventCorrelationService",
    "EventSuggestion",
    "EventType",
    "GroupSignals",
    "HolidayWindow",
    "PhotoGroup",
    "PreferenceStore",
    "Season",
    "SmartEventSuggestionsService",
    "SuggestionCache",
    "SuggestionConfig",
    "SuggestionError",
    "SuggestionNotFoundError",
    "UserPreference",
    "calculate_confidence_score",
    "calculate_photo_density",
    "calculate_time_span",
    "determine_event_type",
    "fingerprint_assets",
    "generate_event_title",
    "remove_duplicate_suggestions",
]
