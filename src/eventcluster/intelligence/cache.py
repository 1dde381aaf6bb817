"""In-memory TTL cache for suggestion computations.

Entries are keyed by the query window, an optional album filter and a
fingerprint of the analyzed assets, so a changed library never reuses a
stale result. Entries older than the TTL are treated as missing.

Example:
    >>> cache = SuggestionCache(ttl_seconds=3600)
    >>> key = cache.build_key(start, end, None, fingerprint_assets(assets))
    >>> cached = cache.get(key)
    >>> if cached is None:
    ...     cache.set(key, compute())
"""

from __future__ import annotations

import hashlib
import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, Mapping

from eventcluster.core.models import MediaAsset
from eventcluster.intelligence.models import EventSuggestion

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS: float = 3600.0

CacheKey = tuple[str, str, str, str]


def fingerprint_assets(
    assets: Iterable[MediaAsset],
    people_data: Mapping[str, Iterable[str]] | None = None,
) -> str:
    """Deterministic fingerprint of an asset collection.

    Order-independent. Includes ids, timestamps, coordinates and people, so
    any change that could alter suggestions changes the fingerprint.

    Returns:
        Full SHA-256 hex digest (64 characters).
    """
    rows = []
    for asset in assets:
        if asset.location is not None:
            loc = f"{asset.location.latitude:.6f},{asset.location.longitude:.6f}"
        else:
            loc = ""
        if people_data is not None and asset.id in people_data:
            people = sorted(people_data[asset.id])
        else:
            people = sorted(asset.face_ids)
        rows.append(f"{asset.id}:{asset.created_at.isoformat()}:{asset.type.value}:{loc}:{','.join(people)}")

    if not rows:
        return hashlib.sha256(b"empty-asset-set").hexdigest()

    rows.sort()
    return hashlib.sha256("|".join(rows).encode("utf-8")).hexdigest()


@dataclass
class _CacheEntry:
    suggestions: list[EventSuggestion]
    stored_at: float


class SuggestionCache:
    """Thread-safe TTL cache of suggestion lists.

    Attributes:
        ttl_seconds: Maximum age of a served entry
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[CacheKey, _CacheEntry] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    @staticmethod
    def build_key(
        start_date: datetime | None,
        end_date: datetime | None,
        album_id: str | None,
        fingerprint: str,
    ) -> CacheKey:
        return (
            start_date.isoformat() if start_date else "",
            end_date.isoformat() if end_date else "",
            album_id or "",
            fingerprint,
        )

    def get(self, key: CacheKey) -> list[EventSuggestion] | None:
        """Cached suggestions, or None when missing or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None

            if self._clock() - entry.stored_at >= self.ttl_seconds:
                del self._entries[key]
                self._misses += 1
                logger.debug("Suggestion cache entry expired")
                return None

            self._hits += 1
            return list(entry.suggestions)

    def set(self, key: CacheKey, suggestions: list[EventSuggestion]) -> None:
        with self._lock:
            self._entries[key] = _CacheEntry(list(suggestions), self._clock())

    def clear(self) -> int:
        """Drop every entry. Returns the number removed."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        if count:
            logger.debug(f"Cleared {count} suggestion cache entries")
        return count

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_stats(self) -> dict[str, int]:
        with self._lock:
            return {"entries": len(self._entries), "hits": self._hits, "misses": self._misses}
