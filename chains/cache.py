"""
chains/cache.py - Expiring key/value store for gateway reads.

One namespace per CacheCategory, each with its own TTL. Expiry is lazy:
a stale entry is simply reported absent and gets overwritten by the next
set(). Misses (e.g. a pair that does not exist) are never stored.
"""

import threading
from dataclasses import dataclass
from typing import Any, Mapping

from core.constants import CacheCategory, DEFAULT_CACHE_TTLS
from core.logging import get_logger
from core.time import Clock, is_fresh, monotonic

logger = get_logger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    value: Any
    stored_at: float


class TTLCache:
    """
    Category-partitioned TTL cache.

    Usage:
        cache = TTLCache()
        cache.set(address, token_info, CacheCategory.TOKEN_INFO)
        cache.get(address, CacheCategory.TOKEN_INFO)
    """

    def __init__(
        self,
        ttls: Mapping[CacheCategory, float] | None = None,
        clock: Clock = monotonic,
    ):
        self.ttls: dict[CacheCategory, float] = {**DEFAULT_CACHE_TTLS, **(ttls or {})}
        self._clock = clock
        self._lock = threading.RLock()
        self._store: dict[CacheCategory, dict[str, CacheEntry]] = {
            category: {} for category in CacheCategory
        }

    @staticmethod
    def _normalize(key: str) -> str:
        return key.lower()

    def _live_entry(self, key: str, category: CacheCategory) -> CacheEntry | None:
        entry = self._store[category].get(self._normalize(key))
        if entry is None:
            return None
        if not is_fresh(entry.stored_at, self.ttls[category], self._clock()):
            return None
        return entry

    def get(self, key: str, category: CacheCategory) -> Any | None:
        """Return the live value for key, or None if absent or expired."""
        with self._lock:
            entry = self._live_entry(key, category)
            return entry.value if entry is not None else None

    def set(self, key: str, value: Any, category: CacheCategory) -> None:
        """Store value, replacing any previous (possibly stale) entry."""
        with self._lock:
            self._store[category][self._normalize(key)] = CacheEntry(
                value=value,
                stored_at=self._clock(),
            )

    def is_valid(self, key: str, category: CacheCategory) -> bool:
        """True if key holds a live entry in category."""
        with self._lock:
            return self._live_entry(key, category) is not None

    def clear(self) -> None:
        """Empty every category at once."""
        with self._lock:
            for entries in self._store.values():
                entries.clear()
        logger.info("Cache cleared")

    def stats(self) -> dict[str, int]:
        """Entry count per category, stale entries included."""
        with self._lock:
            return {category.value: len(entries) for category, entries in self._store.items()}

    def live_stats(self) -> dict[str, int]:
        """Count of live entries per category."""
        with self._lock:
            now = self._clock()
            return {
                category.value: sum(
                    1 for e in entries.values()
                    if is_fresh(e.stored_at, self.ttls[category], now)
                )
                for category, entries in self._store.items()
            }
