"""
In-memory cache for nearest-feature lookups with TTL and size management.

Entries expire lazily: a stale entry is removed the next time it is read.
``None`` is a legitimate cached value (a confirmed negative lookup), so the
cache reports hits separately from values.
"""

import threading
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from ..config.logger_module import log_debug, log_info


@dataclass
class CacheEntry:
    """A cached value and when it was stored."""

    key: str
    value: Any
    created_at: float
    ttl: float

    def is_fresh(self, now: float) -> bool:
        return now - self.created_at < self.ttl


class TTLCache:
    """
    Process-local key/value cache with per-entry expiry.

    Features:
    - Deterministic coordinate keys, optionally rounded
    - Lazy TTL-based expiration
    - Oldest-first eviction once ``max_entries`` is reached
    - Thread-safe bookkeeping
    """

    def __init__(self,
                 ttl_seconds: float = 300.0,
                 max_entries: int = 10_000,
                 key_precision: Optional[int] = None,
                 name: str = "geo"):
        """
        Initialize the cache.

        Args:
            ttl_seconds: Default time-to-live for entries
            max_entries: Maximum number of entries kept
            key_precision: Decimal places coordinates are rounded to in keys,
                or None to use them verbatim
            name: Label used in log lines
        """
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")

        self.ttl = ttl_seconds
        self.max_entries = max_entries
        self.key_precision = key_precision
        self.name = name

        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

        log_info(
            f"TTLCache '{name}' initialized (TTL={ttl_seconds}s, "
            f"max_entries={max_entries})"
        )

    def make_key(self, namespace: str, latitude: float, longitude: float) -> str:
        """
        Build a deterministic key such as ``"airport:28.7041,77.1025"``.

        Args:
            namespace: Feature class or other lookup family
            latitude: Query latitude
            longitude: Query longitude

        Returns:
            Cache key
        """
        if self.key_precision is not None:
            latitude = round(latitude, self.key_precision)
            longitude = round(longitude, self.key_precision)
        return f"{namespace}:{latitude},{longitude}"

    def lookup(self, key: str) -> Tuple[bool, Any]:
        """
        Look up a key, distinguishing "no entry" from "entry holding None".

        Returns:
            ``(True, value)`` on a fresh hit, ``(False, None)`` otherwise
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return False, None

            if not entry.is_fresh(time.monotonic()):
                del self._entries[key]
                self._misses += 1
                log_debug(f"Cache expired: {key}")
                return False, None

            self._hits += 1
            return True, entry.value

    def get(self, key: str, default: Any = None) -> Any:
        """Return the cached value for ``key``, or ``default`` on a miss."""
        hit, value = self.lookup(key)
        return value if hit else default

    def __contains__(self, key: str) -> bool:
        return self.lookup(key)[0]

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        """
        Store a value, overwriting any existing entry.

        Args:
            key: Cache key
            value: Value to cache, None included
            ttl: Per-entry TTL override in seconds
        """
        with self._lock:
            if key not in self._entries and len(self._entries) >= self.max_entries:
                self._evict_oldest()
            self._entries[key] = CacheEntry(
                key=key,
                value=value,
                created_at=time.monotonic(),
                ttl=ttl if ttl is not None else self.ttl,
            )

    def _evict_oldest(self) -> None:
        # dicts keep insertion order, but overwrites refresh created_at
        oldest_key = min(self._entries, key=lambda k: self._entries[k].created_at)
        del self._entries[oldest_key]
        log_debug(f"Evicted for size limit: {oldest_key}")

    def delete(self, key: str) -> bool:
        """Remove a key. Returns True if it was present."""
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        """Drop every entry and reset statistics."""
        with self._lock:
            removed = len(self._entries)
            self._entries.clear()
            self._hits = 0
            self._misses = 0
        log_info(f"Cleared {removed} entries from cache '{self.name}'")

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_cache_stats(self) -> Dict[str, float]:
        """
        Get cache statistics.

        Returns:
            Dictionary with entry count, hit/miss counters and hit rate
        """
        with self._lock:
            lookups = self._hits + self._misses
            return {
                "entries": len(self._entries),
                "max_entries": self.max_entries,
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": (self._hits / lookups) if lookups else 0.0,
            }
