"""
Cache Store - bounded, TTL-aware key/record store.

- TTL is checked at read time; expired entries read as absent and are
  physically removed on the next prune() or overwrite
- prune() runs after every put(): when over capacity, entries are evicted
  by ascending last_used (approximate LRU by last access)
- A single lock guards the entry map
"""
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Generic, Hashable, List, Optional, TypeVar

from logs.logging_config import get_logger

logger = get_logger("cache")

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


@dataclass
class CacheEntry(Generic[V]):
    """A cached record with its creation and last-read times."""
    value: V
    timestamp: float
    last_used: float
    sequence: int = 0

    def age(self, now: float) -> float:
        return now - self.timestamp


class CacheStore(Generic[K, V]):
    """
    Bounded TTL cache used for both page content and summaries.

    Example:
        pages = CacheStore("page", capacity=24, ttl_seconds=360)
        pages.put(url, page)
        page = pages.get(url)
    """

    def __init__(
        self,
        name: str,
        capacity: int,
        ttl_seconds: float,
        clock: Callable[[], float] = time.time,
    ):
        if capacity < 1:
            raise ValueError(f"Cache capacity must be positive, got {capacity}")
        self.name = name
        self.capacity = capacity
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[K, CacheEntry[V]] = {}
        self._lock = threading.RLock()
        self._sequence = 0
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def _next_sequence(self) -> int:
        self._sequence += 1
        return self._sequence

    def _is_expired(self, entry: CacheEntry[V], now: float) -> bool:
        return entry.age(now) >= self.ttl_seconds

    def _touch(self, entry: CacheEntry[V], now: float) -> None:
        entry.last_used = now
        entry.sequence = self._next_sequence()

    def get(self, key: K) -> Optional[V]:
        """Return the value if present and fresh, refreshing last_used."""
        return self.get_valid(key)

    def get_valid(self, key: K, validator: Optional[Callable[[V], bool]] = None) -> Optional[V]:
        """
        Return the value if present, fresh and accepted by validator.

        A rejected or expired entry counts as a miss and is left in place.
        """
        with self._lock:
            now = self._clock()
            entry = self._entries.get(key)
            if entry is None or self._is_expired(entry, now):
                self._misses += 1
                return None
            if validator is not None and not validator(entry.value):
                self._misses += 1
                return None
            self._touch(entry, now)
            self._hits += 1
            return entry.value

    def is_valid(self, key: K, validator: Optional[Callable[[V], bool]] = None) -> bool:
        """Freshness (and optional validator) check without touching last_used."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or self._is_expired(entry, self._clock()):
                return False
            return validator is None or bool(validator(entry.value))

    def get_entry(self, key: K) -> Optional[CacheEntry[V]]:
        """Raw entry access, expired or not. For diagnostics."""
        with self._lock:
            return self._entries.get(key)

    def put(self, key: K, value: V, timestamp: Optional[float] = None) -> None:
        """
        Store value under key, replacing any previous entry.

        Args:
            key: Cache key
            value: Record to store
            timestamp: Creation time to keep (defaults to now), used when
                re-seeding a record created elsewhere
        """
        with self._lock:
            now = self._clock()
            self._entries[key] = CacheEntry(
                value=value,
                timestamp=now if timestamp is None else timestamp,
                last_used=now,
                sequence=self._next_sequence(),
            )
            self.prune()

    def delete(self, key: K) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def prune(self) -> int:
        """
        Drop expired entries, then evict least recently used entries until
        the store is at capacity.

        Returns:
            Number of entries removed
        """
        with self._lock:
            now = self._clock()
            removed = 0

            expired = [k for k, e in self._entries.items() if self._is_expired(e, now)]
            for key in expired:
                del self._entries[key]
                removed += 1

            overflow = len(self._entries) - self.capacity
            if overflow > 0:
                ordered = sorted(self._entries.items(), key=lambda item: (item[1].last_used, item[1].sequence))
                for key, _ in ordered[:overflow]:
                    del self._entries[key]
                    removed += 1
                self._evictions += overflow

            if removed:
                logger.debug(
                    f"[CACHE] Pruned | cache={self.name} | expired={len(expired)} | "
                    f"evicted={max(overflow, 0)} | size={len(self._entries)}"
                )
            return removed

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def keys(self) -> List[K]:
        with self._lock:
            return list(self._entries.keys())

    def stats(self) -> Dict[str, object]:
        with self._lock:
            return {
                "name": self.name,
                "size": len(self._entries),
                "capacity": self.capacity,
                "ttl_seconds": self.ttl_seconds,
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries
