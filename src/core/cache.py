"""In-memory TTL cache with LRU eviction and hit/miss accounting.

Values are stored with a monotonic expiration timestamp. Expired entries
are dropped lazily on access and in bulk by `prune()`, which the server
runs periodically. Each cache owns its own `CacheStats` so separate
instances never share counters.
"""

from __future__ import annotations

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Generic, List, Optional, TypeVar

from core.errors import ValidationError

T = TypeVar("T")

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 3600.0
DEFAULT_MAXSIZE = 500


@dataclass(slots=True)
class CacheEntry(Generic[T]):
    key: str
    value: T
    created_at: float  # time.monotonic()
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


@dataclass(slots=True)
class CacheStats:
    """Lifetime counters for one cache instance. Never reset by clear()."""

    hits: int = 0
    misses: int = 0
    evictions: int = 0
    expirations: int = 0

    @property
    def lookups(self) -> int:
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        total = self.lookups
        return self.hits / total if total else 0.0


@dataclass(frozen=True, slots=True)
class CacheStatsSnapshot:
    hits: int
    misses: int
    evictions: int
    expirations: int
    hit_rate: float
    size: int
    maxsize: int
    ttl_seconds: float

    def to_dict(self) -> dict[str, float | int]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "expirations": self.expirations,
            "hit_rate": round(self.hit_rate, 4),
            "size": self.size,
            "maxsize": self.maxsize,
            "ttl_seconds": self.ttl_seconds,
        }


def _validate_key(key: str) -> str:
    if not isinstance(key, str) or not key.strip():
        raise ValidationError("Cache key must be a non-empty string")
    return key


class TTLCache(Generic[T]):
    """Bounded TTL cache with least-recently-used eviction.

    The OrderedDict keeps entries in recency order: the first item is the
    least recently used one. `get` and `set` never await, so under asyncio
    they are atomic with respect to other tasks and no lock is needed.
    """

    def __init__(
        self,
        *,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        maxsize: int = DEFAULT_MAXSIZE,
        stats: Optional[CacheStats] = None,
    ) -> None:
        ttl = float(ttl_seconds)
        if ttl <= 0:
            raise ValidationError("ttl_seconds must be positive")
        size = int(maxsize)
        if size < 1:
            raise ValidationError("maxsize must be at least 1")

        self._ttl = ttl
        self._maxsize = size
        self._stats = stats if stats is not None else CacheStats()
        self._store: "OrderedDict[str, CacheEntry[T]]" = OrderedDict()

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    @property
    def maxsize(self) -> int:
        return self._maxsize

    def get(self, key: str) -> Optional[T]:
        _validate_key(key)
        entry = self._store.get(key)
        if entry is None:
            self._stats.misses += 1
            logger.debug("cache miss: %s", key)
            return None

        # Lazy expiry; monotonic time avoids wall-clock shifts
        if entry.is_expired(time.monotonic()):
            del self._store[key]
            self._stats.expirations += 1
            self._stats.misses += 1
            logger.debug("cache miss (expired): %s", key)
            return None

        self._store.move_to_end(key, last=True)
        self._stats.hits += 1
        logger.debug("cache hit: %s", key)
        return entry.value

    def set(self, key: str, value: T) -> None:
        _validate_key(key)
        now = time.monotonic()

        if key in self._store:
            # Overwrite refreshes recency and expiry, never evicts
            self._store.pop(key)
        elif len(self._store) >= self._maxsize:
            evicted, _ = self._store.popitem(last=False)
            self._stats.evictions += 1
            logger.debug("cache evicted LRU entry: %s", evicted)

        self._store[key] = CacheEntry(key=key, value=value, created_at=now, expires_at=now + self._ttl)

    def prune(self) -> int:
        """Remove every entry whose expiry has passed; return how many were removed."""
        now = time.monotonic()
        expired = [k for k, entry in self._store.items() if entry.is_expired(now)]
        for k in expired:
            del self._store[k]
        self._stats.expirations += len(expired)

        if expired:
            logger.info("cache pruned %d expired entries", len(expired))
        return len(expired)

    def clear(self) -> None:
        count = len(self._store)
        self._store.clear()
        logger.info("cache cleared (%d entries dropped)", count)

    def stats(self) -> CacheStatsSnapshot:
        s = self._stats
        return CacheStatsSnapshot(
            hits=s.hits,
            misses=s.misses,
            evictions=s.evictions,
            expirations=s.expirations,
            hit_rate=s.hit_rate,
            size=len(self._store),
            maxsize=self._maxsize,
            ttl_seconds=self._ttl,
        )

    def keys(self) -> List[str]:
        # Oldest (next to evict) first
        return list(self._store.keys())

    def __len__(self) -> int:
        return len(self._store)
