"""
TTL cache component

An explicitly constructed cache with its own eviction policy: entries expire
after `ttl` seconds and the least recently used entry is evicted once
`max_entries` is reached. Each instance owns its storage and statistics, so
callers inject one where they need it and tests get a fresh one per case.

Only read-mostly data belongs here (the achievement catalog). Progress and
earned sets are never cached; they must be recomputed on every run.
"""
import logging
import time
from collections import OrderedDict
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class TTLCache:
    """In-memory TTL + LRU cache"""

    def __init__(
        self,
        ttl: float = 60,
        max_entries: int = 128,
        clock: Callable[[], float] = time.monotonic
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.ttl = ttl
        self.max_entries = max_entries
        self._clock = clock
        # key -> (value, expiry_timestamp)
        self._entries: OrderedDict[str, tuple[Any, float]] = OrderedDict()
        self._stats = {"hits": 0, "misses": 0, "evictions": 0, "invalidations": 0}

    @property
    def enabled(self) -> bool:
        return self.ttl > 0

    def get(self, key: str) -> Optional[Any]:
        """Return a live cached value, or None"""
        if not self.enabled:
            return None

        entry = self._entries.get(key)
        if entry is None:
            self._stats["misses"] += 1
            logger.debug(f"Cache MISS: {key}")
            return None

        value, expiry = entry
        if self._clock() >= expiry:
            del self._entries[key]
            self._stats["misses"] += 1
            logger.debug(f"Cache EXPIRED: {key}")
            return None

        self._entries.move_to_end(key)
        self._stats["hits"] += 1
        logger.debug(f"Cache HIT: {key}")
        return value

    def set(self, key: str, value: Any) -> None:
        """Store a value, evicting the least recently used entry if full"""
        if not self.enabled:
            return

        if key in self._entries:
            self._entries.move_to_end(key)
        self._entries[key] = (value, self._clock() + self.ttl)

        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            self._stats["evictions"] += 1
            logger.debug(f"Cache EVICTED: {evicted}")

    async def get_or_load(self, key: str, loader: Callable[[], Awaitable[Any]]) -> Any:
        """Return the cached value for key, loading and storing it on a miss"""
        value = self.get(key)
        if value is not None:
            return value

        value = await loader()
        self.set(key, value)
        return value

    def invalidate(self, key: Optional[str] = None) -> int:
        """
        Drop one entry, or everything when key is None

        Returns:
            Number of entries removed
        """
        if key is None:
            count = len(self._entries)
            self._entries.clear()
        else:
            count = 1 if self._entries.pop(key, None) is not None else 0

        self._stats["invalidations"] += count
        if count:
            logger.info(f"Invalidated {count} cache entries (key={key!r})")
        return count

    def clear_expired(self) -> int:
        """Remove expired entries, returning how many were dropped"""
        now = self._clock()
        expired = [k for k, (_, expiry) in self._entries.items() if now >= expiry]
        for k in expired:
            del self._entries[k]
        return len(expired)

    def stats(self) -> dict:
        """Hit/miss statistics for monitoring"""
        hits = self._stats["hits"]
        total = hits + self._stats["misses"]
        return {
            **self._stats,
            "size": len(self._entries),
            "hit_rate_percent": round(hits / total * 100, 2) if total else 0,
        }

    def __len__(self) -> int:
        return len(self._entries)
