"""Simple in-memory cache for expensive aggregate queries."""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Awaitable, TypeVar

from taskhub.config import get_settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AsyncCache:
    """Keyed async-aware in-memory cache with per-entry TTL.

    Designed for read-through caching of aggregates that are cheap to
    invalidate and expensive to recompute.
    """

    def __init__(self):
        self._entries: dict[str, tuple[Any, datetime]] = {}
        self._lock = asyncio.Lock()

    def has(self, key: str) -> bool:
        """Check if ``key`` holds a value that has not expired."""
        entry = self._entries.get(key)
        if entry is None:
            return False
        return datetime.now() < entry[1]

    def get(self, key: str) -> Any | None:
        """Get cached data if valid, otherwise None."""
        if self.has(key):
            return self._entries[key][0]
        self._entries.pop(key, None)
        return None

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        """Store ``value`` under ``key`` for ``ttl_seconds``."""
        self._entries[key] = (value, datetime.now() + timedelta(seconds=ttl_seconds))

    def forget(self, key: str) -> None:
        """Invalidate ``key``, forcing next access to refresh."""
        self._entries.pop(key, None)

    def clear(self) -> None:
        """Invalidate every entry."""
        self._entries.clear()

    async def remember(
        self,
        key: str,
        ttl_seconds: int,
        fetch_func: Callable[[], Awaitable[T]],
    ) -> T:
        """Get cached data or fetch it if the entry is missing or expired.

        Uses an async lock so concurrent misses compute the value once.
        """
        # Fast path: check cache without lock
        if self.has(key):
            logger.debug("Cache hit for %s", key)
            return self._entries[key][0]

        # Slow path: acquire lock and fetch
        async with self._lock:
            # Double-check after acquiring lock
            if self.has(key):
                return self._entries[key][0]

            logger.debug("Cache miss for %s, recomputing", key)
            data = await fetch_func()
            self.set(key, data, ttl_seconds)
            return data


# Process-wide cache shared by every session
cache = AsyncCache()


class CategoryStatsCache:
    """Single-key cache for the per-category task statistics."""

    # Version the key when the cached shape changes
    KEY = "cat_stats_v1"
    TTL = 300

    @classmethod
    def ttl(cls) -> int:
        """Configured lifetime, defaulting to :attr:`TTL`."""
        return get_settings().category_stats_ttl

    @classmethod
    async def remember(cls, fetch_func: Callable[[], Awaitable[T]]) -> T:
        """Return the cached statistics, computing them on a miss."""
        return await cache.remember(cls.KEY, cls.ttl(), fetch_func)

    @classmethod
    def forget(cls) -> None:
        """Invalidate the cached statistics."""
        cache.forget(cls.KEY)
