"""In-process cache store."""

from __future__ import annotations

import asyncio
import copy
import logging
import time
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)


class MemoryCacheStore:
    """
    Dict-backed cache with TTL expiry, private to one process.

    Stored values are deep-copied on the way in and out so callers cannot
    mutate cached results.

    Example:
        cache = MemoryCacheStore()
        await cache.set("key", {"a": 1}, ttl_seconds=300)
        assert await cache.get("key") == {"a": 1}
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        """
        Initialize the store.

        Args:
            clock: Monotonic time source in seconds
        """
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Any | None:
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return copy.deepcopy(value)

    async def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        if ttl_seconds <= 0:
            return
        async with self._lock:
            self._entries[key] = (self._clock() + ttl_seconds, copy.deepcopy(value))

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._entries.pop(key, None)

    async def clear(self) -> None:
        async with self._lock:
            self._entries.clear()

    async def evict_expired(self) -> int:
        """
        Drop expired entries.

        Returns:
            Number of entries evicted
        """
        async with self._lock:
            now = self._clock()
            expired = [key for key, (expires_at, _) in self._entries.items() if now >= expires_at]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug(f"Evicted {len(expired)} expired cache entries")
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)
