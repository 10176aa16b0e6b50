"""Protocol definition for cache stores."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class CacheStore(Protocol):
    """
    Async key/value store with per-entry TTL.

    Values must be JSON-serializable. Implementations must tolerate
    concurrent get/set from independent tasks.
    """

    async def get(self, key: str) -> Any | None:
        """Return the stored value, or None on a miss or an expired entry."""
        ...

    async def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        """Store a value for ttl_seconds (non-positive TTLs store nothing)."""
        ...

    async def delete(self, key: str) -> None:
        ...

    async def clear(self) -> None:
        ...

    async def evict_expired(self) -> int:
        """Drop expired entries and return how many were dropped."""
        ...
