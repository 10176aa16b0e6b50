"""JSON-file cache store."""

import asyncio
import json
import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Optional

from .keys import compute_checksum

logger = logging.getLogger(__name__)


class FileCacheStore:
    """Cache entries as JSON files in a directory.

    Each key maps to ``<sha256(key)>.json`` holding the key, the time it was
    stored, its expiry and the value. Unreadable or corrupt files are
    treated as misses and logged, never raised.

    Features:
    - Survives process restarts
    - TTL support: expired entries are ignored and removed on read
    - File I/O runs in worker threads so the event loop is not blocked
    """

    def __init__(self, cache_dir: Path):
        """Initialize the file cache.

        Args:
            cache_dir: Directory to store cache files (created if missing)
        """
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self._lock = asyncio.Lock()

    def _path_for(self, key: str) -> Path:
        return self.cache_dir / f"{compute_checksum(key)}.json"

    def _read(self, path: Path) -> Optional[dict[str, Any]]:
        if not path.exists():
            return None
        try:
            with open(path, encoding="utf-8") as f:
                data: dict[str, Any] = json.load(f)
                return data
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read cache entry {path.name}: {e}")
            return None

    def _write(self, path: Path, entry: dict[str, Any]) -> None:
        tmp_path = path.with_suffix(".tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(entry, f, ensure_ascii=False)
            tmp_path.replace(path)
        except (OSError, TypeError, ValueError) as e:
            logger.warning(f"Could not write cache entry {path.name}: {e}")

    def _remove(self, path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove cache entry {path.name}: {e}")

    @staticmethod
    def _is_expired(entry: dict[str, Any], now: datetime) -> bool:
        expires_at = entry.get("expires_at")
        if not expires_at:
            return True
        try:
            return datetime.fromisoformat(expires_at) <= now
        except ValueError:
            return True

    async def get(self, key: str) -> Optional[Any]:
        path = self._path_for(key)
        async with self._lock:
            entry = await asyncio.to_thread(self._read, path)
            if entry is None:
                return None
            if entry.get("key") != key or self._is_expired(entry, datetime.now()):
                await asyncio.to_thread(self._remove, path)
                return None
            return entry.get("value")

    async def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        if ttl_seconds <= 0:
            return
        now = datetime.now()
        entry = {
            "key": key,
            "stored_at": now.isoformat(),
            "expires_at": (now + timedelta(seconds=ttl_seconds)).isoformat(),
            "value": value,
        }
        async with self._lock:
            await asyncio.to_thread(self._write, self._path_for(key), entry)

    async def delete(self, key: str) -> None:
        async with self._lock:
            await asyncio.to_thread(self._remove, self._path_for(key))

    async def clear(self) -> None:
        async with self._lock:
            for path in self.cache_dir.glob("*.json"):
                await asyncio.to_thread(self._remove, path)
        logger.info(f"Cleared cache in {self.cache_dir}")

    async def evict_expired(self) -> int:
        """Remove expired entries.

        Returns:
            Number of entries evicted
        """
        now = datetime.now()
        evicted = 0
        async with self._lock:
            for path in self.cache_dir.glob("*.json"):
                entry = await asyncio.to_thread(self._read, path)
                if entry is None or self._is_expired(entry, now):
                    await asyncio.to_thread(self._remove, path)
                    evicted += 1

        if evicted:
            logger.info(f"Evicted {evicted} expired cache entries")
        return evicted
