"""Result caching for docseek."""

from pathlib import Path

from ..models.config import CacheConfig
from .file import FileCacheStore
from .keys import build_cache_key, compute_checksum
from .memory import MemoryCacheStore
from .protocols import CacheStore


def create_cache_store(config: CacheConfig) -> CacheStore:
    """Build the cache store selected by a CacheConfig."""
    if config.backend == "memory":
        return MemoryCacheStore()
    return FileCacheStore(Path(config.directory))


__all__ = [
    "CacheStore",
    "FileCacheStore",
    "MemoryCacheStore",
    "build_cache_key",
    "compute_checksum",
    "create_cache_store",
]
