"""Local TTL cache in front of the registry."""

from .backends import CacheBackend, FileBackend, MemoryBackend
from .store import CACHE_PREFIX, CACHE_TTL_MS, CacheNamespace, CacheStore

__all__ = [
    "CACHE_PREFIX",
    "CACHE_TTL_MS",
    "CacheBackend",
    "CacheNamespace",
    "CacheStore",
    "FileBackend",
    "MemoryBackend",
]
