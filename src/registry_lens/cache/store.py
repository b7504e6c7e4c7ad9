"""TTL cache for repositories, tags and image info."""

import json
import logging
import time
from collections.abc import Callable
from enum import Enum
from typing import Any

from ..exceptions import CacheStorageError
from ..models import CacheStats, ImageInfo
from .backends import CacheBackend, MemoryBackend

logger = logging.getLogger(__name__)

CACHE_PREFIX = "registry_lens_cache"
CACHE_TTL_MS = 24 * 60 * 60 * 1000  # 24 hours
REPOSITORIES_KEY = "list"

# Everything a backend or a stored document can throw at us
_STORAGE_ERRORS = (CacheStorageError, OSError, ValueError, TypeError, KeyError)


class CacheNamespace(str, Enum):
    """Logical groups of cache entries."""

    REPOSITORIES = "repositories"
    TAGS = "tags"
    IMAGE_INFO = "image_info"


class CacheStore:
    """Time-limited cache of registry data.

    Entries are stored as ``{"value": ..., "timestamp": <epoch ms>}`` JSON
    documents under ``registry_lens_cache:<namespace>:<identifier>``. An
    entry older than 24 hours is deleted when it is read and reported as a
    miss. Storage failures are logged and otherwise ignored: a broken cache
    behaves like an empty one.
    """

    def __init__(
        self,
        backend: CacheBackend | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the cache.

        Args:
            backend: Key-value storage (defaults to an in-memory backend)
            clock: Returns the current time in seconds since the epoch
        """
        self.backend: CacheBackend = backend if backend is not None else MemoryBackend()
        self._clock = clock

    @staticmethod
    def key(namespace: CacheNamespace | str, identifier: str) -> str:
        """Build the storage key of an entry."""
        namespace = CacheNamespace(namespace).value
        return f"{CACHE_PREFIX}:{namespace}:{identifier}"

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def save(self, namespace: CacheNamespace | str, identifier: str, value: Any) -> None:
        """Store a JSON-serializable value stamped with the current time."""
        key = self.key(namespace, identifier)
        try:
            document = json.dumps({"value": value, "timestamp": self._now_ms()})
            self.backend.set_item(key, document)
        except _STORAGE_ERRORS as e:
            logger.warning("Failed to save %s to cache: %s", key, e)

    def get(self, namespace: CacheNamespace | str, identifier: str) -> Any:
        """Return a cached value, or None on miss, expiry or storage error."""
        key = self.key(namespace, identifier)
        try:
            cached = self.backend.get_item(key)
            if cached is None:
                logger.debug("Cache miss: %s", key)
                return None

            document = json.loads(cached)
            if self._now_ms() - document["timestamp"] > CACHE_TTL_MS:
                logger.debug("Cache entry expired: %s", key)
                self.backend.remove_item(key)
                return None

            logger.debug("Cache hit: %s", key)
            return document["value"]
        except _STORAGE_ERRORS as e:
            logger.warning("Failed to get %s from cache: %s", key, e)
            return None

    def clear(self, namespace: CacheNamespace | str, identifier: str) -> None:
        """Remove one entry."""
        key = self.key(namespace, identifier)
        try:
            self.backend.remove_item(key)
        except _STORAGE_ERRORS as e:
            logger.warning("Failed to clear %s from cache: %s", key, e)

    def _own_keys(self) -> list[str]:
        return [key for key in self.backend.keys() if key.startswith(f"{CACHE_PREFIX}:")]

    def clear_all(self) -> None:
        """Remove every entry of this cache, leaving other keys alone."""
        try:
            for key in self._own_keys():
                self.backend.remove_item(key)
        except _STORAGE_ERRORS as e:
            logger.warning("Failed to clear cache: %s", e)

    def stats(self) -> CacheStats:
        """Count entries and their serialized size in bytes."""
        try:
            keys = self._own_keys()
            size = 0
            for key in keys:
                size += len((self.backend.get_item(key) or "").encode("utf-8"))
        except _STORAGE_ERRORS as e:
            logger.warning("Failed to get cache stats: %s", e)
            return CacheStats(count=0, size=0)
        return CacheStats(count=len(keys), size=size, keys=keys)

    def save_repositories(self, repositories: list[str]) -> None:
        self.save(CacheNamespace.REPOSITORIES, REPOSITORIES_KEY, repositories)

    def get_repositories(self) -> list[str] | None:
        return self.get(CacheNamespace.REPOSITORIES, REPOSITORIES_KEY)

    def clear_repositories(self) -> None:
        self.clear(CacheNamespace.REPOSITORIES, REPOSITORIES_KEY)

    def save_tags(self, repository: str, tags: list[str]) -> None:
        self.save(CacheNamespace.TAGS, repository, tags)

    def get_tags(self, repository: str) -> list[str] | None:
        return self.get(CacheNamespace.TAGS, repository)

    def clear_tags(self, repository: str) -> None:
        self.clear(CacheNamespace.TAGS, repository)

    def save_image_info(self, repository: str, tag: str, image_info: ImageInfo) -> None:
        self.save(CacheNamespace.IMAGE_INFO, f"{repository}:{tag}", image_info.to_dict())

    def get_image_info(self, repository: str, tag: str) -> ImageInfo | None:
        """Return cached image info; undecodable entries count as a miss."""
        data = self.get(CacheNamespace.IMAGE_INFO, f"{repository}:{tag}")
        if data is None:
            return None
        try:
            return ImageInfo.from_dict(data)
        except (KeyError, TypeError, AttributeError) as e:
            logger.warning("Discarding malformed image info for %s:%s: %s", repository, tag, e)
            return None

    def clear_image_info(self, repository: str, tag: str) -> None:
        self.clear(CacheNamespace.IMAGE_INFO, f"{repository}:{tag}")
