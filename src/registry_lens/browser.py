"""Cache-first access to a registry for interactive browsing."""

import logging
from dataclasses import dataclass, field
from typing import Any

from .cache.store import CacheStore
from .core.registry_client import RegistryClient
from .core.types import ConnectResult, Credentials, StorageInfo
from .credentials import CredentialProvider, MemoryCredentialStore
from .exceptions import CredentialStoreError, RegistryError
from .models import CacheStats, ImageInfo

logger = logging.getLogger(__name__)


@dataclass
class BrowserState:
    """In-memory state derived from the connected registry."""

    is_initializing: bool = True
    is_connected: bool = False
    is_loading: bool = False
    error: str | None = None
    registry_url: str | None = None
    storage_info: StorageInfo | None = None
    repositories: list[str] = field(default_factory=list)
    selected_repository: str | None = None
    selected_tag: str | None = None
    tags: dict[str, list[str]] = field(default_factory=dict)
    manifests: dict[str, Any] = field(default_factory=dict)
    image_infos: dict[str, ImageInfo] = field(default_factory=dict)
    filter: str = ""


class RegistryBrowser:
    """Connects the credential provider, the cache and the registry client.

    Repositories, tags and image info are read cache first. On a miss the
    registry is queried and the result written back to the cache. Registry
    errors reach the caller unchanged and nothing is cached for them.

    The cache is keyed by repository and tag only, so it survives disconnect
    and is shared between registries using the same cache backend.
    """

    def __init__(
        self,
        client: RegistryClient | None = None,
        cache: CacheStore | None = None,
        credential_store: CredentialProvider | None = None,
    ) -> None:
        self.client = client or RegistryClient()
        self.cache = cache or CacheStore()
        self.credential_store: CredentialProvider = (
            credential_store or MemoryCredentialStore()
        )
        self.state = BrowserState()

    async def __aenter__(self) -> "RegistryBrowser":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.client.close()

    @property
    def credentials(self) -> Credentials | None:
        return self.client.credentials

    @property
    def filtered_repositories(self) -> list[str]:
        """Repositories containing the filter text, case-insensitively."""
        if not self.state.filter:
            return self.state.repositories
        needle = self.state.filter.lower()
        return [repo for repo in self.state.repositories if needle in repo.lower()]

    async def connect(
        self, registry_url: str, username: str | None = None, password: str | None = None
    ) -> ConnectResult:
        """Save credentials, verify the registry and load repositories.

        Credentials are rolled back if saving or verification fails.

        Returns:
            ConnectResult with the storage method on success or the error
        """
        self.state.is_loading = True
        self.state.error = None
        try:
            self.client.use_credentials(Credentials(registry_url, username, password))
            save_result = self.credential_store.save(registry_url, username, password)
            self.state.storage_info = self.credential_store.describe()
            await self.client.ping()
        except (RegistryError, CredentialStoreError) as e:
            logger.warning("Could not connect to %s: %s", registry_url, e)
            self.state.error = str(e)
            self.state.registry_url = None
            self._forget_credentials()
            return ConnectResult(success=False, error=str(e))
        finally:
            self.state.is_loading = False

        self.state.is_connected = True
        self.state.registry_url = registry_url
        await self._populate_repositories()
        return ConnectResult(success=True, storage_method=save_result.method)

    async def reconnect(self) -> bool:
        """Restore a session from stored credentials.

        Returns:
            True if stored credentials exist and the registry answered
        """
        try:
            try:
                credentials = self.credential_store.load()
            except CredentialStoreError as e:
                logger.warning("Could not load stored credentials: %s", e)
                return False

            if credentials is None or not credentials.registry_url:
                return False

            self.state.is_loading = True
            self.state.error = None
            self.client.use_credentials(credentials)
            try:
                self.state.storage_info = self.credential_store.describe()
                await self.client.ping()
            except (RegistryError, CredentialStoreError) as e:
                logger.warning("Could not reconnect to %s: %s", credentials.registry_url, e)
                self.state.error = str(e)
                self.client.use_credentials(None)
                return False
            finally:
                self.state.is_loading = False

            self.state.is_connected = True
            self.state.registry_url = credentials.registry_url
            await self._populate_repositories()
            return True
        finally:
            self.state.is_initializing = False

    async def disconnect(self) -> None:
        """Forget credentials and derived state; the cache is kept."""
        self._forget_credentials()
        self.state = BrowserState(is_initializing=False)

    def _forget_credentials(self) -> None:
        self.client.use_credentials(None)
        try:
            self.credential_store.clear()
        except CredentialStoreError as e:
            logger.warning("Could not clear stored credentials: %s", e)

    async def _populate_repositories(self) -> None:
        # A failed listing leaves the session connected with the error recorded
        try:
            await self.load_repositories()
        except RegistryError as e:
            logger.warning("Could not list repositories: %s", e)

    async def load_repositories(self) -> list[str]:
        """Return all repositories, from the cache when available.

        Raises:
            RegistryError: If the registry request fails
        """
        self.state.is_loading = True
        self.state.error = None
        try:
            cached = self.cache.get_repositories()
            if cached is not None:
                self.state.repositories = cached
                return cached

            repositories = await self.client.get_all_repositories()
            self.cache.save_repositories(repositories)
            self.state.repositories = repositories
            return repositories
        except RegistryError as e:
            self.state.error = str(e)
            raise
        finally:
            self.state.is_loading = False

    async def load_tags(self, repository: str) -> list[str]:
        """Return the tags of a repository, from memory or cache when available.

        Raises:
            RegistryError: If the registry request fails
        """
        if repository in self.state.tags:
            return self.state.tags[repository]

        cached = self.cache.get_tags(repository)
        if cached is not None:
            self.state.tags[repository] = cached
            return cached

        self.state.is_loading = True
        self.state.error = None
        try:
            result = await self.client.get_tags(repository)
        except RegistryError as e:
            self.state.error = str(e)
            raise
        finally:
            self.state.is_loading = False

        tags = (result.get("tags") if isinstance(result, dict) else None) or []
        self.cache.save_tags(repository, tags)
        self.state.tags[repository] = tags
        return tags

    async def load_manifest(self, repository: str, tag: str) -> Any:
        """Return a manifest, memoized for the session but not cached.

        Raises:
            RegistryError: If the registry request fails
        """
        key = f"{repository}:{tag}"
        if key in self.state.manifests:
            return self.state.manifests[key]

        manifest = await self.client.get_manifest(repository, tag)
        self.state.manifests[key] = manifest
        return manifest

    async def load_image_info(self, repository: str, tag: str) -> ImageInfo:
        """Return resolved image info, from memory or cache when available.

        Raises:
            RegistryError: If the manifest cannot be fetched or is invalid
        """
        key = f"{repository}:{tag}"
        if key in self.state.image_infos:
            return self.state.image_infos[key]

        image_info = self.cache.get_image_info(repository, tag)
        if image_info is None:
            self.state.is_loading = True
            self.state.error = None
            try:
                image_info = await self.client.get_image_info(repository, tag)
            except RegistryError as e:
                self.state.error = str(e)
                raise
            finally:
                self.state.is_loading = False
            self.cache.save_image_info(repository, tag, image_info)

        self.state.image_infos[key] = image_info
        self.state.manifests[key] = image_info.manifest
        return image_info

    async def refresh_image_info(self, repository: str, tag: str) -> ImageInfo:
        """Drop cached image info and fetch it again."""
        self.clear_image_cache(repository, tag)
        return await self.load_image_info(repository, tag)

    def set_filter(self, text: str) -> None:
        self.state.filter = text

    def select_repository(self, repository: str | None) -> None:
        self.state.selected_repository = repository
        self.state.selected_tag = None

    def select_tag(self, tag: str | None) -> None:
        self.state.selected_tag = tag

    def get_storage_info(self) -> StorageInfo:
        return self.credential_store.describe()

    def clear_cache(self) -> None:
        self.cache.clear_all()

    def get_cache_stats(self) -> CacheStats:
        return self.cache.stats()

    def clear_image_cache(self, repository: str, tag: str) -> None:
        """Forget image info for one tag, in the cache and in memory."""
        self.cache.clear_image_info(repository, tag)
        key = f"{repository}:{tag}"
        self.state.image_infos.pop(key, None)
        self.state.manifests.pop(key, None)
