"""registry-lens - Async Python client for browsing Docker/OCI registries."""

__version__ = "0.1.0"

from .browser import BrowserState, RegistryBrowser
from .cache import CacheNamespace, CacheStore, FileBackend, MemoryBackend
from .core.registry_client import RegistryClient
from .core.throttle import RequestThrottler
from .core.types import ConnectResult, Credentials, RegistryConfig, StorageInfo
from .credentials import FileCredentialStore, MemoryCredentialStore
from .exceptions import (
    AuthenticationError,
    ConfigurationError,
    CredentialStoreError,
    InvalidManifestError,
    ManifestError,
    NotFoundError,
    RegistryConnectionError,
    RegistryError,
    RegistryHTTPError,
)
from .manifest import ImageManifest, ManifestList, classify_manifest, is_manifest_list
from .models import BlobHead, CacheStats, ImageInfo, PlatformDescriptor
from .registry import (
    check_registry_connectivity,
    delete_manifest,
    get_image_info,
    get_manifest,
    list_repositories,
    list_tags,
)

__all__ = [
    "RegistryBrowser",
    "BrowserState",
    "RegistryClient",
    "RequestThrottler",
    "RegistryConfig",
    "Credentials",
    "ConnectResult",
    "StorageInfo",
    "CacheStore",
    "CacheNamespace",
    "FileBackend",
    "MemoryBackend",
    "FileCredentialStore",
    "MemoryCredentialStore",
    "ImageInfo",
    "ImageManifest",
    "ManifestList",
    "PlatformDescriptor",
    "BlobHead",
    "CacheStats",
    "classify_manifest",
    "is_manifest_list",
    "check_registry_connectivity",
    "list_repositories",
    "list_tags",
    "get_manifest",
    "get_image_info",
    "delete_manifest",
    "RegistryError",
    "ConfigurationError",
    "RegistryConnectionError",
    "RegistryHTTPError",
    "AuthenticationError",
    "NotFoundError",
    "ManifestError",
    "InvalidManifestError",
    "CredentialStoreError",
]
