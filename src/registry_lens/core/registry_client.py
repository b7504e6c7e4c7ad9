"""Docker Registry API v2 async client implementation."""

import asyncio
import base64
import logging
from functools import partial
from typing import Any
from urllib.parse import quote

import aiohttp

from ..exceptions import (
    AuthenticationError,
    ConfigurationError,
    NotFoundError,
    RegistryConnectionError,
    RegistryError,
    RegistryHTTPError,
)
from ..manifest import (
    IMAGE_MANIFEST_ACCEPT,
    MANIFEST_ACCEPT,
    ImageManifest,
    ManifestList,
    classify_manifest,
    is_manifest_list,
    platform_from_config,
)
from ..models import BlobHead, ImageInfo, PlatformDescriptor
from .session import create_session, parse_response_body
from .throttle import RequestThrottler
from .types import ConnectResult, Credentials, RegistryConfig

logger = logging.getLogger(__name__)


class RegistryClient:
    """Docker Registry API v2 async client.

    Discovery calls (catalog, tags, manifests, blobs) go through a
    RequestThrottler so that they reach the registry one at a time.
    ``ping`` and ``delete_manifest`` are single user actions and bypass it.
    """

    def __init__(
        self,
        credentials: Credentials | None = None,
        config: RegistryConfig | None = None,
        throttler: RequestThrottler | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        """Initialize the registry client.

        Args:
            credentials: Registry URL and optional basic-auth pair
            config: Transport settings
            throttler: Shared request throttler (one is created if omitted)
            session: aiohttp session to reuse; the client will not close it
        """
        self.config = config or RegistryConfig()
        self.throttler = throttler or RequestThrottler(delay=self.config.request_delay)
        self.session = session
        self._owns_session = session is None
        self._credentials = credentials

    async def __aenter__(self) -> "RegistryClient":
        """Enter async context manager."""
        await self._get_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context manager."""
        await self.close()

    async def close(self) -> None:
        """Close the client session if this client created it."""
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()
        if self._owns_session:
            self.session = None

    @property
    def credentials(self) -> Credentials | None:
        """Read-only view of the credentials in use."""
        return self._credentials

    def use_credentials(self, credentials: Credentials | None) -> None:
        """Replace the credentials view (connect, reconnect, disconnect)."""
        self._credentials = credentials

    @property
    def registry_url(self) -> str | None:
        if self._credentials is None or not self._credentials.registry_url:
            return None
        return self._credentials.registry_url.rstrip("/")

    def build_auth_header(self) -> str | None:
        """Build a Basic auth header value.

        Returns:
            ``Basic <base64(user:pass)>`` when both username and password are
            set, None otherwise (anonymous access)
        """
        creds = self._credentials
        if creds is None or not creds.username or not creds.password:
            return None
        token = base64.b64encode(f"{creds.username}:{creds.password}".encode("utf-8"))
        return f"Basic {token.decode('ascii')}"

    def _api_url(self, endpoint: str) -> str:
        base_url = self.registry_url
        if not base_url:
            raise ConfigurationError("Registry URL not configured")
        return f"{base_url}/v2{endpoint}"

    async def _get_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            self.session = await create_session(self.config)
            self._owns_session = True
        return self.session

    async def _send(
        self,
        endpoint: str,
        method: str = "GET",
        headers: dict[str, str] | None = None,
        params: dict[str, Any] | None = None,
    ) -> tuple[Any, str]:
        """Perform one HTTP call and map failure statuses to exceptions.

        Returns:
            (response headers, response body text)
        """
        url = self._api_url(endpoint)
        request_headers = {"Accept": MANIFEST_ACCEPT}
        request_headers.update(headers or {})
        auth_header = self.build_auth_header()
        if auth_header:
            request_headers["Authorization"] = auth_header

        session = await self._get_session()
        logger.debug("%s %s", method, url)
        try:
            async with session.request(
                method, url, headers=request_headers, params=params
            ) as resp:
                if resp.status == 401:
                    raise AuthenticationError(resp.reason or "Unauthorized")
                if resp.status == 404:
                    raise NotFoundError(resp.reason or "Not Found")
                if not 200 <= resp.status < 300:
                    raise RegistryHTTPError(resp.status, resp.reason or "")
                text = await resp.text(errors="replace")
                return resp.headers.copy(), text

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise RegistryConnectionError(
                f"Failed to reach registry at {self.registry_url}: {e}"
            ) from e

    async def request(
        self,
        endpoint: str,
        method: str = "GET",
        headers: dict[str, str] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Make an authenticated API request.

        Args:
            endpoint: Path below ``/v2`` (e.g. ``/_catalog``)
            method: HTTP method
            headers: Extra headers, overriding the defaults
            params: Query parameters

        Returns:
            Parsed JSON body, or the raw text when it is not JSON

        Raises:
            ConfigurationError: If no registry URL is configured
            AuthenticationError: On HTTP 401
            NotFoundError: On HTTP 404
            RegistryHTTPError: On any other non-2xx status
            RegistryConnectionError: If the registry cannot be reached
        """
        response_headers, text = await self._send(endpoint, method, headers, params)
        return parse_response_body(response_headers.get("Content-Type"), text)

    async def ping(self) -> None:
        """Check that the registry serves the v2 API (``GET /v2/``).

        Raises:
            RegistryError: If the check fails
        """
        await self.request("/")

    async def test_connection(self) -> ConnectResult:
        """Check registry reachability without raising.

        Returns:
            ConnectResult with the error message on failure
        """
        try:
            await self.ping()
        except RegistryError as e:
            return ConnectResult(success=False, error=str(e))
        return ConnectResult(success=True)

    async def get_catalog(
        self, page_size: int | None = None, last: str | None = None
    ) -> dict[str, Any]:
        """Get one page of the repository catalog.

        Args:
            page_size: Maximum entries in the page (``n``)
            last: Last repository name of the previous page (``last``)

        Returns:
            Catalog page, e.g. ``{"repositories": [...]}``
        """
        params: dict[str, Any] = {"n": page_size or self.config.page_size}
        if last:
            params["last"] = last
        return await self.request("/_catalog", params=params)

    async def get_all_repositories(self, page_size: int | None = None) -> list[str]:
        """Get every repository name by walking the catalog.

        Pages are requested through the throttler. A page whose length is
        not exactly ``page_size`` is the last one.

        Returns:
            Repository names in catalog order
        """
        page_size = page_size or self.config.page_size
        repositories: list[str] = []
        last: str | None = None

        while True:
            result = await self.throttler.enqueue(
                partial(self.get_catalog, page_size, last)
            )
            page = result.get("repositories") if isinstance(result, dict) else None
            page = page or []
            repositories.extend(page)
            if len(page) != page_size:
                break
            last = page[-1]

        logger.debug("Catalog listed %d repositories", len(repositories))
        return repositories

    async def get_tags(self, repository: str) -> dict[str, Any]:
        """Get the tag list document of a repository.

        Returns:
            e.g. ``{"name": "nginx", "tags": ["latest", "alpine"]}``
        """
        return await self.throttler.enqueue(
            partial(self.request, f"/{_quote_name(repository)}/tags/list")
        )

    async def get_manifest(
        self, repository: str, reference: str, accept: str = MANIFEST_ACCEPT
    ) -> Any:
        """Get the manifest for a tag or digest.

        Args:
            repository: Repository name
            reference: Tag or digest
            accept: Accept header; defaults to manifest list first, then
                image index, Docker manifest, OCI manifest and plain JSON

        Returns:
            Manifest document
        """
        endpoint = f"/{_quote_name(repository)}/manifests/{_quote_reference(reference)}"
        return await self.throttler.enqueue(
            partial(self.request, endpoint, headers={"Accept": accept})
        )

    async def get_blob(self, repository: str, digest: str) -> Any:
        """Get blob content (typically an image config)."""
        endpoint = f"/{_quote_name(repository)}/blobs/{_quote_reference(digest)}"
        return await self.throttler.enqueue(partial(self.request, endpoint))

    async def get_blob_head(self, repository: str, digest: str) -> BlobHead:
        """Probe a blob with a HEAD request.

        Raises:
            NotFoundError: If the blob does not exist
        """
        endpoint = f"/{_quote_name(repository)}/blobs/{_quote_reference(digest)}"
        headers, _ = await self.throttler.enqueue(
            partial(self._send, endpoint, "HEAD")
        )
        length = headers.get("Content-Length")
        return BlobHead(
            digest=headers.get("Docker-Content-Digest") or digest,
            size=int(length) if length and length.isdigit() else None,
            media_type=headers.get("Content-Type"),
        )

    async def delete_manifest(self, repository: str, digest: str) -> None:
        """Delete a manifest by digest.

        Sent directly, not through the throttler.

        Raises:
            RegistryError: If deletion fails
        """
        endpoint = f"/{_quote_name(repository)}/manifests/{_quote_reference(digest)}"
        await self.request(endpoint, method="DELETE")
        logger.info("Deleted manifest %s@%s", repository, digest)

    @staticmethod
    def is_manifest_list(manifest: Any) -> bool:
        """Check if a manifest is a manifest list / image index."""
        return is_manifest_list(manifest)

    async def get_image_info(self, repository: str, tag: str) -> ImageInfo:
        """Resolve a tag into an ImageInfo.

        Manifest lists are summarized from their entries, with metadata taken
        from the first platform's manifest and config. Single-platform images
        use their config blob. Failures of those secondary lookups only leave
        the metadata fields empty.

        Args:
            repository: Repository name
            tag: Tag or digest

        Returns:
            ImageInfo

        Raises:
            RegistryError: If the manifest itself cannot be fetched
            InvalidManifestError: If the manifest has an unknown shape
        """
        manifest = classify_manifest(await self.get_manifest(repository, tag))
        if isinstance(manifest, ManifestList):
            return await self._resolve_manifest_list(repository, manifest)
        return await self._resolve_image_manifest(repository, manifest)

    async def _resolve_manifest_list(
        self, repository: str, manifest: ManifestList
    ) -> ImageInfo:
        platforms = manifest.platforms
        first = platforms[0] if platforms else None
        first_manifest, config = None, None
        if first is not None:
            first_manifest, config = await self._fetch_platform_manifest(
                repository, first
            )

        return ImageInfo(
            manifest=manifest.raw,
            config=config,
            total_size=manifest.total_size,
            platforms=platforms,
            is_multi_platform=True,
            created=_config_field(config, "created"),
            architecture=(first and first.architecture)
            or _config_field(config, "architecture"),
            os=(first and first.os) or _config_field(config, "os"),
            author=_config_field(config, "author"),
            docker_version=_config_field(config, "docker_version"),
            first_manifest=first_manifest,
        )

    async def _resolve_image_manifest(
        self, repository: str, manifest: ImageManifest
    ) -> ImageInfo:
        config = None
        if manifest.config_digest:
            config = await self._fetch_config(repository, manifest.config_digest)

        return ImageInfo(
            manifest=manifest.raw,
            config=config,
            total_size=manifest.total_size,
            platforms=[platform_from_config(config)] if config else [],
            is_multi_platform=False,
            created=_config_field(config, "created"),
            architecture=_config_field(config, "architecture"),
            os=_config_field(config, "os"),
            author=_config_field(config, "author"),
            docker_version=_config_field(config, "docker_version"),
        )

    async def _fetch_platform_manifest(
        self, repository: str, platform: PlatformDescriptor
    ) -> tuple[dict[str, Any] | None, dict[str, Any] | None]:
        """Fetch a platform's manifest and config.

        Returns:
            (manifest, config); either is None when it could not be fetched
        """
        if not platform.digest:
            logger.warning(
                "Platform %s of %s has no digest, skipping config lookup",
                platform,
                repository,
            )
            return None, None

        try:
            platform_manifest = await self.get_manifest(
                repository, platform.digest, accept=IMAGE_MANIFEST_ACCEPT
            )
        except RegistryError as e:
            logger.warning(
                "Could not fetch platform manifest %s@%s: %s",
                repository,
                platform.digest,
                e,
            )
            return None, None

        if not isinstance(platform_manifest, dict):
            logger.warning(
                "Platform manifest %s@%s is not a JSON object",
                repository,
                platform.digest,
            )
            return None, None

        config_ref = platform_manifest.get("config")
        config_digest = config_ref.get("digest") if isinstance(config_ref, dict) else None
        config = None
        if config_digest:
            config = await self._fetch_config(repository, config_digest)
        return platform_manifest, config

    async def _fetch_config(self, repository: str, digest: str) -> dict[str, Any] | None:
        """Fetch an image config blob, or None if it is unavailable."""
        try:
            config = await self.get_blob(repository, digest)
        except RegistryError as e:
            logger.warning("Could not fetch config blob %s@%s: %s", repository, digest, e)
            return None

        if not isinstance(config, dict):
            logger.warning("Config blob %s@%s is not a JSON object", repository, digest)
            return None
        return config


def _quote_name(repository: str) -> str:
    # Namespaced repositories keep their path separators
    return quote(repository, safe="/")


def _quote_reference(reference: str) -> str:
    return quote(reference, safe=":")


def _config_field(config: dict[str, Any] | None, name: str) -> Any:
    if not config:
        return None
    return config.get(name) or None
