"""Test helpers: an in-process fake registry and a controllable clock."""

import base64
import hashlib
import json
from dataclasses import dataclass, field
from typing import Any

from aiohttp import web

from registry_lens.manifest import (
    DOCKER_MANIFEST,
    DOCKER_MANIFEST_LIST,
    OCI_IMAGE_INDEX,
)

CONFIG_MEDIA_TYPE = "application/vnd.docker.container.image.v1+json"
LAYER_MEDIA_TYPE = "application/vnd.docker.image.rootfs.diff.tar.gzip"


def make_digest(data: bytes | str) -> str:
    """Compute a sha256 digest string."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return f"sha256:{hashlib.sha256(data).hexdigest()}"


class FakeClock:
    """Callable clock returning seconds since the epoch."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@dataclass
class RecordedRequest:
    method: str
    path: str
    query: dict[str, str]
    headers: dict[str, str]


@dataclass
class FakeRegistry:
    """Minimal Registry v2 server backed by dictionaries."""

    repositories: list[str] = field(default_factory=list)
    tags: dict[str, list[str] | None] = field(default_factory=dict)
    # (repository, reference) -> (media type, document)
    manifests: dict[tuple[str, str], tuple[str, dict[str, Any]]] = field(
        default_factory=dict
    )
    # (repository, digest) -> (content type, body)
    blobs: dict[tuple[str, str], tuple[str, bytes]] = field(default_factory=dict)
    # path -> status code returned instead of the normal response
    failures: dict[str, int] = field(default_factory=dict)
    credentials: tuple[str, str] | None = None
    requests: list[RecordedRequest] = field(default_factory=list)
    url: str = ""

    def app(self) -> web.Application:
        app = web.Application(middlewares=[self._middleware])
        app.router.add_get("/v2/", self._ping)
        app.router.add_get("/v2/_catalog", self._catalog)
        app.router.add_get(r"/v2/{name:.+}/tags/list", self._tags)
        app.router.add_get(r"/v2/{name:.+}/manifests/{reference}", self._get_manifest)
        app.router.add_delete(
            r"/v2/{name:.+}/manifests/{reference}", self._delete_manifest
        )
        app.router.add_get(r"/v2/{name:.+}/blobs/{digest}", self._blob)
        return app

    def requests_to(self, suffix: str, method: str = "GET") -> list[RecordedRequest]:
        return [
            r for r in self.requests if r.path.endswith(suffix) and r.method == method
        ]

    @web.middleware
    async def _middleware(self, request: web.Request, handler):
        self.requests.append(
            RecordedRequest(
                method=request.method,
                path=request.path,
                query=dict(request.query),
                headers=dict(request.headers),
            )
        )
        if self.credentials is not None:
            user, password = self.credentials
            token = base64.b64encode(f"{user}:{password}".encode()).decode()
            if request.headers.get("Authorization") != f"Basic {token}":
                return web.json_response(
                    {"errors": [{"code": "UNAUTHORIZED"}]}, status=401
                )
        if request.path in self.failures:
            return web.Response(status=self.failures[request.path], text="failure")
        return await handler(request)

    async def _ping(self, request: web.Request) -> web.Response:
        return web.json_response({})

    async def _catalog(self, request: web.Request) -> web.Response:
        n = int(request.query.get("n", "100"))
        last = request.query.get("last")
        start = self.repositories.index(last) + 1 if last else 0
        return web.json_response({"repositories": self.repositories[start : start + n]})

    async def _tags(self, request: web.Request) -> web.Response:
        name = request.match_info["name"]
        if name not in self.tags:
            return web.json_response({"errors": [{"code": "NAME_UNKNOWN"}]}, status=404)
        return web.json_response({"name": name, "tags": self.tags[name]})

    async def _get_manifest(self, request: web.Request) -> web.Response:
        key = (request.match_info["name"], request.match_info["reference"])
        if key not in self.manifests:
            return web.json_response(
                {"errors": [{"code": "MANIFEST_UNKNOWN"}]}, status=404
            )
        media_type, document = self.manifests[key]
        body = json.dumps(document)
        return web.Response(
            text=body,
            content_type=media_type,
            headers={"Docker-Content-Digest": make_digest(body)},
        )

    async def _delete_manifest(self, request: web.Request) -> web.Response:
        key = (request.match_info["name"], request.match_info["reference"])
        if self.manifests.pop(key, None) is None:
            return web.json_response(
                {"errors": [{"code": "MANIFEST_UNKNOWN"}]}, status=404
            )
        return web.Response(status=202)

    async def _blob(self, request: web.Request) -> web.Response:
        key = (request.match_info["name"], request.match_info["digest"])
        if key not in self.blobs:
            return web.json_response({"errors": [{"code": "BLOB_UNKNOWN"}]}, status=404)
        content_type, body = self.blobs[key]
        return web.Response(
            body=body,
            content_type=content_type,
            headers={"Docker-Content-Digest": key[1]},
        )

    def add_blob(
        self,
        repository: str,
        data: dict[str, Any] | bytes,
        content_type: str = "application/octet-stream",
    ) -> str:
        """Store a blob and return its digest."""
        body = json.dumps(data).encode() if isinstance(data, dict) else data
        digest = make_digest(body)
        self.blobs[(repository, digest)] = (content_type, body)
        return digest

    def add_image(
        self,
        repository: str,
        tag: str,
        layer_sizes: list[int],
        config: dict[str, Any] | None = None,
        config_size: int | None = None,
        store_config: bool = True,
    ) -> dict[str, Any]:
        """Add a single-platform image and return its manifest."""
        config = config if config is not None else {"os": "linux", "architecture": "amd64"}
        config_body = json.dumps(config).encode()
        config_digest = make_digest(config_body)
        if store_config:
            self.blobs[(repository, config_digest)] = (
                "application/octet-stream",
                config_body,
            )
        manifest = {
            "schemaVersion": 2,
            "mediaType": DOCKER_MANIFEST,
            "config": {
                "mediaType": CONFIG_MEDIA_TYPE,
                "size": len(config_body) if config_size is None else config_size,
                "digest": config_digest,
            },
            "layers": [
                {
                    "mediaType": LAYER_MEDIA_TYPE,
                    "size": size,
                    "digest": make_digest(f"{repository}-{tag}-layer-{i}"),
                }
                for i, size in enumerate(layer_sizes)
            ],
        }
        self.manifests[(repository, tag)] = (DOCKER_MANIFEST, manifest)
        self._add_tag(repository, tag)
        return manifest

    def add_index(
        self,
        repository: str,
        tag: str,
        entries: list[dict[str, Any]],
        media_type: str | None = OCI_IMAGE_INDEX,
    ) -> dict[str, Any]:
        """Add a manifest list built from the given entries and return it."""
        index: dict[str, Any] = {"schemaVersion": 2, "manifests": entries}
        if media_type:
            index["mediaType"] = media_type
        self.manifests[(repository, tag)] = (media_type or DOCKER_MANIFEST_LIST, index)
        self._add_tag(repository, tag)
        return index

    def add_platform_image(
        self, repository: str, os: str, architecture: str, config: dict[str, Any]
    ) -> dict[str, Any]:
        """Add a per-platform manifest addressed by digest and return its list entry."""
        config_digest = self.add_blob(repository, config)
        manifest = {
            "schemaVersion": 2,
            "mediaType": DOCKER_MANIFEST,
            "config": {"mediaType": CONFIG_MEDIA_TYPE, "size": 10, "digest": config_digest},
            "layers": [],
        }
        body = json.dumps(manifest)
        digest = make_digest(body)
        self.manifests[(repository, digest)] = (DOCKER_MANIFEST, manifest)
        return {
            "mediaType": DOCKER_MANIFEST,
            "digest": digest,
            "size": len(body),
            "platform": {"os": os, "architecture": architecture},
        }

    def _add_tag(self, repository: str, tag: str) -> None:
        if repository not in self.repositories:
            self.repositories.append(repository)
        tags = self.tags.setdefault(repository, []) or []
        if tag not in tags:
            tags.append(tag)
        self.tags[repository] = tags
