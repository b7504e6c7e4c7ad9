"""Data models for resolved registry content."""

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass
class PlatformDescriptor:
    """Target platform of an image or of one manifest list entry."""

    os: str | None = None
    architecture: str | None = None
    variant: str | None = None
    digest: str | None = None
    size: int | None = None

    @property
    def is_valid(self) -> bool:
        """A platform without both os and architecture is not displayable."""
        return bool(self.os or self.architecture)

    def __str__(self) -> str:
        parts = [self.os or "unknown", self.architecture or "unknown"]
        if self.variant:
            parts.append(self.variant)
        return "/".join(parts)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PlatformDescriptor":
        return cls(
            os=data.get("os"),
            architecture=data.get("architecture"),
            variant=data.get("variant"),
            digest=data.get("digest"),
            size=data.get("size"),
        )


@dataclass
class ImageInfo:
    """Normalized view of an image, whether single- or multi-platform.

    ``total_size`` is the sum of layer and config sizes for a single-platform
    image, and the sum of the platform manifest document sizes for a
    manifest list.
    """

    manifest: dict[str, Any]
    config: dict[str, Any] | None = None
    total_size: int = 0
    platforms: list[PlatformDescriptor] = field(default_factory=list)
    is_multi_platform: bool = False
    created: str | None = None
    architecture: str | None = None
    os: str | None = None
    author: str | None = None
    docker_version: str | None = None
    first_manifest: dict[str, Any] | None = None

    @property
    def displayable_platforms(self) -> list[PlatformDescriptor]:
        """Platforms with at least an os or an architecture."""
        return [platform for platform in self.platforms if platform.is_valid]

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ImageInfo":
        """Rebuild from :meth:`to_dict` output.

        Raises:
            KeyError: If the manifest is missing
            TypeError: If the data is not a mapping of the expected shape
        """
        return cls(
            manifest=data["manifest"],
            config=data.get("config"),
            total_size=data.get("total_size", 0),
            platforms=[
                PlatformDescriptor.from_dict(platform)
                for platform in data.get("platforms") or []
            ],
            is_multi_platform=data.get("is_multi_platform", False),
            created=data.get("created"),
            architecture=data.get("architecture"),
            os=data.get("os"),
            author=data.get("author"),
            docker_version=data.get("docker_version"),
            first_manifest=data.get("first_manifest"),
        )


@dataclass(frozen=True)
class BlobHead:
    """Blob metadata returned by a HEAD request."""

    digest: str
    size: int | None
    media_type: str | None


@dataclass(frozen=True)
class CacheStats:
    """Snapshot of the entries a CacheStore owns."""

    count: int
    size: int
    keys: list[str] = field(default_factory=list)

    @property
    def size_kb(self) -> float:
        return round(self.size / 1024, 2)
