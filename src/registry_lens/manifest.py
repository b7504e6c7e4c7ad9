"""Manifest media types and classification."""

from dataclasses import dataclass, field
from typing import Any, Union

from .exceptions import InvalidManifestError
from .models import PlatformDescriptor

DOCKER_MANIFEST_LIST = "application/vnd.docker.distribution.manifest.list.v2+json"
OCI_IMAGE_INDEX = "application/vnd.oci.image.index.v1+json"
DOCKER_MANIFEST = "application/vnd.docker.distribution.manifest.v2+json"
OCI_IMAGE_MANIFEST = "application/vnd.oci.image.manifest.v1+json"

MANIFEST_LIST_TYPES = (DOCKER_MANIFEST_LIST, OCI_IMAGE_INDEX)
IMAGE_MANIFEST_TYPES = (DOCKER_MANIFEST, OCI_IMAGE_MANIFEST)

# Richest representation first
MANIFEST_ACCEPT = ", ".join(
    [*MANIFEST_LIST_TYPES, *IMAGE_MANIFEST_TYPES, "application/json"]
)
IMAGE_MANIFEST_ACCEPT = ", ".join(IMAGE_MANIFEST_TYPES)


@dataclass(frozen=True)
class ImageManifest:
    """Single-platform manifest: a config descriptor plus layers."""

    raw: dict[str, Any]
    layers: list[dict[str, Any]] = field(default_factory=list)
    config: dict[str, Any] | None = None

    @property
    def config_digest(self) -> str | None:
        return (self.config or {}).get("digest")

    @property
    def total_size(self) -> int:
        """Sum of layer sizes plus the config blob size."""
        size = sum(layer.get("size") or 0 for layer in self.layers)
        return size + ((self.config or {}).get("size") or 0)


@dataclass(frozen=True)
class ManifestList:
    """Manifest list / image index referencing per-platform manifests."""

    raw: dict[str, Any]
    manifests: list[dict[str, Any]] = field(default_factory=list)

    @property
    def platforms(self) -> list[PlatformDescriptor]:
        """One descriptor per entry carrying a ``platform`` field."""
        return [
            PlatformDescriptor(
                os=entry["platform"].get("os"),
                architecture=entry["platform"].get("architecture"),
                variant=entry["platform"].get("variant") or None,
                digest=entry.get("digest"),
                size=entry.get("size"),
            )
            for entry in self.manifests
            if isinstance(entry.get("platform"), dict)
        ]

    @property
    def total_size(self) -> int:
        """Sum of the referenced manifest document sizes."""
        return sum(entry.get("size") or 0 for entry in self.manifests)


Manifest = Union[ImageManifest, ManifestList]


def is_manifest_list(manifest: Any) -> bool:
    """Check if a manifest lists per-platform manifests.

    Registries with missing or nonstandard media types are recognized by
    having a ``manifests`` array and no ``layers`` array.
    """
    if not isinstance(manifest, dict):
        return False
    if manifest.get("mediaType") in MANIFEST_LIST_TYPES:
        return True
    return isinstance(manifest.get("manifests"), list) and not isinstance(
        manifest.get("layers"), list
    )


def classify_manifest(manifest: Any) -> Manifest:
    """Turn a raw manifest document into an ImageManifest or a ManifestList.

    Args:
        manifest: Parsed manifest document

    Returns:
        ManifestList or ImageManifest

    Raises:
        InvalidManifestError: If the document has neither shape
    """
    if is_manifest_list(manifest):
        return ManifestList(
            raw=manifest,
            manifests=[
                entry for entry in manifest.get("manifests") or []
                if isinstance(entry, dict)
            ],
        )

    if not isinstance(manifest, dict):
        raise InvalidManifestError(
            f"Expected a manifest document, got {type(manifest).__name__}"
        )

    layers = manifest.get("layers")
    config = manifest.get("config")
    if not isinstance(layers, list) and not isinstance(config, dict):
        raise InvalidManifestError(
            "Unrecognized manifest shape: "
            f"keys={sorted(manifest)}, "
            f"mediaType={manifest.get('mediaType')!r}, "
            f"schemaVersion={manifest.get('schemaVersion')!r}"
        )

    return ImageManifest(
        raw=manifest,
        layers=[layer for layer in layers or [] if isinstance(layer, dict)],
        config=config if isinstance(config, dict) else None,
    )


def platform_from_config(config: dict[str, Any]) -> PlatformDescriptor:
    """Derive the platform of a single-platform image from its config blob.

    Some registries nest the platform fields under ``platform``; top-level
    fields are used for whatever the nested object lacks.
    """
    nested = config.get("platform")
    platform_data = nested if isinstance(nested, dict) else config
    return PlatformDescriptor(
        os=platform_data.get("os") or config.get("os"),
        architecture=platform_data.get("architecture") or config.get("architecture"),
        variant=(
            platform_data.get("variant")
            or config.get("variant")
            or platform_data.get("os.version")
            or None
        ),
    )
