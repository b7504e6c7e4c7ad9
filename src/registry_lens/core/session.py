"""HTTP session creation and response body handling."""

import json
import logging
from typing import Any

import aiohttp

from .types import RegistryConfig

logger = logging.getLogger(__name__)

# Content types that are always JSON documents, including Docker and OCI manifests
JSON_CONTENT_MARKERS = ("application/json", "application/vnd.docker", "application/vnd.oci")


async def create_session(config: RegistryConfig | None = None) -> aiohttp.ClientSession:
    """Create an aiohttp session configured for registry access.

    Args:
        config: Transport settings (defaults to RegistryConfig())

    Returns:
        New aiohttp.ClientSession; the caller owns closing it
    """
    config = config or RegistryConfig()
    return aiohttp.ClientSession(
        timeout=aiohttp.ClientTimeout(total=config.timeout),
        headers={"User-Agent": config.user_agent},
    )


def is_json_content_type(content_type: str | None) -> bool:
    """Check if a Content-Type header declares a JSON document."""
    if not content_type:
        return False
    content_type = content_type.lower()
    return any(marker in content_type for marker in JSON_CONTENT_MARKERS)


def parse_response_body(content_type: str | None, text: str) -> Any:
    """Decode a response body.

    Declared JSON types are parsed as JSON. Anything else is parsed on a
    best-effort basis since registries mislabel content types (config blobs
    are often served as application/octet-stream). Unparsable bodies are
    returned as raw text.

    Args:
        content_type: Response Content-Type header
        text: Response body

    Returns:
        Parsed JSON value or the raw text
    """
    declared_json = is_json_content_type(content_type)
    try:
        return json.loads(text)
    except ValueError:
        if declared_json:
            logger.warning(
                "Response declared %s but is not valid JSON, returning raw text",
                content_type,
            )
        return text
