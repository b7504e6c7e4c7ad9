"""Tests for settings and response body handling."""

import aiohttp
import pytest

from registry_lens import ConfigurationError, RegistryConfig
from registry_lens.core.session import (
    create_session,
    is_json_content_type,
    parse_response_body,
)


def test_default_config():
    config = RegistryConfig()

    assert config.timeout is None
    assert config.request_delay == 0.1
    assert config.page_size == 100


def test_config_from_env():
    config = RegistryConfig.from_env(
        {
            "REGISTRY_LENS_TIMEOUT": "15",
            "REGISTRY_LENS_REQUEST_DELAY": "0.25",
            "REGISTRY_LENS_PAGE_SIZE": "50",
        }
    )

    assert config == RegistryConfig(timeout=15.0, request_delay=0.25, page_size=50)
    assert RegistryConfig.from_env({}) == RegistryConfig()


@pytest.mark.parametrize(
    "environ",
    [
        {"REGISTRY_LENS_PAGE_SIZE": "many"},
        {"REGISTRY_LENS_PAGE_SIZE": "0"},
        {"REGISTRY_LENS_REQUEST_DELAY": "-1"},
        {"REGISTRY_LENS_TIMEOUT": "0"},
    ],
)
def test_invalid_config_fails_fast(environ):
    with pytest.raises(ConfigurationError):
        RegistryConfig.from_env(environ)


@pytest.mark.asyncio
async def test_create_session():
    """Test async session creation."""
    session = await create_session(RegistryConfig(timeout=5))
    assert isinstance(session, aiohttp.ClientSession)
    assert session.timeout.total == 5
    await session.close()


def test_json_content_types():
    assert is_json_content_type("application/json; charset=utf-8")
    assert is_json_content_type("application/vnd.oci.image.index.v1+json")
    assert is_json_content_type("application/vnd.docker.distribution.manifest.v2+json")
    assert not is_json_content_type("application/octet-stream")
    assert not is_json_content_type(None)


def test_parse_response_body():
    assert parse_response_body("application/json", '{"a": 1}') == {"a": 1}
    assert parse_response_body("application/octet-stream", '{"a": 1}') == {"a": 1}
    assert parse_response_body("application/octet-stream", "raw bytes") == "raw bytes"
    assert parse_response_body("application/json", "{bad") == "{bad"
    assert parse_response_body("application/json", "") == ""
