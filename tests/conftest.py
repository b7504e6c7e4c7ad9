"""Test configuration and fixtures."""

import asyncio
import os
import socket

import pytest
import pytest_asyncio
from aiohttp.test_utils import TestServer

from registry_lens import (
    CacheStore,
    Credentials,
    MemoryBackend,
    RegistryClient,
    RegistryConfig,
    check_registry_connectivity,
)
from tests.helpers import FakeClock, FakeRegistry


def is_port_open(host, port):
    """Check if a port is open."""
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.settimeout(1)
            result = sock.connect_ex((host, port))
            return result == 0
    except OSError:
        return False


@pytest.fixture
def registry_port():
    """Get registry port for integration testing."""
    return int(os.getenv("REGISTRY_PORT", "15000"))


@pytest_asyncio.fixture
async def registry_url(registry_port):
    """Get real registry URL and ensure it's available."""
    url = f"http://localhost:{registry_port}"

    # Wait for registry to be available (for CI)
    max_attempts = 30
    for attempt in range(max_attempts):
        if is_port_open("localhost", registry_port):
            if await check_registry_connectivity(url):
                return url

        if attempt < max_attempts - 1:
            await asyncio.sleep(1)

    pytest.skip(f"Registry not available at {url}")


@pytest_asyncio.fixture
async def fake_registry():
    """Serve an empty FakeRegistry on a local port."""
    registry = FakeRegistry()
    server = TestServer(registry.app())
    await server.start_server()
    registry.url = f"http://{server.host}:{server.port}"
    yield registry
    await server.close()


@pytest_asyncio.fixture
async def client(fake_registry):
    """RegistryClient pointed at the fake registry, without request pacing."""
    async with RegistryClient(
        Credentials(fake_registry.url), config=RegistryConfig(request_delay=0)
    ) as registry_client:
        yield registry_client


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return CacheStore(MemoryBackend(), clock=clock)


# Pytest configuration
def pytest_configure(config):
    """Configure pytest markers and settings."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test requiring registry"
    )
    config.addinivalue_line("markers", "unit: mark test as unit test (default)")


def pytest_collection_modifyitems(config, items):
    """Modify test collection."""
    # Skip integration tests if no registry
    skip_integration = pytest.mark.skip(reason="Registry not available")

    for item in items:
        if (
            "integration" in item.keywords
            and os.getenv("REGISTRY_AVAILABLE", "false").lower() != "true"
        ):
            item.add_marker(skip_integration)
