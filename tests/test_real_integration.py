"""Real integration tests with actual registry."""

import asyncio

import pytest

from registry_lens import (
    CacheStore,
    RegistryBrowser,
    check_registry_connectivity,
    get_image_info,
    list_repositories,
    list_tags,
)

pytestmark = pytest.mark.integration  # Mark all tests in this file as integration


@pytest.mark.asyncio
async def test_registry_connectivity(registry_url):
    """Test basic registry connectivity."""
    assert await check_registry_connectivity(registry_url) is True


@pytest.mark.asyncio
async def test_list_repositories_and_tags(registry_url):
    """Test listing repositories and their tags."""
    repos = await list_repositories(registry_url)
    assert isinstance(repos, list)

    # Repos list can be empty or contain items
    for repo in repos[:3]:
        tags = await list_tags(registry_url, repo)
        assert isinstance(tags, list)


@pytest.mark.asyncio
async def test_image_info_for_first_tag(registry_url):
    """Resolve the first tag found in the registry."""
    repos = await list_repositories(registry_url)
    for repo in repos:
        tags = await list_tags(registry_url, repo)
        if tags:
            info = await get_image_info(registry_url, repo, tags[0])
            assert info.total_size >= 0
            assert isinstance(info.is_multi_platform, bool)
            return

    pytest.skip("Registry has no tagged images")


@pytest.mark.asyncio
async def test_browser_session(registry_url):
    """Connect, browse and disconnect against the real registry."""
    cache = CacheStore()
    async with RegistryBrowser(cache=cache) as browser:
        result = await browser.connect(registry_url)
        assert result.success

        repositories = await browser.load_repositories()
        assert repositories == browser.state.repositories

        await browser.disconnect()
        assert not browser.state.is_connected

    assert cache.get_repositories() == repositories


@pytest.mark.asyncio
async def test_concurrent_operations(registry_url):
    """Test that async operations can run concurrently."""
    results = await asyncio.gather(
        check_registry_connectivity(registry_url),
        check_registry_connectivity(registry_url),
        check_registry_connectivity(registry_url),
    )

    assert results == [True, True, True]
