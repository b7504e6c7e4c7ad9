"""Example usage of the async registry-lens functions."""

import asyncio
import logging
import sys

# Add parent directory to path
sys.path.insert(0, "src")

from registry_lens import (
    RegistryError,
    check_registry_connectivity,
    get_image_info,
    list_repositories,
    list_tags,
)

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def main():
    """Walk repositories, tags and image details."""
    registry_url = "http://localhost:15000"

    try:
        logger.info("Checking registry connectivity...")
        await check_registry_connectivity(registry_url)
        logger.info("✓ Registry is accessible")

        logger.info("Listing repositories...")
        repos = await list_repositories(registry_url)
        logger.info(f"Found {len(repos)} repositories: {repos}")

        for repo in repos[:3]:  # Show first 3 repos
            tags = await list_tags(registry_url, repo)
            logger.info(f"{repo}: {tags}")
            if not tags:
                continue

            info = await get_image_info(registry_url, repo, tags[0])
            platforms = ", ".join(str(p) for p in info.displayable_platforms) or "-"
            logger.info(
                f"  {repo}:{tags[0]} size={info.total_size} bytes "
                f"multi-platform={info.is_multi_platform} platforms={platforms}"
            )

    except RegistryError as e:
        logger.error(f"Registry error: {e}")


async def concurrent_operations():
    """Example of concurrent async operations."""
    registry_url = "http://localhost:15000"

    try:
        logger.info("Running concurrent operations...")
        connectivity, repos = await asyncio.gather(
            check_registry_connectivity(registry_url),
            list_repositories(registry_url),
        )
        logger.info(f"Connectivity: {connectivity}")

        tag_results = await asyncio.gather(
            *(list_tags(registry_url, repo) for repo in repos[:3])
        )
        for repo, tags in zip(repos[:3], tag_results, strict=False):
            logger.info(f"Repository {repo}: {tags}")

    except RegistryError as e:
        logger.error(f"Registry error: {e}")


if __name__ == "__main__":
    print("=== Basic Async Operations ===")
    asyncio.run(main())

    print("\n=== Concurrent Async Operations ===")
    asyncio.run(concurrent_operations())
