"""Compare a cold browsing session with one served from the persistent cache."""

import asyncio
import sys
import tempfile
import time
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, "src")

from registry_lens import (
    CacheStore,
    FileBackend,
    FileCredentialStore,
    RegistryBrowser,
)


async def browse(cache: CacheStore, credential_store: FileCredentialStore, registry_url: str):
    """Load repositories, tags and image details for the first repositories."""
    start_time = time.time()

    async with RegistryBrowser(cache=cache, credential_store=credential_store) as browser:
        if not await browser.reconnect():
            result = await browser.connect(registry_url)
            if not result.success:
                raise SystemExit(f"Connection failed: {result.error}")

        for repo in browser.state.repositories[:3]:
            tags = await browser.load_tags(repo)
            for tag in tags[:2]:
                await browser.load_image_info(repo, tag)

        stats = browser.get_cache_stats()

    return time.time() - start_time, stats


async def main():
    """Run the same session twice over one cache file."""
    registry_url = "http://localhost:15000"

    with tempfile.TemporaryDirectory() as workdir:
        cache = CacheStore(FileBackend(Path(workdir) / "cache.json"))
        credential_store = FileCredentialStore(Path(workdir) / "credentials.json")

        print("Cached browsing comparison")
        print("=" * 50)

        cold_time, stats = await browse(cache, credential_store, registry_url)
        print(f"\n1. Cold session:   {cold_time:.3f}s")
        print(f"   Cache entries: {stats.count} ({stats.size_kb} KB)")

        warm_time, stats = await browse(cache, credential_store, registry_url)
        print(f"\n2. Cached session: {warm_time:.3f}s")
        print(f"   Cache entries: {stats.count} ({stats.size_kb} KB)")

        if warm_time > 0:
            print(f"\nSpeedup: {cold_time / warm_time:.1f}x")


if __name__ == "__main__":
    asyncio.run(main())
