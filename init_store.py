"""Initialize the JSON document store.

Creates the data directory and empty job/resume collections, and validates
any collections that already exist. Run this before starting the API server
or to check the store after a crash.
"""

import asyncio
import sys

from cvmatch.config import settings
from cvmatch.errors import StorageError
from cvmatch.store import DocumentStore


async def init_store(reset: bool = False):
    """Create missing collections and report their sizes."""
    store = DocumentStore()
    print(f"Initializing store: {store.data_dir.resolve()}")

    for collection in (store.jobs, store.resumes):
        if reset or not collection.path.exists():
            await collection.clear()
            print(f"✓ Created empty collection {collection.name}")

    jobs = await store.list_jobs()
    resumes = await store.list_resumes()
    print(f"✓ {len(jobs)} job(s), {len(resumes)} resume(s)")
    print(f"\n✅ Store ready ({settings.storage.jobs_file}, {settings.storage.resumes_file})")


async def main():
    """Main entry point."""
    try:
        await init_store(reset="--reset" in sys.argv)
    except StorageError as e:
        print(f"\n❌ Store is not usable: {e}")
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
