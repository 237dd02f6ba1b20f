#!/usr/bin/env python3
"""
Search cache maintenance, run once.

Does by hand what the scheduler does on an interval: folds the cache hit
counters recorded in Redis into search_results_cache.hit_count, then deletes
expired cache rows.

Usage:
    python scripts/maintain_search_cache.py [--skip-purge]
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add parent directory to path to import app modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.core.database import engine
from app.core.logging import setup_logging
from app.core.redis import close_redis
from app.services.cache_maintenance import flush_cache_hit_counts, purge_expired_cache


async def main(skip_purge: bool) -> None:
    print("=" * 60)
    print("Search cache maintenance")
    print("=" * 60)

    try:
        updated = await flush_cache_hit_counts()
        print(f"Hit counts flushed: {updated} entries updated")

        if skip_purge:
            print("Expired purge skipped")
        else:
            removed = await purge_expired_cache()
            print(f"Expired entries removed: {removed}")
    finally:
        await close_redis()
        await engine.dispose()

    print("\nDone.")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--skip-purge", action="store_true", help="only flush hit counters")
    args = parser.parse_args()

    setup_logging("WARNING")
    asyncio.run(main(args.skip_purge))
