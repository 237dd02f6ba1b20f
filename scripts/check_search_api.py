#!/usr/bin/env python3
"""
Smoke check for a running search gateway.

Calls health, suggest and search through SearchApiClient and reports what
came back. Exits non-zero when the gateway is unhealthy or search errors.

Usage:
    python scripts/check_search_api.py [--url http://localhost:8080] [--query jane] [--token JWT]
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional

import httpx

# Add parent directory to path to import app modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.core.logging import setup_logging
from app.core.settings import settings
from app.services.search_client import SearchApiClient


async def main(
    base_url: str,
    query: str,
    token: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> int:
    client = SearchApiClient(base_url=base_url, access_token=token, transport=transport)

    print("=" * 60)
    print(f"Search gateway check: {client.base_url}")
    print("=" * 60)

    health = await client.health()
    print(f"Health: {health.get('status')}")
    if health.get("status") != "healthy":
        return 1

    suggest = await client.suggest(query)
    print(f"Suggestions for '{query}': {suggest.get('suggestions', [])}")

    body = await client.search(query)
    if body.get("error"):
        print(f"Search failed: {body['error']}")
        return 1

    print(
        f"Search '{query}': {len(body.get('results', []))} of {body.get('total', 0)} "
        f"in {body.get('executionTimeMs')} ms (cached={body.get('cached')})"
    )
    for r in body.get("results", [])[:5]:
        print(f"  {r['score']:.2f}  {r['type']:<12} {r['title']}")

    print("\nDone.")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--url", default=settings.search_api_url, help="gateway base URL")
    parser.add_argument("--query", default="jane", help="query to search and suggest")
    parser.add_argument("--token", default=None, help="optional bearer token")
    args = parser.parse_args()

    setup_logging("WARNING")
    sys.exit(asyncio.run(main(args.url, args.query, args.token)))
