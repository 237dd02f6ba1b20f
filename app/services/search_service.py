import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from app.core.settings import settings
from app.schemas.search import SearchQuery, SearchResult, SearchScope
from app.services.projections import ProjectionReaders, SuggestionRepo
from app.services.ranking import merge_results
from app.services.search_cache import SearchCache

logger = logging.getLogger(__name__)


def elapsed_ms(started: float) -> int:
    return round((time.perf_counter() - started) * 1000)


async def _read_source(source: str, call: Awaitable[List[SearchResult]], timeout: float) -> List[SearchResult]:
    # One failing or slow projection degrades to zero results for that source.
    try:
        return await asyncio.wait_for(call, timeout=timeout)
    except asyncio.TimeoutError:
        logger.error(f"Projection read timed out after {timeout}s", extra={"source": source})
    except Exception as e:
        logger.error(f"Projection read failed: {e}", extra={"source": source})
    return []


async def _no_results() -> List[SearchResult]:
    return []


async def _source_total(
    source: str,
    hits: List[SearchResult],
    window: int,
    count: Callable[[], Awaitable[int]],
    timeout: float,
) -> int:
    # Only a source that filled its fetch has rows beyond what was read.
    if len(hits) <= window:
        return len(hits)
    try:
        return await asyncio.wait_for(count(), timeout=timeout)
    except Exception as e:
        logger.error(f"Projection count failed, using fetched rows: {e}", extra={"source": source})
        return len(hits)


async def run_live_search(
    readers: ProjectionReaders,
    query: SearchQuery,
    timeout: Optional[float] = None,
) -> Dict[str, Any]:
    timeout = timeout if timeout is not None else settings.search_projection_timeout_seconds
    window = query.window
    # One row past the window tells whether a source has more.
    fetch = window + 1

    users, campaigns, orgs = await asyncio.gather(
        _read_source("users", readers.users.search(query.text, fetch), timeout)
        if query.scope.includes(SearchScope.USERS) else _no_results(),
        _read_source("campaigns", readers.campaigns.search(query.text, fetch, query.filters), timeout)
        if query.scope.includes(SearchScope.CAMPAIGNS) else _no_results(),
        _read_source("organizations", readers.orgs.search(query.text, fetch), timeout)
        if query.scope.includes(SearchScope.ORGS) else _no_results(),
    )

    totals = await asyncio.gather(
        _source_total("users", users, window, lambda: readers.users.count(query.text), timeout),
        _source_total(
            "campaigns", campaigns, window,
            lambda: readers.campaigns.count(query.text, query.filters), timeout,
        ),
        _source_total("organizations", orgs, window, lambda: readers.orgs.count(query.text), timeout),
    )

    page = merge_results(users, campaigns, orgs, query.offset, query.limit, matched=sum(totals))
    response: Dict[str, Any] = {
        "results": [r.to_dict() for r in page.results],
        "total": page.total,
    }
    if page.cursor is not None:
        response["cursor"] = page.cursor
    return response


async def get_cached_search(cache: SearchCache, cache_key: str) -> Optional[Dict[str, Any]]:
    try:
        cached = await cache.get(cache_key)
    except Exception as e:
        logger.error(f"Cache lookup failed, computing live: {e}", extra={"cache_key": cache_key})
        return None

    if cached is None:
        return None
    logger.info("Returning search results from cache", extra={"cache_key": cache_key})
    return cached.to_payload()


async def search_with_cache(
    query: SearchQuery,
    cache: SearchCache,
    readers: ProjectionReaders,
) -> Tuple[Dict[str, Any], bool]:
    """Cache first, then the projections. Returns (payload, cached).

    Persisting a live result is left to the caller so it can run after the
    response is sent.
    """
    cached = await get_cached_search(cache, query.cache_key())
    if cached is not None:
        return cached, True

    return await run_live_search(readers, query), False


async def get_suggestions(repo: SuggestionRepo, prefix: str, limit: int) -> List[str]:
    try:
        return await repo.suggest(prefix, limit)
    except Exception as e:
        logger.error(f"Error fetching suggestions: {e}")
        return []
