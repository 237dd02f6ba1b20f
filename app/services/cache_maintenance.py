
from __future__ import annotations
import logging
from typing import Dict, Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from app.core.database import async_session_maker
from app.core.redis import hash_drain, hash_increment
from app.core.settings import settings
from app.services.search_cache import SearchCache

logger = logging.getLogger(__name__)


class HitCounter(Protocol):
    async def record(self, cache_key: str) -> None:
        ...

    async def drain(self) -> Dict[str, int]:
        ...


class RedisHitCounter:
    """Cache hits accumulate in a Redis hash until the next flush."""

    def __init__(self, key: Optional[str] = None) -> None:
        self.key = key or settings.search_hits_key

    async def record(self, cache_key: str) -> None:
        await hash_increment(self.key, cache_key)

    async def drain(self) -> Dict[str, int]:
        return await hash_drain(self.key)


def get_hit_counter() -> HitCounter:
    return RedisHitCounter()


@retry(
    retry=retry_if_exception_type(SQLAlchemyError),
    wait=wait_exponential(multiplier=0.5, min=1, max=8),
    stop=stop_after_attempt(3),
    reraise=True,
)
async def _apply_hits(cache: SearchCache, counts: Dict[str, int]) -> int:
    return await cache.add_hits(counts)


async def flush_cache_hit_counts(
    cache: Optional[SearchCache] = None,
    counter: Optional[HitCounter] = None,
) -> int:
    cache = cache or SearchCache(async_session_maker)
    counter = counter or get_hit_counter()

    counts = await counter.drain()
    if not counts:
        return 0

    try:
        updated = await _apply_hits(cache, counts)
    except SQLAlchemyError as e:
        logger.error(f"Hit count flush failed, dropping {sum(counts.values())} hits: {e}")
        return 0

    logger.info(f"Flushed hit counts for {updated} cache entries")
    return updated


async def purge_expired_cache(cache: Optional[SearchCache] = None) -> int:
    cache = cache or SearchCache(async_session_maker)
    try:
        removed = await cache.purge_expired()
    except SQLAlchemyError as e:
        logger.error(f"Expired cache purge failed: {e}")
        return 0

    logger.info(f"Purged {removed} expired search cache entries")
    return removed
