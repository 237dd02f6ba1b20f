
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.core.errors import CacheReadError, CacheWriteError
from app.core.settings import settings
from app.models.search_cache import SearchResultsCache

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class CachedSearchResponse:
    results: List[Dict[str, Any]] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)
    result_count: int = 0
    cursor: Optional[str] = None
    expires_at: Optional[datetime] = None
    hit_count: int = 0

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"results": self.results, "total": self.result_count}
        if self.cursor is not None:
            payload["cursor"] = self.cursor
        return payload


class SearchCache:
    """TTL cache of computed search responses in ``search_results_cache``.

    Reads never write. Hit counts are recorded elsewhere and folded in by the
    maintenance job, see ``app.services.cache_maintenance``.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        ttl_seconds: Optional[int] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._session_factory = session_factory
        self._ttl = timedelta(seconds=ttl_seconds if ttl_seconds is not None else settings.search_cache_ttl_seconds)
        self._clock = clock

    async def get(self, cache_key: str) -> Optional[CachedSearchResponse]:
        stmt = select(SearchResultsCache).where(
            SearchResultsCache.cache_key == cache_key,
            SearchResultsCache.expires_at > self._clock(),
        )
        try:
            async with self._session_factory() as session:
                row = (await session.execute(stmt)).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise CacheReadError(f"Cache read failed for {cache_key}: {e}") from e

        if row is None:
            return None

        return CachedSearchResponse(
            results=row.results or [],
            suggestions=row.suggestions or [],
            result_count=row.result_count,
            cursor=row.cursor,
            expires_at=row.expires_at,
            hit_count=row.hit_count,
        )

    async def put(self, cache_key: str, query: str, response: Dict[str, Any]) -> None:
        now = self._clock()
        values = {
            "cache_key": cache_key,
            "query": query,
            "results": response.get("results", []),
            "suggestions": response.get("suggestions", []),
            "result_count": response.get("total", 0),
            "cursor": response.get("cursor"),
            "hit_count": 0,
            "created_at": now,
            "expires_at": now + self._ttl,
        }
        try:
            async with self._session_factory() as session:
                insert = pg_insert if session.bind.dialect.name == "postgresql" else sqlite_insert
                stmt = insert(SearchResultsCache).values(**values)
                stmt = stmt.on_conflict_do_update(
                    index_elements=[SearchResultsCache.cache_key],
                    set_={k: stmt.excluded[k] for k in values if k != "cache_key"},
                )
                await session.execute(stmt)
                await session.commit()
        except SQLAlchemyError as e:
            raise CacheWriteError(f"Cache write failed for {cache_key}: {e}") from e

    async def add_hits(self, counts: Dict[str, int]) -> int:
        if not counts:
            return 0

        async with self._session_factory() as session:
            updated = 0
            for cache_key, count in counts.items():
                result = await session.execute(
                    update(SearchResultsCache)
                    .where(SearchResultsCache.cache_key == cache_key)
                    .values(hit_count=SearchResultsCache.hit_count + count)
                )
                updated += result.rowcount or 0
            await session.commit()
        return updated

    async def purge_expired(self) -> int:
        async with self._session_factory() as session:
            result = await session.execute(
                delete(SearchResultsCache).where(SearchResultsCache.expires_at <= self._clock())
            )
            await session.commit()
        return result.rowcount or 0


async def persist_search_response(
    cache: SearchCache,
    cache_key: str,
    query: str,
    response: Dict[str, Any],
) -> None:
    """Background cache write. Failures are logged, never raised."""
    try:
        await cache.put(cache_key, query, response)
        logger.debug("Cached search response", extra={"cache_key": cache_key})
    except Exception as e:
        logger.error(f"Failed to cache results: {e}", extra={"cache_key": cache_key})
