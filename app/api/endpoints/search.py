
import time
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from fastapi import APIRouter, BackgroundTasks, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from app.api.deps import (
    get_projection_readers,
    get_search_cache,
    get_search_tracker,
    get_suggestion_repo,
    parse_int,
)
from app.core.errors import QueryValidationError
from app.schemas.search import (
    DEFAULT_LIMIT,
    DEFAULT_SUGGEST_LIMIT,
    MAX_SUGGEST_LIMIT,
    MIN_QUERY_LENGTH,
    SearchQuery,
)
from app.services.cache_maintenance import HitCounter, get_hit_counter
from app.services.projections import ProjectionReaders, SuggestionRepo
from app.services.search_cache import SearchCache, persist_search_response
from app.services.search_service import elapsed_ms, get_suggestions, search_with_cache
from app.services.search_tracking import SearchTracker

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/search")


@router.get("/health")
async def health() -> Dict[str, str]:
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/suggest")
async def suggest_endpoint(
    q: Optional[str] = Query(default=None, description="Typeahead prefix"),
    limit: Optional[str] = Query(default=None, description="Maximum suggestions (<= 20)"),
    repo: SuggestionRepo = Depends(get_suggestion_repo),
) -> Dict[str, Any]:
    started = time.perf_counter()
    prefix = (q or "").strip()

    if len(prefix) < MIN_QUERY_LENGTH:
        return {"suggestions": [], "executionTimeMs": elapsed_ms(started)}

    capped = min(max(parse_int(limit, DEFAULT_SUGGEST_LIMIT), 1), MAX_SUGGEST_LIMIT)
    suggestions = await get_suggestions(repo, prefix, capped)
    return {"suggestions": suggestions, "executionTimeMs": elapsed_ms(started)}


@router.get("")
async def search_endpoint(
    background_tasks: BackgroundTasks,
    q: Optional[str] = Query(default=None, description="Search text, at least 2 characters"),
    scope: Optional[str] = Query(default=None, description="all, users, campaigns or orgs"),
    limit: Optional[str] = Query(default=None, description="Page size (<= 100)"),
    offset: Optional[str] = Query(default=None, description="Offset cursor from a previous page"),
    category: Optional[str] = Query(default=None, description="Campaign category filter"),
    location: Optional[str] = Query(default=None, description="Campaign location filter"),
    cache: SearchCache = Depends(get_search_cache),
    readers: ProjectionReaders = Depends(get_projection_readers),
    hit_counter: HitCounter = Depends(get_hit_counter),
    tracker: SearchTracker = Depends(get_search_tracker),
):
    started = time.perf_counter()

    try:
        query = SearchQuery.build(
            q,
            scope=scope,
            limit=parse_int(limit, DEFAULT_LIMIT),
            offset=parse_int(offset, 0),
            filters={"category": category, "location": location},
        )
    except QueryValidationError as e:
        return JSONResponse(
            status_code=e.status_code,
            content={
                "results": [],
                "total": 0,
                "executionTimeMs": 0,
                "cached": False,
                "error": e.detail,
            },
        )

    try:
        cache_key = query.cache_key()
        tracker.query_submitted(
            query.text,
            filters=query.filters,
            metadata={"scope": query.scope.value, "limit": query.limit, "cacheKey": cache_key},
        )

        payload, cached = await search_with_cache(query, cache, readers)
        response = {**payload, "executionTimeMs": elapsed_ms(started), "cached": cached}

        if cached:
            background_tasks.add_task(hit_counter.record, cache_key)
        else:
            background_tasks.add_task(persist_search_response, cache, cache_key, query.text, response)
        background_tasks.add_task(
            tracker.analytics_recorded,
            query.text,
            response["total"],
            response["executionTimeMs"],
            cached,
        )

        logger.info(
            f"Search '{query.text}' returned {len(response['results'])} of {response['total']}",
            extra={"cache_key": cache_key, "elapsed_ms": response["executionTimeMs"]},
        )
        return response
    except Exception as e:
        logger.exception(f"Search API error: {e}")
        return JSONResponse(
            status_code=500,
            content={"error": str(e) or "Internal server error", "executionTimeMs": elapsed_ms(started)},
        )


class ResultClick(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    query: str = Field(min_length=1)
    result_id: str = Field(alias="resultId")
    result_type: str = Field(alias="resultType")


class SuggestionClick(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    query: str = Field(min_length=1)
    suggestion_query: str = Field(alias="suggestionQuery")


@router.post("/events/click", status_code=202)
async def track_result_click(
    body: ResultClick,
    background_tasks: BackgroundTasks,
    tracker: SearchTracker = Depends(get_search_tracker),
) -> Dict[str, bool]:
    background_tasks.add_task(tracker.result_clicked, body.query, body.result_id, body.result_type)
    return {"accepted": True}


@router.post("/events/suggestion", status_code=202)
async def track_suggestion_click(
    body: SuggestionClick,
    background_tasks: BackgroundTasks,
    tracker: SearchTracker = Depends(get_search_tracker),
) -> Dict[str, bool]:
    background_tasks.add_task(tracker.suggestion_clicked, body.query, body.suggestion_query)
    return {"accepted": True}
