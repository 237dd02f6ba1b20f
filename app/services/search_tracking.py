
from __future__ import annotations
import asyncio
import logging
import uuid
from typing import Any, Coroutine, Dict, Optional, Set

from app.services.events import (
    DomainEvent,
    EventPublisher,
    search_analytics_recorded,
    search_query_submitted,
)

logger = logging.getLogger(__name__)

_background_tasks: Set[asyncio.Task] = set()


def fire_and_forget(coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
    task = asyncio.create_task(coro)
    _background_tasks.add(task)
    task.add_done_callback(_background_tasks.discard)
    return task


async def drain_background_tasks() -> None:
    if _background_tasks:
        await asyncio.gather(*list(_background_tasks), return_exceptions=True)


class SearchTracker:
    """Analytics hook around a search. Built per request; never raises."""

    def __init__(
        self,
        publisher: EventPublisher,
        session_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> None:
        self.publisher = publisher
        self.session_id = session_id or str(uuid.uuid4())
        self.user_id = user_id

    async def _publish(self, build, **payload: Any) -> None:
        try:
            event: DomainEvent = build(session_id=self.session_id, user_id=self.user_id, **payload)
            await self.publisher.publish(event)
        except Exception as e:
            logger.error(f"Search event publish failed: {e}", extra={"session_id": self.session_id})

    def query_submitted(self, query: str, filters: Dict[str, Any], metadata: Dict[str, Any]) -> None:
        fire_and_forget(self._publish(
            search_query_submitted, query=query, filters=filters, metadata=metadata,
        ))

    async def analytics_recorded(
        self,
        query: str,
        result_count: int,
        execution_time_ms: float,
        cached: bool,
    ) -> None:
        await self._publish(
            search_analytics_recorded,
            query=query,
            result_count=result_count,
            execution_time_ms=execution_time_ms,
            cached=cached,
        )

    async def result_clicked(self, query: str, result_id: str, result_type: str) -> None:
        await self._publish(
            search_analytics_recorded,
            query=query,
            result_count=0,
            clicked_result_id=result_id,
            clicked_result_type=result_type,
        )

    async def suggestion_clicked(self, query: str, suggestion_query: str) -> None:
        await self._publish(
            search_analytics_recorded,
            query=query,
            result_count=0,
            suggestion_clicked=True,
            suggestion_query=suggestion_query,
        )
