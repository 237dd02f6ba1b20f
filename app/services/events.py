"""Search domain events and the bus they are published on.

The bus is fire-and-forget pub/sub: publishing never blocks or fails a search.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any, Dict, Literal, Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field

from app.core.redis import publish_json
from app.core.settings import settings

logger = logging.getLogger(__name__)

EVENT_VERSION = "1.0.0"


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SearchQuerySubmittedPayload(_Payload):
    query: str = Field(min_length=1)
    user_id: Optional[str] = Field(default=None, alias="userId")
    filters: Dict[str, Any] = Field(default_factory=dict)
    session_id: Optional[str] = Field(default=None, alias="sessionId")
    metadata: Dict[str, Any] = Field(default_factory=dict)


class SearchAnalyticsRecordedPayload(_Payload):
    query: str
    result_count: int = Field(alias="resultCount")
    execution_time_ms: Optional[float] = Field(default=None, alias="executionTimeMs")
    cached: Optional[bool] = None
    clicked_result_id: Optional[str] = Field(default=None, alias="clickedResultId")
    clicked_result_type: Optional[str] = Field(default=None, alias="clickedResultType")
    suggestion_clicked: Optional[bool] = Field(default=None, alias="suggestionClicked")
    suggestion_query: Optional[str] = Field(default=None, alias="suggestionQuery")
    session_id: Optional[str] = Field(default=None, alias="sessionId")
    user_id: Optional[str] = Field(default=None, alias="userId")


class DomainEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    type: str
    payload: Dict[str, Any]
    timestamp: int = Field(default_factory=lambda: int(time.time() * 1000))
    version: str = EVENT_VERSION
    correlation_id: Optional[str] = Field(default=None, alias="correlationId")

    def to_message(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class SearchQuerySubmitted(DomainEvent):
    type: Literal["search.query.submitted"] = "search.query.submitted"


class SearchAnalyticsRecorded(DomainEvent):
    type: Literal["search.analytics.recorded"] = "search.analytics.recorded"


def search_query_submitted(correlation_id: Optional[str] = None, **payload: Any) -> SearchQuerySubmitted:
    validated = SearchQuerySubmittedPayload(**payload)
    return SearchQuerySubmitted(
        payload=validated.model_dump(by_alias=True, exclude_none=True),
        correlation_id=correlation_id,
    )


def search_analytics_recorded(correlation_id: Optional[str] = None, **payload: Any) -> SearchAnalyticsRecorded:
    validated = SearchAnalyticsRecordedPayload(**payload)
    return SearchAnalyticsRecorded(
        payload=validated.model_dump(by_alias=True, exclude_none=True),
        correlation_id=correlation_id,
    )


class EventPublisher(Protocol):
    async def publish(self, event: DomainEvent) -> None:
        ...


class NullEventPublisher:
    async def publish(self, event: DomainEvent) -> None:
        return None


class RedisEventPublisher:
    def __init__(self, channel: Optional[str] = None) -> None:
        self.channel = channel or settings.search_events_channel

    async def publish(self, event: DomainEvent) -> None:
        receivers = await publish_json(self.channel, event.to_message())
        logger.debug(f"Published {event.type} to {receivers} subscribers")


def get_event_publisher() -> EventPublisher:
    if settings.search_events_enabled:
        return RedisEventPublisher()
    return NullEventPublisher()
