"""Tests for search domain events and the per-request tracker."""

import pytest
from pydantic import ValidationError

from app.services import events
from app.services.events import (
    NullEventPublisher,
    RedisEventPublisher,
    search_analytics_recorded,
    search_query_submitted,
)
from app.services.search_tracking import SearchTracker, drain_background_tasks


class ExplodingPublisher:
    async def publish(self, event) -> None:
        raise ConnectionError("bus down")


class TestEventFactories:
    def test_submitted_event_envelope(self) -> None:
        event = search_query_submitted(query="jane", session_id="s1", filters={"category": "Medical"})

        message = event.to_message()
        assert message["type"] == "search.query.submitted"
        assert message["version"] == "1.0.0"
        assert message["payload"] == {
            "query": "jane",
            "sessionId": "s1",
            "filters": {"category": "Medical"},
            "metadata": {},
        }
        assert isinstance(message["timestamp"], int)
        assert "correlationId" not in message

    def test_submitted_requires_query(self) -> None:
        with pytest.raises(ValidationError):
            search_query_submitted(query="")

    def test_analytics_event_uses_camel_case(self) -> None:
        event = search_analytics_recorded(
            correlation_id="corr-1",
            query="jane",
            result_count=4,
            execution_time_ms=12.5,
            user_id="user-1",
        )

        assert event.type == "search.analytics.recorded"
        assert event.payload == {
            "query": "jane",
            "resultCount": 4,
            "executionTimeMs": 12.5,
            "userId": "user-1",
        }
        assert event.to_message()["correlationId"] == "corr-1"

    def test_event_ids_are_unique(self) -> None:
        a = search_query_submitted(query="jane")
        b = search_query_submitted(query="jane")
        assert a.id != b.id


def test_publisher_selection(monkeypatch) -> None:
    monkeypatch.setattr(events.settings, "search_events_enabled", False)
    assert isinstance(events.get_event_publisher(), NullEventPublisher)

    monkeypatch.setattr(events.settings, "search_events_enabled", True)
    assert isinstance(events.get_event_publisher(), RedisEventPublisher)


@pytest.mark.asyncio
async def test_redis_publisher_sends_json_message(monkeypatch) -> None:
    sent = []

    async def fake_publish_json(channel, message):
        sent.append((channel, message))
        return 1

    monkeypatch.setattr(events, "publish_json", fake_publish_json)

    await RedisEventPublisher(channel="search-events").publish(search_query_submitted(query="jane"))

    channel, message = sent[0]
    assert channel == "search-events"
    assert message["type"] == "search.query.submitted"
    assert message["payload"]["query"] == "jane"


@pytest.mark.asyncio
async def test_tracker_attaches_session_and_user(publisher) -> None:
    tracker = SearchTracker(publisher, session_id="sess-9", user_id="user-3")

    tracker.query_submitted("jane", filters={}, metadata={"limit": 20})
    await drain_background_tasks()
    await tracker.analytics_recorded("jane", 5, 10.0, cached=True)

    submitted, recorded = publisher.events
    assert submitted.payload["sessionId"] == "sess-9"
    assert submitted.payload["userId"] == "user-3"
    assert submitted.payload["metadata"] == {"limit": 20}
    assert recorded.payload["cached"] is True
    assert recorded.payload["resultCount"] == 5


def test_tracker_generates_session_id_when_missing(publisher) -> None:
    a = SearchTracker(publisher)
    b = SearchTracker(publisher)
    assert a.session_id and b.session_id and a.session_id != b.session_id


@pytest.mark.asyncio
async def test_tracker_never_raises() -> None:
    tracker = SearchTracker(ExplodingPublisher(), session_id="s1")

    tracker.query_submitted("jane", filters={}, metadata={})
    await drain_background_tasks()
    await tracker.analytics_recorded("jane", 1, 3.0, cached=False)
    await tracker.result_clicked("jane", "c1", "campaign")
    await tracker.suggestion_clicked("ja", "jane doe")
