"""App-level behaviour: shutdown ordering and the catch-all error handler."""

import asyncio

import pytest
from httpx import ASGITransport, AsyncClient

from app import main
from app.api.deps import get_suggestion_repo
from app.core import database, redis as redis_helpers
from app.main import app, lifespan
from app.services.search_tracking import SearchTracker


class SlowPublisher:
    def __init__(self) -> None:
        self.events = []

    async def publish(self, event) -> None:
        await asyncio.sleep(0.05)
        self.events.append(event.type)


@pytest.mark.asyncio
async def test_shutdown_flushes_pending_events_before_closing_redis(engine, monkeypatch) -> None:
    publisher = SlowPublisher()
    seen_at_close = []

    async def fake_close_redis():
        seen_at_close.append(list(publisher.events))

    monkeypatch.setattr(database, "engine", engine)
    monkeypatch.setattr(redis_helpers, "close_redis", fake_close_redis)
    monkeypatch.setattr(main.settings, "scheduler_enabled", False)

    async with lifespan(app):
        SearchTracker(publisher, session_id="s1").query_submitted("jane", filters={}, metadata={})

    assert publisher.events == ["search.query.submitted"]
    assert seen_at_close == [["search.query.submitted"]]


@pytest.mark.asyncio
async def test_error_outside_a_route_body_is_json_500() -> None:
    def broken_repo():
        raise RuntimeError("pool exhausted")

    app.dependency_overrides[get_suggestion_repo] = broken_repo
    try:
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            res = await ac.get("/search/suggest", params={"q": "jane"})
    finally:
        app.dependency_overrides.clear()

    assert res.status_code == 500
    assert res.json() == {"error": "pool exhausted", "executionTimeMs": 0}
    assert res.headers["access-control-allow-origin"] == "*"
