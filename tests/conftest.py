"""Shared fixtures.

Repositories and the cache run against a throwaway SQLite file (aiosqlite);
Redis-backed collaborators are replaced by in-memory fakes.
"""

from typing import Dict, List

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from app.core.database import Base, get_session_factory
from app.main import app
from app.models.projections import (
    CampaignSearchProjection,
    OrganizationSearchProjection,
    SearchSuggestionProjection,
    UserSearchProjection,
)
from app.services.cache_maintenance import get_hit_counter
from app.services.events import DomainEvent, get_event_publisher
from app.services.search_tracking import drain_background_tasks


class FakeHitCounter:
    def __init__(self) -> None:
        self.counts: Dict[str, int] = {}

    async def record(self, cache_key: str) -> None:
        self.counts[cache_key] = self.counts.get(cache_key, 0) + 1

    async def drain(self) -> Dict[str, int]:
        counts, self.counts = self.counts, {}
        return counts


class RecordingPublisher:
    def __init__(self) -> None:
        self.events: List[DomainEvent] = []

    async def publish(self, event: DomainEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: str) -> List[DomainEvent]:
        return [e for e in self.events if e.type == event_type]


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'search.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def seed_projections(session_factory):
    """Users, campaigns and organizations that all mention "jane"."""
    async with session_factory() as session:
        session.add_all([
            UserSearchProjection(
                user_id="u1", name="Jane Doe", bio="Runs marathons for charity",
                location="Austin", role="donor", avatar="https://cdn.example/u1.png",
            ),
            UserSearchProjection(user_id="u2", name="Bob Smith", bio="Neighbour of jane", location="Boston", role="organizer"),
            UserSearchProjection(user_id="u3", name="Carl Nguyen", bio="Photographer", location="Denver", role="donor"),
            CampaignSearchProjection(
                campaign_id="c1", slug="help-jane", title="Help Jane walk again",
                summary="Physical therapy after an accident", story_text="Long story",
                category_name="Medical", location="Austin", status="active", visibility="public",
                beneficiary_name="Jane Doe",
            ),
            CampaignSearchProjection(
                campaign_id="c2", slug="jane-draft", title="Jane", summary="Unpublished",
                category_name="Medical", location="Austin", status="draft", visibility="public",
            ),
            CampaignSearchProjection(
                campaign_id="c3", slug="jane-private", title="Jane private fund", summary="Invite only",
                category_name="Medical", location="Austin", status="active", visibility="private",
            ),
            CampaignSearchProjection(
                campaign_id="c4", slug="school-roof", title="Fix the school roof",
                summary="Roof repairs", story_text="Organised by Jane's parents",
                category_name="Education", location="Portland", status="ended", visibility="public",
            ),
            OrganizationSearchProjection(
                org_id="o1", legal_name="Jane Foundation Inc", dba_name=None,
                website="https://janefoundation.org", country="US", verification_status="verified",
            ),
            OrganizationSearchProjection(
                org_id="o2", legal_name="Helping Hands LLC", dba_name="Helping Hands",
                website="https://helpinghands.org", country="CA", verification_status="pending",
            ),
            SearchSuggestionProjection(id="s1", suggestion="jane doe", relevance_score=0.9, usage_count=4),
            SearchSuggestionProjection(id="s2", suggestion="jane foundation", relevance_score=0.9, usage_count=12),
            SearchSuggestionProjection(id="s3", suggestion="janet", relevance_score=0.4, usage_count=50),
            SearchSuggestionProjection(id="s4", suggestion="bob", relevance_score=1.0, usage_count=1),
        ])
        await session.commit()
    return session_factory


@pytest.fixture
def hit_counter() -> FakeHitCounter:
    return FakeHitCounter()


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest_asyncio.fixture
async def client(session_factory, hit_counter, publisher):
    """Async HTTP client against the FastAPI app (ASGI) with test collaborators."""
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_hit_counter] = lambda: hit_counter
    app.dependency_overrides[get_event_publisher] = lambda: publisher

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await drain_background_tasks()
    app.dependency_overrides.clear()
