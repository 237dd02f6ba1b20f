
from typing import Optional
from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import async_sessionmaker
from app.core.auth import get_optional_user_id
from app.core.database import get_session_factory
from app.services.events import EventPublisher, get_event_publisher
from app.services.projections import ProjectionReaders, SuggestionRepo
from app.services.search_cache import SearchCache
from app.services.search_tracking import SearchTracker


def get_search_cache(factory: async_sessionmaker = Depends(get_session_factory)) -> SearchCache:
    return SearchCache(factory)


def get_projection_readers(factory: async_sessionmaker = Depends(get_session_factory)) -> ProjectionReaders:
    return ProjectionReaders.from_factory(factory)


def get_suggestion_repo(factory: async_sessionmaker = Depends(get_session_factory)) -> SuggestionRepo:
    return SuggestionRepo(factory)


def get_search_tracker(
    publisher: EventPublisher = Depends(get_event_publisher),
    user_id: Optional[str] = Depends(get_optional_user_id),
    x_session_id: Optional[str] = Header(default=None),
) -> SearchTracker:
    return SearchTracker(publisher, session_id=x_session_id, user_id=user_id)


def parse_int(value: Optional[str], default: int) -> int:
    try:
        return int(value) if value is not None else default
    except ValueError:
        return default
