"""Typed readers over the search projection tables.

Each reader opens its own session from the factory it is given, so the
gateway can await all three at once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from sqlalchemy import case, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.core.errors import ProjectionQueryError
from app.models.projections import (
    CampaignSearchProjection,
    OrganizationSearchProjection,
    SearchSuggestionProjection,
    UserSearchProjection,
)
from app.schemas.search import SearchResult
from app.services.ranking import calculate_relevance

logger = logging.getLogger(__name__)

SNIPPET_LENGTH = 150
SEARCHABLE_CAMPAIGN_STATUSES = ("active", "ended", "closed")


def escape_like(query: str) -> str:
    """Escape LIKE wildcards so the query matches literally."""
    return query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def contains_pattern(query: str) -> str:
    return f"%{escape_like(query)}%"


def relevance_tier(column, query: str):
    """SQL ordering key for the scorer's tiers: exact, prefix, substring, rest.

    Ordering by it before LIMIT keeps each source's best-scoring rows.
    """
    q = query.strip().lower()
    return case(
        (func.lower(column) == q, 0),
        (column.ilike(f"{escape_like(q)}%", escape="\\"), 1),
        (column.ilike(contains_pattern(q), escape="\\"), 2),
        else_=3,
    )


def _snippet(value: Optional[str]) -> Optional[str]:
    return value[:SNIPPET_LENGTH] if value else None


def _org_subtitle(verification_status: Optional[str], country: Optional[str]) -> Optional[str]:
    parts = [p for p in (verification_status, country) if p]
    return " • ".join(parts) or None


class ProjectionRepo:
    source = "projection"

    def __init__(self, session_factory: async_sessionmaker) -> None:
        self._session_factory = session_factory

    async def _fetch(self, stmt) -> list:
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise ProjectionQueryError(self.source, str(e)) from e

    async def _count(self, stmt) -> int:
        try:
            async with self._session_factory() as session:
                result = await session.execute(select(func.count()).select_from(stmt.subquery()))
                return result.scalar_one()
        except SQLAlchemyError as e:
            raise ProjectionQueryError(self.source, str(e)) from e


class UserSearchRepo(ProjectionRepo):
    source = "users"

    def matching(self, query: str):
        pattern = contains_pattern(query)
        p = UserSearchProjection
        return select(p).where(or_(
            p.name.ilike(pattern, escape="\\"),
            p.bio.ilike(pattern, escape="\\"),
            p.location.ilike(pattern, escape="\\"),
        ))

    def statement(self, query: str, limit: int):
        p = UserSearchProjection
        return (
            self.matching(query)
            .order_by(relevance_tier(p.name, query), p.user_id)
            .limit(limit)
        )

    async def count(self, query: str) -> int:
        return await self._count(self.matching(query))

    async def search(self, query: str, limit: int) -> List[SearchResult]:
        rows = await self._fetch(self.statement(query, limit))
        return [
            SearchResult(
                id=row.user_id,
                type="user",
                title=row.name,
                subtitle=row.role,
                snippet=_snippet(row.bio),
                link=f"/profile/{row.user_id}",
                score=calculate_relevance(row.name, query),
                image=row.avatar,
            )
            for row in rows
        ]


class CampaignSearchRepo(ProjectionRepo):
    """Public, non-draft campaigns only."""

    source = "campaigns"

    def matching(self, query: str, filters: Optional[Dict[str, str]] = None):
        pattern = contains_pattern(query)
        p = CampaignSearchProjection
        stmt = (
            select(p)
            .where(p.visibility == "public")
            .where(p.status.in_(SEARCHABLE_CAMPAIGN_STATUSES))
            .where(or_(
                p.title.ilike(pattern, escape="\\"),
                p.summary.ilike(pattern, escape="\\"),
                p.story_text.ilike(pattern, escape="\\"),
                p.beneficiary_name.ilike(pattern, escape="\\"),
                p.location.ilike(pattern, escape="\\"),
            ))
        )

        filters = filters or {}
        if filters.get("category"):
            stmt = stmt.where(p.category_name == filters["category"])
        if filters.get("location"):
            stmt = stmt.where(p.location.ilike(contains_pattern(filters["location"]), escape="\\"))
        return stmt

    def statement(self, query: str, limit: int, filters: Optional[Dict[str, str]] = None):
        p = CampaignSearchProjection
        return (
            self.matching(query, filters)
            .order_by(relevance_tier(p.title, query), p.campaign_id)
            .limit(limit)
        )

    async def count(self, query: str, filters: Optional[Dict[str, str]] = None) -> int:
        return await self._count(self.matching(query, filters))

    async def search(
        self,
        query: str,
        limit: int,
        filters: Optional[Dict[str, str]] = None,
    ) -> List[SearchResult]:
        rows = await self._fetch(self.statement(query, limit, filters))
        return [
            SearchResult(
                id=row.campaign_id,
                type="campaign",
                title=row.title,
                subtitle=row.category_name or row.location,
                snippet=_snippet(row.summary),
                link=f"/fundraiser/{row.slug}",
                score=calculate_relevance(row.title, query),
            )
            for row in rows
        ]


class OrgSearchRepo(ProjectionRepo):
    source = "organizations"

    def matching(self, query: str):
        pattern = contains_pattern(query)
        p = OrganizationSearchProjection
        return select(p).where(or_(
            p.legal_name.ilike(pattern, escape="\\"),
            p.dba_name.ilike(pattern, escape="\\"),
        ))

    def statement(self, query: str, limit: int):
        p = OrganizationSearchProjection
        # same title the result is scored against
        title = func.coalesce(func.nullif(p.dba_name, ""), p.legal_name)
        return (
            self.matching(query)
            .order_by(relevance_tier(title, query), p.org_id)
            .limit(limit)
        )

    async def count(self, query: str) -> int:
        return await self._count(self.matching(query))

    async def search(self, query: str, limit: int) -> List[SearchResult]:
        rows = await self._fetch(self.statement(query, limit))
        results = []
        for row in rows:
            title = row.dba_name or row.legal_name
            results.append(SearchResult(
                id=row.org_id,
                type="organization",
                title=title,
                subtitle=_org_subtitle(row.verification_status, row.country),
                snippet=row.website,
                link=f"/organization/{row.org_id}",
                score=calculate_relevance(title, query),
            ))
        return results


class SuggestionRepo(ProjectionRepo):
    source = "suggestions"

    def statement(self, prefix: str, limit: int):
        p = SearchSuggestionProjection
        return (
            select(p.suggestion)
            .where(p.suggestion.ilike(f"{escape_like(prefix)}%", escape="\\"))
            .order_by(p.relevance_score.desc(), p.usage_count.desc())
            .limit(limit)
        )

    async def suggest(self, prefix: str, limit: int) -> List[str]:
        return await self._fetch(self.statement(prefix, limit))


@dataclass
class ProjectionReaders:
    users: UserSearchRepo
    campaigns: CampaignSearchRepo
    orgs: OrgSearchRepo

    @classmethod
    def from_factory(cls, session_factory: async_sessionmaker) -> "ProjectionReaders":
        return cls(
            users=UserSearchRepo(session_factory),
            campaigns=CampaignSearchRepo(session_factory),
            orgs=OrgSearchRepo(session_factory),
        )
