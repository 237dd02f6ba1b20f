"""Request and result shapes for the search gateway."""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.core.errors import QueryValidationError

MIN_QUERY_LENGTH = 2
DEFAULT_LIMIT = 20
MAX_LIMIT = 100
DEFAULT_SUGGEST_LIMIT = 10
MAX_SUGGEST_LIMIT = 20


class SearchScope(str, Enum):
    ALL = "all"
    USERS = "users"
    CAMPAIGNS = "campaigns"
    ORGS = "orgs"

    def includes(self, other: "SearchScope") -> bool:
        return self is SearchScope.ALL or self is other


class SearchResult(BaseModel):
    """One hit from a projection, already scored."""

    model_config = ConfigDict(frozen=True)

    id: str
    type: Literal["user", "campaign", "organization"]
    title: str
    subtitle: Optional[str] = None
    snippet: Optional[str] = None
    link: str
    score: float = Field(ge=0.0, le=1.0)
    image: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class SearchQuery(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    scope: SearchScope = SearchScope.ALL
    limit: int = Field(default=DEFAULT_LIMIT, ge=1, le=MAX_LIMIT)
    offset: int = Field(default=0, ge=0)
    filters: Dict[str, str] = Field(default_factory=dict)

    @classmethod
    def build(
        cls,
        q: Optional[str],
        scope: Optional[str] = None,
        limit: int = DEFAULT_LIMIT,
        offset: int = 0,
        filters: Optional[Dict[str, Optional[str]]] = None,
    ) -> "SearchQuery":
        text = (q or "").strip().lower()
        if len(text) < MIN_QUERY_LENGTH:
            raise QueryValidationError(f"Query must be at least {MIN_QUERY_LENGTH} characters")

        try:
            parsed_scope = SearchScope(scope or SearchScope.ALL.value)
        except ValueError:
            raise QueryValidationError(f"Invalid scope: {scope}")

        return cls(
            text=text,
            scope=parsed_scope,
            limit=min(max(limit, 1), MAX_LIMIT),
            offset=max(offset, 0),
            filters={k: v for k, v in (filters or {}).items() if v},
        )

    def cache_key(self) -> str:
        filters = json.dumps(self.filters, sort_keys=True, separators=(",", ":"))
        key = f"search:{self.text}:{self.scope.value}:{filters}:{self.limit}"
        # The cached payload is one page, so later pages need their own entry.
        return f"{key}:{self.offset}" if self.offset else key

    @property
    def window(self) -> int:
        """Rows each source must return so the requested page can be cut after merging."""
        return self.offset + self.limit
