"""Exceptions raised by the search pipeline."""

from __future__ import annotations


class SearchError(Exception):
    """Base class for search errors."""

    def __init__(self, detail: str, *, status_code: int = 500) -> None:
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code


class QueryValidationError(SearchError):
    """Raised when a search request is rejected before any lookup."""

    def __init__(self, detail: str) -> None:
        super().__init__(detail, status_code=400)


class ProjectionQueryError(SearchError):
    """Raised when one projection table cannot be read."""

    def __init__(self, source: str, detail: str) -> None:
        super().__init__(f"{source}: {detail}")
        self.source = source


class CacheReadError(SearchError):
    pass


class CacheWriteError(SearchError):
    pass
