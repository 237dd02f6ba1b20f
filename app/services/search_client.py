
import httpx
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from .utils import backoff_client, limited_get
from app.core.settings import settings
from app.schemas.search import DEFAULT_LIMIT, DEFAULT_SUGGEST_LIMIT, MAX_SUGGEST_LIMIT, MIN_QUERY_LENGTH

logger = logging.getLogger(__name__)


def _empty_search(error: str) -> Dict[str, Any]:
    return {"results": [], "total": 0, "executionTimeMs": 0, "cached": False, "error": error}


class SearchApiClient:
    """Client for the search gateway, for services and scripts that need search.

    Never raises: failures come back as empty payloads carrying ``error``.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        access_token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or settings.search_api_url).rstrip("/")
        self.access_token = access_token
        self.transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        return headers

    async def search(
        self,
        query: str,
        scope: str = "all",
        limit: int = DEFAULT_LIMIT,
        offset: int = 0,
    ) -> Dict[str, Any]:
        if not query or len(query.strip()) < MIN_QUERY_LENGTH:
            return _empty_search(f"Query must be at least {MIN_QUERY_LENGTH} characters")

        params = {"q": query.strip(), "scope": scope, "limit": limit, "offset": offset}
        try:
            async with backoff_client(self.transport) as client:
                r = await limited_get(client, f"{self.base_url}/search", params=params, headers=self._headers(), timeout=20)
                return r.json()
        except httpx.HTTPStatusError as e:
            try:
                message = e.response.json().get("error")
            except ValueError:
                message = None
            logger.error(f"Search API error: {e}")
            return _empty_search(message or f"Search failed: {e.response.status_code}")
        except httpx.HTTPError as e:
            logger.error(f"Search API error: {e}")
            return _empty_search(str(e) or "Search failed")

    async def suggest(self, query: str, limit: int = DEFAULT_SUGGEST_LIMIT) -> Dict[str, Any]:
        if not query or len(query.strip()) < MIN_QUERY_LENGTH:
            return {"suggestions": [], "executionTimeMs": 0}

        params = {"q": query.strip(), "limit": min(limit, MAX_SUGGEST_LIMIT)}
        try:
            async with backoff_client(self.transport) as client:
                r = await limited_get(client, f"{self.base_url}/search/suggest", params=params, headers=self._headers(), timeout=10)
                return r.json()
        except httpx.HTTPError as e:
            logger.error(f"Suggest API error: {e}")
            return {"suggestions": [], "executionTimeMs": 0}

    async def health(self) -> Dict[str, str]:
        try:
            async with backoff_client(self.transport) as client:
                r = await limited_get(client, f"{self.base_url}/search/health", timeout=5)
                return r.json()
        except httpx.HTTPError as e:
            logger.error(f"Health check error: {e}")
            return {"status": "unhealthy", "timestamp": datetime.now(timezone.utc).isoformat()}
