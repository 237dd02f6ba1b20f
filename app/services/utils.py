
import httpx
from contextlib import asynccontextmanager
from typing import Optional
from aiolimiter import AsyncLimiter
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential
from app.core.settings import settings

# Shared across clients in this process
limiter = AsyncLimiter(settings.search_api_rate_limit, 1)

def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return isinstance(exc, httpx.TransportError)

@asynccontextmanager
async def backoff_client(transport: Optional[httpx.AsyncBaseTransport] = None):
    async with httpx.AsyncClient(transport=transport) as client:
        yield client

@retry(
    retry=retry_if_exception(_is_retryable),
    wait=wait_exponential(multiplier=0.5, min=1, max=8),
    stop=stop_after_attempt(4),
    reraise=True,
)
async def limited_get(client: httpx.AsyncClient, url: str, **kwargs):
    async with limiter:
        resp = await client.get(url, **kwargs)
        resp.raise_for_status()
        return resp
