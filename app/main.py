
import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from starlette.exceptions import HTTPException as StarletteHTTPException
from app.core.settings import settings
from app.core.logging import setup_logging
from app.core.cors import CORS_HEADERS, OpenCORSMiddleware
from app.api.endpoints import search as search_ep

setup_logging(settings.log_level)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    from app.core.database import engine, Base
    from app.core.redis import close_redis
    from app.core.scheduler import start_scheduler, shutdown_scheduler
    from app.models.search_cache import SearchResultsCache
    from app.services.search_tracking import drain_background_tasks

    # Projection tables belong to the projection builder; only the cache is ours.
    logger.info("Creating search cache table...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all, tables=[SearchResultsCache.__table__])
    logger.info("Search cache table ready.")

    if settings.scheduler_enabled:
        start_scheduler()

    yield

    shutdown_scheduler()
    # Detached event publishes still need the Redis client.
    await drain_background_tasks()
    await close_redis()
    await engine.dispose()

app = FastAPI(title=settings.app_name, lifespan=lifespan)
app.add_middleware(OpenCORSMiddleware)

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = "Not found" if exc.status_code == 404 else exc.detail
    return JSONResponse(status_code=exc.status_code, content={"error": message}, headers=exc.headers)

@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    # Runs outside the CORS middleware, so the headers are added here.
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"error": str(exc) or "Internal server error", "executionTimeMs": 0},
        headers=CORS_HEADERS,
    )

app.include_router(search_ep.router)
