
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from app.core.settings import settings
from app.services.cache_maintenance import flush_cache_hit_counts, purge_expired_cache
import logging

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler(timezone="UTC")

def start_scheduler():
    scheduler.add_job(
        flush_cache_hit_counts,
        IntervalTrigger(minutes=settings.cache_hit_flush_minutes),
        id='flush_cache_hit_counts',
        name='Fold recorded cache hits into search_results_cache.hit_count',
        replace_existing=True,
        max_instances=1,
    )
    scheduler.add_job(
        purge_expired_cache,
        IntervalTrigger(minutes=settings.cache_purge_minutes),
        id='purge_expired_cache',
        name='Delete expired search cache rows',
        replace_existing=True,
        max_instances=1,
    )

    scheduler.start()
    logger.info(
        f"Scheduler started: hit counts flush every {settings.cache_hit_flush_minutes} min, "
        f"expired cache purge every {settings.cache_purge_minutes} min"
    )

def shutdown_scheduler():
    if scheduler.running:
        scheduler.shutdown()
        logger.info("Scheduler shutdown")
