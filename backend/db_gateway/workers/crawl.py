"""Crawl worker: one scheduler tick per Celery beat firing."""
from __future__ import annotations

import asyncio
import logging

from db_gateway.celery_app import celery
from db_gateway.config import Settings, settings
from db_gateway.db import make_engine, make_session_factory
from db_gateway.fetcher import HttpContentFetcher
from db_gateway.scheduler import SchedulerLoop
from db_gateway.store import ContentStore

logger = logging.getLogger(__name__)


@celery.task(name="db_gateway.workers.crawl.run_crawl_tick")
def run_crawl_tick() -> str:
    """Celery Beat task; returns the tick result value."""
    return asyncio.run(_run_crawl_tick(settings))


async def _run_crawl_tick(settings: Settings) -> str:
    # asyncio.run gives each invocation a fresh loop; the engine cannot outlive it.
    engine = make_engine(settings.database_url)
    try:
        loop = SchedulerLoop.build(
            ContentStore(make_session_factory(engine)),
            HttpContentFetcher.from_settings(settings),
            interval_s=settings.CRAWL_INTERVAL_S,
            retry_after_s=settings.CRAWL_RETRY_AFTER_S,
        )
        result = await loop.safe_tick()
        logger.info("Crawl tick finished: %s", result.value)
        return result.value
    finally:
        await engine.dispose()
