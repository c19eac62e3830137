"""FastAPI application: health, metrics, CORS and gateway APIs."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    generate_latest,
    multiprocess,
)
from starlette.responses import PlainTextResponse, Response

from db_gateway.api.snapshots import router as snapshots_router
from db_gateway.api.urls import router as urls_router
from db_gateway.config import settings
from db_gateway.db import create_tables, make_engine, make_session_factory
from db_gateway.errors import GatewayError, StorageError
from db_gateway.fetcher import HttpContentFetcher
from db_gateway.logging_config import setup_logging
from db_gateway.scheduler import SchedulerLoop
from db_gateway.store import ContentStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: store, schema bootstrap and the crawl loop."""
    setup_logging(settings)
    engine = make_engine(settings.database_url, echo=(settings.APP_ENV == "development"))
    if settings.DB_BOOTSTRAP:
        await create_tables(engine)

    store = ContentStore(make_session_factory(engine))
    app.state.store = store
    app.state.scheduler = None
    if settings.CRAWLER_ENABLED:
        scheduler = SchedulerLoop.build(
            store,
            HttpContentFetcher.from_settings(settings),
            interval_s=settings.CRAWL_INTERVAL_S,
            retry_after_s=settings.CRAWL_RETRY_AFTER_S,
        )
        scheduler.start()
        app.state.scheduler = scheduler

    logger.info("DB gateway starting", extra={"env": settings.APP_ENV})
    try:
        yield
    finally:
        logger.info("DB gateway shutting down")
        if app.state.scheduler is not None:
            await app.state.scheduler.stop()
        await engine.dispose()


app = FastAPI(
    title="DB Gateway",
    version="0.1.0",
    description="URL crawl queue with deduplicated content snapshots",
    lifespan=lifespan,
)

# ── CORS ──
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.APP_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(urls_router)
app.include_router(snapshots_router)


@app.exception_handler(GatewayError)
async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Request failed: %s", exc.message, extra={"path": request.url.path})
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": type(exc).__name__},
    )


@app.get("/health", tags=["ops"])
async def health(request: Request) -> JSONResponse:
    """Store reachability plus the crawl loop's last tick."""
    scheduler: SchedulerLoop | None = request.app.state.scheduler
    payload = {
        "status": "ok",
        "database": "ok",
        "scheduler": {
            "enabled": scheduler is not None,
            "running": bool(scheduler and scheduler.running),
            "last_tick_at": scheduler.last_tick_at if scheduler else None,
            "last_result": (
                scheduler.last_result.value if scheduler and scheduler.last_result else None
            ),
        },
    }
    try:
        await request.app.state.store.ping()
    except StorageError:
        payload["status"] = "degraded"
        payload["database"] = "unreachable"
        return JSONResponse(status_code=503, content=payload)
    return JSONResponse(content=payload)


@app.get("/metrics", tags=["ops"])
async def metrics() -> Response:
    """Prometheus scrape endpoint."""
    try:
        registry = CollectorRegistry()
        multiprocess.MultiProcessCollector(registry)
        data = generate_latest(registry)
    except ValueError:
        # Not running in multiprocess mode
        data = generate_latest()
    return PlainTextResponse(content=data, media_type=CONTENT_TYPE_LATEST)
