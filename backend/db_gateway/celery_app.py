"""Celery application: out-of-process driver for the crawl tick.

The API process runs the scheduler loop in-process by default; deployments
that set ``CRAWLER_ENABLED=false`` on the API run a beat + worker pair instead.
"""
from __future__ import annotations

from celery import Celery
from kombu import Exchange, Queue

from db_gateway.config import settings

celery = Celery(
    "db_gateway",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.REDIS_URL,
)

# ── Serialisation ──
celery.conf.accept_content = ["json"]
celery.conf.task_serializer = "json"
celery.conf.result_serializer = "json"
celery.conf.timezone = "UTC"
celery.conf.enable_utc = True

# ── Reliability ──
celery.conf.task_acks_late = True
celery.conf.worker_prefetch_multiplier = 1
celery.conf.task_reject_on_worker_lost = True

# ── Queues ──
default_exchange = Exchange("db_gateway", type="direct")

celery.conf.task_queues = (
    Queue("crawl", default_exchange, routing_key="crawl"),
)

celery.conf.task_default_queue = "crawl"
celery.conf.task_default_exchange = "db_gateway"
celery.conf.task_default_routing_key = "crawl"

celery.conf.task_routes = {
    "db_gateway.workers.crawl.run_crawl_tick": {"queue": "crawl"},
}

# ── Beat Schedule ──
celery.conf.beat_schedule = {
    "crawl-tick": {
        "task": "db_gateway.workers.crawl.run_crawl_tick",
        "schedule": settings.CRAWL_INTERVAL_S,
    },
}

# ── Task modules ──
celery.conf.imports = ("db_gateway.workers.crawl",)
