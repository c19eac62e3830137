"""FastAPI dependencies: hand the injected store and core components to handlers."""
from __future__ import annotations

from fastapi import Depends, Request

from db_gateway.config import settings
from db_gateway.crawler import Crawler
from db_gateway.selector import CrawlSelector
from db_gateway.snapshot_writer import SnapshotWriter
from db_gateway.store import ContentStore


def get_store(request: Request) -> ContentStore:
    return request.app.state.store


def get_selector(store: ContentStore = Depends(get_store)) -> CrawlSelector:
    return CrawlSelector(store, retry_after_s=settings.CRAWL_RETRY_AFTER_S)


def get_crawler(store: ContentStore = Depends(get_store)) -> Crawler:
    return Crawler(store)


def get_writer(store: ContentStore = Depends(get_store)) -> SnapshotWriter:
    return SnapshotWriter(store)
