"""Crawl queue and snapshot API."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from db_gateway.api.deps import get_crawler, get_selector, get_store, get_writer
from db_gateway.crawler import Crawler
from db_gateway.errors import NotFound
from db_gateway.schemas.payloads import (
    NextUrlResponse,
    SnapshotHistory,
    SnapshotOut,
    SnapshotPayload,
    SnapshotWriteResponse,
)
from db_gateway.selector import CrawlSelector
from db_gateway.snapshot_writer import SnapshotWriter, WriteOutcome
from db_gateway.store import ContentStore
from db_gateway.urls import normalize_url

router = APIRouter(prefix="/api", tags=["snapshots"])

_OUTCOME_MESSAGES = {
    WriteOutcome.INSERTED: "Snapshot inserted",
    WriteOutcome.DUPLICATE: "No need to insert the same content twice.",
}


@router.get("/url")
async def fetch_url_to_snapshot(
    selector: CrawlSelector = Depends(get_selector),
) -> NextUrlResponse:
    """Next URL the crawler should visit; ``data`` is null only when nothing is tracked."""
    return NextUrlResponse(data=await selector.next_url())


@router.post("/snapshots")
async def insert_snapshot(
    payload: SnapshotPayload,
    crawler: Crawler = Depends(get_crawler),
    writer: SnapshotWriter = Depends(get_writer),
) -> SnapshotWriteResponse:
    if not payload.url:
        raise HTTPException(status_code=400, detail="Missing url")
    if payload.html is None:
        raise HTTPException(status_code=400, detail="Missing html")

    await crawler.mark_crawled(payload.url)
    outcome = await writer.record_snapshot(payload.url, payload.html)
    return SnapshotWriteResponse(
        status="ok", outcome=outcome.value, message=_OUTCOME_MESSAGES[outcome]
    )


@router.get("/snapshots")
async def list_snapshots(
    url: str, limit: int = 50, store: ContentStore = Depends(get_store)
) -> SnapshotHistory:
    url = normalize_url(url)
    rows = await store.list_snapshots(url, limit=max(1, min(limit, 500)))
    if not rows and await store.get_url(url) is None:
        raise NotFound("url not tracked", url=url)
    return SnapshotHistory(url=url, items=[SnapshotOut.model_validate(row) for row in rows])
