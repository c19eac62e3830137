"""URL submission API: register, list and remove tracked URLs."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from db_gateway.api.deps import get_store
from db_gateway.metrics import URL_SUBMISSIONS_TOTAL
from db_gateway.schemas.payloads import MessageResponse, UrlEntryOut, UrlPayload
from db_gateway.store import ContentStore
from db_gateway.urls import normalize_url

router = APIRouter(prefix="/api", tags=["urls"])
logger = logging.getLogger(__name__)


@router.post("/urls")
async def insert_url(
    payload: UrlPayload, store: ContentStore = Depends(get_store)
) -> MessageResponse:
    if not payload.url:
        raise HTTPException(status_code=400, detail="Missing url")
    url = normalize_url(payload.url)

    inserted = await store.add_url(url)
    URL_SUBMISSIONS_TOTAL.labels(result="inserted" if inserted else "exists").inc()
    if inserted:
        logger.info("Url inserted", extra={"url": url})
        return MessageResponse(status="ok", message="Url inserted")
    return MessageResponse(status="ok", message="URL already exists")


@router.get("/urls")
async def list_urls(
    limit: int = 100, offset: int = 0, store: ContentStore = Depends(get_store)
) -> list[UrlEntryOut]:
    entries = await store.list_urls(limit=max(1, min(limit, 500)), offset=max(0, offset))
    return [UrlEntryOut.model_validate(entry) for entry in entries]


@router.post("/url/delete")
async def delete_url(
    payload: UrlPayload, store: ContentStore = Depends(get_store)
) -> MessageResponse:
    if not payload.url:
        raise HTTPException(status_code=400, detail="Missing url")
    url = normalize_url(payload.url)

    if await store.delete_url(url):
        logger.info("Url deleted", extra={"url": url})
        return MessageResponse(status="ok", message="Url deleted")
    return MessageResponse(status="ok", message="Url not tracked")
