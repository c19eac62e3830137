"""Request / response bodies for the gateway API."""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class UrlPayload(BaseModel):
    url: Optional[str] = None


class SnapshotPayload(BaseModel):
    url: Optional[str] = None
    html: Optional[str] = None


class MessageResponse(BaseModel):
    status: str
    message: str


class NextUrlResponse(BaseModel):
    data: Optional[str] = None


class SnapshotWriteResponse(BaseModel):
    status: str
    outcome: str
    message: str


class UrlEntryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    url: str
    crawled_at: Optional[int] = None
    snapshot_id: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime


class SnapshotOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    url: str
    content_hash: str
    html: Optional[str] = None
    created_at: datetime


class SnapshotHistory(BaseModel):
    url: str
    items: list[SnapshotOut] = Field(default_factory=list)
