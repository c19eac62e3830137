"""Snapshot model: append-only content history per URL."""
from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Index, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from db_gateway.db import Base, JsonDocument, utcnow


class Snapshot(Base):
    """Raw page snapshot, immutable after creation."""

    __tablename__ = "snapshots"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    url: Mapped[str] = mapped_column(String(2048), nullable=False)
    content: Mapped[dict | None] = mapped_column(
        JsonDocument, nullable=True, comment='{"url": ..., "html": ...}'
    )
    content_hash: Mapped[str] = mapped_column(
        String(64), nullable=False, comment="SHA-256 of html"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
        nullable=False,
    )

    __table_args__ = (
        Index("ix_snapshots_url_created", "url", "created_at"),
    )

    @property
    def html(self) -> str | None:
        return (self.content or {}).get("html")

    def __repr__(self) -> str:
        return f"<Snapshot id={self.id} url={self.url[:60]!r}>"
