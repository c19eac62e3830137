"""UrlEntry model: a tracked URL and its crawl bookkeeping."""
from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from db_gateway.db import Base, JsonDocument, utcnow


class UrlEntry(Base):
    """One row per normalized absolute URL. Never duplicated."""

    __tablename__ = "urls"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    url: Mapped[str] = mapped_column(String(2048), nullable=False, unique=True)
    content: Mapped[dict | None] = mapped_column(
        JsonDocument, nullable=True, comment='{"url": ..., "crawled_at": epoch ms | null}'
    )
    snapshot_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("snapshots.id", ondelete="SET NULL"), nullable=True
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
        Index("ix_urls_snapshot_updated", "snapshot_id", "updated_at"),
    )

    @property
    def crawled_at(self) -> int | None:
        return (self.content or {}).get("crawled_at")

    def __repr__(self) -> str:
        return f"<UrlEntry id={self.id} url={self.url[:60]!r}>"
