"""Content Store: transactional access to the ``urls`` and ``snapshots`` tables.

A single ``ContentStore`` wraps the session factory and is injected into every
core component. Each public coroutine runs in its own short transaction;
callers that need several statements to commit together (the snapshot writer)
open ``transaction()`` and pass the session to the ``*_in`` helpers.

Every ``SQLAlchemyError`` leaves this module as ``StorageError``.
"""
from __future__ import annotations

import hashlib
import logging
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import delete, func, or_, select, text, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from db_gateway.errors import StorageError
from db_gateway.models.snapshot import Snapshot
from db_gateway.models.url_entry import UrlEntry

logger = logging.getLogger(__name__)

_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def content_hash(html: str) -> str:
    return hashlib.sha256(html.encode("utf-8")).hexdigest()


def url_lock_statement(url: str):
    """Transaction-scoped PostgreSQL advisory lock keyed on ``url``."""
    return select(func.pg_advisory_xact_lock(func.hashtext(url)))


class ContentStore:
    """Long-lived store handle shared by the API and the crawl loop."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """One session, one transaction; commits on success, rolls back on error."""
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    yield session
        except SQLAlchemyError as exc:
            logger.error("Store transaction failed: %s", exc)
            raise StorageError(f"storage failure: {exc.__class__.__name__}") from exc

    async def ping(self) -> None:
        async with self.transaction() as session:
            await session.execute(text("SELECT 1"))

    # ── UrlEntry ──

    async def add_url(self, url: str) -> bool:
        """Insert ``url`` unless it exists. Returns True when a row was created."""
        async with self.transaction() as session:
            insert = _DIALECT_INSERTS.get(session.bind.dialect.name)
            if insert is None:
                existing = await self.get_url_in(session, url)
                if existing is not None:
                    return False
                session.add(UrlEntry(url=url, content={"url": url, "crawled_at": None}))
                return True
            stmt = (
                insert(UrlEntry)
                .values(url=url, content={"url": url, "crawled_at": None})
                .on_conflict_do_nothing(index_elements=["url"])
                .returning(UrlEntry.id)
            )
            result = await session.execute(stmt)
            return result.scalar_one_or_none() is not None

    async def get_url(self, url: str) -> UrlEntry | None:
        async with self.transaction() as session:
            return await self.get_url_in(session, url)

    async def get_url_in(
        self, session: AsyncSession, url: str, *, for_update: bool = False
    ) -> UrlEntry | None:
        stmt = select(UrlEntry).where(UrlEntry.url == url)
        if for_update:
            stmt = stmt.with_for_update()
        return (await session.execute(stmt)).scalar_one_or_none()

    async def lock_url_in(self, session: AsyncSession, url: str) -> UrlEntry | None:
        """Serialise writers for ``url`` until ``session``'s transaction ends.

        The advisory lock also covers URLs with no UrlEntry row to lock.
        SQLite runs one writer at a time, so only the row read is issued there.
        """
        if session.bind.dialect.name == "postgresql":
            await session.execute(url_lock_statement(url))
        return await self.get_url_in(session, url, for_update=True)

    async def list_urls(self, *, limit: int = 100, offset: int = 0) -> list[UrlEntry]:
        async with self.transaction() as session:
            rows = await session.execute(
                select(UrlEntry)
                .order_by(UrlEntry.created_at.asc())
                .limit(limit)
                .offset(offset)
            )
            return list(rows.scalars().all())

    async def delete_url(self, url: str) -> bool:
        async with self.transaction() as session:
            result = await session.execute(delete(UrlEntry).where(UrlEntry.url == url))
            return result.rowcount > 0

    async def oldest_unsnapshotted(
        self, *, attempted_before_ms: int | None = None
    ) -> UrlEntry | None:
        """UrlEntry with no snapshot reference, least recently updated first.

        With ``attempted_before_ms``, entries whose last crawl stamp is newer
        than that are left out.
        """
        stmt = select(UrlEntry).where(UrlEntry.snapshot_id.is_(None))
        if attempted_before_ms is not None:
            crawled_at = UrlEntry.content["crawled_at"].as_float()
            stmt = stmt.where(or_(crawled_at.is_(None), crawled_at <= attempted_before_ms))
        async with self.transaction() as session:
            rows = await session.execute(
                stmt.order_by(UrlEntry.updated_at.asc(), UrlEntry.created_at.asc()).limit(1)
            )
            return rows.scalar_one_or_none()

    async def least_recently_updated(self) -> UrlEntry | None:
        async with self.transaction() as session:
            rows = await session.execute(
                select(UrlEntry)
                .order_by(UrlEntry.updated_at.asc(), UrlEntry.created_at.asc())
                .limit(1)
            )
            return rows.scalar_one_or_none()

    async def stamp_crawled(self, url: str, crawled_at_ms: int) -> bool:
        """Write ``content.crawled_at``; the stored stamp never moves backwards."""
        async with self.transaction() as session:
            entry = await self.get_url_in(session, url, for_update=True)
            if entry is None:
                return False
            previous = entry.crawled_at or 0
            content = dict(entry.content or {})
            content["url"] = url
            content["crawled_at"] = max(int(crawled_at_ms), int(previous))
            await session.execute(
                update(UrlEntry).where(UrlEntry.id == entry.id).values(content=content)
            )
            return True

    # ── Snapshot ──

    async def latest_snapshot(self, url: str) -> Snapshot | None:
        async with self.transaction() as session:
            return await self.latest_snapshot_in(session, url)

    async def latest_snapshot_in(self, session: AsyncSession, url: str) -> Snapshot | None:
        rows = await session.execute(
            select(Snapshot)
            .where(Snapshot.url == url)
            .order_by(Snapshot.created_at.desc())
            .limit(1)
        )
        return rows.scalar_one_or_none()

    async def list_snapshots(self, url: str, *, limit: int = 50) -> list[Snapshot]:
        async with self.transaction() as session:
            rows = await session.execute(
                select(Snapshot)
                .where(Snapshot.url == url)
                .order_by(Snapshot.created_at.desc())
                .limit(limit)
            )
            return list(rows.scalars().all())

    async def insert_and_link_in(
        self, session: AsyncSession, url: str, html: str
    ) -> tuple[Snapshot, bool]:
        """Insert a Snapshot and point the UrlEntry at it inside ``session``'s transaction.

        Returns the snapshot and whether a UrlEntry row was linked.
        """
        snapshot = Snapshot(
            id=uuid.uuid4(),
            url=url,
            content={"url": url, "html": html},
            content_hash=content_hash(html),
        )
        session.add(snapshot)
        await session.flush()
        result = await session.execute(
            update(UrlEntry).where(UrlEntry.url == url).values(snapshot_id=snapshot.id)
        )
        return snapshot, result.rowcount > 0
