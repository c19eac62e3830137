"""Snapshot writer: records a new snapshot only when content changed.

The read of the latest snapshot, the insert and the UrlEntry back-reference
update all run in one transaction. On PostgreSQL an advisory lock keyed on
the URL is taken first (tracked or not), so concurrent writers for the same
URL see a consistent "latest snapshot" and a failed insert never leaves a
dangling reference.
"""
from __future__ import annotations

import enum
import logging

from db_gateway.metrics import SNAPSHOT_WRITES_TOTAL
from db_gateway.store import ContentStore
from db_gateway.urls import normalize_url

logger = logging.getLogger(__name__)


class WriteOutcome(str, enum.Enum):
    INSERTED = "inserted"
    DUPLICATE = "duplicate"


class SnapshotWriter:
    def __init__(self, store: ContentStore):
        self._store = store

    async def record_snapshot(self, url: str, content: str) -> WriteOutcome:
        """Store ``content`` for ``url`` unless it equals the latest snapshot.

        Raises ``InvalidUrl`` before touching the store, ``StorageError`` on
        store failure (retrying is safe).
        """
        url = normalize_url(url)

        async with self._store.transaction() as session:
            await self._store.lock_url_in(session, url)
            latest = await self._store.latest_snapshot_in(session, url)

            if latest is not None and latest.html == content:
                logger.info("No need to insert the same content twice", extra={"url": url})
                SNAPSHOT_WRITES_TOTAL.labels(outcome=WriteOutcome.DUPLICATE.value).inc()
                return WriteOutcome.DUPLICATE

            snapshot, linked = await self._store.insert_and_link_in(session, url, content)

        if not linked:
            logger.warning(
                "Snapshot stored for untracked url", extra={"url": url, "snapshot_id": str(snapshot.id)}
            )
        else:
            logger.info("Snapshot inserted", extra={"url": url, "snapshot_id": str(snapshot.id)})
        SNAPSHOT_WRITES_TOTAL.labels(outcome=WriteOutcome.INSERTED.value).inc()
        return WriteOutcome.INSERTED
