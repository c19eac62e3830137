"""Crawl selector: picks the next URL that needs a crawl."""
from __future__ import annotations

import logging
from typing import Callable

from db_gateway.crawler import now_ms
from db_gateway.store import ContentStore

logger = logging.getLogger(__name__)


class CrawlSelector:
    """Never-crawled URLs first (oldest update first); otherwise cycle the whole set.

    A never-snapshotted URL whose crawl was attempted less than
    ``retry_after_s`` ago waits its turn in the fallback, so one URL that
    always fails to fetch cannot starve the refresh of the others.

    Read-only. Storage errors propagate to the caller untouched.
    """

    def __init__(
        self,
        store: ContentStore,
        *,
        retry_after_s: float = 600.0,
        clock: Callable[[], int] = now_ms,
    ):
        self._store = store
        self._retry_after_ms = int(retry_after_s * 1000)
        self._clock = clock

    async def next_url(self) -> str | None:
        entry = await self._store.oldest_unsnapshotted(
            attempted_before_ms=self._clock() - self._retry_after_ms
        )
        if entry is not None:
            logger.debug("Selected never-snapshotted url %s", entry.url)
            return entry.url

        entry = await self._store.least_recently_updated()
        if entry is None:
            return None
        logger.debug("Selected stale url %s (updated_at=%s)", entry.url, entry.updated_at)
        return entry.url
