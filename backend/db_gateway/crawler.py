"""Crawler: stamps a URL's crawl time. Bookkeeping only."""
from __future__ import annotations

import logging
import time
from typing import Callable

from db_gateway.store import ContentStore
from db_gateway.urls import normalize_url

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


class Crawler:
    def __init__(self, store: ContentStore, *, clock: Callable[[], int] = now_ms):
        self._store = store
        self._clock = clock

    async def mark_crawled(self, url: str) -> bool:
        """Overwrite ``crawled_at`` for ``url``. False when the URL is not tracked."""
        url = normalize_url(url)
        stamped = await self._store.stamp_crawled(url, self._clock())
        if not stamped:
            logger.info("Crawl stamp skipped, url not tracked: %s", url)
        return stamped
