"""Scheduler loop: the periodic crawl driver.

Each tick: select the next URL, stamp its crawl time, fetch its content and
hand it to the snapshot writer. A tick that fails is logged and the loop
carries on; the next tick retries naturally. ``stop()`` ends the loop
cooperatively.
"""
from __future__ import annotations

import asyncio
import enum
import logging
import time
from typing import Callable

from db_gateway.crawler import Crawler
from db_gateway.fetcher import ContentFetcher
from db_gateway.metrics import CRAWL_TICK_SECONDS, CRAWL_TICKS_TOTAL
from db_gateway.selector import CrawlSelector
from db_gateway.snapshot_writer import SnapshotWriter, WriteOutcome
from db_gateway.store import ContentStore

logger = logging.getLogger(__name__)


class TickResult(str, enum.Enum):
    IDLE = "idle"
    SKIPPED = "skipped"
    INSERTED = "inserted"
    DUPLICATE = "duplicate"
    FAILED = "failed"


class SchedulerLoop:
    def __init__(
        self,
        selector: CrawlSelector,
        crawler: Crawler,
        fetcher: ContentFetcher,
        writer: SnapshotWriter,
        *,
        interval_s: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.selector = selector
        self.crawler = crawler
        self.fetcher = fetcher
        self.writer = writer
        self.interval_s = interval_s
        self._clock = clock
        self.last_tick_at: float | None = None
        self.last_result: TickResult | None = None
        self._stop = asyncio.Event()
        self._task: asyncio.Task | None = None

    @classmethod
    def build(
        cls,
        store: ContentStore,
        fetcher: ContentFetcher,
        *,
        interval_s: float = 60.0,
        retry_after_s: float = 600.0,
    ) -> "SchedulerLoop":
        return cls(
            CrawlSelector(store, retry_after_s=retry_after_s),
            Crawler(store),
            fetcher,
            SnapshotWriter(store),
            interval_s=interval_s,
        )

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def tick(self) -> TickResult:
        """One crawl step. Errors propagate."""
        url = await self.selector.next_url()
        if url is None:
            return TickResult.IDLE

        if not await self.crawler.mark_crawled(url):
            # Removed between selection and stamping.
            return TickResult.SKIPPED

        content = await self.fetcher.fetch(url)
        outcome = await self.writer.record_snapshot(url, content)
        logger.info("Crawled %s: %s", url, outcome.value)
        if outcome is WriteOutcome.DUPLICATE:
            return TickResult.DUPLICATE
        return TickResult.INSERTED

    async def safe_tick(self) -> TickResult:
        """``tick()`` with every failure logged and swallowed."""
        started = time.perf_counter()
        try:
            result = await self.tick()
        except Exception as exc:
            logger.error(
                "Crawl tick failed: %s",
                exc,
                exc_info=True,
                extra={"url": getattr(exc, "url", None), "error_class": type(exc).__name__},
            )
            result = TickResult.FAILED
        finally:
            CRAWL_TICK_SECONDS.observe(time.perf_counter() - started)

        self.last_tick_at = time.time()
        self.last_result = result
        CRAWL_TICKS_TOTAL.labels(result=result.value).inc()
        return result

    async def run(self) -> None:
        """Tick immediately, then every ``interval_s`` until stopped.

        The period is measured from tick start to tick start; a tick that
        overruns the interval is followed by the next one straight away.
        """
        logger.info("Scheduler loop started", extra={"interval_s": self.interval_s})
        while not self._stop.is_set():
            started = self._clock()
            await self.safe_tick()
            elapsed = self._clock() - started
            await self._pause(max(0.0, self.interval_s - elapsed))
        logger.info("Scheduler loop stopped")

    async def _pause(self, timeout: float) -> None:
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            pass

    def start(self) -> asyncio.Task:
        if self.running:
            return self._task
        self._stop.clear()
        self._task = asyncio.create_task(self.run(), name="crawl-scheduler")
        return self._task

    async def stop(self) -> None:
        self._stop.set()
        if self._task is not None:
            await self._task
            self._task = None
