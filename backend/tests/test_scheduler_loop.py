from __future__ import annotations

import asyncio

from db_gateway.errors import FetchError, StorageError
from db_gateway.scheduler import SchedulerLoop, TickResult
from db_gateway.store import ContentStore

URL = "https://example.com/"


class _StaticFetcher:
    def __init__(self, body: str = "<html>same</html>"):
        self.body = body
        self.calls: list[str] = []

    async def fetch(self, url: str) -> str:
        self.calls.append(url)
        return self.body


class _BrokenFetcher:
    async def fetch(self, url: str) -> str:
        raise FetchError("HTTP error 503", url=url)


def test_tick_on_empty_store_is_idle(with_store) -> None:
    async def scenario(store: ContentStore):
        fetcher = _StaticFetcher()
        result = await SchedulerLoop.build(store, fetcher).safe_tick()
        return result, fetcher.calls

    result, calls = with_store(scenario)
    assert result is TickResult.IDLE
    assert calls == []


def test_ticks_crawl_then_deduplicate(with_store) -> None:
    async def scenario(store: ContentStore):
        await store.add_url(URL)
        loop = SchedulerLoop.build(store, _StaticFetcher())
        first = await loop.safe_tick()
        second = await loop.safe_tick()
        return first, second, await store.get_url(URL), await store.list_snapshots(URL)

    first, second, entry, snapshots = with_store(scenario)
    assert first is TickResult.INSERTED
    assert second is TickResult.DUPLICATE
    assert entry.crawled_at is not None
    assert entry.snapshot_id == snapshots[0].id
    assert len(snapshots) == 1


def test_failed_tick_is_swallowed(with_store) -> None:
    async def scenario(store: ContentStore):
        await store.add_url(URL)
        loop = SchedulerLoop.build(store, _BrokenFetcher())
        result = await loop.safe_tick()
        return result, loop.last_result, await store.list_snapshots(URL)

    result, last_result, snapshots = with_store(scenario)
    assert result is TickResult.FAILED
    assert last_result is TickResult.FAILED
    assert snapshots == []


class _FlakySelector:
    def __init__(self):
        self.calls = 0

    async def next_url(self) -> str | None:
        self.calls += 1
        if self.calls == 1:
            raise StorageError("storage failure: OperationalError")
        return None


def test_loop_keeps_running_after_failure_and_stops_on_signal() -> None:
    async def scenario():
        selector = _FlakySelector()
        loop = SchedulerLoop(selector, None, _StaticFetcher(), None, interval_s=0.01)
        task = loop.start()
        for _ in range(200):
            if selector.calls >= 3:
                break
            await asyncio.sleep(0.01)
        running = loop.running
        await loop.stop()
        return selector.calls, running, task.done(), loop.running

    calls, running_before, done, running_after = asyncio.run(scenario())
    assert calls >= 3
    assert running_before is True
    assert done is True
    assert running_after is False


class _PickyFetcher:
    def __init__(self, broken: str):
        self.broken = broken
        self.calls: list[str] = []

    async def fetch(self, url: str) -> str:
        self.calls.append(url)
        if url == self.broken:
            raise FetchError("blocked by SSRF guard", url=url)
        return "<html>same</html>"


def test_unfetchable_url_does_not_starve_refreshes(with_store) -> None:
    broken = "http://localhost/admin"

    async def scenario(store: ContentStore):
        fetcher = _PickyFetcher(broken)
        loop = SchedulerLoop.build(store, fetcher)
        await store.add_url(URL)
        results = [await loop.safe_tick()]
        await store.add_url(broken)
        results += [await loop.safe_tick() for _ in range(3)]
        return results, fetcher.calls

    results, calls = with_store(scenario)
    assert results == [
        TickResult.INSERTED,
        TickResult.FAILED,
        TickResult.DUPLICATE,
        TickResult.FAILED,
    ]
    assert calls == [URL, broken, URL, broken]


class _SteppingClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class _SlowSelector:
    def __init__(self, clock: _SteppingClock, tick_cost: float):
        self.clock = clock
        self.tick_cost = tick_cost

    async def next_url(self) -> str | None:
        self.clock.now += self.tick_cost
        return None


class _RecordingLoop(SchedulerLoop):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.pauses: list[float] = []

    async def _pause(self, timeout: float) -> None:
        self.pauses.append(timeout)
        if len(self.pauses) == 3:
            self._stop.set()


def test_interval_is_measured_from_tick_start() -> None:
    async def scenario(tick_cost: float):
        clock = _SteppingClock()
        loop = _RecordingLoop(
            _SlowSelector(clock, tick_cost), None, _StaticFetcher(), None,
            interval_s=60.0, clock=clock,
        )
        await loop.run()
        return loop.pauses

    assert asyncio.run(scenario(20.0)) == [40.0, 40.0, 40.0]
    assert asyncio.run(scenario(90.0)) == [0.0, 0.0, 0.0]
