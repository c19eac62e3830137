from __future__ import annotations

import pytest

from db_gateway.crawler import Crawler
from db_gateway.errors import InvalidUrl
from db_gateway.store import ContentStore

URL = "https://example.com/"


def test_mark_crawled_stamps_millisecond_timestamp(with_store) -> None:
    async def scenario(store: ContentStore):
        await store.add_url(URL)
        stamped = await Crawler(store, clock=lambda: 1_700_000_000_123).mark_crawled(URL)
        return stamped, await store.get_url(URL)

    stamped, entry = with_store(scenario)
    assert stamped is True
    assert entry.crawled_at == 1_700_000_000_123
    assert entry.content["url"] == URL
    assert entry.snapshot_id is None


def test_repeated_crawls_overwrite_but_never_rewind(with_store) -> None:
    ticks = iter([1_000, 2_000, 1_500])

    async def scenario(store: ContentStore):
        await store.add_url(URL)
        crawler = Crawler(store, clock=lambda: next(ticks))
        stamps = []
        for _ in range(3):
            await crawler.mark_crawled(URL)
            stamps.append((await store.get_url(URL)).crawled_at)
        return stamps

    assert with_store(scenario) == [1_000, 2_000, 2_000]


def test_mark_crawled_unknown_url_is_noop(with_store) -> None:
    async def scenario(store: ContentStore):
        return await Crawler(store).mark_crawled(URL), await store.list_urls()

    stamped, entries = with_store(scenario)
    assert stamped is False
    assert entries == []


def test_mark_crawled_rejects_relative_url(with_store) -> None:
    async def scenario(store: ContentStore):
        with pytest.raises(InvalidUrl):
            await Crawler(store).mark_crawled("/just/a/path")

    with_store(scenario)
