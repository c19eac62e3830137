from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable

import pytest

from db_gateway.db import create_tables, make_engine, make_session_factory
from db_gateway.store import ContentStore

SQLITE_MEMORY_URL = "sqlite+aiosqlite://"


def run_with_store(
    scenario: Callable[[ContentStore], Awaitable[Any]],
    *,
    store_cls: type[ContentStore] = ContentStore,
) -> Any:
    """Run ``scenario`` against a fresh in-memory store on its own event loop."""

    async def _main() -> Any:
        engine = make_engine(SQLITE_MEMORY_URL)
        try:
            await create_tables(engine)
            return await scenario(store_cls(make_session_factory(engine)))
        finally:
            await engine.dispose()

    return asyncio.run(_main())


@pytest.fixture
def with_store() -> Callable[..., Any]:
    return run_with_store
