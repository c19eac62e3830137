from __future__ import annotations

import asyncio

import httpx
import pytest

from db_gateway.errors import FetchError
from db_gateway.fetcher import HttpContentFetcher, is_ssrf_safe


def _fetcher(handler, **kwargs) -> HttpContentFetcher:
    return HttpContentFetcher(
        allow_private=True, transport=httpx.MockTransport(handler), **kwargs
    )


def test_fetch_returns_body_and_sends_user_agent() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["ua"] = request.headers["User-Agent"]
        return httpx.Response(200, text="<html>ok</html>")

    body = asyncio.run(_fetcher(handler, user_agent="TestAgent/1.0").fetch("https://example.com/"))
    assert body == "<html>ok</html>"
    assert seen["ua"] == "TestAgent/1.0"


def test_fetch_raises_on_http_error_status() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="down")

    with pytest.raises(FetchError, match="503"):
        asyncio.run(_fetcher(handler).fetch("https://example.com/"))


def test_fetch_enforces_max_bytes() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="x" * 2048)

    with pytest.raises(FetchError, match="max bytes"):
        asyncio.run(_fetcher(handler, max_bytes=1024).fetch("https://example.com/"))


def test_fetch_wraps_transport_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(FetchError, match="ConnectError"):
        asyncio.run(_fetcher(handler).fetch("https://example.com/"))


def test_fetch_refuses_private_targets_by_default() -> None:
    with pytest.raises(FetchError, match="non-public"):
        asyncio.run(HttpContentFetcher().fetch("http://127.0.0.1:8080/"))


@pytest.mark.parametrize(
    "url",
    ["http://127.0.0.1/", "http://localhost/", "http://printer.local/", "ftp://example.com/", "http://10.0.0.5/"],
)
def test_ssrf_guard_rejects_non_public_targets(url: str) -> None:
    assert is_ssrf_safe(url) is False
