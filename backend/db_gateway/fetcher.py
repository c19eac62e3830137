"""Content fetcher: turns a URL into the raw body the snapshot writer stores."""
from __future__ import annotations

import asyncio
import ipaddress
import logging
import socket
from typing import Protocol
from urllib.parse import urlparse

import httpx

from db_gateway.config import Settings
from db_gateway.errors import FetchError

logger = logging.getLogger(__name__)


class ContentFetcher(Protocol):
    async def fetch(self, url: str) -> str: ...


def _is_private_or_local_ip(value: str) -> bool:
    try:
        ip_obj = ipaddress.ip_address(value)
    except ValueError:
        return False
    return any(
        (
            ip_obj.is_private,
            ip_obj.is_loopback,
            ip_obj.is_link_local,
            ip_obj.is_multicast,
            ip_obj.is_unspecified,
            ip_obj.is_reserved,
        )
    )


def is_ssrf_safe(url: str) -> bool:
    """Check if URL uses http(s) and resolves only to public IPs (IPv4/IPv6)."""
    try:
        parsed = urlparse(url)
        hostname = parsed.hostname
        if not hostname or parsed.scheme not in {"http", "https"}:
            return False
        if hostname in {"localhost"} or hostname.endswith(".local"):
            return False
        if _is_private_or_local_ip(hostname):
            return False

        results = socket.getaddrinfo(hostname, None)
        for result in results:
            address = str(result[4][0] or "").strip()
            if address and _is_private_or_local_ip(address):
                return False
        return True
    except (OSError, ValueError) as e:
        logger.error(f"SSRF check failed for {url}: {e}")
        return False


class HttpContentFetcher:
    """httpx-backed fetcher with a byte cap and an SSRF guard."""

    def __init__(
        self,
        *,
        timeout_s: float = 30.0,
        max_bytes: int = 5_000_000,
        user_agent: str = "DbGateway/1.0",
        allow_private: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.timeout_s = timeout_s
        self.max_bytes = max_bytes
        self.user_agent = user_agent
        self.allow_private = allow_private
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "HttpContentFetcher":
        return cls(
            timeout_s=settings.FETCH_TIMEOUT_S,
            max_bytes=settings.FETCH_MAX_BYTES,
            user_agent=settings.FETCH_USER_AGENT,
        )

    async def fetch(self, url: str) -> str:
        if not self.allow_private and not await asyncio.to_thread(is_ssrf_safe, url):
            raise FetchError("refusing to fetch non-public url", url=url)

        async with httpx.AsyncClient(
            headers={"User-Agent": self.user_agent},
            timeout=self.timeout_s,
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            try:
                resp = await client.get(url)
                resp.raise_for_status()
            except httpx.HTTPStatusError as e:
                raise FetchError(f"HTTP error {e.response.status_code}", url=url) from e
            except httpx.HTTPError as e:
                raise FetchError(f"fetch failed: {type(e).__name__}", url=url) from e

        content_length = int(resp.headers.get("content-length", "0") or 0)
        if content_length > self.max_bytes or len(resp.content) > self.max_bytes:
            logger.warning(
                "Max bytes exceeded for %s: %s > %s",
                url,
                max(content_length, len(resp.content)),
                self.max_bytes,
            )
            raise FetchError("max bytes exceeded", url=url)
        return resp.text
