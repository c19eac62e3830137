"""URL validation and normalisation used by submission and snapshot paths."""
from __future__ import annotations

from urllib.parse import urlsplit, urlunsplit

from db_gateway.errors import InvalidUrl


def is_absolute_with_host(url: str) -> bool:
    """True for URLs like ``https://example.com/x``; relative or host-less URLs fail."""
    if not isinstance(url, str) or not url.strip():
        return False
    try:
        parts = urlsplit(url.strip())
        # Accessing .port validates it; bad ports raise ValueError.
        parts.port
    except ValueError:
        return False
    return bool(parts.scheme) and bool(parts.hostname)


def normalize_url(url: str) -> str:
    """Canonical storage form: lowercase scheme/host, no fragment.

    Raises ``InvalidUrl`` when the URL is not absolute with a host.
    """
    if not is_absolute_with_host(url):
        raise InvalidUrl("only absolute urls are allowed", url=url)
    parts = urlsplit(url.strip())
    # Userinfo is case-sensitive; host and port are not.
    userinfo, sep, hostport = parts.netloc.rpartition("@")
    netloc = f"{userinfo}{sep}{hostport.lower()}"
    return urlunsplit((parts.scheme.lower(), netloc, parts.path, parts.query, ""))
