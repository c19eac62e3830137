"""Error taxonomy shared by the crawl core and the HTTP layer."""
from __future__ import annotations


class GatewayError(Exception):
    """Base class; ``status_code`` is the HTTP signal the API maps it to."""

    status_code = 500

    def __init__(self, message: str, *, url: str | None = None):
        super().__init__(message)
        self.message = message
        self.url = url


class InvalidUrl(GatewayError):
    """Caller supplied a relative, host-less or unparsable URL. Never retried."""

    status_code = 400


class StorageError(GatewayError):
    """Transient store failure. Safe to retry the whole operation."""

    status_code = 500


class NotFound(GatewayError):
    """Nothing to act on (unknown URL, empty queue)."""

    status_code = 404


class FetchError(GatewayError):
    """The content fetcher could not produce a body for a URL."""

    status_code = 502
