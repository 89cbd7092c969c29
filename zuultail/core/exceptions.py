"""zuultail exception taxonomy.

Every custom exception inherits from :class:`ZuulTailError`.  Exceptions are
organised by architectural layer so callers can catch at the right granularity:

    Layer hierarchy
    ---------------
    ZuulTailError
    ├── ConfigError
    │   └── UrlError
    ├── ClientError
    │   ├── TransportError
    │   └── DecodeError
    └── StreamError
        └── BootstrapError

Usage:

    from zuultail.core.exceptions import TransportError

    raise TransportError("https://zuul.example.com/api/builds", "Connection refused") from exc
"""

from __future__ import annotations

from typing import Any

__all__ = [
    "ZuulTailError",
    # Config
    "ConfigError",
    "UrlError",
    # Client
    "ClientError",
    "TransportError",
    "DecodeError",
    # Stream
    "StreamError",
    "BootstrapError",
]


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------


class ZuulTailError(Exception):
    """Root exception for all zuultail errors."""


# ---------------------------------------------------------------------------
# Config layer
# ---------------------------------------------------------------------------


class ConfigError(ZuulTailError):
    """Raised when the application configuration is invalid or incomplete.

    Examples:
        - ``ZUUL_API_URL`` is missing when the CLI starts.
        - A retry bound is negative.
    """


class UrlError(ConfigError):
    """Raised when the API root is not a syntactically valid absolute URL.

    Args:
        url: The rejected value.
        reason: Why it was rejected.
    """

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        super().__init__(f"Invalid API url {url!r}: {reason}")


# ---------------------------------------------------------------------------
# Client layer
# ---------------------------------------------------------------------------


class ClientError(ZuulTailError):
    """Base class for errors raised while talking to the builds API."""


class TransportError(ClientError):
    """Raised when a request fails at the connection or HTTP layer.

    Covers network errors, timeouts, non-2xx status codes, and response
    bodies that are not a JSON array.  This is the only error the retry
    wrapper retries.

    Args:
        url: The requested URL.
        message: Human-readable error description.
        status_code: HTTP status code, if a response was received.
    """

    def __init__(self, url: str, message: str, status_code: int | None = None) -> None:
        self.url = url
        self.status_code = status_code
        super().__init__(f"[{url}] {message}")


class DecodeError(ClientError):
    """Raised when a single build element cannot be decoded.

    Never fatal: one bad element is dropped while the rest of its page is
    processed normally.

    Args:
        payload: The raw element that failed to decode.
        reason: Validation error summary.
    """

    def __init__(self, payload: Any, reason: str) -> None:
        self.payload = payload
        self.reason = reason
        super().__init__(f"Failed to decode build: {reason}")

    @property
    def uuid(self) -> str | None:
        """The ``uuid`` member of the payload, when one is present."""
        if isinstance(self.payload, dict):
            value = self.payload.get("uuid")
            return value if isinstance(value, str) else None
        return None


# ---------------------------------------------------------------------------
# Stream layer
# ---------------------------------------------------------------------------


class StreamError(ZuulTailError):
    """Base class for errors raised by the scan and tail engines."""


class BootstrapError(StreamError):
    """Raised when the tail loop cannot discover the current latest build.

    Happens when the listing is empty, or its first element does not decode.
    There is no meaningful recovery: the tail stream ends.
    """
