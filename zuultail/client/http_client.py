"""Async HTTP transport for the Zuul REST API.

Wraps :class:`httpx.AsyncClient` with:

* **Lazy session** — the connection pool is opened on first use and reused
  for every page of a scan.
* **Structured error mapping** — every httpx request error (network,
  timeout, redirect loop, body decoding) and every non-2xx response
  surfaces as :class:`~zuultail.core.exceptions.TransportError`.
* **No retries** — one call is exactly one request.  Back-off belongs to
  :func:`~zuultail.client.retry.with_retry`, which wraps whole page fetches.

Typical usage::

    from zuultail.client.http_client import ApiHttpClient

    async with ApiHttpClient() as http:
        response = await http.get("https://zuul.example.com/api/builds")
        data = response.json()
"""

from __future__ import annotations

import logging
from types import TracebackType
from typing import Any, Final

import httpx

from zuultail.core.exceptions import TransportError

__all__ = ["ApiHttpClient"]

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

#: Default connection timeout in seconds.
_DEFAULT_CONNECT_TIMEOUT: Final[float] = 10.0

#: Default timeout waiting for the response body.
_DEFAULT_READ_TIMEOUT: Final[float] = 30.0

#: Default timeout for uploading the request.
_DEFAULT_WRITE_TIMEOUT: Final[float] = 10.0

_USER_AGENT: Final[str] = "zuultail (+https://zuul-ci.org)"


class ApiHttpClient:
    """Async HTTP client used by :class:`~zuultail.client.builds.ZuulClient`.

    Use as an ``async with`` context manager (preferred) to guarantee the
    underlying connection pool is closed on exit, or call :meth:`close`.

    Args:
        connect_timeout: TCP connection establishment timeout in seconds.
        read_timeout: Timeout for receiving the response.
        write_timeout: Timeout for uploading the request.
        transport: Optional httpx transport, e.g. :class:`httpx.MockTransport`
            in tests.
    """

    def __init__(
        self,
        *,
        connect_timeout: float = _DEFAULT_CONNECT_TIMEOUT,
        read_timeout: float = _DEFAULT_READ_TIMEOUT,
        write_timeout: float = _DEFAULT_WRITE_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._transport = transport
        self._timeout = httpx.Timeout(
            connect=connect_timeout,
            read=read_timeout,
            write=write_timeout,
            pool=5.0,
        )
        self._http: httpx.AsyncClient | None = None

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    async def __aenter__(self) -> ApiHttpClient:
        await self._ensure_client()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Public request methods
    # ------------------------------------------------------------------

    async def get(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Perform exactly one HTTP GET request.

        Args:
            url: Absolute request URL.
            params: Optional query-string parameters.

        Returns:
            The :class:`httpx.Response` on HTTP 2xx.

        Raises:
            TransportError: On any request failure or a non-2xx status.
        """
        client = await self._ensure_client()
        logger.debug("HTTP GET %s params=%s", url, params)

        try:
            response = await client.get(url, params=params)
        except (httpx.RequestError, httpx.InvalidURL) as exc:
            # Covers redirect loops and body decoding as well as network errors.
            logger.debug("Request error on GET %s.", url, exc_info=True)
            raise TransportError(url, f"{type(exc).__name__}: {exc}") from exc

        logger.debug(
            "HTTP GET %s → %d (%.0f ms, %d bytes)",
            url,
            response.status_code,
            response.elapsed.total_seconds() * 1000 if response.elapsed else 0,
            len(response.content),
        )

        if response.is_success:
            return response

        raise TransportError(
            url,
            f"HTTP {response.status_code}: {response.text[:200]}",
            status_code=response.status_code,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client and release pooled connections.

        Safe to call multiple times or when no requests have been made yet.
        """
        if self._http is not None and not self._http.is_closed:
            await self._http.aclose()
            logger.debug("ApiHttpClient session closed.")
        self._http = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Return the open HTTP client, creating it lazily if needed."""
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(
                timeout=self._timeout,
                follow_redirects=True,
                transport=self._transport,
                headers={"Accept": "application/json", "User-Agent": _USER_AGENT},
            )
            logger.debug("ApiHttpClient session opened.")
        return self._http
