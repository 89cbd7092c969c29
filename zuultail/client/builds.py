"""Zuul builds API client.

:class:`ZuulClient` is the entry point for both one-shot and streaming use:

* :meth:`ZuulClient.list_builds` — one page of ``/builds``, every element
  decoded independently (a bad element becomes a
  :class:`~zuultail.core.exceptions.DecodeError` in its slot).
* :meth:`ZuulClient.list_builds_unsafe` — same, but fail-fast on the first
  bad element.
* :meth:`ZuulClient.scan` — a deduplicating forward scan over every page.
* :meth:`ZuulClient.tail` — an endless "tail -f" feed of new builds.

Typical usage::

    from zuultail.client.builds import create_client

    async with create_client("https://zuul.example.com/api/tenant/main") as client:
        async for build in client.tail(poll_interval=10.0):
            print(build.uuid, build.job_name, build.result)
"""

from __future__ import annotations

import logging
from types import TracebackType
from typing import TYPE_CHECKING, Any, Final
from urllib.parse import urljoin, urlsplit, urlunsplit

import httpx

from zuultail.client.http_client import ApiHttpClient
from zuultail.client.retry import DEFAULT_RETRY_POLICY, RetryPolicy
from zuultail.core.exceptions import DecodeError, TransportError, UrlError
from zuultail.core.models import Build, decode_build
from zuultail.stream.scanner import DEFAULT_PAGE_SIZE, BuildScanner
from zuultail.stream.tail import BuildTail

if TYPE_CHECKING:
    from zuultail.core.settings import Settings

__all__ = ["ZuulClient", "create_client", "parse_root_url"]

logger = logging.getLogger(__name__)

_BUILDS_PATH: Final[str] = "builds"

#: Characters allowed in a host besides letters and digits (":" for IPv6).
_HOST_PUNCTUATION: Final[str] = "-._:"

#: Page size used by :meth:`ZuulClient.list_builds_unsafe` by default.
_UNSAFE_DEFAULT_LIMIT: Final[int] = 20


def parse_root_url(url: str) -> str:
    """Validate an API root and make sure its path ends with ``/``.

    A trailing separator makes relative joins well defined:
    ``https://example.com/api`` + ``builds`` must give ``.../api/builds``,
    not ``.../builds``.

    Args:
        url: The API root as supplied by the user.

    Returns:
        The normalised root, e.g. ``"https://example.com/api/"``.

    Raises:
        UrlError: If *url* is not an absolute ``http(s)`` URL with a host.
    """
    candidate = url.strip()
    try:
        parts = urlsplit(candidate)
        # Accessing .port validates the port component.
        parts.port  # noqa: B018
        httpx.URL(candidate)
    except (ValueError, httpx.InvalidURL) as exc:
        raise UrlError(url, str(exc)) from exc

    if parts.scheme not in {"http", "https"}:
        raise UrlError(url, "expected an http or https scheme")
    if not parts.hostname:
        raise UrlError(url, "missing host")
    # httpx percent-encodes hosts rather than rejecting them.
    if any(not (ch.isalnum() or ch in _HOST_PUNCTUATION) for ch in parts.hostname):
        raise UrlError(url, f"invalid host {parts.hostname!r}")

    path = parts.path if parts.path.endswith("/") else f"{parts.path}/"
    return urlunsplit((parts.scheme, parts.netloc, path, parts.query, parts.fragment))


class ZuulClient:
    """Client for a Zuul tenant's REST API.

    Args:
        api_url: The API root; normalised with :func:`parse_root_url`.
        http_client: Optional pre-built transport (useful for testing).  When
            omitted the client creates and owns one.
        retry_policy: Back-off used around page fetches by :meth:`scan` and
            :meth:`tail`.
        page_size: Builds requested per page while scanning.

    Raises:
        UrlError: If *api_url* is malformed.
    """

    def __init__(
        self,
        api_url: str,
        *,
        http_client: ApiHttpClient | None = None,
        retry_policy: RetryPolicy = DEFAULT_RETRY_POLICY,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        self.api_url = parse_root_url(api_url)
        self.retry_policy = retry_policy
        self.page_size = page_size
        self._builds_url = urljoin(self.api_url, _BUILDS_PATH)
        self._http = http_client or ApiHttpClient()
        self._owns_http = http_client is None

    @classmethod
    def from_settings(cls, settings: Settings) -> ZuulClient:
        """Build a client from application :class:`~zuultail.core.settings.Settings`."""
        client = cls(
            settings.api_url,
            http_client=ApiHttpClient(
                connect_timeout=settings.connect_timeout,
                read_timeout=settings.read_timeout,
            ),
            retry_policy=settings.retry_policy(),
            page_size=settings.page_size,
        )
        client._owns_http = True
        return client

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Close the HTTP transport if this client created it."""
        if self._owns_http:
            await self._http.close()

    async def __aenter__(self) -> ZuulClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # One-shot listing
    # ------------------------------------------------------------------

    async def list_builds(self, skip: int, limit: int) -> list[Build | DecodeError]:
        """Fetch one page of completed builds, newest first.

        Args:
            skip: Number of builds to skip.
            limit: Maximum number of builds to return.

        Returns:
            One entry per element of the response, in server order: a
            :class:`Build`, or the :class:`DecodeError` for that element.

        Raises:
            TransportError: On any network/HTTP failure, or when the body is
                not a JSON array.
        """
        if skip < 0 or limit < 0:
            raise ValueError(f"skip and limit must be non-negative, got {skip!r}, {limit!r}")

        params = {"complete": "true", "skip": skip, "limit": limit}
        logger.debug("Querying builds skip=%d limit=%d", skip, limit)
        response = await self._http.get(self._builds_url, params=params)

        try:
            payload: Any = response.json()
        except ValueError as exc:
            raise TransportError(self._builds_url, f"Malformed JSON body: {exc}") from exc
        if not isinstance(payload, list):
            raise TransportError(
                self._builds_url,
                f"Expected a JSON array, got {type(payload).__name__}",
            )

        results: list[Build | DecodeError] = []
        for raw in payload:
            try:
                results.append(decode_build(raw))
            except DecodeError as exc:
                results.append(exc)
        return results

    async def list_builds_unsafe(
        self,
        skip: int = 0,
        limit: int = _UNSAFE_DEFAULT_LIMIT,
    ) -> list[Build]:
        """Fetch one page and require every element to decode.

        Raises:
            DecodeError: The first element that failed to decode.
            TransportError: As for :meth:`list_builds`.
        """
        builds: list[Build] = []
        for item in await self.list_builds(skip, limit):
            if isinstance(item, DecodeError):
                raise item
            builds.append(item)
        return builds

    # ------------------------------------------------------------------
    # Streams
    # ------------------------------------------------------------------

    def scan(self) -> BuildScanner:
        """Return a fresh deduplicating scan from the newest build backwards."""
        return BuildScanner(
            self.list_builds,
            page_size=self.page_size,
            retry_policy=self.retry_policy,
        )

    def tail(self, poll_interval: float, since: str | None = None) -> BuildTail:
        """Return an endless feed of new builds.

        Args:
            poll_interval: Seconds to sleep between catch-up passes.
            since: Build uuid to catch up to.  ``None`` starts from the
                current latest build and only reports builds newer than it.
        """
        return BuildTail(self, poll_interval=poll_interval, since=since)


def create_client(api_url: str) -> ZuulClient:
    """Validate *api_url* and return a :class:`ZuulClient` for it.

    Raises:
        UrlError: If *api_url* is malformed.
    """
    return ZuulClient(api_url)
