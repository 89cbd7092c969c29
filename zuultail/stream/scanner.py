"""Deduplicating forward scan over the paged ``/builds`` listing.

The listing is offset-paginated and newest-first, and new builds keep being
inserted at its head while we read it.  Between two page fetches every
existing row can therefore shift down, so the next page may repeat builds
already seen (the *sliding window*).  :class:`BuildScanner` makes that safe:

* ``offset`` advances by the number of **raw** rows returned, decodable or
  not, because the server paginates over raw rows.
* Every emitted ``uuid`` is remembered in ``known_builds``; a repeat is
  dropped without touching ``offset``.
* An element that fails to decode is logged and dropped.

A build pushed past ``offset`` before it was ever fetched is missed by this
scan; offset pagination over a mutating list cannot do better without
re-reading pages.

The scanner is pull-driven: a page is fetched only once the consumer has
drained the previous one, and there is no sleep between pages.  A page with
no rows means the end of the listing and ends the scan.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Awaitable, Callable
from typing import Final

from zuultail.client.retry import DEFAULT_RETRY_POLICY, RetryPolicy, with_retry
from zuultail.core.exceptions import DecodeError
from zuultail.core.models import Build

__all__ = ["DEFAULT_PAGE_SIZE", "BuildScanner", "FetchPage"]

logger = logging.getLogger(__name__)

#: Builds requested per page.
DEFAULT_PAGE_SIZE: Final[int] = 20

#: ``(skip, limit) -> page``, the shape of :meth:`ZuulClient.list_builds`.
FetchPage = Callable[[int, int], Awaitable[list[Build | DecodeError]]]


class BuildScanner:
    """Async iterator yielding each build of the listing at most once.

    Each instance owns its own ``offset`` and ``known_builds``; create a new
    scanner to start again from the head of the listing.

    Args:
        fetch_page: Coroutine function fetching one raw page.
        page_size: Rows requested per fetch.
        retry_policy: Back-off applied to every page fetch.

    Attributes:
        offset: Raw rows consumed so far; the ``skip`` of the next fetch.
        known_builds: Every ``uuid`` emitted by this scanner.
        pages_fetched: Number of successful page fetches.
    """

    def __init__(
        self,
        fetch_page: FetchPage,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        retry_policy: RetryPolicy = DEFAULT_RETRY_POLICY,
    ) -> None:
        if page_size < 1:
            raise ValueError(f"page_size must be ≥ 1, got {page_size!r}.")
        self._fetch_page = fetch_page
        self._page_size = page_size
        self._retry_policy = retry_policy
        self._pending: deque[Build] = deque()
        self._exhausted = False
        self.offset = 0
        self.known_builds: set[str] = set()
        self.pages_fetched = 0

    def __aiter__(self) -> BuildScanner:
        return self

    async def __anext__(self) -> Build:
        while not self._pending:
            if self._exhausted:
                raise StopAsyncIteration
            await self._advance()
        return self._pending.popleft()

    async def _advance(self) -> None:
        """Fetch the page at :attr:`offset` and buffer its unseen builds."""
        skip = self.offset
        page = await with_retry(
            lambda: self._fetch_page(skip, self._page_size),
            self._retry_policy,
        )
        self.pages_fetched += 1
        self.offset += len(page)

        if not page:
            logger.debug("Reached the end of the listing at offset %d.", skip)
            self._exhausted = True
            return

        for item in page:
            if isinstance(item, DecodeError):
                logger.error("Dropping undecodable build %s: %s", item.uuid or "?", item.reason)
                logger.debug("Undecodable payload: %r", item.payload)
                continue
            if item.uuid in self.known_builds:
                # The listing shifted between two fetches.
                logger.debug("Skipping already seen build %s (offset %d).", item.uuid, skip)
                continue
            self.known_builds.add(item.uuid)
            self._pending.append(item)
