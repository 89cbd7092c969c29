"""Live "tail -f" feed of Zuul builds.

:class:`BuildTail` alternates between two states, one pass per poll
interval:

Bootstrapping (``since is None``)
    Ask for the single newest build and remember its ``uuid`` as the
    checkpoint.  Nothing is forwarded: a tail only reports builds that
    complete after it started.  An empty listing raises
    :class:`~zuultail.core.exceptions.BootstrapError`.

Catching up (``since`` set)
    Start a fresh :class:`~zuultail.stream.scanner.BuildScanner` and forward
    every build until the checkpoint shows up again.  The first build seen
    in the pass becomes the next checkpoint.

Builds come out newest-first within a pass.  Transport failures that outlast
the retry budget end the feed; so does a failed bootstrap.

Typical usage::

    async with create_client(url) as client:
        async for build in client.tail(poll_interval=10.0):
            print(build.uuid)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import aclosing
from typing import TYPE_CHECKING

from zuultail.client.retry import with_retry
from zuultail.core.exceptions import BootstrapError, DecodeError
from zuultail.core.logging_config import TAIL_ITERATION_CTX
from zuultail.core.models import Build

if TYPE_CHECKING:
    from zuultail.client.builds import ZuulClient

__all__ = ["BuildTail"]

logger = logging.getLogger(__name__)


class BuildTail:
    """Endless, resumable async iterable of new builds.

    Iterating the object starts the loop; stop it with ``aclose()`` on the
    iterator or by cancelling the consuming task.  :attr:`since` can be read
    at any time and passed to a new tail to resume where this one stopped.

    Args:
        client: The API client providing ``list_builds`` and ``scan``.
        poll_interval: Seconds to sleep after each pass.
        since: Initial checkpoint uuid; ``None`` bootstraps from the
            current latest build.

    Attributes:
        since: The current checkpoint.
        iterations: Completed bootstrap / catch-up passes.
    """

    def __init__(
        self,
        client: ZuulClient,
        *,
        poll_interval: float,
        since: str | None = None,
    ) -> None:
        if poll_interval < 0:
            raise ValueError(f"poll_interval must be ≥ 0, got {poll_interval!r}.")
        self._client = client
        self.poll_interval = poll_interval
        self.since = since
        self.iterations = 0

    def __aiter__(self) -> AsyncIterator[Build]:
        return self._follow()

    async def _follow(self) -> AsyncIterator[Build]:
        # The generator runs in the consumer's context; put its value back on exit.
        outer_iteration = TAIL_ITERATION_CTX.get()
        try:
            while True:
                TAIL_ITERATION_CTX.set(str(self.iterations + 1))
                if self.since is None:
                    await self.bootstrap()
                else:
                    async with aclosing(self.catch_up()) as builds:
                        async for build in builds:
                            yield build
                self.iterations += 1
                logger.debug("Now sleeping %.1f s", self.poll_interval)
                await asyncio.sleep(self.poll_interval)
        finally:
            TAIL_ITERATION_CTX.set(outer_iteration)

    async def bootstrap(self) -> str:
        """Set :attr:`since` to the uuid of the current latest build.

        Returns:
            The new checkpoint.

        Raises:
            BootstrapError: If the listing is empty or its newest element
                cannot be decoded.
            TransportError: If the fetch keeps failing after retries.
        """
        page = await with_retry(
            lambda: self._client.list_builds(0, 1),
            self._client.retry_policy,
        )
        latest = next((item for item in page if isinstance(item, Build)), None)
        if latest is None:
            if page and isinstance(page[0], DecodeError):
                raise BootstrapError(f"Could not decode the latest build: {page[0].reason}")
            raise BootstrapError("Could not get the latest build: the listing is empty")

        logger.info("Current latest build is %s (%s).", latest.uuid, latest.job_name)
        self.since = latest.uuid
        return latest.uuid

    async def catch_up(self) -> AsyncIterator[Build]:
        """Yield every build newer than :attr:`since`, newest first.

        On exhaustion :attr:`since` moves to the newest build seen.  If the
        old checkpoint never shows up (e.g. it was deleted) the pass ends
        at the end of the listing, and the newest build still becomes the
        next checkpoint.
        """
        checkpoint = self.since
        candidate: str | None = None
        forwarded = 0
        reached = False

        async for build in self._client.scan():
            if candidate is None:
                candidate = build.uuid
            if build.uuid == checkpoint:
                reached = True
                break
            forwarded += 1
            yield build

        if not reached:
            logger.warning("Checkpoint build %s was not found in the listing.", checkpoint)
        if candidate is not None:
            self.since = candidate
        logger.debug("Caught up: %d new build(s), checkpoint now %s.", forwarded, self.since)
