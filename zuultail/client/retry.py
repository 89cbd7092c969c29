"""Bounded retry with full-jitter exponential back-off.

Wraps a single awaitable action (normally one page fetch) with
:mod:`tenacity`.  Only :class:`~zuultail.core.exceptions.TransportError`
is retried; per-element decode failures live *inside* a successful page and
are the scanner's concern.

Attempt *n* sleeps ``uniform(0, min(base_delay * 2**n, max_delay))``
seconds, so concurrent tails restarting together do not hammer the server
in lockstep.

Typical usage::

    from zuultail.client.retry import RetryPolicy, with_retry

    page = await with_retry(lambda: client.list_builds(0, 20), RetryPolicy())
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Final, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random_exponential,
)

from zuultail.core.exceptions import TransportError

__all__ = ["DEFAULT_RETRY_POLICY", "RetryPolicy", "with_retry"]

logger = logging.getLogger(__name__)

T = TypeVar("T")

#: Default total attempts (1 initial + 9 retries).
_DEFAULT_MAX_ATTEMPTS: Final[int] = 10

#: First back-off ceiling in seconds.
_DEFAULT_BASE_DELAY: Final[float] = 0.01

#: Hard cap on a single back-off sleep in seconds.
_DEFAULT_MAX_DELAY: Final[float] = 13.0


@dataclass(frozen=True)
class RetryPolicy:
    """Back-off parameters for :func:`with_retry`.

    Attributes:
        max_attempts: Total attempts including the initial try (≥ 1).
        base_delay: Ceiling of the first random sleep, in seconds.
        max_delay: Ceiling of any single sleep, in seconds.
    """

    max_attempts: int = _DEFAULT_MAX_ATTEMPTS
    base_delay: float = _DEFAULT_BASE_DELAY
    max_delay: float = _DEFAULT_MAX_DELAY

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be ≥ 1, got {self.max_attempts!r}.")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("retry delays must be non-negative.")


DEFAULT_RETRY_POLICY: Final[RetryPolicy] = RetryPolicy()


def _log_before_sleep(rs: RetryCallState) -> None:
    exc = rs.outcome.exception() if rs.outcome else None
    wait = rs.next_action.sleep if rs.next_action else 0.0
    logger.warning(
        "Attempt %d failed (%s). Retrying in %.2f s…",
        rs.attempt_number,
        exc,
        wait,
    )


async def with_retry(
    action: Callable[[], Awaitable[T]],
    policy: RetryPolicy = DEFAULT_RETRY_POLICY,
) -> T:
    """Await *action* until it succeeds or the attempt budget runs out.

    Args:
        action: Zero-argument callable returning a fresh awaitable per call.
        policy: Back-off parameters.

    Returns:
        Whatever *action* returns on its first successful attempt.

    Raises:
        TransportError: The last transport failure once every attempt failed.
        Exception: Any non-transport error raised by *action*, immediately.
    """
    result: T | None = None
    succeeded = False

    async for attempt in AsyncRetrying(
        wait=wait_random_exponential(multiplier=policy.base_delay, max=policy.max_delay),
        stop=stop_after_attempt(policy.max_attempts),
        retry=retry_if_exception_type(TransportError),
        reraise=True,
        before_sleep=_log_before_sleep,
    ):
        with attempt:
            result = await action()
            succeeded = True

    # tenacity reraises the last error when the budget is exhausted.
    assert succeeded, "tenacity exited without a result or exception"
    return result  # type: ignore[return-value]
