"""zuultail logging configuration.

Call ``configure_logging()`` once at process startup (e.g. in ``__main__``);
library modules only ever do ``logger = logging.getLogger(__name__)``.

Every record is stamped with the tail pass it was emitted from (see
:data:`TAIL_ITERATION_CTX`), so a long-running follower's output can be
grouped by pass::

    2026-10-18 09:12:03 INFO     tail#3 zuultail.stream.tail: Caught up: ...

Environment fallbacks (read at call time):
    ZUUL_LOG_LEVEL   DEBUG | INFO | WARNING | ERROR | CRITICAL   (default: INFO)
    ZUUL_LOG_FORMAT  text | json                                 (default: text)
"""

from __future__ import annotations

import json
import logging
import os
import sys
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

__all__ = [
    "LOG_FORMATS",
    "LOG_LEVELS",
    "TAIL_ITERATION_CTX",
    "JsonFormatter",
    "TailIterationFilter",
    "configure_logging",
]

#: Number of the running bootstrap / catch-up pass, as a string.  Set by
#: :class:`~zuultail.stream.tail.BuildTail`; ``"-"`` outside a tail.
TAIL_ITERATION_CTX: ContextVar[str] = ContextVar("tail_iteration", default="-")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("text", "json")

_TEXT_FORMAT = "%(asctime)s %(levelname)-8s tail#%(tail_iteration)s %(name)s: %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Request-level chatter that drowns the build lines unless debugging.
_CHATTY_LOGGERS = ("httpx", "httpcore")


class TailIterationFilter(logging.Filter):
    """Copy :data:`TAIL_ITERATION_CTX` onto ``record.tail_iteration``."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        record.tail_iteration = TAIL_ITERATION_CTX.get()
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per record, for log shippers.

    Keys: ``ts`` (UTC, millisecond precision), ``level``, ``logger``,
    ``tail_iteration``, ``message`` and, when the record carries one,
    ``exc_info``.
    """

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003
        entry: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(
                timespec="milliseconds"
            ),
            "level": record.levelname,
            "logger": record.name,
            "tail_iteration": getattr(record, "tail_iteration", TAIL_ITERATION_CTX.get()),
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _resolve(value: str | None, env_var: str, default: str, allowed: tuple[str, ...]) -> str:
    """Pick *value*, else ``$env_var``, else *default*, matched case-insensitively."""
    raw = value or os.environ.get(env_var) or default
    for choice in allowed:
        if raw.lower() == choice.lower():
            return choice
    what = env_var.rsplit("_", 1)[-1].lower()
    raise ValueError(f"Unknown log {what} {raw!r}. Must be one of: {', '.join(allowed)}")


def configure_logging(
    level: str | None = None,
    fmt: str | None = None,
    *,
    force: bool = False,
) -> None:
    """Send logs to stderr in text or JSON form.

    Args:
        level: Level name; falls back to ``$ZUUL_LOG_LEVEL``, then ``INFO``.
        fmt: ``"text"`` or ``"json"``; falls back to ``$ZUUL_LOG_FORMAT``,
            then ``"text"``.
        force: Replace existing root handlers.  Without it an already
            configured root logger only has its level updated.

    Raises:
        ValueError: If *level* or *fmt* is not recognised.
    """
    resolved_level = _resolve(level, "ZUUL_LOG_LEVEL", "INFO", LOG_LEVELS)
    resolved_fmt = _resolve(fmt, "ZUUL_LOG_FORMAT", "text", LOG_FORMATS)

    root = logging.getLogger()
    root.setLevel(resolved_level)
    if root.handlers and not force:
        return

    # stdout carries the builds themselves.
    handler = logging.StreamHandler(sys.stderr)
    handler.addFilter(TailIterationFilter())
    if resolved_fmt == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(_TEXT_FORMAT, datefmt=_DATE_FORMAT))

    root.handlers.clear()
    root.addHandler(handler)

    chatty_level = logging.DEBUG if resolved_level == "DEBUG" else logging.WARNING
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(chatty_level)
