"""Smoke tests — verify the test harness itself is wired up correctly.

These tests assert nothing about streaming logic.  They confirm that:

1. pytest-asyncio's ``asyncio_mode = "auto"`` setting works.
2. Core zuultail modules import without errors.
3. ``configure_logging()`` executes without raising, in both formats.
4. The exception taxonomy is importable and the hierarchy is intact.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys

import pytest

import zuultail
from zuultail.core import (
    BootstrapError,
    ClientError,
    ConfigError,
    DecodeError,
    JsonFormatter,
    StreamError,
    TransportError,
    UrlError,
    ZuulTailError,
    configure_logging,
)
from zuultail.core.logging_config import TAIL_ITERATION_CTX, TailIterationFilter

# ---------------------------------------------------------------------------
# Import & startup smoke
# ---------------------------------------------------------------------------


def test_public_api_imports() -> None:
    assert zuultail.ZuulClient is not None
    assert zuultail.create_client is not None
    assert zuultail.Build is not None


def test_configure_logging_text() -> None:
    configure_logging(level="INFO", fmt="text", force=True)


def test_configure_logging_json() -> None:
    configure_logging(level="DEBUG", fmt="json", force=True)
    configure_logging(level="DEBUG", fmt="text", force=True)


def test_configure_logging_invalid_level() -> None:
    with pytest.raises(ValueError, match="Unknown log level"):
        configure_logging(level="VERBOSE", force=True)


def test_configure_logging_invalid_format() -> None:
    with pytest.raises(ValueError, match="Unknown log format"):
        configure_logging(fmt="xml", force=True)


def test_json_formatter_includes_tail_iteration() -> None:
    record = logging.LogRecord("zuultail.test", logging.INFO, __file__, 1, "hello %s", ("x",), None)
    token = TAIL_ITERATION_CTX.set("7")
    try:
        TailIterationFilter().filter(record)
    finally:
        TAIL_ITERATION_CTX.reset(token)

    payload = json.loads(JsonFormatter().format(record))

    assert payload["message"] == "hello x"
    assert payload["level"] == "INFO"
    assert payload["tail_iteration"] == "7"
    assert set(payload) == {"ts", "level", "logger", "tail_iteration", "message"}


def test_json_formatter_includes_exception() -> None:
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = logging.LogRecord(
            "zuultail.test", logging.ERROR, __file__, 1, "failed", (), sys.exc_info()
        )

    payload = json.loads(JsonFormatter().format(record))

    assert payload["tail_iteration"] == "-"
    assert "RuntimeError: boom" in payload["exc_info"]


# ---------------------------------------------------------------------------
# Exception taxonomy
# ---------------------------------------------------------------------------


def test_exception_hierarchy_base() -> None:
    for exc_class in (
        ConfigError,
        UrlError,
        ClientError,
        TransportError,
        DecodeError,
        StreamError,
        BootstrapError,
    ):
        assert issubclass(exc_class, ZuulTailError), (
            f"{exc_class.__name__} is not a subclass of ZuulTailError"
        )


def test_exception_hierarchy_layers() -> None:
    assert issubclass(UrlError, ConfigError)
    assert issubclass(TransportError, ClientError)
    assert issubclass(DecodeError, ClientError)
    assert issubclass(BootstrapError, StreamError)


def test_transport_error_carries_status_code() -> None:
    exc = TransportError("https://zuul.example.com/api/builds", "HTTP 502", status_code=502)
    assert exc.status_code == 502
    assert "zuul.example.com" in str(exc)


def test_url_error_formats_message() -> None:
    exc = UrlError("nope", "missing host")
    assert exc.url == "nope"
    assert "missing host" in str(exc)


# ---------------------------------------------------------------------------
# Async harness
# ---------------------------------------------------------------------------


async def test_async_test_runs() -> None:
    await asyncio.sleep(0)
