"""Shared pytest fixtures and configuration for the zuultail test suite.

This file is loaded automatically by pytest before any test module.
"""

from __future__ import annotations

import logging
import os

import pytest
from pydantic_settings import SettingsConfigDict

from zuultail.core import configure_logging
from zuultail.core.settings import Settings

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _configure_test_logging() -> None:
    """Force DEBUG logging in text format for every test."""
    configure_logging(level="DEBUG", fmt="text", force=True)


# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove every ``ZUUL_*`` env var for the duration of a test.

    Also disables pydantic-settings `.env` file loading so that values from a
    developer's local `.env` do not leak into settings tests.
    """
    for key in list(os.environ):
        if key.startswith("ZUUL_"):
            monkeypatch.delenv(key, raising=False)

    monkeypatch.setattr(
        Settings,
        "model_config",
        SettingsConfigDict(
            env_prefix="ZUUL_",
            env_file=None,
            env_file_encoding="utf-8",
            extra="ignore",
        ),
    )


# ---------------------------------------------------------------------------
# Misc helpers
# ---------------------------------------------------------------------------


@pytest.fixture()
def logger() -> logging.Logger:
    """Return a ``logging.Logger`` scoped to the running test."""
    return logging.getLogger("tests")
