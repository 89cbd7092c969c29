"""zuultail settings loaded from environment and ``.env`` files.

Uses :mod:`pydantic_settings` to parse ``ZUUL_*`` environment variables (and
optionally an ``.env`` file) into a validated settings object.  The field
name is the lowercase env-var name without the prefix
(e.g. ``ZUUL_POLL_INTERVAL`` → ``poll_interval``).

Typical usage::

    from zuultail.core.settings import Settings

    settings = Settings()
    client = ZuulClient.from_settings(settings)
"""

from __future__ import annotations

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from zuultail.client.retry import RetryPolicy
from zuultail.core.logging_config import LOG_FORMATS, LOG_LEVELS

__all__ = ["Settings"]


class Settings(BaseSettings):
    """Central application configuration.

    Values are loaded in priority order:

    1. Actual environment variables (highest priority).
    2. ``.env`` file in the working directory.
    3. Field defaults (lowest priority).
    """

    model_config = SettingsConfigDict(
        env_prefix="ZUUL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # API
    # ------------------------------------------------------------------
    api_url: str = Field(
        default="",
        description="Zuul API root, e.g. https://zuul.example.com/api/tenant/main/",
    )
    connect_timeout: float = Field(default=10.0, gt=0.0, description="TCP connect timeout (s).")
    read_timeout: float = Field(default=30.0, gt=0.0, description="Response read timeout (s).")

    # ------------------------------------------------------------------
    # Streaming
    # ------------------------------------------------------------------
    since: str | None = Field(
        default=None,
        description="Build uuid to catch up to; latest build when unset.",
    )
    poll_interval: float = Field(
        default=10.0,
        gt=0.0,
        description="Seconds to sleep between tail iterations.",
    )
    page_size: int = Field(
        default=20,
        ge=1,
        le=1000,
        description="Builds requested per page while scanning.",
    )

    # ------------------------------------------------------------------
    # Retry
    # ------------------------------------------------------------------
    retry_max_attempts: int = Field(default=10, ge=1, description="Attempts per page fetch.")
    retry_base_delay: float = Field(
        default=0.01,
        ge=0.0,
        description="Initial backoff ceiling in seconds (doubles each attempt).",
    )
    retry_max_delay: float = Field(
        default=13.0,
        ge=0.0,
        description="Upper bound on a single backoff sleep in seconds.",
    )

    # ------------------------------------------------------------------
    # Runtime flags
    # ------------------------------------------------------------------
    log_level: str = Field(default="INFO", description="Logging level.")
    log_format: str = Field(default="text", description="Log format: 'text' or 'json'.")

    # ------------------------------------------------------------------
    # Field validators
    # ------------------------------------------------------------------

    @field_validator("since", mode="before")
    @classmethod
    def _blank_since_to_none(cls, v: object) -> object:
        """``ZUUL_SINCE=`` in an env file means "no checkpoint"."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, v: str) -> str:
        v_upper = v.upper()
        if v_upper not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {LOG_LEVELS}, got {v!r}")
        return v_upper

    @field_validator("log_format")
    @classmethod
    def _validate_log_format(cls, v: str) -> str:
        v_lower = v.lower()
        if v_lower not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of {LOG_FORMATS}, got {v!r}")
        return v_lower

    # ------------------------------------------------------------------
    # Model validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def _validate_retry_bounds(self) -> Settings:
        """Ensure base ≤ max for the backoff delays."""
        if self.retry_base_delay > self.retry_max_delay:
            raise ValueError(
                f"retry_base_delay ({self.retry_base_delay}) "
                f"> retry_max_delay ({self.retry_max_delay})"
            )
        return self

    # ------------------------------------------------------------------
    # Derived helpers
    # ------------------------------------------------------------------

    def retry_policy(self) -> RetryPolicy:
        """Build the :class:`~zuultail.client.retry.RetryPolicy` for page fetches."""
        return RetryPolicy(
            max_attempts=self.retry_max_attempts,
            base_delay=self.retry_base_delay,
            max_delay=self.retry_max_delay,
        )

    @property
    def api_configured(self) -> bool:
        """``True`` if an API root is set."""
        return bool(self.api_url.strip())
