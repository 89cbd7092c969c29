"""Core domain models, settings, logging configuration, and exceptions."""

from zuultail.core.exceptions import (
    BootstrapError,
    ClientError,
    ConfigError,
    DecodeError,
    StreamError,
    TransportError,
    UrlError,
    ZuulTailError,
)
from zuultail.core.logging_config import JsonFormatter, configure_logging
from zuultail.core.models import Artifact, Build, decode_build
from zuultail.core.settings import Settings

__all__ = [
    # Logging
    "configure_logging",
    "JsonFormatter",
    # Domain models
    "Artifact",
    "Build",
    "decode_build",
    # Settings
    "Settings",
    # Exceptions — base
    "ZuulTailError",
    # Exceptions — config
    "ConfigError",
    "UrlError",
    # Exceptions — client
    "ClientError",
    "TransportError",
    "DecodeError",
    # Exceptions — stream
    "StreamError",
    "BootstrapError",
]
