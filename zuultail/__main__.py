"""zuultail process entry-point: ``tail -f`` for Zuul build results.

Usage:
    python -m zuultail --url URL [--since UUID] [--json] [--once]

Every option falls back to its ``ZUUL_*`` environment variable (see
:class:`~zuultail.core.settings.Settings`).  Builds are printed to stdout,
one per line, newest first within each catch-up burst; logs go to stderr.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from pydantic import ValidationError

from zuultail.client.builds import ZuulClient
from zuultail.core import configure_logging
from zuultail.core.exceptions import ConfigError, StreamError, TransportError
from zuultail.core.models import Build
from zuultail.core.settings import Settings

logger = logging.getLogger(__name__)


def format_build(build: Build, *, as_json: bool) -> str:
    """Render one build as an output line."""
    if as_json:
        return build.model_dump_json(by_alias=True)
    return f"{build.log_url or 'N/A'} {build.uuid} {build.project} {build.job_name}"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="zuultail",
        description="A zuul client to stream build results.",
    )
    parser.add_argument("--url", default=None, help="The zuul api (overrides ZUUL_API_URL).")
    parser.add_argument(
        "--since",
        default=None,
        metavar="UUID",
        help="Catch up until a certain build instead of starting from the latest one.",
    )
    parser.add_argument("--json", action="store_true", help="Output one JSON object per build.")
    parser.add_argument(
        "--poll-interval",
        type=float,
        default=None,
        metavar="SECONDS",
        help="Seconds between polls (overrides ZUUL_POLL_INTERVAL).",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Print the latest page of builds and exit instead of following.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        metavar="LEVEL",
        help="Override ZUUL_LOG_LEVEL (DEBUG|INFO|WARNING|ERROR).",
    )
    parser.add_argument(
        "--log-format",
        default=None,
        metavar="FORMAT",
        help="Override ZUUL_LOG_FORMAT (text|json).",
    )
    return parser


def _load_settings(args: argparse.Namespace) -> Settings:
    """Merge CLI overrides on top of environment settings."""
    overrides = {
        "api_url": args.url,
        "since": args.since,
        "poll_interval": args.poll_interval,
        "log_level": args.log_level,
        "log_format": args.log_format,
    }
    try:
        settings = Settings(**{k: v for k, v in overrides.items() if v is not None})
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc
    if not settings.api_configured:
        raise ConfigError("No API url: pass --url or set ZUUL_API_URL.")
    return settings


async def run(settings: Settings, *, once: bool, as_json: bool) -> None:
    """Print builds until the stream ends (or one page when *once*)."""
    async with ZuulClient.from_settings(settings) as client:
        if once:
            for item in await client.list_builds(0, settings.page_size):
                if isinstance(item, Build):
                    print(format_build(item, as_json=as_json), flush=True)  # noqa: T201
                else:
                    logger.error("Skipping undecodable build: %s", item.reason)
            return

        async for build in client.tail(settings.poll_interval, settings.since):
            print(format_build(build, as_json=as_json), flush=True)  # noqa: T201


def main(argv: list[str] | None = None) -> None:
    """CLI entry-point registered in ``pyproject.toml``."""
    args = _build_parser().parse_args(argv)

    try:
        configure_logging(level=args.log_level, fmt=args.log_format)
    except ValueError as exc:
        print(f"zuultail: configuration error: {exc}", file=sys.stderr)  # noqa: T201
        sys.exit(1)

    try:
        settings = _load_settings(args)
        logger.info("Following builds from %s", settings.api_url)
        asyncio.run(run(settings, once=args.once, as_json=args.json))
    except ConfigError as exc:
        logger.critical("Configuration error: %s", exc)
        sys.exit(1)
    except (TransportError, StreamError) as exc:
        logger.critical("Build stream stopped: %s", exc)
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted, exiting.")
        sys.exit(0)


if __name__ == "__main__":
    main()
