"""Command-line entry point and top-level driver.

Usage:
    ghostwatch                      # run forever, serve on [::]:10204
    ghostwatch --world de99 --port 8080
    ghostwatch --once --no-server   # bootstrap plus one cycle, then exit

Exit codes:
    0  clean exit (``--once`` finished, or interrupted)
    1  fatal pipeline error; restart recovers from the persisted baseline
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Any

from loguru import logger
from pydantic import ValidationError as SettingsError

from ghostwatch.config import PipelineSettings
from ghostwatch.core.errors import FatalPipelineError
from ghostwatch.logger import configure_logging
from ghostwatch.pipeline import run_pipeline

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ghostwatch",
        description="Track ghost towns and departed players by diffing periodic world captures",
    )
    parser.add_argument("--world", help="World identifier, e.g. de99")
    parser.add_argument("--host", help="Listener address")
    parser.add_argument("--port", type=int, help="Listener port")
    parser.add_argument(
        "--database", dest="database_path", help="SQLite Event Store file (events and baseline)"
    )
    parser.add_argument("--offsets", dest="offsets_path", help="Custom offset table")
    parser.add_argument(
        "--interval", dest="min_capture_interval", type=float, help="Min seconds between captures"
    )
    parser.add_argument("--log-level", dest="log_level", help="Log level")
    parser.add_argument("--once", action="store_true", help="Bootstrap, run one cycle and exit")
    parser.add_argument("--no-server", action="store_true", help="Do not start the HTTP listener")
    return parser


def settings_from_args(args: argparse.Namespace) -> PipelineSettings:
    """Environment and .env first, explicit flags override."""
    fields = (
        "world",
        "host",
        "port",
        "database_path",
        "offsets_path",
        "min_capture_interval",
        "log_level",
    )
    overrides: dict[str, Any] = {
        name: getattr(args, name) for name in fields if getattr(args, name) is not None
    }
    return PipelineSettings(**overrides)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    try:
        settings = settings_from_args(args)
    except SettingsError as e:
        print(f"Invalid configuration:\n{e}", file=sys.stderr)
        return EXIT_USAGE

    configure_logging(settings)
    logger.info("Tracking world {}", settings.world)

    try:
        asyncio.run(run_pipeline(settings, serve=not args.no_server, once=args.once))
    except FatalPipelineError:
        logger.exception("Fatal pipeline error, terminating")
        return EXIT_FATAL
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
