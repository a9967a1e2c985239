"""Command line entry point.

Usage:
    quarantine --image-name python:3.12 [--runtime runsc] [--persist]

Environment:
    QUARANTINE_RUNTIME    default for --runtime
    QUARANTINE_LOG_LEVEL  default for --log-level (INFO)
    DOCKER_HOST, ...      engine connection, as understood by docker.from_env()
"""

import argparse
import asyncio
import logging
import os
import sys
from typing import Optional

from docker.errors import DockerException

from quarantine import engine
from quarantine.errors import QuarantineError
from quarantine.models import SessionConfig
from quarantine.session import QuarantineSession
from quarantine.terminal import Terminal, install_interrupt_handler

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def log_level(value: str) -> str:
    """argparse type for --log-level; case-insensitive."""
    level = value.upper()
    if level not in LOG_LEVELS:
        raise argparse.ArgumentTypeError(
            f"invalid log level: {value!r} (choose from {', '.join(LOG_LEVELS)})"
        )
    return level


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="quarantine",
        description="Open a throwaway shell in a container with the current directory mounted",
    )
    parser.add_argument(
        "-i",
        "--image-name",
        required=True,
        help="image name with optional tag, e.g. python:latest, golang or node:20.17.0-alpine3.19",
    )
    parser.add_argument(
        "-r",
        "--runtime",
        default=os.getenv("QUARANTINE_RUNTIME"),
        help="container runtime to use (e.g. runsc); falls back to the daemon default if not found",
    )
    parser.add_argument(
        "-p",
        "--persist",
        action="store_true",
        help="keep the container after the session ends",
    )
    parser.add_argument(
        "--log-level",
        type=log_level,
        default=os.getenv("QUARANTINE_LOG_LEVEL", "INFO"),
        help="logging level: DEBUG, INFO, WARNING, ERROR or CRITICAL (default: INFO)",
    )
    return parser


async def run_session(client, config: SessionConfig) -> None:
    cancel = asyncio.Event()
    install_interrupt_handler(cancel)

    terminal = await Terminal.open()
    await QuarantineSession(client, config).run(terminal, cancel)


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=args.log_level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = SessionConfig(
        image_name=args.image_name,
        runtime=args.runtime or None,
        persist=args.persist,
    )

    try:
        client = engine.connect()
        asyncio.run(run_session(client, config))
    except (QuarantineError, DockerException, OSError) as e:
        logger.error(f"{e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
