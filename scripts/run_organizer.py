#!/usr/bin/env python3
"""Command-line runner for the inbox organizer.

Runs a single organize pass with ``--once`` or keeps watching the inbox until
interrupted. Settings come from the environment / ``.env`` and can be
overridden per run with the flags below.
"""

from __future__ import annotations

import argparse
import signal
import sys
import threading
from pathlib import Path
from typing import Optional

from loguru import logger

from app.utils.config import get_settings
from domains.inbox_organizer.exceptions import MonitorError
from domains.inbox_organizer.models import OrganizeStatus
from domains.inbox_organizer.service import OrganizerService, set_organizer_service

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments."""

    parser = argparse.ArgumentParser(
        description="Rename newly-settled inbox files to descriptive names.",
    )
    parser.add_argument(
        "--inbox",
        type=Path,
        default=None,
        help="Directory to organize (default: INBOX_DIR setting).",
    )
    parser.add_argument(
        "--history",
        type=Path,
        default=None,
        help="Where to keep the rename history JSON (default: LEDGER_PATH setting).",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Seconds between periodic scans.",
    )
    parser.add_argument(
        "--no-events",
        action="store_true",
        help="Disable filesystem event watching; rely on the timer only.",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Organize eligible files once and exit.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level (default: LOG_LEVEL setting).",
    )

    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point for the CLI script."""

    args = parse_args(argv)

    overrides = {}
    if args.inbox is not None:
        overrides["inbox_dir"] = args.inbox
    if args.history is not None:
        overrides["ledger_path"] = args.history
    if args.interval is not None:
        overrides["scan_interval"] = args.interval
    if args.no_events:
        overrides["watch_events"] = False
    if args.log_level is not None:
        overrides["log_level"] = args.log_level

    settings = get_settings().model_copy(update=overrides)

    logger.remove()
    logger.add(sys.stderr, format=LOG_FORMAT, level=settings.log_level.upper())

    if not settings.get_inbox_dir().is_dir():
        logger.error(f"Inbox directory does not exist: {settings.get_inbox_dir()}")
        return 1

    service = OrganizerService(settings=settings)
    set_organizer_service(service)

    if args.once:
        outcomes = service.run_once()
        renamed = sum(1 for outcome in outcomes if outcome.success)
        failed = sum(1 for outcome in outcomes if outcome.status is OrganizeStatus.FAILED)
        logger.info(f"Renamed {renamed} of {len(outcomes)} files ({failed} failed)")
        return 0 if failed == 0 else 2

    stop_event = threading.Event()

    def _signal_handler(signum, frame):  # noqa: D401
        logger.info(f"Received signal {signum}, shutting down.")
        stop_event.set()

    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    try:
        service.start()
    except MonitorError as e:
        logger.error(str(e))
        return 1

    try:
        while not stop_event.is_set():
            stop_event.wait(1.0)
    finally:
        service.stop()
        set_organizer_service(None)

    logger.info("Inbox organizer stopped.")
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI bridge
    sys.exit(main())
