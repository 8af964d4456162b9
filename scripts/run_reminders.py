#!/usr/bin/env python3
"""
Run the reminder pipeline once, for cron or manual operator use.

Usage:
    python scripts/run_reminders.py [reason ...] [--no-dispatch | --dispatch-only] [--limit N]

Examples:
    python scripts/run_reminders.py                 # every reason, then one batch
    python scripts/run_reminders.py imminent        # imminent reminders, then one batch
    python scripts/run_reminders.py --dispatch-only --limit 20

Exits non-zero when a run fails, so cron can alert on it. Rerunning after
a failure is always safe.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

load_dotenv(".env.local")
load_dotenv()

from reminders.database import close_engine
from reminders.enums import ReminderReason
from reminders.notifications.actions import run_reminder_cycle
from reminders.notifications.dispatcher import run_batch

logger = logging.getLogger("run_reminders")


def positive_int(value: str) -> int:
    """argparse type for --limit: an integer of at least 1."""
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the lecture reminder pipeline once")
    parser.add_argument(
        "reasons",
        nargs="*",
        type=ReminderReason,
        metavar="{" + ",".join(reason.value for reason in ReminderReason) + "}",
        help="Reminder reasons to enqueue (default: all)",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--no-dispatch",
        action="store_true",
        help="Only enqueue reminders, do not send",
    )
    mode.add_argument(
        "--dispatch-only",
        action="store_true",
        help="Only send already queued reminders",
    )
    parser.add_argument(
        "--limit",
        type=positive_int,
        default=None,
        help="Max notifications to dispatch (default: DISPATCH_BATCH_LIMIT)",
    )
    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> bool:
    """Run the requested stages. Returns False if any stage failed."""
    reasons = args.reasons or list(ReminderReason)
    ok = True

    try:
        if not args.dispatch_only:
            for reason in reasons:
                try:
                    counts = await run_reminder_cycle(reason)
                    print(f"[{reason.value}] {counts}")
                except Exception as e:
                    logger.error(f"Reminder cycle {reason.value} failed: {e}")
                    ok = False

        if not args.no_dispatch:
            try:
                counts = await run_batch(limit=args.limit)
                print(f"[dispatch] {counts}")
            except Exception as e:
                logger.error(f"Dispatch failed: {e}")
                ok = False
    finally:
        await close_engine()

    return ok


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    args = parse_args()
    ok = asyncio.run(run(args))
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
