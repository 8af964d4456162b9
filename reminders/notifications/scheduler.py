"""
APScheduler-based trigger for the reminder pipeline.

Jobs carry no state: each firing re-derives its work from the database,
so overlapping firings (or an external cron hitting the HTTP trigger at the
same time) are safe. Concurrency safety comes from the ledger's idempotent
enqueue and atomic claim, not from max_instances.
"""

import logging
from datetime import timedelta

import sentry_sdk
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from reminders.config import (
    get_dispatch_interval,
    get_imminent_window,
    get_next_day_window,
)
from reminders.enums import ReminderReason

logger = logging.getLogger(__name__)


_scheduler: AsyncIOScheduler | None = None


# =============================================================================
# Reminder policies - SINGLE SOURCE OF TRUTH
# =============================================================================

REMINDER_POLICIES = {
    ReminderReason.imminent: {
        "window": get_imminent_window,
        "message_template": "lecture_reminder_imminent",
        "interval": timedelta(minutes=1),
    },
    ReminderReason.next_day: {
        "window": get_next_day_window,
        "message_template": "lecture_reminder_next_day",
        "interval": timedelta(hours=1),
    },
}


def get_reminder_policy(reason: ReminderReason) -> dict:
    """Look up a policy; raises ValueError for unknown reasons."""
    return REMINDER_POLICIES[ReminderReason(reason)]


# =============================================================================
# Scheduler initialization and shutdown
# =============================================================================


def init_scheduler() -> AsyncIOScheduler:
    """
    Initialize and start the APScheduler with the pipeline jobs.

    Call this during app startup (in FastAPI lifespan). Jobs live in memory;
    they are re-registered on every start and hold no state worth persisting.
    """
    global _scheduler

    if _scheduler is not None:
        return _scheduler

    _scheduler = AsyncIOScheduler(
        job_defaults={
            "coalesce": True,  # Combine missed runs into one
            "max_instances": 1,
            "misfire_grace_time": 60,
        },
    )

    for reason, policy in REMINDER_POLICIES.items():
        _scheduler.add_job(
            _run_reminder_job,
            trigger="interval",
            seconds=int(policy["interval"].total_seconds()),
            id=f"reminders_{reason.value}",
            replace_existing=True,
            kwargs={"reason": reason},
        )

    _scheduler.add_job(
        _run_dispatch_job,
        trigger="interval",
        seconds=int(get_dispatch_interval().total_seconds()),
        id="dispatch_notifications",
        replace_existing=True,
    )

    _scheduler.start()
    print("Reminder scheduler started")
    return _scheduler


def shutdown_scheduler() -> None:
    """
    Shutdown the scheduler gracefully.

    Call this during app shutdown.
    """
    global _scheduler
    if _scheduler:
        _scheduler.shutdown(wait=True)
        _scheduler = None
        print("Reminder scheduler stopped")


# =============================================================================
# Job execution
# =============================================================================


async def _run_reminder_job(reason: ReminderReason) -> None:
    """
    Select and enqueue reminders for one policy. Called by APScheduler.

    A failed run is reported and left for the next firing to retry.
    """
    from reminders.notifications.actions import run_reminder_cycle

    try:
        await run_reminder_cycle(reason)
    except Exception as e:
        logger.error(f"Reminder cycle {reason.value} failed: {e}")
        sentry_sdk.capture_exception(e)


async def _run_dispatch_job() -> None:
    """Dispatch one batch of due notifications. Called by APScheduler."""
    from reminders.notifications.dispatcher import run_batch

    try:
        await run_batch()
    except Exception as e:
        logger.error(f"Notification dispatch failed: {e}")
        sentry_sdk.capture_exception(e)
