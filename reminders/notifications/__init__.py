"""
Lecture reminder pipeline.

Public API:
    run_reminder_cycle(reason) - Select lectures and enqueue reminders
    run_batch(limit) - Dispatch due reminders through the email provider
    run_pipeline(reason) - One reminder cycle followed by one batch
    requeue_notification(notification_id) - Retry a failed reminder
    invalidate_pending_for_lecture(lecture_id, detail) - Drop pending reminders
    init_scheduler() / shutdown_scheduler() - Periodic trigger
"""

from .actions import run_pipeline, run_reminder_cycle
from .dispatcher import run_batch
from .ledger import (
    EnqueueResult,
    EnqueueStatus,
    NotificationNotFoundError,
    NotificationNotRequeueableError,
    enqueue,
    invalidate_pending_for_lecture,
    list_notifications,
    requeue_notification,
)
from .preferences import ResolvedRecipient, resolve_recipient
from .scheduler import REMINDER_POLICIES, init_scheduler, shutdown_scheduler

__all__ = [
    # Pipeline
    "run_reminder_cycle",
    "run_batch",
    "run_pipeline",
    # Ledger
    "enqueue",
    "EnqueueResult",
    "EnqueueStatus",
    "requeue_notification",
    "invalidate_pending_for_lecture",
    "list_notifications",
    "NotificationNotFoundError",
    "NotificationNotRequeueableError",
    # Preferences
    "resolve_recipient",
    "ResolvedRecipient",
    # Trigger
    "REMINDER_POLICIES",
    "init_scheduler",
    "shutdown_scheduler",
]
