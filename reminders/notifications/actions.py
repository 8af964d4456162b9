"""
High-level pipeline actions.

run_reminder_cycle: Selector -> Resolver -> Ledger for one reminder policy.
run_pipeline: one reminder cycle followed by one dispatcher batch.
"""

import logging
from datetime import datetime

from reminders.enums import ReminderReason
from reminders.notifications.dispatcher import run_batch
from reminders.notifications.ledger import EnqueueStatus, enqueue
from reminders.notifications.preferences import resolve_recipient
from reminders.notifications.scheduler import get_reminder_policy
from reminders.notifications.selector import select_reminder_work
from reminders.timezone import utc_now

logger = logging.getLogger(__name__)


async def run_reminder_cycle(
    reason: ReminderReason,
    now: datetime | None = None,
) -> dict:
    """
    Enqueue reminders for every lecture inside the policy window.

    Selection finishes before anything is written, so a store failure
    during selection aborts the run with no partial enqueues.

    Returns:
        {"lectures": N} plus one count per EnqueueStatus
    """
    reason = ReminderReason(reason)
    policy = get_reminder_policy(reason)
    now = now or utc_now()

    work = await select_reminder_work(now, policy["window"]())

    counts = {"lectures": len(work)}
    counts.update({status.value: 0 for status in EnqueueStatus})

    for item in work:
        for candidate in item.candidates:
            recipient = resolve_recipient(candidate.profile, candidate.preference)
            result = await enqueue(
                item.lecture,
                recipient,
                reason,
                message_type=policy["message_template"],
                now=now,
            )
            counts[result.status.value] += 1

    logger.info(
        f"Reminder cycle {reason.value}: {counts['lectures']} lectures, "
        f"{counts['queued']} queued, {counts['already_pending']} already pending, "
        f"{counts['reminders_disabled']} disabled"
    )
    return counts


async def run_pipeline(
    reason: ReminderReason,
    now: datetime | None = None,
    limit: int | None = None,
) -> dict:
    """
    Run one reminder cycle and then one dispatcher batch.

    Returns:
        {"enqueue": <cycle counts>, "dispatch": <batch counts>}
    """
    now = now or utc_now()
    enqueue_counts = await run_reminder_cycle(reason, now=now)
    dispatch_counts = await run_batch(limit=limit, now=now)
    return {"enqueue": enqueue_counts, "dispatch": dispatch_counts}
