"""
Notification dispatcher - delivers claimed ledger entries through the email provider.

One run:
1. Claims up to `limit` due entries (pending -> in_flight, atomic).
2. Sends each through SendGrid with bounded parallelism and a per-call timeout.
3. Commits each entry's outcome in its own transaction before it counts as done.

A crash at any point leaves unfinished entries in_flight; they become
claimable again once their lease expires.
"""

import asyncio
import logging
from datetime import datetime

import sentry_sdk
from sqlalchemy.exc import SQLAlchemyError

from reminders.config import (
    get_claim_lease,
    get_dispatch_batch_limit,
    get_dispatch_concurrency,
    get_provider_timeout,
)
from reminders.notifications.channels.email import DeliveryResult, send_email
from reminders.notifications.ledger import claim_due_notifications, record_outcome
from reminders.timezone import utc_now

logger = logging.getLogger(__name__)


MAX_LEDGER_WRITE_ATTEMPTS = 2
LEDGER_RETRY_DELAY_SECONDS = 0.5

LECTURE_CANCELLED_ERROR = "Lecture cancelled"


async def _deliver(entry: dict) -> DeliveryResult:
    """Call the provider for one claimed entry."""
    if entry.get("lecture_cancelled"):
        return DeliveryResult(success=False, error=LECTURE_CANCELLED_ERROR)

    return await send_email(
        to_email=entry["email"],
        subject=entry["subject"],
        body=entry["body"],
        timeout=get_provider_timeout(),
    )


async def _record_with_retry(entry: dict, result: DeliveryResult) -> str:
    """
    Persist a delivery outcome, retrying once on store errors.

    Returns:
        "sent", "failed", or "unresolved" (store unreachable or claim lost)
    """
    notification_id = entry["notification_id"]

    for attempt in range(1, MAX_LEDGER_WRITE_ATTEMPTS + 1):
        try:
            updated = await record_outcome(
                notification_id,
                entry["claim_token"],
                success=result.success,
                error_message=result.error,
                now=utc_now(),
            )
        except (SQLAlchemyError, OSError) as e:
            if attempt < MAX_LEDGER_WRITE_ATTEMPTS:
                logger.warning(
                    f"Failed to record outcome for notification {notification_id} "
                    f"(attempt {attempt}), retrying: {e}"
                )
                await asyncio.sleep(LEDGER_RETRY_DELAY_SECONDS)
                continue
            logger.error(
                f"Giving up recording outcome for notification {notification_id}; "
                f"it stays in flight until its lease expires: {e}"
            )
            sentry_sdk.capture_exception(e)
            return "unresolved"

        if not updated:
            logger.warning(
                f"Lost claim on notification {notification_id}, outcome not recorded"
            )
            return "unresolved"
        return "sent" if result.success else "failed"

    return "unresolved"


async def _process_entry(entry: dict, semaphore: asyncio.Semaphore) -> str:
    async with semaphore:
        try:
            result = await _deliver(entry)
        except Exception as e:
            # Provider channel bug; still resolve this entry and keep the batch going
            logger.error(f"Unexpected error sending notification {entry['notification_id']}: {e}")
            sentry_sdk.capture_exception(e)
            result = DeliveryResult(success=False, error=f"{type(e).__name__}: {e}")

        if result.success:
            logger.info(f"Notification {entry['notification_id']} sent to {entry['email']}")
        else:
            logger.warning(
                f"Notification {entry['notification_id']} to {entry['email']} failed: "
                f"{result.error}"
            )

        return await _record_with_retry(entry, result)


async def run_batch(
    limit: int | None = None,
    now: datetime | None = None,
) -> dict:
    """
    Dispatch one batch of due notifications.

    Per-entry failures are captured in the ledger and never raised. Only a
    failure to claim (store unreachable) propagates to the caller.

    Args:
        limit: Max entries to claim (defaults to DISPATCH_BATCH_LIMIT)
        now: Reference time for due-ness and lease expiry

    Raises:
        ValueError: If limit is less than 1

    Returns:
        {"claimed": N, "sent": N, "failed": N, "unresolved": N}
    """
    if limit is None:
        limit = get_dispatch_batch_limit()
    if limit < 1:
        raise ValueError(f"Batch limit must be at least 1, got {limit}")
    now = now or utc_now()

    claimed = await claim_due_notifications(limit, now, get_claim_lease())
    counts = {"claimed": len(claimed), "sent": 0, "failed": 0, "unresolved": 0}
    if not claimed:
        return counts

    semaphore = asyncio.Semaphore(get_dispatch_concurrency())
    outcomes = await asyncio.gather(
        *(_process_entry(entry, semaphore) for entry in claimed)
    )
    for outcome in outcomes:
        counts[outcome] += 1

    logger.info(
        f"Dispatched {counts['claimed']} notifications: {counts['sent']} sent, "
        f"{counts['failed']} failed, {counts['unresolved']} unresolved"
    )
    return counts
