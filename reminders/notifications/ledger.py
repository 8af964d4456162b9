"""
Notification ledger - the durable record of every reminder attempt.

State machine per row:

    pending --claim--> in_flight --provider ok--> sent      [terminal]
                                 --provider err-> failed    [terminal]

A partial unique index guarantees at most one unresolved (pending or
in_flight) row per (lecture_id, recipient_id, reason). Terminal rows are
never updated; redelivery always inserts a new row.
"""

import enum
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import and_, insert, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncConnection

from reminders.database import get_connection, get_transaction
from reminders.enums import (
    TERMINAL_STATUSES,
    UNRESOLVED_STATUSES,
    NotificationStatus,
    ReminderReason,
)
from reminders.notifications.context import build_reminder_context
from reminders.notifications.preferences import ResolvedRecipient
from reminders.notifications.templates import render_email
from reminders.tables import lectures, notifications
from reminders.timezone import ensure_utc, utc_now

logger = logging.getLogger(__name__)


class EnqueueStatus(str, enum.Enum):
    queued = "queued"
    already_pending = "already_pending"
    already_resolved = "already_resolved"
    reminders_disabled = "reminders_disabled"
    no_address = "no_address"


@dataclass
class EnqueueResult:
    status: EnqueueStatus
    notification_id: int | None = None


class NotificationNotFoundError(Exception):
    """Raised when a notification id does not exist."""

    pass


class NotificationNotRequeueableError(Exception):
    """Raised when requeue is requested for a notification that has not failed."""

    pass


# =============================================================================
# Enqueue
# =============================================================================


async def _find_existing_status(
    conn: AsyncConnection,
    lecture_id: int,
    recipient_id: int,
    reason: ReminderReason,
    lecture_scheduled_at: datetime,
) -> NotificationStatus | None:
    """
    Status of the row that blocks a new enqueue, if any.

    Unresolved rows always block. Terminal rows block only when they were
    rendered for the same lecture start, so a rescheduled lecture gets
    fresh reminders.
    """
    result = await conn.execute(
        select(notifications.c.status)
        .where(notifications.c.lecture_id == lecture_id)
        .where(notifications.c.recipient_id == recipient_id)
        .where(notifications.c.reason == reason)
        .where(
            or_(
                notifications.c.status.in_(UNRESOLVED_STATUSES),
                and_(
                    notifications.c.status.in_(TERMINAL_STATUSES),
                    notifications.c.lecture_scheduled_at == lecture_scheduled_at,
                ),
            )
        )
    )
    statuses = [row[0] for row in result]
    if not statuses:
        return None
    for status in statuses:
        if status in UNRESOLVED_STATUSES:
            return status
    return statuses[0]


async def _has_unresolved(
    lecture_id: int,
    recipient_id: int,
    reason: ReminderReason,
) -> bool:
    async with get_connection() as conn:
        result = await conn.execute(
            select(notifications.c.notification_id)
            .where(notifications.c.lecture_id == lecture_id)
            .where(notifications.c.recipient_id == recipient_id)
            .where(notifications.c.reason == reason)
            .where(notifications.c.status.in_(UNRESOLVED_STATUSES))
            .limit(1)
        )
        return result.first() is not None


async def enqueue(
    lecture: dict,
    recipient: ResolvedRecipient,
    reason: ReminderReason,
    message_type: str,
    now: datetime | None = None,
) -> EnqueueResult:
    """
    Create a pending reminder for (lecture, recipient, reason) unless one exists.

    Subject, body and email are captured now, so later preference or
    template changes never alter a queued message.

    Args:
        lecture: Lecture row joined with course_title/course_code
        recipient: Output of resolve_recipient()
        reason: Reminder trigger discriminator
        message_type: Template key in messages.yaml
        now: Reference time (defaults to current UTC time)

    Returns:
        EnqueueResult; every status other than queued means no row was written
    """
    if not recipient.reminders_enabled:
        return EnqueueResult(EnqueueStatus.reminders_disabled)
    if not recipient.email:
        logger.warning(
            f"Profile {recipient.profile_id} has no usable email, skipping reminder"
        )
        return EnqueueResult(EnqueueStatus.no_address)

    now = now or utc_now()
    lecture_id = lecture["lecture_id"]
    lecture_scheduled_at = ensure_utc(lecture["scheduled_at"])

    context = build_reminder_context(lecture, recipient)
    subject, body = render_email(message_type, context)

    try:
        async with get_transaction() as conn:
            existing = await _find_existing_status(
                conn, lecture_id, recipient.profile_id, reason, lecture_scheduled_at
            )
            if existing in UNRESOLVED_STATUSES:
                logger.info(
                    f"{reason.value} reminder for lecture {lecture_id} "
                    f"to profile {recipient.profile_id} already pending"
                )
                return EnqueueResult(EnqueueStatus.already_pending)
            if existing is not None:
                return EnqueueResult(EnqueueStatus.already_resolved)

            result = await conn.execute(
                insert(notifications)
                .values(
                    lecture_id=lecture_id,
                    recipient_id=recipient.profile_id,
                    reason=reason,
                    email=recipient.email,
                    subject=subject,
                    body=body,
                    status=NotificationStatus.pending,
                    lecture_scheduled_at=lecture_scheduled_at,
                    scheduled_for=now,
                )
                .returning(notifications.c.notification_id)
            )
            notification_id = result.scalar_one()
    except IntegrityError:
        # Race: a concurrent run inserted the same key between our check and insert
        if await _has_unresolved(lecture_id, recipient.profile_id, reason):
            logger.info(
                f"{reason.value} reminder for lecture {lecture_id} "
                f"to profile {recipient.profile_id} enqueued concurrently"
            )
            return EnqueueResult(EnqueueStatus.already_pending)
        raise

    return EnqueueResult(EnqueueStatus.queued, notification_id)


async def requeue_notification(
    notification_id: int,
    now: datetime | None = None,
) -> EnqueueResult:
    """
    Queue a new delivery attempt for a failed notification.

    The failed row stays as it is; a new pending row copies its captured
    recipient, subject and body.

    Raises:
        NotificationNotFoundError: No such notification
        NotificationNotRequeueableError: The notification has not failed
    """
    now = now or utc_now()

    try:
        async with get_transaction() as conn:
            result = await conn.execute(
                select(notifications).where(
                    notifications.c.notification_id == notification_id
                )
            )
            original = result.mappings().first()
            if not original:
                raise NotificationNotFoundError(
                    f"Notification {notification_id} not found"
                )
            if original["status"] != NotificationStatus.failed:
                raise NotificationNotRequeueableError(
                    f"Notification {notification_id} is {original['status'].value}, "
                    "only failed notifications can be requeued"
                )

            result = await conn.execute(
                insert(notifications)
                .values(
                    lecture_id=original["lecture_id"],
                    recipient_id=original["recipient_id"],
                    reason=original["reason"],
                    email=original["email"],
                    subject=original["subject"],
                    body=original["body"],
                    status=NotificationStatus.pending,
                    lecture_scheduled_at=original["lecture_scheduled_at"],
                    scheduled_for=now,
                )
                .returning(notifications.c.notification_id)
            )
            new_id = result.scalar_one()
    except IntegrityError:
        logger.info(f"Requeue of notification {notification_id}: retry already pending")
        return EnqueueResult(EnqueueStatus.already_pending)

    logger.info(f"Requeued failed notification {notification_id} as {new_id}")
    return EnqueueResult(EnqueueStatus.queued, new_id)


async def invalidate_pending_for_lecture(
    lecture_id: int,
    detail: str,
    now: datetime | None = None,
) -> int:
    """
    Fail every pending reminder of a lecture (cancelled or rescheduled).

    In-flight rows are left to the dispatcher that claimed them.

    Returns:
        Number of notifications invalidated
    """
    async with get_transaction() as conn:
        result = await conn.execute(
            update(notifications)
            .where(notifications.c.lecture_id == lecture_id)
            .where(notifications.c.status == NotificationStatus.pending)
            .values(status=NotificationStatus.failed, error_message=detail)
        )
        count = result.rowcount
    if count:
        logger.info(f"Invalidated {count} pending reminders for lecture {lecture_id}")
    return count


# =============================================================================
# Claim and resolve (used by the dispatcher)
# =============================================================================


async def claim_due_notifications(
    limit: int,
    now: datetime,
    lease: timedelta,
) -> list[dict]:
    """
    Atomically claim up to `limit` due notifications for this run.

    Claimable rows are pending rows due by `now`, plus in_flight rows whose
    claim is older than `lease` (their dispatcher died mid-send). Oldest
    scheduled_for first.

    Returns:
        Claimed rows (with claim_token and lecture_cancelled), oldest first
    """
    claim_token = uuid.uuid4().hex
    claimable = or_(
        and_(
            notifications.c.status == NotificationStatus.pending,
            notifications.c.scheduled_for <= now,
        ),
        and_(
            notifications.c.status == NotificationStatus.in_flight,
            notifications.c.claimed_at < now - lease,
        ),
    )
    candidates = (
        select(notifications.c.notification_id)
        .where(claimable)
        .order_by(notifications.c.scheduled_for, notifications.c.notification_id)
        .limit(limit)
        .with_for_update(skip_locked=True)
    )

    async with get_transaction() as conn:
        # The outer WHERE re-checks claimability, so two runs racing for the
        # same row cannot both claim it
        await conn.execute(
            update(notifications)
            .where(notifications.c.notification_id.in_(candidates))
            .where(claimable)
            .values(
                status=NotificationStatus.in_flight,
                claim_token=claim_token,
                claimed_at=now,
            )
        )
        result = await conn.execute(
            select(
                notifications.c.notification_id,
                notifications.c.lecture_id,
                notifications.c.recipient_id,
                notifications.c.reason,
                notifications.c.email,
                notifications.c.subject,
                notifications.c.body,
                notifications.c.scheduled_for,
                notifications.c.claim_token,
                lectures.c.is_cancelled.label("lecture_cancelled"),
            )
            .select_from(
                notifications.join(
                    lectures, notifications.c.lecture_id == lectures.c.lecture_id
                )
            )
            .where(notifications.c.claim_token == claim_token)
            .where(notifications.c.status == NotificationStatus.in_flight)
            .order_by(notifications.c.scheduled_for, notifications.c.notification_id)
        )
        return [dict(row) for row in result.mappings()]


async def record_outcome(
    notification_id: int,
    claim_token: str,
    success: bool,
    error_message: str | None = None,
    now: datetime | None = None,
) -> bool:
    """
    Move a claimed notification to sent or failed, in its own transaction.

    Only succeeds while this run still holds the claim; terminal rows and
    rows re-claimed by another run are never touched.

    Returns:
        True if the row was updated, False if the claim was lost
    """
    now = now or utc_now()
    if success:
        values = {"status": NotificationStatus.sent, "sent_at": now}
    else:
        values = {
            "status": NotificationStatus.failed,
            "error_message": error_message or "Unknown delivery error",
        }

    async with get_transaction() as conn:
        result = await conn.execute(
            update(notifications)
            .where(notifications.c.notification_id == notification_id)
            .where(notifications.c.status == NotificationStatus.in_flight)
            .where(notifications.c.claim_token == claim_token)
            .values(**values)
        )
        return result.rowcount == 1


# =============================================================================
# History
# =============================================================================


async def list_notifications(
    conn: AsyncConnection,
    recipient_id: int | None = None,
    lecture_id: int | None = None,
    status: NotificationStatus | None = None,
    limit: int = 100,
) -> list[dict]:
    """Notification history for audit views, newest first."""
    query = select(
        notifications.c.notification_id,
        notifications.c.lecture_id,
        notifications.c.recipient_id,
        notifications.c.reason,
        notifications.c.email,
        notifications.c.subject,
        notifications.c.status,
        notifications.c.scheduled_for,
        notifications.c.sent_at,
        notifications.c.error_message,
        notifications.c.created_at,
    )
    if recipient_id is not None:
        query = query.where(notifications.c.recipient_id == recipient_id)
    if lecture_id is not None:
        query = query.where(notifications.c.lecture_id == lecture_id)
    if status is not None:
        query = query.where(notifications.c.status == status)
    query = query.order_by(notifications.c.notification_id.desc()).limit(limit)

    result = await conn.execute(query)
    return [dict(row) for row in result.mappings()]
