"""
Reminder pipeline API routes.

Endpoints:
- POST /api/reminders/run - Trigger a reminder cycle and/or a dispatch batch
- GET /api/notifications - Notification history (audit view)
- POST /api/notifications/{notification_id}/requeue - Retry a failed reminder

All endpoints require the X-Trigger-Secret header.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from reminders.database import get_connection
from reminders.enums import NotificationStatus, ReminderReason
from reminders.notifications.actions import run_reminder_cycle
from reminders.notifications.dispatcher import run_batch
from reminders.notifications.ledger import (
    NotificationNotFoundError,
    NotificationNotRequeueableError,
    list_notifications,
    requeue_notification,
)
from reminders.notifications.scheduler import REMINDER_POLICIES
from web_api.auth import require_trigger_secret

logger = logging.getLogger(__name__)

router = APIRouter(tags=["notifications"], dependencies=[Depends(require_trigger_secret)])


class RunRemindersRequest(BaseModel):
    """Request body for the reminder trigger."""

    reason: ReminderReason | None = None  # None = every policy
    dispatch: bool = True
    limit: int | None = Field(None, ge=1)


@router.post("/api/reminders/run")
async def run_reminders_endpoint(
    request: RunRemindersRequest | None = None,
) -> dict[str, Any]:
    """
    Run reminder cycles and optionally one dispatch batch.

    Safe to call repeatedly or concurrently; a failed run returns 500 and
    can simply be retried.
    """
    request = request or RunRemindersRequest()
    reasons = [request.reason] if request.reason else list(REMINDER_POLICIES)

    try:
        cycles = {}
        for reason in reasons:
            cycles[reason.value] = await run_reminder_cycle(reason)
        dispatch = await run_batch(limit=request.limit) if request.dispatch else None
    except Exception as e:
        logger.error(f"Reminder trigger failed: {e}")
        raise HTTPException(status_code=500, detail="Reminder run failed")

    return {"cycles": cycles, "dispatch": dispatch}


@router.get("/api/notifications")
async def list_notifications_endpoint(
    recipient_id: int | None = None,
    lecture_id: int | None = None,
    status: NotificationStatus | None = None,
    limit: int = Query(100, ge=1, le=500),
) -> dict[str, Any]:
    """Notification history, newest first."""
    async with get_connection() as conn:
        rows = await list_notifications(
            conn,
            recipient_id=recipient_id,
            lecture_id=lecture_id,
            status=status,
            limit=limit,
        )
    return {"notifications": rows}


@router.post("/api/notifications/{notification_id}/requeue")
async def requeue_notification_endpoint(notification_id: int) -> dict[str, Any]:
    """Queue a new attempt for a failed notification."""
    try:
        result = await requeue_notification(notification_id)
    except NotificationNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except NotificationNotRequeueableError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return {"status": result.status.value, "notification_id": result.notification_id}
