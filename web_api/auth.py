"""
Shared-secret authentication for operator and cron endpoints.

The reminder trigger and the requeue endpoint are called by a scheduler or
an operator script, not by browsers, so a static secret in a header is
enough. User authentication belongs to the main web application.
"""

import hmac

from fastapi import Header, HTTPException

from reminders.config import get_trigger_secret


class TriggerAuthError(Exception):
    """Raised when the trigger secret is missing or wrong."""

    pass


def verify_trigger_secret(provided: str | None) -> None:
    """
    Check a provided secret against TRIGGER_SECRET.

    Raises:
        TriggerAuthError: If the secret is not configured, missing, or wrong
    """
    expected = get_trigger_secret()
    if not expected:
        raise TriggerAuthError("TRIGGER_SECRET not configured")
    if not provided:
        raise TriggerAuthError("Missing X-Trigger-Secret header")
    if not hmac.compare_digest(provided.encode(), expected.encode()):
        raise TriggerAuthError("Invalid trigger secret")


async def require_trigger_secret(
    x_trigger_secret: str | None = Header(None),
) -> None:
    """FastAPI dependency: reject requests without the trigger secret."""
    try:
        verify_trigger_secret(x_trigger_secret)
    except TriggerAuthError as e:
        raise HTTPException(status_code=401, detail=str(e))
