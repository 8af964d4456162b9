"""
Preference resolution for reminder recipients.

Pure: takes the profile row and the email_preferences row (or None when
the student never saved preferences) and decides where reminders go.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ResolvedRecipient:
    """Where a recipient's reminders go and whether they want them."""

    profile_id: int
    full_name: str
    email: str | None
    reminders_enabled: bool


def _first_non_empty(*values: str | None) -> str | None:
    for value in values:
        if value and value.strip():
            return value.strip()
    return None


def resolve_recipient(profile: dict, preference: dict | None) -> ResolvedRecipient:
    """
    Resolve the effective notification email and reminder switch.

    Email order: preference override, then profile notification_email,
    then the account email. Without a preference row reminders are on.
    """
    pref_email = preference.get("notification_email") if preference else None
    email = _first_non_empty(
        pref_email,
        profile.get("notification_email"),
        profile.get("email"),
    )

    if preference is None:
        reminders_enabled = True
    else:
        reminders_enabled = bool(preference.get("lecture_reminders"))

    return ResolvedRecipient(
        profile_id=profile["profile_id"],
        full_name=profile.get("full_name") or "Student",
        email=email,
        reminders_enabled=reminders_enabled,
    )
