"""
Context building for lecture reminder messages.

Pure functions: the selector hands over a lecture row, the resolver a
recipient, and this produces the template variables.
"""

from reminders.config import get_lecture_timezone
from reminders.notifications.preferences import ResolvedRecipient
from reminders.timezone import format_clock_time, format_lecture_time


def build_reminder_context(
    lecture: dict,
    recipient: ResolvedRecipient,
    tz_name: str | None = None,
) -> dict:
    """
    Build notification context for a lecture reminder.

    Args:
        lecture: Lecture row joined with course_title and course_code
        recipient: Resolved recipient (name used for the greeting)
        tz_name: Display timezone, defaults to LECTURE_TIMEZONE

    Returns:
        Context dict with every variable used by the reminder templates
    """
    tz_name = tz_name or get_lecture_timezone()
    scheduled_at = lecture["scheduled_at"]
    meeting_url = lecture.get("meeting_url")

    return {
        "name": recipient.full_name,
        "lecture_title": lecture["title"],
        "course_title": lecture.get("course_title") or "",
        "course_code": lecture.get("course_code") or "",
        "lecture_time": format_lecture_time(scheduled_at, tz_name),
        "lecture_clock_time": format_clock_time(scheduled_at, tz_name),
        "location": lecture.get("location") or "Online",
        "duration_minutes": lecture.get("duration_minutes") or 60,
        "meeting_line": f"[Join the lecture]({meeting_url})\n" if meeting_url else "",
    }
