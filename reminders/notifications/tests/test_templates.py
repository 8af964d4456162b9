"""Tests for reminder context building and template rendering."""

from datetime import datetime, timezone

import pytest

from reminders.notifications.context import build_reminder_context
from reminders.notifications.preferences import ResolvedRecipient
from reminders.notifications.templates import load_templates, render_email

LECTURE = {
    "lecture_id": 3,
    "title": "Binary Trees",
    "course_title": "Data Structures",
    "course_code": "CSC201",
    "scheduled_at": datetime(2026, 1, 10, 14, 0, tzinfo=timezone.utc),
    "duration_minutes": 90,
    "location": "Hall B",
    "meeting_url": "https://meet.example.edu/csc201",
}

RECIPIENT = ResolvedRecipient(
    profile_id=7, full_name="Amaka Eze", email="amaka@example.edu", reminders_enabled=True
)


class TestBuildReminderContext:
    def test_formats_lecture_fields(self):
        context = build_reminder_context(LECTURE, RECIPIENT, tz_name="Africa/Lagos")

        assert context["name"] == "Amaka Eze"
        assert context["lecture_title"] == "Binary Trees"
        assert context["course_code"] == "CSC201"
        assert context["lecture_time"] == "Saturday, January 10 at 3:00 PM (UTC+1)"
        assert context["lecture_clock_time"] == "3:00 PM"
        assert context["meeting_line"] == "[Join the lecture](https://meet.example.edu/csc201)\n"

    def test_defaults_for_missing_optional_fields(self):
        lecture = {**LECTURE, "location": None, "meeting_url": None, "duration_minutes": None}

        context = build_reminder_context(lecture, RECIPIENT, tz_name="UTC")

        assert context["location"] == "Online"
        assert context["duration_minutes"] == 60
        assert context["meeting_line"] == ""

    def test_uses_configured_timezone(self, monkeypatch):
        monkeypatch.setenv("LECTURE_TIMEZONE", "America/New_York")

        context = build_reminder_context(LECTURE, RECIPIENT)

        assert context["lecture_clock_time"] == "9:00 AM"


class TestRenderEmail:
    def test_every_reminder_template_has_subject_and_body(self):
        templates = load_templates()
        for key in ("lecture_reminder_imminent", "lecture_reminder_next_day"):
            assert "email_subject" in templates[key]
            assert "email_body" in templates[key]

    def test_imminent_reminder(self):
        context = build_reminder_context(LECTURE, RECIPIENT, tz_name="UTC")

        subject, body = render_email("lecture_reminder_imminent", context)

        assert subject == "Starting soon: CSC201 Binary Trees at 2:00 PM"
        assert body.startswith("Hi Amaka Eze,")
        assert "Saturday, January 10 at 2:00 PM (UTC)" in body
        assert "Location: Hall B" in body
        assert "[Join the lecture](https://meet.example.edu/csc201)" in body

    def test_next_day_reminder(self):
        context = build_reminder_context(LECTURE, RECIPIENT, tz_name="UTC")

        subject, body = render_email("lecture_reminder_next_day", context)

        assert subject == "Reminder: Binary Trees (CSC201)"
        assert "Data Structures" in body

    def test_missing_variable_raises(self):
        with pytest.raises(KeyError):
            render_email("lecture_reminder_imminent", {"name": "Amaka"})
