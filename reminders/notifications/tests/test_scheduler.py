"""Tests for the APScheduler trigger."""

import logging
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from reminders.enums import ReminderReason
from reminders.notifications.scheduler import (
    REMINDER_POLICIES,
    _run_dispatch_job,
    _run_reminder_job,
    get_reminder_policy,
    init_scheduler,
    shutdown_scheduler,
)


class TestReminderPolicies:
    def test_every_reason_has_a_policy(self):
        assert set(REMINDER_POLICIES) == set(ReminderReason)

    def test_policy_lookup_accepts_strings(self):
        policy = get_reminder_policy("imminent")
        assert policy["message_template"] == "lecture_reminder_imminent"
        assert policy["window"]() == timedelta(hours=1)

    def test_unknown_reason(self):
        with pytest.raises(ValueError):
            get_reminder_policy("weekly")


class TestInitScheduler:
    def test_registers_one_job_per_policy_and_dispatcher(self):
        mock_scheduler = MagicMock()

        with patch("reminders.notifications.scheduler._scheduler", None):
            with patch(
                "reminders.notifications.scheduler.AsyncIOScheduler",
                return_value=mock_scheduler,
            ):
                scheduler = init_scheduler()
                # Second call returns the running instance
                assert init_scheduler() is scheduler

        job_ids = {c.kwargs["id"] for c in mock_scheduler.add_job.call_args_list}
        assert job_ids == {
            "reminders_imminent",
            "reminders_next_day",
            "dispatch_notifications",
        }
        imminent = next(
            c for c in mock_scheduler.add_job.call_args_list
            if c.kwargs["id"] == "reminders_imminent"
        )
        assert imminent.kwargs["seconds"] == 60
        assert imminent.kwargs["kwargs"] == {"reason": ReminderReason.imminent}
        mock_scheduler.start.assert_called_once()

    def test_shutdown(self):
        mock_scheduler = MagicMock()

        with patch("reminders.notifications.scheduler._scheduler", mock_scheduler):
            shutdown_scheduler()

        mock_scheduler.shutdown.assert_called_once_with(wait=True)


class TestJobs:
    @pytest.mark.asyncio
    async def test_reminder_job_runs_cycle(self):
        with patch(
            "reminders.notifications.actions.run_reminder_cycle", AsyncMock()
        ) as mock_cycle:
            await _run_reminder_job(ReminderReason.next_day)

        mock_cycle.assert_awaited_once_with(ReminderReason.next_day)

    @pytest.mark.asyncio
    async def test_reminder_job_reports_failures(self, caplog):
        mock_sentry = MagicMock()

        with caplog.at_level(logging.ERROR):
            with patch(
                "reminders.notifications.actions.run_reminder_cycle",
                AsyncMock(side_effect=RuntimeError("database unavailable")),
            ):
                with patch("reminders.notifications.scheduler.sentry_sdk", mock_sentry):
                    await _run_reminder_job(ReminderReason.imminent)

        assert "Reminder cycle imminent failed: database unavailable" in caplog.text
        mock_sentry.capture_exception.assert_called_once()

    @pytest.mark.asyncio
    async def test_dispatch_job_reports_failures(self, caplog):
        mock_sentry = MagicMock()

        with caplog.at_level(logging.ERROR):
            with patch(
                "reminders.notifications.dispatcher.run_batch",
                AsyncMock(side_effect=RuntimeError("database unavailable")),
            ):
                with patch("reminders.notifications.scheduler.sentry_sdk", mock_sentry):
                    await _run_dispatch_job()

        assert "Notification dispatch failed" in caplog.text
        mock_sentry.capture_exception.assert_called_once()
