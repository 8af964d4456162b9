"""Tests for reminder selection."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import SQLAlchemyError

from reminders.notifications.selector import select_reminder_work

NOW = datetime(2026, 1, 10, 14, 0, tzinfo=timezone.utc)
WINDOW = timedelta(hours=1)


class TestSelectReminderWork:
    @pytest.mark.asyncio
    async def test_pairs_lectures_with_active_students(self, seed):
        course_id = await seed.course()
        amaka = await seed.profile("Amaka Eze", "amaka@example.edu")
        bayo = await seed.profile("Bayo Ade", "bayo@example.edu")
        await seed.preference(bayo, lecture_reminders=False)
        await seed.enroll(amaka, course_id)
        await seed.enroll(bayo, course_id)
        lecture_id = await seed.lecture(course_id, NOW + timedelta(minutes=45))

        work = await select_reminder_work(NOW, WINDOW)

        assert len(work) == 1
        assert work[0].lecture["lecture_id"] == lecture_id
        candidates = {c.profile["profile_id"]: c for c in work[0].candidates}
        assert set(candidates) == {amaka, bayo}
        assert candidates[amaka].preference is None
        # Opted-out students are still candidates; the resolver decides
        assert candidates[bayo].preference["lecture_reminders"] is False

    @pytest.mark.asyncio
    async def test_outside_window_and_cancelled_are_ignored(self, seed):
        course_id = await seed.course()
        student = await seed.profile("Amaka Eze", "amaka@example.edu")
        await seed.enroll(student, course_id)
        await seed.lecture(course_id, NOW + timedelta(hours=2))
        await seed.lecture(course_id, NOW + timedelta(minutes=30), is_cancelled=True)

        assert await select_reminder_work(NOW, WINDOW) == []

    @pytest.mark.asyncio
    async def test_lecture_without_enrollments_is_skipped(self, seed, caplog):
        import logging

        empty_course = await seed.course(title="Compilers", course_code="CSC402")
        lecture_id = await seed.lecture(empty_course, NOW + timedelta(minutes=15))

        with caplog.at_level(logging.INFO):
            work = await select_reminder_work(NOW, WINDOW)

        assert work == []
        assert f"Lecture {lecture_id} has no active enrollments" in caplog.text

    @pytest.mark.asyncio
    async def test_store_errors_propagate(self, db_engine):
        with patch(
            "reminders.notifications.selector.get_lectures_starting_between",
            AsyncMock(side_effect=SQLAlchemyError("connection lost")),
        ):
            with pytest.raises(SQLAlchemyError):
                await select_reminder_work(NOW, WINDOW)
