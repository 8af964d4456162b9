"""Tests for lecture and enrollment queries (SQLite-backed)."""

from datetime import datetime, timedelta, timezone

import pytest

from reminders.database import get_connection
from reminders.queries.lectures import (
    get_active_students_for_courses,
    get_lectures_starting_between,
)

NOW = datetime(2026, 1, 10, 14, 0, tzinfo=timezone.utc)


class TestGetLecturesStartingBetween:
    @pytest.mark.asyncio
    async def test_window_is_half_open(self, seed):
        course_id = await seed.course()
        at_start = await seed.lecture(course_id, NOW, title="At start")
        inside = await seed.lecture(course_id, NOW + timedelta(minutes=45), title="Inside")
        await seed.lecture(course_id, NOW + timedelta(hours=1), title="At end")
        await seed.lecture(course_id, NOW - timedelta(minutes=1), title="Started")

        async with get_connection() as conn:
            rows = await get_lectures_starting_between(conn, NOW, NOW + timedelta(hours=1))

        assert [row["lecture_id"] for row in rows] == [at_start, inside]

    @pytest.mark.asyncio
    async def test_excludes_cancelled_lectures_and_inactive_courses(self, seed):
        active_course = await seed.course()
        closed_course = await seed.course(title="Old Course", course_code="OLD100", is_active=False)
        kept = await seed.lecture(active_course, NOW + timedelta(minutes=10))
        await seed.lecture(active_course, NOW + timedelta(minutes=20), is_cancelled=True)
        await seed.lecture(closed_course, NOW + timedelta(minutes=30))

        async with get_connection() as conn:
            rows = await get_lectures_starting_between(conn, NOW, NOW + timedelta(hours=1))

        assert [row["lecture_id"] for row in rows] == [kept]

    @pytest.mark.asyncio
    async def test_rows_carry_course_details(self, seed):
        course_id = await seed.course(title="Operating Systems", course_code="CSC301")
        await seed.lecture(course_id, NOW + timedelta(minutes=10), title="Scheduling")

        async with get_connection() as conn:
            rows = await get_lectures_starting_between(conn, NOW, NOW + timedelta(hours=1))

        assert rows[0]["title"] == "Scheduling"
        assert rows[0]["course_title"] == "Operating Systems"
        assert rows[0]["course_code"] == "CSC301"
        assert rows[0]["duration_minutes"] == 90


class TestGetActiveStudentsForCourses:
    @pytest.mark.asyncio
    async def test_returns_active_students_with_preferences(self, seed):
        course_id = await seed.course()
        amaka = await seed.profile("Amaka Eze", "amaka@example.edu")
        bayo = await seed.profile("Bayo Ade", "bayo@example.edu", notification_email="bayo@home.test")
        dropped = await seed.profile("Chidi Okafor", "chidi@example.edu")
        await seed.preference(amaka, lecture_reminders=False, notification_email="amaka@alt.test")
        await seed.enroll(amaka, course_id)
        await seed.enroll(bayo, course_id)
        await seed.enroll(dropped, course_id, is_active=False)

        async with get_connection() as conn:
            students = await get_active_students_for_courses(conn, [course_id])

        pairs = students[course_id]
        assert [profile["profile_id"] for profile, _ in pairs] == [amaka, bayo]

        amaka_profile, amaka_pref = pairs[0]
        assert amaka_profile["email"] == "amaka@example.edu"
        assert amaka_pref["lecture_reminders"] is False
        assert amaka_pref["notification_email"] == "amaka@alt.test"

        bayo_profile, bayo_pref = pairs[1]
        assert bayo_profile["notification_email"] == "bayo@home.test"
        assert bayo_pref is None

    @pytest.mark.asyncio
    async def test_courses_without_active_enrollments_are_absent(self, seed):
        course_id = await seed.course()

        async with get_connection() as conn:
            assert await get_active_students_for_courses(conn, [course_id]) == {}
            assert await get_active_students_for_courses(conn, []) == {}
