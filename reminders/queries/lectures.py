"""Lecture and enrollment queries used by the reminder selector."""

from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncConnection

from ..tables import courses, email_preferences, enrollments, lectures, profiles


async def get_lectures_starting_between(
    conn: AsyncConnection,
    start: datetime,
    end: datetime,
) -> list[dict[str, Any]]:
    """
    Get non-cancelled lectures of active courses with start in [start, end).

    Each row carries the lecture fields plus course_title and course_code.
    """
    query = (
        select(
            lectures.c.lecture_id,
            lectures.c.course_id,
            lectures.c.title,
            lectures.c.description,
            lectures.c.scheduled_at,
            lectures.c.duration_minutes,
            lectures.c.location,
            lectures.c.meeting_url,
            courses.c.title.label("course_title"),
            courses.c.course_code,
        )
        .select_from(lectures.join(courses, lectures.c.course_id == courses.c.course_id))
        .where(lectures.c.scheduled_at >= start)
        .where(lectures.c.scheduled_at < end)
        .where(lectures.c.is_cancelled.is_(False))
        .where(courses.c.is_active.is_(True))
        .order_by(lectures.c.scheduled_at, lectures.c.lecture_id)
    )
    result = await conn.execute(query)
    return [dict(row) for row in result.mappings()]


async def get_active_students_for_courses(
    conn: AsyncConnection,
    course_ids: list[int],
) -> dict[int, list[tuple[dict[str, Any], dict[str, Any] | None]]]:
    """
    Get actively enrolled students for each course with their email preference.

    Returns:
        {course_id: [(profile, preference_or_None), ...]}, courses without
        active enrollments are absent.
    """
    if not course_ids:
        return {}

    query = (
        select(
            enrollments.c.course_id,
            profiles.c.profile_id,
            profiles.c.full_name,
            profiles.c.email,
            profiles.c.notification_email,
            email_preferences.c.preference_id,
            email_preferences.c.notification_email.label("pref_notification_email"),
            email_preferences.c.lecture_reminders,
            email_preferences.c.daily_digest,
        )
        .select_from(
            enrollments.join(
                profiles, enrollments.c.student_id == profiles.c.profile_id
            ).outerjoin(
                email_preferences,
                email_preferences.c.profile_id == profiles.c.profile_id,
            )
        )
        .where(enrollments.c.course_id.in_(course_ids))
        .where(enrollments.c.is_active.is_(True))
        .order_by(enrollments.c.course_id, profiles.c.profile_id)
    )
    result = await conn.execute(query)

    students: dict[int, list[tuple[dict[str, Any], dict[str, Any] | None]]] = {}
    for row in result.mappings():
        profile = {
            "profile_id": row["profile_id"],
            "full_name": row["full_name"],
            "email": row["email"],
            "notification_email": row["notification_email"],
        }
        preference = None
        if row["preference_id"] is not None:
            preference = {
                "notification_email": row["pref_notification_email"],
                "lecture_reminders": row["lecture_reminders"],
                "daily_digest": row["daily_digest"],
            }
        students.setdefault(row["course_id"], []).append((profile, preference))
    return students

