"""
Reminder selection - which lectures need reminders and who should get them.

Read-only: selection never writes, so a failed selection can simply be
retried by the next trigger.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from reminders.database import get_connection
from reminders.queries.lectures import (
    get_active_students_for_courses,
    get_lectures_starting_between,
)

logger = logging.getLogger(__name__)


@dataclass
class ReminderCandidate:
    """An actively enrolled student with their (optional) preference row."""

    profile: dict
    preference: dict | None = None


@dataclass
class LectureReminderWork:
    """A lecture inside the reminder window and the students to consider."""

    lecture: dict
    candidates: list[ReminderCandidate] = field(default_factory=list)


async def select_reminder_work(
    now: datetime,
    window: timedelta,
) -> list[LectureReminderWork]:
    """
    Find lectures starting in [now, now + window) and their active students.

    Lectures with no active enrollments are dropped. Any store error
    propagates so the caller can abort the whole run.
    """
    async with get_connection() as conn:
        lecture_rows = await get_lectures_starting_between(conn, now, now + window)
        if not lecture_rows:
            return []

        course_ids = sorted({row["course_id"] for row in lecture_rows})
        students_by_course = await get_active_students_for_courses(conn, course_ids)

    work = []
    for lecture in lecture_rows:
        students = students_by_course.get(lecture["course_id"], [])
        if not students:
            logger.info(
                f"Lecture {lecture['lecture_id']} has no active enrollments, skipping"
            )
            continue
        work.append(
            LectureReminderWork(
                lecture=lecture,
                candidates=[
                    ReminderCandidate(profile=profile, preference=preference)
                    for profile, preference in students
                ],
            )
        )
    return work
