"""Root pytest configuration."""

from datetime import datetime
from pathlib import Path

import pytest
import pytest_asyncio
from dotenv import load_dotenv
from sqlalchemy import insert, select
from sqlalchemy.ext.asyncio import create_async_engine

# Load environment variables before tests run
_root = Path(__file__).parent
load_dotenv(_root / ".env")
load_dotenv(_root / ".env.local", override=True)

from reminders.database import set_engine
from reminders.enums import UserRole
from reminders.tables import (
    courses,
    email_preferences,
    enrollments,
    lectures,
    metadata,
    notifications,
    profiles,
)


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """
    Fresh SQLite database per test, installed as the application engine.

    A file database (not :memory:) so every pooled connection sees the
    same schema and data.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'reminders.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

    set_engine(engine)
    yield engine
    set_engine(None)
    await engine.dispose()


class DatabaseSeeder:
    """Inserts domain rows for tests and returns their ids."""

    def __init__(self, engine):
        self.engine = engine
        self._lecturer_id: int | None = None

    async def _insert(self, table, pk_column, **values) -> int:
        async with self.engine.begin() as conn:
            result = await conn.execute(
                insert(table).values(**values).returning(pk_column)
            )
            return result.scalar_one()

    async def profile(
        self,
        full_name: str,
        email: str,
        notification_email: str | None = None,
        role: UserRole = UserRole.student,
    ) -> int:
        return await self._insert(
            profiles,
            profiles.c.profile_id,
            full_name=full_name,
            email=email,
            notification_email=notification_email,
            role=role,
        )

    async def preference(
        self,
        profile_id: int,
        lecture_reminders: bool = True,
        notification_email: str | None = None,
    ) -> int:
        return await self._insert(
            email_preferences,
            email_preferences.c.preference_id,
            profile_id=profile_id,
            lecture_reminders=lecture_reminders,
            notification_email=notification_email,
        )

    async def course(
        self,
        title: str = "Data Structures",
        course_code: str = "CSC201",
        is_active: bool = True,
    ) -> int:
        if self._lecturer_id is None:
            self._lecturer_id = await self.profile(
                "Dr. Ada Obi", "ada.obi@example.edu", role=UserRole.lecturer
            )
        return await self._insert(
            courses,
            courses.c.course_id,
            title=title,
            course_code=course_code,
            lecturer_id=self._lecturer_id,
            is_active=is_active,
        )

    async def lecture(
        self,
        course_id: int,
        scheduled_at: datetime,
        title: str = "Binary Trees",
        is_cancelled: bool = False,
        location: str | None = "Hall B",
        meeting_url: str | None = None,
        duration_minutes: int = 90,
    ) -> int:
        return await self._insert(
            lectures,
            lectures.c.lecture_id,
            course_id=course_id,
            title=title,
            scheduled_at=scheduled_at,
            is_cancelled=is_cancelled,
            location=location,
            meeting_url=meeting_url,
            duration_minutes=duration_minutes,
        )

    async def enroll(self, student_id: int, course_id: int, is_active: bool = True) -> int:
        return await self._insert(
            enrollments,
            enrollments.c.enrollment_id,
            student_id=student_id,
            course_id=course_id,
            is_active=is_active,
        )


@pytest.fixture
def seed(db_engine):
    """Helper for inserting profiles, courses, lectures and enrollments."""
    return DatabaseSeeder(db_engine)


@pytest.fixture
def fetch_notifications(db_engine):
    """Read ledger rows (oldest first), optionally filtered by column values."""

    async def _fetch(**filters) -> list[dict]:
        query = select(notifications).order_by(notifications.c.notification_id)
        for column, value in filters.items():
            query = query.where(notifications.c[column] == value)
        async with db_engine.connect() as conn:
            result = await conn.execute(query)
            return [dict(row) for row in result.mappings()]

    return _fetch
