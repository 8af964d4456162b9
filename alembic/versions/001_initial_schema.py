"""initial_schema

Revision ID: 001
Revises:
Create Date: 2026-10-16 09:00:00.000000

Profiles, email preferences, courses, lectures, enrollments and the
notification ledger.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=True,
        ),
        sa.Column(
            "updated_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=True,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("profile_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(
            "role", sa.String(length=16), server_default="student", nullable=False
        ),
        sa.Column("full_name", sa.Text(), nullable=False),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("notification_email", sa.Text(), nullable=True),
        sa.Column("department", sa.Text(), nullable=True),
        sa.Column("level", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("profile_id", name=op.f("pk_profiles")),
    )
    op.create_index("idx_profiles_email", "profiles", ["email"], unique=False)

    op.create_table(
        "email_preferences",
        sa.Column("preference_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("profile_id", sa.Integer(), nullable=False),
        sa.Column("notification_email", sa.Text(), nullable=True),
        sa.Column(
            "lecture_reminders", sa.Boolean(), server_default=sa.true(), nullable=False
        ),
        sa.Column(
            "daily_digest", sa.Boolean(), server_default=sa.false(), nullable=False
        ),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["profile_id"],
            ["profiles.profile_id"],
            name=op.f("fk_email_preferences_profile_id_profiles"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("preference_id", name=op.f("pk_email_preferences")),
        sa.UniqueConstraint("profile_id", name=op.f("uq_email_preferences_profile_id")),
    )

    op.create_table(
        "courses",
        sa.Column("course_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("course_code", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("department", sa.Text(), nullable=True),
        sa.Column("level", sa.Text(), nullable=True),
        sa.Column("lecturer_id", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column("color", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["lecturer_id"],
            ["profiles.profile_id"],
            name=op.f("fk_courses_lecturer_id_profiles"),
            ondelete="RESTRICT",
        ),
        sa.PrimaryKeyConstraint("course_id", name=op.f("pk_courses")),
    )
    op.create_index(
        "idx_courses_lecturer_id", "courses", ["lecturer_id"], unique=False
    )

    op.create_table(
        "lectures",
        sa.Column("lecture_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("course_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("scheduled_at", postgresql.TIMESTAMP(timezone=True), nullable=False),
        sa.Column(
            "duration_minutes", sa.Integer(), server_default="60", nullable=False
        ),
        sa.Column("location", sa.Text(), nullable=True),
        sa.Column("meeting_url", sa.Text(), nullable=True),
        sa.Column(
            "is_cancelled", sa.Boolean(), server_default=sa.false(), nullable=False
        ),
        *_timestamps(),
        sa.CheckConstraint(
            "duration_minutes > 0", name=op.f("ck_lectures_duration_positive")
        ),
        sa.ForeignKeyConstraint(
            ["course_id"],
            ["courses.course_id"],
            name=op.f("fk_lectures_course_id_courses"),
            ondelete="RESTRICT",
        ),
        sa.PrimaryKeyConstraint("lecture_id", name=op.f("pk_lectures")),
    )
    op.create_index("idx_lectures_course_id", "lectures", ["course_id"], unique=False)
    op.create_index(
        "idx_lectures_scheduled_at", "lectures", ["scheduled_at"], unique=False
    )

    op.create_table(
        "enrollments",
        sa.Column("enrollment_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("student_id", sa.Integer(), nullable=False),
        sa.Column("course_id", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column(
            "enrolled_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=True,
        ),
        sa.ForeignKeyConstraint(
            ["student_id"],
            ["profiles.profile_id"],
            name=op.f("fk_enrollments_student_id_profiles"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["course_id"],
            ["courses.course_id"],
            name=op.f("fk_enrollments_course_id_courses"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("enrollment_id", name=op.f("pk_enrollments")),
        sa.UniqueConstraint(
            "student_id", "course_id", name="uq_enrollments_student_course"
        ),
    )
    op.create_index(
        "idx_enrollments_course_id", "enrollments", ["course_id"], unique=False
    )

    op.create_table(
        "notifications",
        sa.Column("notification_id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("lecture_id", sa.Integer(), nullable=False),
        sa.Column("recipient_id", sa.Integer(), nullable=False),
        sa.Column("reason", sa.String(length=16), nullable=False),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("subject", sa.Text(), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column(
            "status", sa.String(length=16), server_default="pending", nullable=False
        ),
        sa.Column(
            "lecture_scheduled_at", postgresql.TIMESTAMP(timezone=True), nullable=False
        ),
        sa.Column("scheduled_for", postgresql.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("claimed_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("claim_token", sa.Text(), nullable=True),
        sa.Column("sent_at", postgresql.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            postgresql.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=True,
        ),
        sa.ForeignKeyConstraint(
            ["lecture_id"],
            ["lectures.lecture_id"],
            name=op.f("fk_notifications_lecture_id_lectures"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["recipient_id"],
            ["profiles.profile_id"],
            name=op.f("fk_notifications_recipient_id_profiles"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("notification_id", name=op.f("pk_notifications")),
    )
    op.create_index(
        "idx_notifications_recipient_id",
        "notifications",
        ["recipient_id"],
        unique=False,
    )
    op.create_index(
        "idx_notifications_lecture_id", "notifications", ["lecture_id"], unique=False
    )
    op.create_index(
        "idx_notifications_status_scheduled_for",
        "notifications",
        ["status", "scheduled_for"],
        unique=False,
    )
    op.create_index(
        "uq_notifications_unresolved_key",
        "notifications",
        ["lecture_id", "recipient_id", "reason"],
        unique=True,
        postgresql_where=sa.text("status IN ('pending', 'in_flight')"),
    )


def downgrade() -> None:
    op.drop_index("uq_notifications_unresolved_key", table_name="notifications")
    op.drop_index("idx_notifications_status_scheduled_for", table_name="notifications")
    op.drop_index("idx_notifications_lecture_id", table_name="notifications")
    op.drop_index("idx_notifications_recipient_id", table_name="notifications")
    op.drop_table("notifications")
    op.drop_index("idx_enrollments_course_id", table_name="enrollments")
    op.drop_table("enrollments")
    op.drop_index("idx_lectures_scheduled_at", table_name="lectures")
    op.drop_index("idx_lectures_course_id", table_name="lectures")
    op.drop_table("lectures")
    op.drop_index("idx_courses_lecturer_id", table_name="courses")
    op.drop_table("courses")
    op.drop_table("email_preferences")
    op.drop_index("idx_profiles_email", table_name="profiles")
    op.drop_table("profiles")
