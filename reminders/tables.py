"""SQLAlchemy Core table definitions for the database schema."""

from sqlalchemy import (
    TIMESTAMP,
    Boolean,
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
    UniqueConstraint,
    false,
    func,
    text,
    true,
)

from .enums import (
    notification_status_enum,
    reminder_reason_enum,
    user_role_enum,
)

# Naming convention for constraints (helps Alembic generate better names)
convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}
metadata = MetaData(naming_convention=convention)


# =====================================================
# 1. PROFILES
# =====================================================
profiles = Table(
    "profiles",
    metadata,
    Column("profile_id", Integer, primary_key=True, autoincrement=True),
    Column("role", user_role_enum, nullable=False, server_default="student"),
    Column("full_name", Text, nullable=False),
    Column("email", Text, nullable=False),  # account email
    Column("notification_email", Text),  # profile-level override
    Column("department", Text),
    Column("level", Text),
    Column("created_at", TIMESTAMP(timezone=True), server_default=func.now()),
    Column("updated_at", TIMESTAMP(timezone=True), server_default=func.now()),
    Index("idx_profiles_email", "email"),
)


# =====================================================
# 2. EMAIL_PREFERENCES
# =====================================================
# One row per profile; no row means "use defaults"
email_preferences = Table(
    "email_preferences",
    metadata,
    Column("preference_id", Integer, primary_key=True, autoincrement=True),
    Column(
        "profile_id",
        Integer,
        ForeignKey("profiles.profile_id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    ),
    Column("notification_email", Text),
    Column("lecture_reminders", Boolean, nullable=False, server_default=true()),
    Column("daily_digest", Boolean, nullable=False, server_default=false()),
    Column("created_at", TIMESTAMP(timezone=True), server_default=func.now()),
    Column("updated_at", TIMESTAMP(timezone=True), server_default=func.now()),
)


# =====================================================
# 3. COURSES
# =====================================================
courses = Table(
    "courses",
    metadata,
    Column("course_id", Integer, primary_key=True, autoincrement=True),
    Column("title", Text, nullable=False),
    Column("course_code", Text, nullable=False),
    Column("description", Text),
    Column("department", Text),
    Column("level", Text),
    Column(
        "lecturer_id",
        Integer,
        ForeignKey("profiles.profile_id", ondelete="RESTRICT"),
        nullable=False,
    ),
    Column("is_active", Boolean, nullable=False, server_default=true()),
    Column("color", Text),
    Column("created_at", TIMESTAMP(timezone=True), server_default=func.now()),
    Column("updated_at", TIMESTAMP(timezone=True), server_default=func.now()),
    Index("idx_courses_lecturer_id", "lecturer_id"),
)


# =====================================================
# 4. LECTURES
# =====================================================
lectures = Table(
    "lectures",
    metadata,
    Column("lecture_id", Integer, primary_key=True, autoincrement=True),
    Column(
        "course_id",
        Integer,
        ForeignKey("courses.course_id", ondelete="RESTRICT"),
        nullable=False,
    ),
    Column("title", Text, nullable=False),
    Column("description", Text),
    Column("scheduled_at", TIMESTAMP(timezone=True), nullable=False),  # UTC
    Column("duration_minutes", Integer, nullable=False, server_default="60"),
    Column("location", Text),
    Column("meeting_url", Text),
    Column("is_cancelled", Boolean, nullable=False, server_default=false()),
    Column("created_at", TIMESTAMP(timezone=True), server_default=func.now()),
    Column("updated_at", TIMESTAMP(timezone=True), server_default=func.now()),
    CheckConstraint("duration_minutes > 0", name="duration_positive"),
    Index("idx_lectures_course_id", "course_id"),
    Index("idx_lectures_scheduled_at", "scheduled_at"),
)


# =====================================================
# 5. ENROLLMENTS
# =====================================================
enrollments = Table(
    "enrollments",
    metadata,
    Column("enrollment_id", Integer, primary_key=True, autoincrement=True),
    Column(
        "student_id",
        Integer,
        ForeignKey("profiles.profile_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "course_id",
        Integer,
        ForeignKey("courses.course_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("is_active", Boolean, nullable=False, server_default=true()),
    Column("enrolled_at", TIMESTAMP(timezone=True), server_default=func.now()),
    UniqueConstraint("student_id", "course_id", name="uq_enrollments_student_course"),
    Index("idx_enrollments_course_id", "course_id"),
)


# =====================================================
# 6. NOTIFICATIONS (the ledger)
# =====================================================
# Append-mostly: rows are created pending, claimed in_flight by one
# dispatcher, then moved once to sent or failed and never touched again.
notifications = Table(
    "notifications",
    metadata,
    Column("notification_id", Integer, primary_key=True, autoincrement=True),
    Column(
        "lecture_id",
        Integer,
        ForeignKey("lectures.lecture_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "recipient_id",
        Integer,
        ForeignKey("profiles.profile_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("reason", reminder_reason_enum, nullable=False),
    Column("email", Text, nullable=False),  # resolved at enqueue time
    Column("subject", Text, nullable=False),
    Column("body", Text, nullable=False),
    Column(
        "status",
        notification_status_enum,
        nullable=False,
        server_default="pending",
    ),
    # Lecture start the reminder was rendered for
    Column("lecture_scheduled_at", TIMESTAMP(timezone=True), nullable=False),
    Column("scheduled_for", TIMESTAMP(timezone=True), nullable=False),
    Column("claimed_at", TIMESTAMP(timezone=True)),
    Column("claim_token", Text),
    Column("sent_at", TIMESTAMP(timezone=True)),
    Column("error_message", Text),  # provider diagnostic, failures only
    Column("created_at", TIMESTAMP(timezone=True), server_default=func.now()),
    Index("idx_notifications_recipient_id", "recipient_id"),
    Index("idx_notifications_lecture_id", "lecture_id"),
    Index("idx_notifications_status_scheduled_for", "status", "scheduled_for"),
    # At most one unresolved entry per idempotency key
    Index(
        "uq_notifications_unresolved_key",
        "lecture_id",
        "recipient_id",
        "reason",
        unique=True,
        postgresql_where=text("status IN ('pending', 'in_flight')"),
        sqlite_where=text("status IN ('pending', 'in_flight')"),
    ),
)
