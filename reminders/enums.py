"""SQLAlchemy enum definitions for the database schema."""

import enum

from sqlalchemy import Enum as SQLEnum


# =====================================================
# Python Enum Classes
# =====================================================


class UserRole(str, enum.Enum):
    admin = "admin"
    lecturer = "lecturer"
    student = "student"


class NotificationStatus(str, enum.Enum):
    pending = "pending"
    in_flight = "in_flight"  # claimed by a dispatcher, provider call outstanding
    sent = "sent"
    failed = "failed"


class ReminderReason(str, enum.Enum):
    imminent = "imminent"
    next_day = "next_day"


UNRESOLVED_STATUSES = (NotificationStatus.pending, NotificationStatus.in_flight)
TERMINAL_STATUSES = (NotificationStatus.sent, NotificationStatus.failed)


# =====================================================
# SQLAlchemy Enum Types
# Stored as VARCHAR (native_enum=False) so the same metadata
# works on PostgreSQL and on the SQLite test database.
# =====================================================

user_role_enum = SQLEnum(
    UserRole, name="user_role", native_enum=False, length=16
)
notification_status_enum = SQLEnum(
    NotificationStatus, name="notification_status", native_enum=False, length=16
)
reminder_reason_enum = SQLEnum(
    ReminderReason, name="reminder_reason", native_enum=False, length=16
)
