"""Query layer for database operations using SQLAlchemy Core."""

from .lectures import (
    get_active_students_for_courses,
    get_lectures_starting_between,
)

__all__ = [
    "get_lectures_starting_between",
    "get_active_students_for_courses",
]
