"""
Timezone helpers for lecture times.

Lecture times are stored in UTC; reminder messages show them in the
campus timezone configured by LECTURE_TIMEZONE.
"""

from datetime import datetime

import pytz


def ensure_utc(dt: datetime) -> datetime:
    """Return dt as an aware UTC datetime (naive datetimes are treated as UTC)."""
    if dt.tzinfo is None:
        return pytz.UTC.localize(dt)
    return dt.astimezone(pytz.UTC)


def utc_now() -> datetime:
    return datetime.now(pytz.UTC)


def _offset_label(local_dt: datetime) -> str:
    offset = local_dt.strftime("%z")  # "+0700" or "-0500"
    if not offset:
        return "UTC"
    hours = int(offset[:3])
    minutes = int(offset[0] + offset[3:5])
    if minutes == 0:
        return f"UTC{hours:+d}" if hours != 0 else "UTC"
    return f"UTC{hours:+d}:{abs(minutes):02d}"


def _to_local(utc_dt: datetime, tz_name: str) -> datetime:
    utc_dt = ensure_utc(utc_dt)
    try:
        return utc_dt.astimezone(pytz.timezone(tz_name))
    except pytz.UnknownTimeZoneError:
        return utc_dt


def format_lecture_time(utc_dt: datetime, tz_name: str) -> str:
    """
    Format a lecture start in the given timezone with an explicit offset.

    Args:
        utc_dt: Datetime in UTC (naive datetimes treated as UTC)
        tz_name: Timezone string (e.g., "Africa/Lagos"); unknown names fall back to UTC

    Returns:
        Formatted string like "Wednesday, January 10 at 3:00 PM (UTC+1)"
    """
    local_dt = _to_local(utc_dt, tz_name)
    date_str = local_dt.strftime("%A, %B %d").replace(" 0", " ")
    time_str = local_dt.strftime("%I:%M %p").lstrip("0")  # "3:00 PM" not "03:00 PM"
    return f"{date_str} at {time_str} ({_offset_label(local_dt)})"


def format_clock_time(utc_dt: datetime, tz_name: str) -> str:
    """Short form used in subjects, e.g. "3:00 PM"."""
    local_dt = _to_local(utc_dt, tz_name)
    return local_dt.strftime("%I:%M %p").lstrip("0")
