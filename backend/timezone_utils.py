"""
Timezone utilities for CLAS Planning.

Provides unified timezone conversion functions for the entire application.
Event instants arrive timezone-aware from the backend and are converted to
the configured local zone before any calendar-day reasoning.
"""

from datetime import datetime, date, time as dt_time
import pytz


# Default timezone - can be overridden by config
_local_timezone_name: str = "Europe/Paris"


def set_timezone(timezone_name: str):
    """Set the local timezone for the application."""
    global _local_timezone_name
    # Fail early on typos rather than silently drifting to UTC
    pytz.timezone(timezone_name)
    _local_timezone_name = timezone_name


def get_timezone_name() -> str:
    return _local_timezone_name


def get_local_timezone():
    """
    Get the local timezone as a pytz timezone object.

    Returns:
        pytz timezone object for the configured local timezone.
    """
    return pytz.timezone(_local_timezone_name)


def to_local_datetime(dt: datetime) -> datetime:
    """
    Convert an aware datetime to the local timezone.

    Naive datetimes are interpreted as local wall-clock time.
    """
    local_tz = get_local_timezone()
    if dt.tzinfo is None:
        return local_tz.localize(dt)
    return local_tz.normalize(dt.astimezone(local_tz))


def to_utc_datetime(dt: datetime) -> datetime:
    """
    Convert a datetime to UTC.

    Args:
        dt: A datetime object; naive values are assumed to be local time.

    Returns:
        A timezone-aware datetime in UTC.
    """
    return to_local_datetime(dt).astimezone(pytz.UTC)


def localize_naive(dt: datetime) -> datetime:
    """Attach the local timezone to a naive wall-clock datetime."""
    return get_local_timezone().localize(dt)


def localize_day_time(day: date, at: dt_time) -> datetime:
    """Local aware datetime for a wall-clock time on a calendar day."""
    return localize_naive(datetime.combine(day, at))


def local_date(dt: datetime) -> date:
    """Calendar day of an instant in the local timezone."""
    return to_local_datetime(dt).date()


def to_local_hour(dt: datetime) -> float:
    """
    Convert datetime to local timezone and return hour as float.

    Args:
        dt: A datetime object.

    Returns:
        Hour as float (e.g., 14.5 for 14:30).
    """
    local_dt = to_local_datetime(dt)
    return local_dt.hour + local_dt.minute / 60.0


def now_local() -> datetime:
    return datetime.now(pytz.UTC).astimezone(get_local_timezone())
