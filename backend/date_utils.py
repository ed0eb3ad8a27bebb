"""
Calendar-day arithmetic and display formatting.

Days are plain `date` objects; instants are timezone-aware datetimes.
Day boundaries are computed in the configured local timezone, with the
end of a day at 23:59:59.999999 (inclusive).
"""

import calendar
import math
from datetime import datetime, date, time as dt_time, timedelta
from typing import Optional

from .config import LocalizationConfig
from .timezone_utils import localize_day_time, to_local_datetime


_DEFAULT_LOCALIZATION = LocalizationConfig()


def start_of_day(day: date) -> datetime:
    """Local midnight at the start of `day`."""
    return localize_day_time(day, dt_time.min)


def end_of_day(day: date) -> datetime:
    """Last representable local instant of `day`."""
    return localize_day_time(day, dt_time.max)


def as_local_day(value) -> date:
    """Calendar day of a date or an instant (converted to local time)."""
    if isinstance(value, datetime):
        return to_local_datetime(value).date()
    return value


def is_same_day(a, b) -> bool:
    return as_local_day(a) == as_local_day(b)


def add_days(day: date, days: int) -> date:
    return day + timedelta(days=days)


def add_weeks(day: date, weeks: int) -> date:
    return add_days(day, weeks * 7)


def add_months(day: date, months: int) -> date:
    """Shift by whole months, clamping the day to the target month's length."""
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last))


def start_of_week(day: date) -> date:
    """Monday of the week containing `day`."""
    return day - timedelta(days=day.weekday())


def end_of_week(day: date) -> date:
    return add_days(start_of_week(day), 6)


def week_days(day: date) -> list[date]:
    """The seven days Monday to Sunday of the week containing `day`."""
    start = start_of_week(day)
    return [start + timedelta(days=i) for i in range(7)]


def start_of_month(day: date) -> date:
    return day.replace(day=1)


def end_of_month(day: date) -> date:
    return day.replace(day=calendar.monthrange(day.year, day.month)[1])


def month_grid_days(day: date) -> list[date]:
    """
    All days displayed by a month grid.

    Starts on the Monday on or before the 1st and ends on the Sunday on or
    after the last day of the month, so the result is whole weeks.
    """
    first = start_of_week(start_of_month(day))
    last = end_of_week(end_of_month(day))
    return [first + timedelta(days=i) for i in range((last - first).days + 1)]


def is_weekend(day: date) -> bool:
    return as_local_day(day).weekday() >= 5


def days_between(a, b) -> int:
    """Whole days between two instants or dates, rounded up."""
    if isinstance(a, datetime) and isinstance(b, datetime):
        seconds = abs((b - a).total_seconds())
        return math.ceil(seconds / 86400)
    return abs((as_local_day(b) - as_local_day(a)).days)


def day_key(value) -> str:
    """Grouping key YYYY-MM-DD of the local calendar day."""
    return as_local_day(value).isoformat()


# --- formatting ---

def format_time(dt: datetime) -> str:
    return to_local_datetime(dt).strftime("%H:%M")


def format_time_range(start: datetime, end: datetime) -> str:
    return f"{format_time(start)} - {format_time(end)}"


def format_date_short(value) -> str:
    return as_local_day(value).strftime("%d/%m/%Y")


def format_date_long(value, localization: Optional[LocalizationConfig] = None) -> str:
    """e.g. 'Monday 15 January 2024' with configured names."""
    loc = localization or _DEFAULT_LOCALIZATION
    day = as_local_day(value)
    weekday = loc.get_day_name(day.weekday(), long=True)
    month = loc.get_month_name(day.month)
    return f"{weekday} {day.day} {month} {day.year}"


def format_month_title(day: date, localization: Optional[LocalizationConfig] = None) -> str:
    loc = localization or _DEFAULT_LOCALIZATION
    return f"{loc.get_month_name(day.month)} {day.year}"


def format_duration(start: datetime, end: datetime) -> str:
    """Duration as '45 min', '2h' or '2h 30min'."""
    minutes = math.floor((end - start).total_seconds() / 60)
    hours, mins = divmod(minutes, 60)
    if hours == 0:
        return f"{mins} min"
    if mins == 0:
        return f"{hours}h"
    return f"{hours}h {mins}min"
