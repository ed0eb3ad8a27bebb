"""
Projection of clock time onto the vertical axis of a time grid.

The week grid is measured in pixels (07:00-22:00 rows, 60 px per hour);
the day grid in percentages of a full-day container (00:00-23:00 rows,
100/24 % per hour). Both use the same formula.
"""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Optional

from .event_model import EventSegment
from .timezone_utils import to_local_datetime, to_local_hour


class Unit(Enum):
    PIXELS = "px"
    PERCENT = "%"


@dataclass(frozen=True)
class EventPosition:
    top: float
    height: float
    unit: Unit = Unit.PIXELS


@dataclass(frozen=True)
class TimeAxis:
    """Visible-hour window of a time grid; rows `start_hour`..`end_hour` inclusive."""
    start_hour: int
    end_hour: int
    unit_height: float
    min_height: float
    unit: Unit = Unit.PIXELS

    @property
    def total_height(self) -> float:
        return (self.end_hour + 1 - self.start_hour) * self.unit_height

    def hours(self) -> list[int]:
        return list(range(self.start_hour, self.end_hour + 1))


def week_axis(layout) -> TimeAxis:
    """Week grid axis from a LayoutConfig section."""
    return TimeAxis(
        start_hour=layout.start_hour,
        end_hour=layout.end_hour,
        unit_height=layout.hour_height,
        min_height=layout.min_event_height,
    )


def day_axis(layout) -> TimeAxis:
    """Day grid axis from a LayoutConfig section."""
    return TimeAxis(
        start_hour=0,
        end_hour=23,
        unit_height=100 / 24,
        min_height=layout.day_min_height_percent,
        unit=Unit.PERCENT,
    )


def get_event_position(segment: EventSegment, start_hour: int, end_hour: int,
                       unit_height: float, min_height: float,
                       unit: Unit = Unit.PIXELS) -> Optional[EventPosition]:
    """
    Map a segment onto the visible-hour window.

    Returns None when the segment lies wholly outside
    `[start_hour, end_hour + 1]`; callers skip such segments. Portions
    outside the window are clamped, and the height never drops below
    `min_height`.
    """
    seg_start = to_local_hour(segment.segment_start)
    seg_end = to_local_hour(segment.segment_end)

    if seg_end < start_hour:
        return None
    if seg_start > end_hour + 1:
        return None

    seg_start = max(start_hour, seg_start)
    seg_end = min(end_hour + 1, seg_end)

    top = (seg_start - start_hour) * unit_height
    height = max(min_height, (seg_end - seg_start) * unit_height)
    return EventPosition(top=top, height=height, unit=unit)


def position_on_axis(segment: EventSegment, axis: TimeAxis) -> Optional[EventPosition]:
    return get_event_position(segment, axis.start_hour, axis.end_hour,
                              axis.unit_height, axis.min_height, axis.unit)


def now_indicator_offset(day: date, now: datetime, axis: TimeAxis) -> Optional[float]:
    """
    Offset of the current-time line, or None.

    The line is only drawn on the column for today and only while the
    current time falls within the axis.
    """
    local_now = to_local_datetime(now)
    if local_now.date() != day:
        return None
    hour = to_local_hour(local_now)
    if hour < axis.start_hour or hour > axis.end_hour + 1:
        return None
    return (hour - axis.start_hour) * axis.unit_height
