"""
Per-day clipping of events.

An event "Fri 22:00 - Sat 02:00" seen through a Monday-to-Sunday window
yields two segments:
- Friday: 22:00 to the end of Friday (not the last segment)
- Saturday: midnight to 02:00 (not the first segment)

Day bounds are inclusive and computed in the local timezone. Nothing here
validates the event; an event ending before it starts produces inverted
segments and is left to the data-access layer to reject.
"""

from datetime import date
from typing import Iterable, Sequence

from .date_utils import start_of_day, end_of_day, is_same_day
from .event_model import Event, EventSegment
from .timezone_utils import to_local_datetime


def split_event_into_segments(event: Event, days: Sequence[date]) -> list[EventSegment]:
    """
    Clip an event into one segment per window day it intersects.

    Args:
        event: The event to clip.
        days: Ordered calendar days of the visible window. A segment's
            `day_index` is the position of its day in this sequence.

    Returns:
        Segments in window order; empty when the event misses the window.
    """
    event_start = to_local_datetime(event.start_time)
    event_end = to_local_datetime(event.end_time)
    segments = []

    for day_index, day in enumerate(days):
        day_start = start_of_day(day)
        day_end = end_of_day(day)

        if event_start <= day_end and event_end >= day_start:
            segments.append(EventSegment(
                event=event,
                segment_start=max(event_start, day_start),
                segment_end=min(event_end, day_end),
                is_first_segment=is_same_day(event_start, day),
                is_last_segment=is_same_day(event_end, day),
                day_index=day_index,
            ))

    return segments


def split_events(events: Iterable[Event], days: Sequence[date]) -> list[EventSegment]:
    """Segments of every event over the window, event by event."""
    segments = []
    for event in events:
        segments.extend(split_event_into_segments(event, days))
    return segments


def segments_for_day(segments: Iterable[EventSegment], day: date) -> list[EventSegment]:
    """Segments whose clipped start falls on `day`."""
    return [s for s in segments if is_same_day(s.segment_start, day)]
