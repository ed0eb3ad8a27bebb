"""
Column packing for one day's segments.

Segments that overlap in time are placed side by side. Placement is a
first-fit scan over columns in start order, so the same input always gives
the same layout.
"""

from dataclasses import dataclass
from typing import Sequence

from .event_model import EventSegment


@dataclass(frozen=True)
class ColumnPlacement:
    """Horizontal placement of a segment inside its day column, in percent."""
    width: float
    left: float
    column: int
    column_count: int


def segments_overlap(a: EventSegment, b: EventSegment) -> bool:
    """Half-open overlap test; a segment ending when another starts does not overlap it."""
    return a.segment_start < b.segment_end and b.segment_start < a.segment_end


def pack_columns(segments: Sequence[EventSegment]) -> list[list[EventSegment]]:
    """Assign segments to columns, opening a new column only when none fits."""
    # sorted() is stable, so ties keep input order
    ordered = sorted(segments, key=lambda s: s.segment_start)
    columns: list[list[EventSegment]] = []

    for segment in ordered:
        for column in columns:
            if not any(segments_overlap(segment, placed) for placed in column):
                column.append(segment)
                break
        else:
            columns.append([segment])

    return columns


def calculate_event_layout(segments: Sequence[EventSegment]) -> dict[str, ColumnPlacement]:
    """
    Compute width and left offset for each segment of a single day.

    Every segment of the day shares the same width, `100 / column_count`.

    Returns:
        Mapping segment id -> ColumnPlacement. Empty for an empty day.
    """
    columns = pack_columns(segments)
    if not columns:
        return {}

    column_count = len(columns)
    width = 100.0 / column_count
    layout = {}
    for index, column in enumerate(columns):
        for segment in column:
            layout[segment.id] = ColumnPlacement(
                width=width,
                left=index * width,
                column=index,
                column_count=column_count,
            )
    return layout


def max_concurrency(segments: Sequence[EventSegment]) -> int:
    """
    Largest number of segments that pairwise overlap at one instant.

    Uses the same rule as `segments_overlap`: a zero-length segment counts
    against the segments strictly around its instant, and a non-empty day
    always needs at least one column.
    """
    if not segments:
        return 0

    # At one instant: ends, then zero-length segments, then starts
    END, POINT, START = 0, 1, 2
    points = []
    for segment in segments:
        if segment.segment_end > segment.segment_start:
            points.append((segment.segment_start, START))
            points.append((segment.segment_end, END))
        else:
            points.append((segment.segment_start, POINT))
    points.sort(key=lambda p: (p[0], p[1]))

    active = 0
    peak = 1
    for _, kind in points:
        if kind == END:
            active -= 1
        elif kind == START:
            active += 1
            peak = max(peak, active)
        else:
            peak = max(peak, active + 1)
    return peak
