"""
Render models for the Day, Week, Month and Agenda views.

Each builder is a pure function of the event snapshot, the displayed date
and the render context; the GUI widgets only draw what they return.
Nothing here mutates the events it is given.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional, Sequence

from .config import Config, ColorsConfig, LabelsConfig, LayoutConfig, LocalizationConfig
from .date_utils import (
    add_days, add_months, as_local_day, day_key, format_date_long,
    format_time, format_time_range, is_weekend, month_grid_days, week_days,
)
from .event_index import EventIndex
from .event_model import Actor, Event, EventSegment
from .geometry import EventPosition, TimeAxis, day_axis, now_indicator_offset, position_on_axis, week_axis
from .overlap_layout import ColumnPlacement, calculate_event_layout
from .permissions import can_edit, display_color, role_label
from .segments import segments_for_day, split_events


class ViewType(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    AGENDA = "agenda"


class BadgeTier(str, Enum):
    """Month cell badge variant by event count."""
    NONE = "none"
    SECONDARY = "secondary"      # 1 event
    DEFAULT = "default"          # 2-3 events
    DESTRUCTIVE = "destructive"  # 4+ events

    @classmethod
    def for_count(cls, count: int) -> 'BadgeTier':
        if count <= 0:
            return cls.NONE
        if count == 1:
            return cls.SECONDARY
        if count <= 3:
            return cls.DEFAULT
        return cls.DESTRUCTIVE

    @property
    def label(self) -> str:
        return {
            BadgeTier.NONE: "",
            BadgeTier.SECONDARY: "1",
            BadgeTier.DEFAULT: "2-3",
            BadgeTier.DESTRUCTIVE: "4+",
        }[self]


class AgendaRange(str, Enum):
    DAYS_7 = "7d"
    DAYS_30 = "30d"
    MONTHS_3 = "3m"
    ALL = "all"


@dataclass(frozen=True)
class RenderContext:
    """Who is looking and how things are drawn."""
    actor: Optional[Actor] = None
    colors: ColorsConfig = field(default_factory=ColorsConfig)
    labels: LabelsConfig = field(default_factory=LabelsConfig)
    layout: LayoutConfig = field(default_factory=LayoutConfig)
    localization: LocalizationConfig = field(default_factory=LocalizationConfig)

    @classmethod
    def from_config(cls, config: Config, actor: Optional[Actor]) -> 'RenderContext':
        return cls(
            actor=actor,
            colors=config.colors,
            labels=config.labels,
            layout=config.layout,
            localization=config.localization,
        )


# --- Day / Week ---

@dataclass(frozen=True)
class PlacedSegment:
    """A segment ready to draw: geometry, column and appearance."""
    segment: EventSegment
    position: EventPosition
    placement: ColumnPlacement
    color: str
    time_label: str
    editable: bool

    @property
    def event(self) -> Event:
        return self.segment.event


@dataclass(frozen=True)
class DayColumn:
    day: date
    is_today: bool
    items: tuple
    now_offset: Optional[float] = None

    @property
    def is_empty(self) -> bool:
        return not self.items


@dataclass(frozen=True)
class DayViewModel:
    day: date
    title: str
    axis: TimeAxis
    column: DayColumn

    @property
    def is_empty(self) -> bool:
        return self.column.is_empty


@dataclass(frozen=True)
class WeekViewModel:
    days: tuple
    axis: TimeAxis
    columns: tuple
    compact: bool

    @property
    def is_empty(self) -> bool:
        return all(column.is_empty for column in self.columns)


def segment_time_label(segment: EventSegment, labels: LabelsConfig) -> str:
    """Time text for one day's portion of an event."""
    event = segment.event
    if event.all_day:
        return labels.all_day
    if segment.is_first_segment and segment.is_last_segment:
        return format_time_range(event.start_time, event.end_time)
    if segment.is_first_segment:
        return labels.since.format(format_time(event.start_time))
    if segment.is_last_segment:
        return labels.until.format(format_time(event.end_time))
    return labels.all_day


def _build_column(day: date, day_segments: Sequence[EventSegment], axis: TimeAxis,
                  now: datetime, context: RenderContext) -> DayColumn:
    layout = calculate_event_layout(day_segments)
    items = []
    for segment in sorted(day_segments, key=lambda s: s.segment_start):
        position = position_on_axis(segment, axis)
        if position is None:
            continue
        items.append(PlacedSegment(
            segment=segment,
            position=position,
            placement=layout[segment.id],
            color=display_color(segment.target_roles, context.colors),
            time_label=segment_time_label(segment, context.labels),
            editable=can_edit(segment.event, context.actor),
        ))
    return DayColumn(
        day=day,
        is_today=day == as_local_day(now),
        items=tuple(items),
        now_offset=now_indicator_offset(day, now, axis),
    )


def _build_columns(events: Sequence[Event], days: Sequence[date], axis: TimeAxis,
                   now: datetime, context: RenderContext) -> tuple:
    segments = split_events(events, days)
    return tuple(
        _build_column(day, segments_for_day(segments, day), axis, now, context)
        for day in days
    )


def build_day_view(events: Sequence[Event], current_date: date, now: datetime,
                   context: Optional[RenderContext] = None) -> DayViewModel:
    """Single-day grid over 24 hours, positions in percent."""
    context = context or RenderContext()
    axis = day_axis(context.layout)
    (column,) = _build_columns(events, [current_date], axis, now, context)
    return DayViewModel(
        day=current_date,
        title=format_date_long(current_date, context.localization),
        axis=axis,
        column=column,
    )


def week_window(current_date: date, viewport_width: int, breakpoint: int = 640) -> list[date]:
    """
    Days shown by the week grid.

    Narrow viewports get three days centered on `current_date`, shifted so
    the slice stays inside the week and always has three days.
    """
    all_days = week_days(current_date)
    if viewport_width >= breakpoint:
        return all_days

    center = all_days.index(current_date) if current_date in all_days else 3
    start = max(0, center - 1)
    end = min(len(all_days), start + 3)
    if end - start < 3:
        start = max(0, end - 3)
    return all_days[start:end]


def build_week_view(events: Sequence[Event], current_date: date, now: datetime,
                    viewport_width: int = 1024,
                    context: Optional[RenderContext] = None) -> WeekViewModel:
    """Week grid in pixels; three days wide on narrow viewports."""
    context = context or RenderContext()
    axis = week_axis(context.layout)
    days = week_window(current_date, viewport_width, context.layout.mobile_breakpoint)
    return WeekViewModel(
        days=tuple(days),
        axis=axis,
        columns=_build_columns(events, days, axis, now, context),
        compact=len(days) < 7,
    )


# --- Month ---

@dataclass(frozen=True)
class MonthCell:
    day: date
    in_current_month: bool
    is_today: bool
    is_weekend: bool
    count: int

    @property
    def tier(self) -> BadgeTier:
        return BadgeTier.for_count(self.count)


@dataclass(frozen=True)
class MonthViewModel:
    month: date
    title: str
    cells: tuple

    @property
    def weeks(self) -> list[tuple]:
        return [self.cells[i:i + 7] for i in range(0, len(self.cells), 7)]

    @property
    def is_empty(self) -> bool:
        return all(cell.count == 0 for cell in self.cells)

    def cell_for(self, day: date) -> Optional[MonthCell]:
        for cell in self.cells:
            if cell.day == day:
                return cell
        return None


def build_month_view(events: Sequence[Event], current_date: date, today: date,
                     context: Optional[RenderContext] = None) -> MonthViewModel:
    """Whole-week grid for the month of `current_date` with per-day event counts."""
    context = context or RenderContext()
    index = EventIndex(events)
    cells = tuple(
        MonthCell(
            day=day,
            in_current_month=(day.year, day.month) == (current_date.year, current_date.month),
            is_today=day == today,
            is_weekend=is_weekend(day),
            count=index.count_on_day(day),
        )
        for day in month_grid_days(current_date)
    )
    title = f"{context.localization.get_month_name(current_date.month)} {current_date.year}"
    return MonthViewModel(month=current_date.replace(day=1), title=title, cells=cells)


def day_events(events: Sequence[Event], day: date) -> list[Event]:
    """Events intersecting `day`, by start time, for the day-events dialog."""
    return EventIndex(events).events_on_day(day)


# --- Agenda ---

@dataclass(frozen=True)
class AgendaItem:
    event: Event
    color: str
    time_label: str
    roles_label: str
    editable: bool


@dataclass(frozen=True)
class AgendaGroup:
    day: date
    key: str
    header: str
    items: tuple


@dataclass(frozen=True)
class AgendaViewModel:
    range: AgendaRange
    query: str
    groups: tuple

    @property
    def is_empty(self) -> bool:
        return not self.groups

    @property
    def event_count(self) -> int:
        return sum(len(group.items) for group in self.groups)


def in_agenda_range(event: Event, today: date, agenda_range: AgendaRange) -> bool:
    """Whether the event's local start day falls in the lookahead window from today."""
    event_day = as_local_day(event.start_time)
    diff = (event_day - today).days
    if agenda_range == AgendaRange.DAYS_7:
        return 0 <= diff < 7
    if agenda_range == AgendaRange.DAYS_30:
        return 0 <= diff < 30
    if agenda_range == AgendaRange.MONTHS_3:
        return today <= event_day < add_months(today, 3)
    return event_day >= today


def agenda_header(day: date, today: date, context: RenderContext) -> str:
    labels = context.labels
    if day == today:
        return labels.today
    if day == add_days(today, 1):
        return labels.tomorrow
    if day == add_days(today, -1):
        return labels.yesterday
    return format_date_long(day, context.localization)


def build_agenda_view(events: Sequence[Event], today: date,
                      agenda_range: AgendaRange = AgendaRange.DAYS_30,
                      query: str = "",
                      context: Optional[RenderContext] = None) -> AgendaViewModel:
    """
    Flat list of upcoming events grouped by local start day.

    One row per event; multi-day events are listed once, under their
    start day.
    """
    context = context or RenderContext()
    query = query.strip()

    matching = [
        e for e in events
        if in_agenda_range(e, today, agenda_range) and (not query or e.matches_text(query))
    ]

    grouped: dict[str, list[Event]] = {}
    for event in matching:
        grouped.setdefault(day_key(event.start_time), []).append(event)

    groups = []
    for key in sorted(grouped):
        day_list = sorted(grouped[key], key=lambda e: e.start_time)
        day = date.fromisoformat(key)
        groups.append(AgendaGroup(
            day=day,
            key=key,
            header=agenda_header(day, today, context),
            items=tuple(
                AgendaItem(
                    event=e,
                    color=display_color(e.target_roles, context.colors),
                    time_label=(context.labels.all_day if e.all_day
                                else format_time_range(e.start_time, e.end_time)),
                    roles_label=role_label(e.target_roles, context.labels),
                    editable=can_edit(e, context.actor),
                )
                for e in day_list
            ),
        ))

    return AgendaViewModel(range=agenda_range, query=query, groups=tuple(groups))
