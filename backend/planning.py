"""
Planning session controller.

Holds the state of one planning screen (current view, current date, owner
context, role filter) and turns it into render models and dialog requests.
Preferences come in as a `PlanningPreferences` value and are read back by
whoever persists them; the controller itself never touches storage.
"""

from dataclasses import dataclass, replace
from datetime import date, datetime, time as dt_time
from enum import Enum
from typing import Iterable, Optional, Union

from .date_utils import (
    add_days, add_months, add_weeks, end_of_day, month_grid_days,
    start_of_day, week_days,
)
from .debug_log import debug_print
from .event_model import Actor, Event, OwnerType, TargetRole
from .permissions import EventPermissions, can_view, event_permissions
from .timezone_utils import localize_day_time, to_local_datetime
from .views import (
    AgendaRange, AgendaViewModel, DayViewModel, MonthViewModel, RenderContext,
    ViewType, WeekViewModel, build_agenda_view, build_day_view,
    build_month_view, build_week_view, day_events,
)


def _debug_print(msg: str):
    debug_print("PLANNING", msg)


@dataclass(frozen=True)
class FilterContext:
    """Whose calendar is shown: a personal user or one CLAS center."""
    type: OwnerType
    id: str

    def to_dict(self) -> dict:
        return {'type': self.type.value, 'id': self.id}

    @classmethod
    def from_dict(cls, data: dict) -> 'FilterContext':
        return cls(type=OwnerType(data['type']), id=str(data['id']))

    def matches(self, event: Event) -> bool:
        return event.owner_type == self.type and event.owner_id == self.id


@dataclass(frozen=True)
class PlanningPreferences:
    view: ViewType = ViewType.WEEK
    filter_context: Optional[FilterContext] = None
    role_filter: frozenset = frozenset()  # empty means every role
    agenda_range: AgendaRange = AgendaRange.DAYS_30


class DialogMode(Enum):
    CREATE = "create"
    EDIT = "edit"
    VIEW = "view"  # read-only detail panel


@dataclass(frozen=True)
class EventDialogRequest:
    mode: DialogMode
    event: Optional[Event] = None
    initial_start: Optional[datetime] = None
    permissions: Optional[EventPermissions] = None

    @property
    def read_only(self) -> bool:
        return self.mode == DialogMode.VIEW

    @property
    def denied_reason(self) -> Optional[str]:
        return self.permissions.denied_reason if self.permissions else None


@dataclass(frozen=True)
class FetchRange:
    """Instants the data-access layer should load; `end` None means unbounded."""
    start: datetime
    end: Optional[datetime]


RenderModel = Union[DayViewModel, WeekViewModel, MonthViewModel, AgendaViewModel]


class PlanningController:
    """
    State of the planning screen.

    All render output is recomputed from the current event snapshot on each
    call to `render`; nothing is cached between passes.
    """

    def __init__(self, context: RenderContext, today: date,
                 preferences: Optional[PlanningPreferences] = None):
        self.context = context
        self.current_date = today
        self.preferences = preferences or PlanningPreferences()
        self.agenda_query = ""
        self._events: tuple = ()

    # --- state ---

    @property
    def view(self) -> ViewType:
        return self.preferences.view

    @property
    def actor(self) -> Optional[Actor]:
        return self.context.actor

    def set_events(self, events: Iterable[Event]):
        """Replace the event snapshot."""
        self._events = tuple(events)
        _debug_print(f"Snapshot now holds {len(self._events)} events")

    @property
    def events(self) -> tuple:
        return self._events

    def set_view(self, view: ViewType):
        self.preferences = replace(self.preferences, view=ViewType(view))

    def set_filter_context(self, filter_context: Optional[FilterContext]):
        self.preferences = replace(self.preferences, filter_context=filter_context)

    def set_role_filter(self, roles: Iterable[TargetRole]):
        self.preferences = replace(self.preferences, role_filter=frozenset(TargetRole(r) for r in roles))

    def set_agenda_range(self, agenda_range: AgendaRange):
        self.preferences = replace(self.preferences, agenda_range=AgendaRange(agenda_range))

    def set_agenda_query(self, query: str):
        self.agenda_query = query

    def visible_events(self) -> list[Event]:
        """Events of the snapshot that pass the owner, role and visibility filters."""
        prefs = self.preferences
        visible = []
        for event in self._events:
            if prefs.filter_context is not None and not prefs.filter_context.matches(event):
                continue
            if prefs.role_filter and not (event.target_roles & prefs.role_filter):
                continue
            if not can_view(event, self.actor):
                continue
            visible.append(event)
        return visible

    # --- navigation ---

    def _step(self, direction: int):
        if self.view == ViewType.DAY:
            self.current_date = add_days(self.current_date, direction)
        elif self.view == ViewType.MONTH:
            self.current_date = add_months(self.current_date, direction)
        else:
            self.current_date = add_weeks(self.current_date, direction)

    def go_previous(self):
        self._step(-1)

    def go_next(self):
        self._step(1)

    def go_today(self, today: date):
        self.current_date = today

    def go_to_date(self, day: date):
        self.current_date = day

    def fetch_range(self, today: Optional[date] = None) -> FetchRange:
        """Instant range the current view needs loaded."""
        if self.view == ViewType.DAY:
            first = last = self.current_date
        elif self.view == ViewType.MONTH:
            grid = month_grid_days(self.current_date)
            first, last = grid[0], grid[-1]
        elif self.view == ViewType.AGENDA:
            return FetchRange(start=start_of_day(today or self.current_date), end=None)
        else:
            # Full week even when only three days are drawn
            days = week_days(self.current_date)
            first, last = days[0], days[-1]
        return FetchRange(start=start_of_day(first), end=end_of_day(last))

    # --- rendering ---

    def render(self, viewport_width: int, now: datetime) -> RenderModel:
        """Render model of the current view for the current snapshot."""
        events = self.visible_events()
        today = to_local_datetime(now).date()

        if self.view == ViewType.DAY:
            return build_day_view(events, self.current_date, now, self.context)
        elif self.view == ViewType.MONTH:
            return build_month_view(events, self.current_date, today, self.context)
        elif self.view == ViewType.AGENDA:
            return build_agenda_view(events, today, self.preferences.agenda_range,
                                     self.agenda_query, self.context)
        return build_week_view(events, self.current_date, now, viewport_width, self.context)

    def day_events(self, day: date) -> list[Event]:
        """Visible events intersecting `day`, for the month day dialog."""
        return day_events(self.visible_events(), day)

    # --- interaction ---

    def on_event_click(self, event: Event) -> EventDialogRequest:
        permissions = event_permissions(event, self.actor, self.context.labels)
        mode = DialogMode.EDIT if permissions.can_edit else DialogMode.VIEW
        if mode == DialogMode.VIEW:
            _debug_print(f"Event {event.id} opened read-only: {permissions.denied_reason}")
        return EventDialogRequest(mode=mode, event=event, permissions=permissions)

    def on_time_slot_click(self, day: date, hour: int) -> EventDialogRequest:
        return EventDialogRequest(
            mode=DialogMode.CREATE,
            initial_start=localize_day_time(day, dt_time(hour=hour)),
        )

    def on_day_click(self, day: date) -> EventDialogRequest:
        return EventDialogRequest(mode=DialogMode.CREATE, initial_start=start_of_day(day))

    def on_create_event(self, now: datetime) -> EventDialogRequest:
        return EventDialogRequest(mode=DialogMode.CREATE, initial_start=to_local_datetime(now))
