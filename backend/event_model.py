"""
Planning event data model.

`Event` is an immutable snapshot of one row of the hosted `events` table.
`EventSegment` is the portion of an event that falls within one calendar
day; segments are rebuilt on every render and never persisted.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional


class InvalidEventError(ValueError):
    """Raised when an event record cannot be used (bad fields or time order)."""


class TargetRole(str, Enum):
    ANIMATOR = "animator"
    COORDINATOR = "coordinator"
    DIRECTOR = "director"


ALL_TARGET_ROLES = frozenset(TargetRole)


class AccountType(str, Enum):
    ADMIN = "admin"
    COORDINATOR = "coordinator"
    DIRECTOR = "director"
    ANIMATOR = "animator"


class EventStatus(str, Enum):
    CONFIRMED = "confirmed"
    PENDING = "pending"
    CANCELLED = "cancelled"


class OwnerType(str, Enum):
    PERSONAL = "personal"
    CLAS = "clas"


@dataclass(frozen=True)
class Actor:
    """The signed-in user looking at the planning."""
    role: AccountType
    user_id: str


@dataclass(frozen=True)
class Participant:
    """A profile registered on an event."""
    profile_id: str
    email: str = ""
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    @property
    def display_name(self) -> str:
        name = " ".join(part for part in (self.first_name, self.last_name) if part)
        return name or self.email


@dataclass(frozen=True)
class Event:
    """
    A calendar event as supplied by the data-access layer.

    `target_roles` is never empty. The recurrence fields are carried through
    unchanged; nothing expands them.
    """
    id: str
    title: str
    start_time: datetime
    end_time: datetime
    target_roles: frozenset = field(default_factory=lambda: frozenset({TargetRole.ANIMATOR}))
    description: Optional[str] = None
    location: Optional[str] = None
    all_day: bool = False
    status: EventStatus = EventStatus.CONFIRMED
    owner_type: OwnerType = OwnerType.PERSONAL
    owner_id: Optional[str] = None
    created_by: Optional[str] = None
    recurrence_rule: Optional[dict] = None
    recurrence_parent_id: Optional[str] = None
    recurrence_exception: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        roles = frozenset(TargetRole(r) for r in self.target_roles)
        if not roles:
            raise InvalidEventError(f"Event {self.id} has no target roles")
        object.__setattr__(self, 'target_roles', roles)

    @property
    def duration(self) -> timedelta:
        return self.end_time - self.start_time

    def overlaps(self, other: 'Event') -> bool:
        """Half-open interval overlap; touching events do not overlap."""
        return self.start_time < other.end_time and other.start_time < self.end_time

    def matches_text(self, query: str) -> bool:
        """Case-insensitive substring match on title, description and location."""
        needle = query.lower()
        return any(
            needle in text.lower()
            for text in (self.title, self.description, self.location)
            if text
        )


@dataclass(frozen=True)
class EventSegment:
    """The part of an event that falls within a single calendar day."""
    event: Event
    segment_start: datetime
    segment_end: datetime
    is_first_segment: bool
    is_last_segment: bool
    day_index: int

    @property
    def id(self) -> str:
        # "-segment-" keeps synthesized ids out of the real event id space
        return f"{self.event.id}-segment-{self.day_index}"

    @property
    def original_event_id(self) -> str:
        return self.event.id

    @property
    def title(self) -> str:
        return self.event.title

    @property
    def target_roles(self) -> frozenset:
        return self.event.target_roles

    @property
    def all_day(self) -> bool:
        return self.event.all_day


def validate_time_order(event: Event) -> Event:
    """Reject an event that ends before it starts."""
    if event.end_time < event.start_time:
        raise InvalidEventError(
            f"Event {event.id} ends before it starts "
            f"({event.end_time.isoformat()} < {event.start_time.isoformat()})"
        )
    return event


def _parse_timestamp(value) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    text = str(value)
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    try:
        return datetime.fromisoformat(text)
    except ValueError as e:
        raise InvalidEventError(f"Invalid timestamp: {value!r}") from e


def event_from_record(record: dict) -> Event:
    """Build an Event from a JSON row of the `events` table."""
    try:
        event_id = str(record['id'])
        start = _parse_timestamp(record['start_time'])
        end = _parse_timestamp(record['end_time'])
    except KeyError as e:
        raise InvalidEventError(f"Event record missing field {e.args[0]}") from e

    if start.tzinfo is None or end.tzinfo is None:
        raise InvalidEventError(f"Event {event_id} has naive timestamps")

    owner_id = record.get('owner_id') or record.get('clas_id') or record.get('created_by')

    try:
        if record.get('owner_type'):
            owner_type = OwnerType(record['owner_type'])
        else:
            owner_type = OwnerType.CLAS if record.get('clas_id') else OwnerType.PERSONAL
        return Event(
            id=event_id,
            title=record.get('title') or '',
            description=record.get('description'),
            location=record.get('location'),
            start_time=start,
            end_time=end,
            all_day=bool(record.get('all_day', False)),
            target_roles=frozenset(record.get('target_roles') or ()),
            status=EventStatus(record.get('status') or EventStatus.CONFIRMED.value),
            owner_type=owner_type,
            owner_id=owner_id,
            created_by=record.get('created_by'),
            recurrence_rule=record.get('recurrence_rule'),
            recurrence_parent_id=record.get('recurrence_parent_id'),
            recurrence_exception=bool(record.get('recurrence_exception', False)),
            created_at=_parse_timestamp(record.get('created_at')),
            updated_at=_parse_timestamp(record.get('updated_at')),
        )
    except ValueError as e:
        if isinstance(e, InvalidEventError):
            raise
        raise InvalidEventError(f"Event {event_id}: {e}") from e


def event_to_record(event: Event) -> dict:
    """Serialize an Event to the JSON shape the REST API accepts."""
    record = {
        'id': event.id,
        'title': event.title,
        'description': event.description,
        'location': event.location,
        'start_time': event.start_time.isoformat(),
        'end_time': event.end_time.isoformat(),
        'all_day': event.all_day,
        'status': event.status.value,
        'target_roles': sorted(role.value for role in event.target_roles),
        'owner_type': event.owner_type.value,
        'owner_id': event.owner_id,
        'created_by': event.created_by,
        'recurrence_rule': event.recurrence_rule,
        'recurrence_parent_id': event.recurrence_parent_id,
        'recurrence_exception': event.recurrence_exception,
    }
    if event.owner_type == OwnerType.CLAS:
        record['clas_id'] = event.owner_id
    return record
