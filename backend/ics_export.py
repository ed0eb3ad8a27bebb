"""
Export of planning events to an iCalendar document.
"""

from datetime import datetime, timedelta
from typing import Iterable

import pytz
from icalendar import Calendar as ICalCalendar, Event as ICalEvent

from .event_model import Event, EventStatus
from .permissions import ROLE_ORDER
from .timezone_utils import local_date


PRODID = '-//CLAS Planning//planning//'

_STATUS_MAP = {
    EventStatus.CONFIRMED: 'CONFIRMED',
    EventStatus.PENDING: 'TENTATIVE',
    EventStatus.CANCELLED: 'CANCELLED',
}


def event_to_ical(event: Event) -> ICalEvent:
    ical_event = ICalEvent()
    ical_event.add('uid', f"{event.id}@clas-planning")
    ical_event.add('summary', event.title)
    ical_event.add('dtstamp', event.updated_at or datetime.now(pytz.UTC))

    if event.description:
        ical_event.add('description', event.description)
    if event.location:
        ical_event.add('location', event.location)

    if event.all_day:
        # DTEND of an all-day event is exclusive
        ical_event.add('dtstart', local_date(event.start_time))
        ical_event.add('dtend', local_date(event.end_time) + timedelta(days=1))
    else:
        ical_event.add('dtstart', event.start_time)
        ical_event.add('dtend', event.end_time)

    roles = [role.value for role in ROLE_ORDER if role in event.target_roles]
    ical_event.add('categories', roles)
    ical_event.add('x-clas-target-roles', ",".join(roles))
    ical_event.add('status', _STATUS_MAP[event.status])
    return ical_event


def export_events(events: Iterable[Event], calendar_name: str = "CLAS Planning") -> bytes:
    """Serialize events as a VCALENDAR document."""
    vcal = ICalCalendar()
    vcal.add('prodid', PRODID)
    vcal.add('version', '2.0')
    vcal.add('x-wr-calname', calendar_name)
    for event in events:
        vcal.add_component(event_to_ical(event))
    return vcal.to_ical()


def export_to_file(events: Iterable[Event], path, calendar_name: str = "CLAS Planning"):
    with open(path, 'wb') as f:
        f.write(export_events(events, calendar_name))
