import unittest
from datetime import date, datetime, time as dt_time

from icalendar import Calendar

from backend.event_model import Event, EventStatus, TargetRole
from backend.ics_export import event_to_ical, export_events
from backend.timezone_utils import localize_day_time, set_timezone


def _local(day: date, hour: int) -> datetime:
    return localize_day_time(day, dt_time(hour))


class TestIcsExport(unittest.TestCase):
    def setUp(self):
        set_timezone("Europe/Paris")
        self.day = date(2024, 1, 17)

    def test_calendar_document(self):
        events = [
            Event(id="a", title="Atelier", start_time=_local(self.day, 14), end_time=_local(self.day, 16),
                  location="Salle 2", target_roles=frozenset({TargetRole.DIRECTOR, TargetRole.ANIMATOR})),
            Event(id="b", title="Réunion", start_time=_local(self.day, 18), end_time=_local(self.day, 19),
                  status=EventStatus.PENDING),
        ]
        calendar = Calendar.from_ical(export_events(events, "Centre Nord"))

        self.assertEqual(str(calendar['x-wr-calname']), "Centre Nord")
        vevents = calendar.walk('VEVENT')
        self.assertEqual([str(v['summary']) for v in vevents], ["Atelier", "Réunion"])
        self.assertEqual(str(vevents[0]['uid']), "a@clas-planning")
        self.assertEqual(str(vevents[0]['location']), "Salle 2")
        self.assertIn("director", str(vevents[0]["x-clas-target-roles"]))
        self.assertEqual(str(vevents[1]['status']), "TENTATIVE")
        self.assertEqual(vevents[0].decoded('dtstart'), _local(self.day, 14))

    def test_all_day_event_uses_dates(self):
        event = Event(id="c", title="Sortie", start_time=_local(self.day, 0),
                      end_time=_local(date(2024, 1, 18), 23), all_day=True)
        vevent = event_to_ical(event)
        self.assertEqual(vevent.decoded('dtstart'), self.day)
        self.assertEqual(vevent.decoded('dtend'), date(2024, 1, 19))

    def test_empty_export(self):
        calendar = Calendar.from_ical(export_events([]))
        self.assertEqual(calendar.walk('VEVENT'), [])


if __name__ == "__main__":
    unittest.main(verbosity=2)
