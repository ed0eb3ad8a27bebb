import random
import unittest
from datetime import date, datetime, time as dt_time, timedelta

from backend.event_index import EventIndex
from backend.event_model import Event
from backend.timezone_utils import localize_day_time, set_timezone


BASE = date(2024, 3, 4)


def _event(event_id, start: datetime, end: datetime) -> Event:
    return Event(id=event_id, title=event_id, start_time=start, end_time=end)


class TestEventIndex(unittest.TestCase):
    def setUp(self):
        set_timezone("Europe/Paris")
        self.origin = localize_day_time(BASE, dt_time(0, 0))

    def _at(self, hours: float) -> datetime:
        return self.origin + timedelta(hours=hours)

    def test_empty(self):
        index = EventIndex()
        self.assertEqual(len(index), 0)
        self.assertEqual(index.events_on_day(BASE), [])
        index.verify_integrity()

    def test_stays_balanced_with_sorted_inserts(self):
        index = EventIndex(_event(f"e{i}", self._at(i), self._at(i + 1)) for i in range(200))
        self.assertEqual(len(index), 200)
        index.verify_integrity()

    def test_find_intersecting_matches_linear_scan(self):
        rng = random.Random(7)
        events = []
        for i in range(150):
            start = rng.uniform(0, 24 * 30)
            events.append(_event(f"e{i}", self._at(start), self._at(start + rng.uniform(0, 72))))
        index = EventIndex(events)
        index.verify_integrity()

        for _ in range(40):
            lo = rng.uniform(0, 24 * 30)
            hi = lo + rng.uniform(0, 48)
            expected = {e.id for e in events
                        if e.start_time <= self._at(hi) and e.end_time >= self._at(lo)}
            found = index.find_intersecting(self._at(lo), self._at(hi))
            self.assertEqual({e.id for e in found}, expected)

    def test_results_sorted_by_start(self):
        index = EventIndex([
            _event("late", self._at(15), self._at(16)),
            _event("early", self._at(8), self._at(9)),
            _event("mid", self._at(11), self._at(12)),
        ])
        self.assertEqual([e.id for e in index.events_on_day(BASE)], ["early", "mid", "late"])

    def test_equal_starts_keep_insertion_order(self):
        index = EventIndex(_event(f"s{i}", self._at(10), self._at(10 + i)) for i in range(9))
        index.verify_integrity()
        self.assertEqual([e.id for e in index.events_on_day(BASE)], [f"s{i}" for i in range(9)])

    def test_long_event_found_under_pruned_neighbours(self):
        events = [_event(f"short{i}", self._at(i), self._at(i + 0.5)) for i in range(1, 40)]
        events.append(_event("long", self._at(0), self._at(24 * 2)))
        index = EventIndex(events)
        found = index.find_intersecting(self._at(30), self._at(30))
        self.assertEqual([e.id for e in found], ["long", "short30"])

    def test_verify_integrity_detects_stale_max_end(self):
        index = EventIndex(_event(f"e{i}", self._at(i), self._at(i + 1)) for i in range(7))
        index.root.max_end = self._at(100)
        with self.assertRaises(RuntimeError):
            index.verify_integrity()

    def test_day_boundaries_are_inclusive(self):
        index = EventIndex([
            _event("to-midnight", self._at(22), self._at(24)),
            _event("next-day", self._at(25), self._at(26)),
        ])
        next_day = BASE + timedelta(days=1)
        self.assertEqual(index.count_on_day(BASE), 1)
        self.assertEqual([e.id for e in index.events_on_day(next_day)], ["to-midnight", "next-day"])

    def test_multi_day_event_counted_every_day(self):
        index = EventIndex([_event("camp", self._at(9), self._at(24 * 3 + 12))])
        counts = [index.count_on_day(BASE + timedelta(days=i)) for i in range(5)]
        self.assertEqual(counts, [1, 1, 1, 1, 0])


if __name__ == "__main__":
    unittest.main(verbosity=2)
