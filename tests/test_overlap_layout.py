import random
import unittest
from datetime import date, datetime, time as dt_time, timedelta

from backend.event_model import Event, EventSegment
from backend.overlap_layout import (
    calculate_event_layout, max_concurrency, pack_columns, segments_overlap,
)
from backend.segments import split_event_into_segments
from backend.timezone_utils import localize_day_time, set_timezone


DAY = date(2024, 1, 15)


def _local(hour: int, minute: int = 0) -> datetime:
    return localize_day_time(DAY, dt_time(hour, minute))


def _segment(event_id: str, start: datetime, end: datetime) -> EventSegment:
    event = Event(id=event_id, title=event_id, start_time=start, end_time=end)
    (segment,) = split_event_into_segments(event, [DAY])
    return segment


class TestColumnPacking(unittest.TestCase):
    def setUp(self):
        set_timezone("Europe/Paris")

    def test_three_overlapping_events_use_two_columns(self):
        seg1 = _segment("e1", _local(10, 0), _local(10, 30))
        seg2 = _segment("e2", _local(10, 15), _local(10, 45))
        seg3 = _segment("e3", _local(10, 40), _local(11, 0))

        columns = pack_columns([seg1, seg2, seg3])
        self.assertEqual([[s.id for s in col] for col in columns],
                         [[seg1.id, seg3.id], [seg2.id]])

        layout = calculate_event_layout([seg1, seg2, seg3])
        self.assertEqual(layout[seg1.id].width, 50.0)
        self.assertEqual(layout[seg1.id].left, 0.0)
        self.assertEqual(layout[seg2.id].left, 50.0)
        self.assertEqual(layout[seg3.id].column, 0)
        self.assertEqual(layout[seg3.id].column_count, 2)

    def test_touching_segments_share_a_column(self):
        seg1 = _segment("e1", _local(9), _local(10))
        seg2 = _segment("e2", _local(10), _local(11))

        self.assertFalse(segments_overlap(seg1, seg2))
        layout = calculate_event_layout([seg1, seg2])
        self.assertEqual(layout[seg1.id].width, 100.0)
        self.assertEqual(layout[seg2.id].column, 0)

    def test_empty_day(self):
        self.assertEqual(calculate_event_layout([]), {})
        self.assertEqual(max_concurrency([]), 0)

    def test_same_input_gives_same_layout(self):
        segments = [
            _segment("a", _local(9), _local(11)),
            _segment("b", _local(9), _local(10)),
            _segment("c", _local(10), _local(12)),
        ]
        self.assertEqual(calculate_event_layout(segments), calculate_event_layout(list(segments)))

    def test_random_days_never_share_overlapping_column(self):
        rng = random.Random(42)
        for _ in range(50):
            segments = []
            for i in range(rng.randint(1, 12)):
                start = _local(8) + timedelta(minutes=15 * rng.randint(0, 40))
                end = start + timedelta(minutes=15 * rng.randint(0, 12))
                segments.append(_segment(f"r{i}", start, end))

            columns = pack_columns(segments)
            for column in columns:
                for i, a in enumerate(column):
                    for b in column[i + 1:]:
                        self.assertFalse(segments_overlap(a, b))

            self.assertLessEqual(len(columns), max_concurrency(segments))
            self.assertEqual(sum(len(c) for c in columns), len(segments))


class TestMaxConcurrency(unittest.TestCase):
    def setUp(self):
        set_timezone("Europe/Paris")

    def test_counts_simultaneous_segments(self):
        segments = [
            _segment("a", _local(9), _local(12)),
            _segment("b", _local(10), _local(11)),
            _segment("c", _local(10, 30), _local(13)),
            _segment("d", _local(12), _local(14)),
        ]
        self.assertEqual(max_concurrency(segments), 3)

    def test_zero_length_segment_needs_one_column(self):
        seg = _segment("z", _local(9), _local(9))
        self.assertEqual(max_concurrency([seg]), 1)
        self.assertEqual(len(pack_columns([seg])), 1)

    def test_point_segment_inside_longer_one(self):
        long = _segment("a", _local(10), _local(12))
        point = _segment("b", _local(11), _local(11))

        self.assertTrue(segments_overlap(long, point))
        self.assertEqual(len(pack_columns([long, point])), 2)
        self.assertEqual(max_concurrency([long, point]), 2)

    def test_point_segment_at_a_boundary(self):
        long = _segment("a", _local(10), _local(12))
        at_start = _segment("b", _local(10), _local(10))
        at_end = _segment("c", _local(12), _local(12))

        self.assertEqual(len(pack_columns([long, at_start, at_end])), 1)
        self.assertEqual(max_concurrency([long, at_start, at_end]), 1)

    def test_points_at_the_same_instant_do_not_stack(self):
        points = [_segment(f"p{i}", _local(11), _local(11)) for i in range(3)]
        self.assertEqual(len(pack_columns(points)), 1)
        self.assertEqual(max_concurrency(points), 1)


if __name__ == "__main__":
    unittest.main(verbosity=2)
