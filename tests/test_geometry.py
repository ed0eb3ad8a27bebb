import unittest
from datetime import date, datetime, time as dt_time

from backend.config import LayoutConfig
from backend.event_model import Event
from backend.geometry import (
    Unit, day_axis, get_event_position, now_indicator_offset, position_on_axis, week_axis,
)
from backend.segments import split_event_into_segments
from backend.timezone_utils import localize_day_time, set_timezone


DAY = date(2024, 1, 15)


def _local(hour: int, minute: int = 0, day: date = DAY) -> datetime:
    return localize_day_time(day, dt_time(hour, minute))


def _segment(start: datetime, end: datetime):
    event = Event(id="e", title="e", start_time=start, end_time=end)
    return split_event_into_segments(event, [DAY])[0]


class TestWeekGeometry(unittest.TestCase):
    def setUp(self):
        set_timezone("Europe/Paris")
        self.axis = week_axis(LayoutConfig())

    def test_morning_event_position(self):
        position = position_on_axis(_segment(_local(9), _local(11)), self.axis)
        self.assertEqual(position.top, 120)
        self.assertEqual(position.height, 120)
        self.assertEqual(position.unit, Unit.PIXELS)

    def test_short_event_gets_minimum_height(self):
        position = position_on_axis(_segment(_local(9), _local(9, 5)), self.axis)
        self.assertEqual(position.height, 20)

    def test_segments_outside_window_are_skipped(self):
        self.assertIsNone(position_on_axis(_segment(_local(5), _local(6)), self.axis))
        self.assertIsNone(get_event_position(_segment(_local(23, 30), _local(23, 45)), 7, 22, 60, 20))

    def test_partially_visible_segments_are_clamped(self):
        early = position_on_axis(_segment(_local(6), _local(8)), self.axis)
        self.assertEqual(early.top, 0)
        self.assertEqual(early.height, 60)

        late = position_on_axis(_segment(_local(22), _local(23, 30)), self.axis)
        self.assertEqual(late.top, 15 * 60)
        self.assertEqual(late.height, 60)

    def test_top_is_monotonic_in_start_time(self):
        tops = [
            position_on_axis(_segment(_local(h, m), _local(h, 59)), self.axis).top
            for h in range(7, 22) for m in (0, 15, 30)
        ]
        self.assertEqual(tops, sorted(tops))


class TestDayGeometry(unittest.TestCase):
    def setUp(self):
        set_timezone("Europe/Paris")
        self.axis = day_axis(LayoutConfig())

    def test_day_axis_is_percent_of_full_day(self):
        self.assertEqual(self.axis.unit, Unit.PERCENT)
        self.assertEqual(self.axis.start_hour, 0)
        self.assertEqual(self.axis.end_hour, 23)
        self.assertAlmostEqual(self.axis.total_height, 100.0)

    def test_noon_event_in_percent(self):
        position = position_on_axis(_segment(_local(12), _local(18)), self.axis)
        self.assertAlmostEqual(position.top, 50.0)
        self.assertAlmostEqual(position.height, 25.0)
        self.assertEqual(position.unit, Unit.PERCENT)

    def test_minimum_height_percent(self):
        position = position_on_axis(_segment(_local(12), _local(12, 10)), self.axis)
        self.assertEqual(position.height, 2.0)


class TestNowIndicator(unittest.TestCase):
    def setUp(self):
        set_timezone("Europe/Paris")
        self.axis = week_axis(LayoutConfig())

    def test_offset_on_today_inside_window(self):
        self.assertEqual(now_indicator_offset(DAY, _local(10, 30), self.axis), 210)

    def test_hidden_on_other_days_and_outside_window(self):
        self.assertIsNone(now_indicator_offset(date(2024, 1, 16), _local(10), self.axis))
        self.assertIsNone(now_indicator_offset(DAY, _local(5), self.axis))


if __name__ == "__main__":
    unittest.main(verbosity=2)
