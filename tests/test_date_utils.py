import unittest
from datetime import date, datetime, time as dt_time, timedelta

from backend.config import LocalizationConfig
from backend.date_utils import (
    add_months, day_key, days_between, end_of_day, format_date_long,
    format_duration, format_time_range, is_same_day, is_weekend,
    month_grid_days, start_of_day, start_of_week, week_days,
)
from backend.timezone_utils import localize_day_time, set_timezone


def _local(day: date, hour: int, minute: int = 0) -> datetime:
    return localize_day_time(day, dt_time(hour, minute))


class TestDayBounds(unittest.TestCase):
    def setUp(self):
        set_timezone("Europe/Paris")

    def test_day_bounds_are_local_and_inclusive(self):
        day = date(2024, 1, 15)
        start = start_of_day(day)
        end = end_of_day(day)

        self.assertEqual(start.utcoffset(), timedelta(hours=1))
        self.assertEqual((start.hour, start.minute), (0, 0))
        self.assertEqual((end.hour, end.minute, end.second, end.microsecond), (23, 59, 59, 999999))

    def test_is_same_day_uses_local_time(self):
        # 23:30 UTC on the 15th is already the 16th in Paris
        import pytz
        instant = datetime(2024, 1, 15, 23, 30, tzinfo=pytz.UTC)
        self.assertTrue(is_same_day(instant, date(2024, 1, 16)))
        self.assertFalse(is_same_day(instant, date(2024, 1, 15)))
        self.assertEqual(day_key(instant), "2024-01-16")


class TestCalendarArithmetic(unittest.TestCase):
    def test_add_months_clamps_day(self):
        self.assertEqual(add_months(date(2024, 1, 31), 1), date(2024, 2, 29))
        self.assertEqual(add_months(date(2024, 11, 15), 3), date(2025, 2, 15))
        self.assertEqual(add_months(date(2024, 3, 31), -1), date(2024, 2, 29))

    def test_week_starts_on_monday(self):
        days = week_days(date(2024, 1, 17))
        self.assertEqual(days[0], date(2024, 1, 15))
        self.assertEqual(days[-1], date(2024, 1, 21))
        self.assertEqual(start_of_week(date(2024, 1, 21)), date(2024, 1, 15))

    def test_month_grid_is_whole_weeks(self):
        grid = month_grid_days(date(2024, 2, 10))
        self.assertEqual(len(grid) % 7, 0)
        self.assertEqual(grid[0], date(2024, 1, 29))
        self.assertEqual(grid[-1], date(2024, 3, 3))
        self.assertIn(date(2024, 2, 1), grid)
        self.assertIn(date(2024, 2, 29), grid)

    def test_is_weekend(self):
        self.assertTrue(is_weekend(date(2024, 1, 20)))
        self.assertTrue(is_weekend(date(2024, 1, 21)))
        self.assertFalse(is_weekend(date(2024, 1, 19)))

    def test_days_between(self):
        self.assertEqual(days_between(date(2024, 1, 1), date(2024, 1, 31)), 30)
        start = _local(date(2024, 1, 1), 10)
        self.assertEqual(days_between(start, start + timedelta(hours=25)), 2)


class TestFormatting(unittest.TestCase):
    def setUp(self):
        set_timezone("Europe/Paris")

    def test_format_time_range(self):
        day = date(2024, 1, 15)
        self.assertEqual(format_time_range(_local(day, 9), _local(day, 10, 30)), "09:00 - 10:30")

    def test_format_date_long_uses_localization(self):
        self.assertEqual(format_date_long(date(2024, 1, 15)), "Monday 15 January 2024")
        french = LocalizationConfig(
            day_names_long=["lundi", "mardi", "mercredi", "jeudi", "vendredi", "samedi", "dimanche"],
            month_names=["janvier", "février", "mars", "avril", "mai", "juin", "juillet",
                         "août", "septembre", "octobre", "novembre", "décembre"],
        )
        self.assertEqual(format_date_long(date(2024, 1, 15), french), "lundi 15 janvier 2024")

    def test_format_duration(self):
        day = date(2024, 1, 15)
        self.assertEqual(format_duration(_local(day, 9), _local(day, 9, 45)), "45 min")
        self.assertEqual(format_duration(_local(day, 9), _local(day, 11)), "2h")
        self.assertEqual(format_duration(_local(day, 9), _local(day, 11, 30)), "2h 30min")


if __name__ == "__main__":
    unittest.main(verbosity=2)
