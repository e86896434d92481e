import datetime as dt
import unittest

from flexcal.util.dates import add_days, day_key, days_between, is_weekend, to_day


class TestDateKeyContract(unittest.TestCase):
    def test_day_key_accepts_dates_strings_and_timestamps(self) -> None:
        self.assertEqual(day_key(dt.date(2025, 8, 4)), "2025-08-04")
        self.assertEqual(day_key("2025-08-04"), "2025-08-04")
        self.assertEqual(day_key("2025-08-04T00:00:00.000Z"), "2025-08-04")
        self.assertEqual(day_key(dt.datetime(2025, 8, 4, 23, 59)), "2025-08-04")

    def test_aware_timestamps_use_the_utc_day(self) -> None:
        # 23:30 in New York on Aug 4 is already Aug 5 in UTC.
        self.assertEqual(day_key("2025-08-04T23:30:00-04:00"), "2025-08-05")
        tz = dt.timezone(dt.timedelta(hours=9))
        self.assertEqual(day_key(dt.datetime(2025, 8, 5, 3, 0, tzinfo=tz)), "2025-08-04")

    def test_invalid_dates_raise(self) -> None:
        for bad in ("", "2025-13-01", "04/08/2025", "2025-08-04x", 20250804):
            with self.subTest(bad=bad):
                with self.assertRaises(ValueError):
                    to_day(bad)  # type: ignore[arg-type]

    def test_weekend_classifier(self) -> None:
        self.assertTrue(is_weekend("2025-08-02"))  # Saturday
        self.assertTrue(is_weekend("2025-08-03"))  # Sunday
        self.assertFalse(is_weekend("2025-08-04"))  # Monday
        self.assertFalse(is_weekend("2025-08-01"))  # Friday

    def test_day_arithmetic_crosses_month_and_year(self) -> None:
        self.assertEqual(add_days("2025-08-30", 3), dt.date(2025, 9, 2))
        self.assertEqual(add_days("2026-01-01", -1), dt.date(2025, 12, 31))
        self.assertEqual(days_between("2025-08-04", "2025-08-11"), 7)
        self.assertEqual(days_between("2025-08-11", "2025-08-04"), -7)


if __name__ == "__main__":
    unittest.main(verbosity=2)
