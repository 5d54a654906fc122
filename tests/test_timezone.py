import unittest
from datetime import datetime, timedelta, timezone

from app.core.timezone import (
    BUSINESS_TZ,
    business_today,
    date_label,
    day_range,
    parse_date_input,
    to_db_datetime,
)


class ParseDateInputTests(unittest.TestCase):
    def test_date_only_is_business_midnight(self):
        parsed = parse_date_input("2025-03-10")
        self.assertEqual(parsed, datetime(2025, 3, 10, 3, 0, tzinfo=timezone.utc))
        self.assertEqual(parsed.utcoffset(), timedelta(hours=-3))

    def test_naive_datetime_is_utc(self):
        parsed = parse_date_input("2025-03-10T02:30:00")
        self.assertEqual(parsed, datetime(2025, 3, 10, 2, 30, tzinfo=timezone.utc))

    def test_zulu_and_offsets(self):
        self.assertEqual(
            parse_date_input("2025-03-10T12:00:00Z"),
            datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc),
        )
        self.assertEqual(
            parse_date_input("2025-03-10T09:00:00-03:00"),
            datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc),
        )

    def test_invalid_input(self):
        with self.assertRaises(ValueError):
            parse_date_input("10/03/2025")
        with self.assertRaises(ValueError):
            parse_date_input("")


class DayRangeTests(unittest.TestCase):
    def test_business_day_boundaries(self):
        start, end = day_range(parse_date_input("2025-03-10"))
        self.assertEqual(start.isoformat(), "2025-03-10T00:00:00-03:00")
        self.assertEqual(end.isoformat(), "2025-03-10T23:59:59.999000-03:00")

    def test_late_utc_instant_belongs_to_previous_business_day(self):
        start, _ = day_range(datetime(2025, 3, 11, 1, 0, tzinfo=timezone.utc))
        self.assertEqual(start.date().isoformat(), "2025-03-10")

    def test_naive_instant_treated_as_utc(self):
        start, _ = day_range(datetime(2025, 3, 11, 2, 59))
        self.assertEqual(date_label(start), "2025-03-10")

    def test_db_conversion_is_naive_utc(self):
        start, end = day_range(parse_date_input("2025-03-10"))
        self.assertEqual(to_db_datetime(start), datetime(2025, 3, 10, 3, 0))
        self.assertEqual(to_db_datetime(end), datetime(2025, 3, 11, 2, 59, 59, 999000))

    def test_business_today(self):
        today = business_today(datetime(2025, 3, 10, 2, 0, tzinfo=timezone.utc))
        self.assertEqual(today, datetime(2025, 3, 9, tzinfo=BUSINESS_TZ))
