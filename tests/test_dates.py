"""Tests for date formatting, parsing and truncation."""

import locale
import unittest
from datetime import datetime

from org_reminders.errors import DateFormatError
from org_reminders.org.enums import DateFormat
from org_reminders.sync.dates import format_date, now, parse_date, truncate


class TestDates(unittest.TestCase):
    """Org timestamp <-> datetime conversion."""

    def test_format_scheduled(self):
        value = datetime(2024, 1, 5, 9, 0)
        self.assertEqual(
            format_date(value, DateFormat.SCHEDULED), "<2024-01-05 Fri 09:00>"
        )

    def test_format_closed(self):
        value = datetime(2024, 1, 3, 12, 30)
        self.assertEqual(
            format_date(value, DateFormat.CLOSED), "[2024-01-03 Wed 12:30]"
        )

    def test_parse_any_english_weekday(self):
        # The weekday name is not checked against the date.
        self.assertEqual(
            parse_date("<2024-01-05 Mon 09:00>", DateFormat.SCHEDULED),
            datetime(2024, 1, 5, 9, 0),
        )

    def test_parse_localized_weekday_raises(self):
        with self.assertRaises(DateFormatError):
            parse_date("<2024-01-05 Fr. 09:00>", DateFormat.SCHEDULED)

    def test_weekday_names_ignore_locale(self):
        previous = locale.setlocale(locale.LC_TIME)
        try:
            locale.setlocale(locale.LC_TIME, "de_DE.UTF-8")
        except locale.Error:
            self.skipTest("de_DE.UTF-8 locale not available")
        self.addCleanup(locale.setlocale, locale.LC_TIME, previous)

        value = datetime(2024, 1, 5, 9, 0)
        text = format_date(value, DateFormat.SCHEDULED)

        self.assertEqual(text, "<2024-01-05 Fri 09:00>")
        self.assertEqual(parse_date(text, DateFormat.SCHEDULED), value)

    def test_parse_last_modified(self):
        self.assertEqual(
            parse_date("2024-01-02 10:00:00", DateFormat.OTHER),
            datetime(2024, 1, 2, 10, 0, 0),
        )

    def test_parse_strips_whitespace(self):
        self.assertEqual(
            parse_date("  <2024-01-05 Fri 09:00> ", DateFormat.SCHEDULED),
            datetime(2024, 1, 5, 9, 0),
        )

    def test_parse_mismatch_raises(self):
        with self.assertRaises(DateFormatError) as ctx:
            parse_date("<2024-01-05>", DateFormat.SCHEDULED)
        self.assertEqual(ctx.exception.text, "<2024-01-05>")
        self.assertIn("DateFormatUnmatched", str(ctx.exception))

    def test_date_format_error_is_value_error(self):
        with self.assertRaises(ValueError):
            parse_date("yesterday", DateFormat.OTHER)

    def test_truncate_to_minutes(self):
        value = datetime(2024, 1, 5, 9, 0, 42, 123456)
        self.assertEqual(
            truncate(value, DateFormat.SCHEDULED), datetime(2024, 1, 5, 9, 0)
        )

    def test_truncate_to_seconds(self):
        value = datetime(2024, 1, 5, 9, 0, 42, 123456)
        self.assertEqual(
            truncate(value, DateFormat.OTHER), datetime(2024, 1, 5, 9, 0, 42)
        )

    def test_now_has_no_microseconds(self):
        self.assertEqual(now().microsecond, 0)


if __name__ == "__main__":
    unittest.main()
