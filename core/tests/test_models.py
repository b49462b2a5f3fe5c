from datetime import datetime, timedelta, timezone as dt_timezone

from django.contrib import admin
from django.test import SimpleTestCase

from core.models import Contest, format_duration


class FormatDurationTests(SimpleTestCase):
    def test_hours_and_minutes(self):
        self.assertEqual(format_duration(100 * 60), "1h 40m")
        self.assertEqual(format_duration(7200), "2h 0m")

    def test_days(self):
        self.assertEqual(format_duration(3 * 86400 + 5 * 3600), "3d 5h")

    def test_missing(self):
        self.assertEqual(format_duration(None), "0h 0m")


class ContestDisplayTests(SimpleTestCase):
    def test_duration_display_and_end_time(self):
        start = datetime(2025, 6, 7, 12, 0, tzinfo=dt_timezone.utc)
        contest = Contest(contest_id="abc409", start_time=start, duration_seconds=5400)

        self.assertEqual(contest.duration_display, "1h 30m")
        self.assertEqual(contest.end_time, start + timedelta(minutes=90))
        self.assertTrue(contest.has_ended(start + timedelta(minutes=91)))
        self.assertFalse(contest.has_ended(start + timedelta(minutes=90)))

    def test_admin_lists_readable_duration(self):
        self.assertIn("duration_display", admin.site._registry[Contest].list_display)
