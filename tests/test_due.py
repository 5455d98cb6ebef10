from __future__ import annotations

import unittest

from utils.due import has_exact_reminder, is_due_today


class IsDueTodayTests(unittest.TestCase):
    def test_daily_is_due_every_day(self) -> None:
        for w in range(1, 8):
            with self.subTest(weekday=w):
                self.assertTrue(is_due_today({"type": "daily"}, w))

    def test_weekly_with_no_days_is_never_due(self) -> None:
        for w in range(1, 8):
            with self.subTest(weekday=w):
                self.assertFalse(is_due_today({"type": "weekly", "daysOfWeek": []}, w))

    def test_weekly_matches_listed_days_only(self) -> None:
        schedule = {"type": "weekly", "daysOfWeek": [1, 3, 5]}
        self.assertTrue(is_due_today(schedule, 3))
        self.assertFalse(is_due_today(schedule, 4))

    def test_weekly_with_malformed_days_is_never_due(self) -> None:
        for days in (None, "1,3,5", 3, {"mon": True}):
            with self.subTest(days=days):
                self.assertFalse(is_due_today({"type": "weekly", "daysOfWeek": days}, 3))
        self.assertFalse(is_due_today({"type": "weekly"}, 3))

    def test_out_of_range_days_never_match(self) -> None:
        schedule = {"type": "weekly", "daysOfWeek": [0, 8, -1, True]}
        for w in (0, 1, 8, -1):
            with self.subTest(weekday=w):
                self.assertFalse(is_due_today(schedule, w))

    def test_float_days_from_the_store_still_match(self) -> None:
        self.assertTrue(is_due_today({"type": "weekly", "daysOfWeek": [2.0, 6.0]}, 6))

    def test_missing_or_unknown_type_defaults_to_due(self) -> None:
        self.assertTrue(is_due_today({}, 2))
        self.assertTrue(is_due_today({"type": None}, 2))
        self.assertTrue(is_due_today({"type": "monthly", "daysOfWeek": []}, 2))
        self.assertTrue(is_due_today(None, 2))
        self.assertTrue(is_due_today("weekly", 2))


class HasExactReminderTests(unittest.TestCase):
    def test_enabled_with_valid_time(self) -> None:
        self.assertTrue(has_exact_reminder({"reminders": {"enabled": True, "time": "09:00"}}))

    def test_disabled(self) -> None:
        self.assertFalse(has_exact_reminder({"reminders": {"enabled": False, "time": "09:00"}}))

    def test_absent_block(self) -> None:
        self.assertFalse(has_exact_reminder({}))
        self.assertFalse(has_exact_reminder({"reminders": None}))
        self.assertFalse(has_exact_reminder(None))

    def test_malformed_time(self) -> None:
        for t in (None, "", "9:00", "25:00", 900):
            with self.subTest(time=t):
                self.assertFalse(has_exact_reminder({"reminders": {"enabled": True, "time": t}}))


if __name__ == "__main__":
    unittest.main()
