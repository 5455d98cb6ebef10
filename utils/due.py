from __future__ import annotations

from typing import Any, Mapping

from .time import is_valid_hhmm


def is_due_today(schedule: Any, weekday: int) -> bool:
    """Is a habit with this schedule due on ISO ``weekday`` (1=Mon..7=Sun)?

    Unknown or missing schedule types count as daily; a weekly schedule
    without a usable ``daysOfWeek`` list is never due.
    """
    if not isinstance(schedule, Mapping):
        return True

    kind = schedule.get("type") or "daily"
    if kind != "weekly":
        return True

    days = schedule.get("daysOfWeek")
    if not isinstance(days, (list, tuple, set, frozenset)):
        return False
    return any(_is_weekday(d) and d == weekday for d in days)


def has_exact_reminder(habit: Any) -> bool:
    if not isinstance(habit, Mapping):
        return False
    reminders = habit.get("reminders")
    if not isinstance(reminders, Mapping):
        return False
    return bool(reminders.get("enabled")) and is_valid_hhmm(reminders.get("time"))


def _is_weekday(value: Any) -> bool:
    # Mongo may hand numbers back as floats; bools are not weekdays.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return 1 <= value <= 7
