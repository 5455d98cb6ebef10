from __future__ import annotations

from typing import Any, Dict, Optional

from beanie.odm.fields import PydanticObjectId
from pydantic import Field
from pymongo import IndexModel, ASCENDING

from .base import BaseDoc


def default_schedule() -> Dict[str, Any]:
    return {"type": "daily"}


class Habit(BaseDoc):
    user_id: PydanticObjectId
    name: Optional[str] = None
    archived: bool = False

    # Loose on purpose: older clients wrote partial or malformed shapes and
    # the scheduler falls back to defaults instead of rejecting the habit.
    schedule: Optional[Any] = Field(default_factory=default_schedule)  # {"type": "weekly", "daysOfWeek": [1, 3]}
    reminders: Optional[Any] = None  # {"enabled": True, "time": "09:00"}

    timezone: Optional[Any] = None

    class Settings:
        name = "habits"
        indexes = [
            IndexModel([("user_id", ASCENDING), ("archived", ASCENDING)]),
        ]
