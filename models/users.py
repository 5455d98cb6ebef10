from __future__ import annotations

from typing import Any, Optional

from pydantic import EmailStr, Field
from pymongo import IndexModel, ASCENDING

from .base import BaseDoc


class User(BaseDoc):
    email: Optional[EmailStr] = None
    display_name: Optional[str] = Field(default=None, max_length=120)

    # Free-form IANA id; validated at evaluation time, never on write.
    timezone: Optional[Any] = None

    reminders_enabled: bool = True
    quiet_hours: Optional[Any] = None  # {"enabled", "start", "end"}

    class Settings:
        name = "users"
        indexes = [
            IndexModel([("email", ASCENDING)], unique=True, sparse=True),
        ]
