from __future__ import annotations

from datetime import datetime
from typing import Optional

from beanie.odm.fields import PydanticObjectId
from pymongo import ASCENDING, DESCENDING, IndexModel

from .base import BaseDoc


class PushToken(BaseDoc):
    user_id: PydanticObjectId
    # Opaque provider string; the provider decides whether it is valid.
    token: str
    platform: Optional[str] = None
    user_agent: Optional[str] = None
    last_used_at: Optional[datetime] = None

    class Settings:
        name = "push_tokens"
        indexes = [
            IndexModel([("token", ASCENDING)], unique=True),
            IndexModel([("user_id", ASCENDING), ("last_used_at", DESCENDING)]),
        ]
