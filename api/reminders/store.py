from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional

from beanie.odm.fields import PydanticObjectId

from models import Habit, PushToken, User


def to_record(raw: Mapping[str, Any]) -> Dict[str, Any]:
    """Turn a raw Mongo document into the dict the tick works with.

    Documents are read without model validation, so a habit with a drifted
    ``schedule`` or ``reminders`` shape still reaches the evaluator, which
    falls back to its defaults.
    """
    data = dict(raw)
    data["id"] = str(data.pop("_id", data.get("id")))
    data.pop("revision_id", None)
    if data.get("user_id") is not None:
        data["user_id"] = str(data["user_id"])
    return data


class ReminderStore:
    """What the tick needs from persistence. Records are plain dicts."""

    async def list_users(self) -> List[Dict[str, Any]]:
        raise NotImplementedError

    async def get_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    async def list_active_habits(self, user_id: str) -> List[Dict[str, Any]]:
        raise NotImplementedError

    async def list_push_tokens(self, user_id: str) -> List[str]:
        raise NotImplementedError

    async def delete_push_tokens(self, user_id: str, tokens: Iterable[str]) -> int:
        raise NotImplementedError


class MongoReminderStore(ReminderStore):
    """Reads the beanie collections raw; writes stay a single batched delete."""

    def __init__(self, users=None, habits=None, push_tokens=None) -> None:
        self._users = users
        self._habits = habits
        self._push_tokens = push_tokens

    @property
    def users(self):
        return self._users if self._users is not None else User.get_motor_collection()

    @property
    def habits(self):
        return self._habits if self._habits is not None else Habit.get_motor_collection()

    @property
    def push_tokens(self):
        return self._push_tokens if self._push_tokens is not None else PushToken.get_motor_collection()

    async def list_users(self) -> List[Dict[str, Any]]:
        docs = await self.users.find({}).to_list(length=None)
        return [to_record(d) for d in docs]

    async def get_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        doc = await self.users.find_one({"_id": PydanticObjectId(user_id)})
        return to_record(doc) if doc else None

    async def list_active_habits(self, user_id: str) -> List[Dict[str, Any]]:
        uid = PydanticObjectId(user_id)
        # Missing "archived" counts as active.
        docs = await self.habits.find({"user_id": uid, "archived": {"$ne": True}}).to_list(length=None)
        return [to_record(d) for d in docs]

    async def list_push_tokens(self, user_id: str) -> List[str]:
        uid = PydanticObjectId(user_id)
        docs = await self.push_tokens.find({"user_id": uid}).sort("last_used_at", -1).to_list(length=None)
        return [d["token"] for d in docs if isinstance(d.get("token"), str) and d["token"]]

    async def delete_push_tokens(self, user_id: str, tokens: Iterable[str]) -> int:
        tokens = list(tokens)
        if not tokens:
            return 0
        uid = PydanticObjectId(user_id)
        res = await self.push_tokens.delete_many({"user_id": uid, "token": {"$in": tokens}})
        return int(getattr(res, "deleted_count", 0) or 0)
