from __future__ import annotations

from types import SimpleNamespace
from typing import Any, Dict, Iterable, List, Optional

from api.reminders.store import ReminderStore
from schemas.push import MulticastResult, SendResponse
from utils.fcm import PushTransport


class FakeStore(ReminderStore):
    """In-memory store. Returns habits unfiltered so callers must honour ``archived``."""

    def __init__(
        self,
        users: Optional[List[Dict[str, Any]]] = None,
        habits: Optional[Dict[str, List[Dict[str, Any]]]] = None,
        tokens: Optional[Dict[str, List[str]]] = None,
        broken_users: Iterable[str] = (),
    ) -> None:
        self.users = users or []
        self.habits = habits or {}
        self.tokens = tokens or {}
        self.broken_users = set(broken_users)
        self.deleted: List[tuple] = []

    async def list_users(self):
        return [dict(u) for u in self.users]

    async def get_user(self, user_id):
        for u in self.users:
            if u["id"] == user_id:
                return dict(u)
        return None

    async def list_active_habits(self, user_id):
        if user_id in self.broken_users:
            raise RuntimeError("habits query failed")
        return [dict(h) for h in self.habits.get(user_id, [])]

    async def list_push_tokens(self, user_id):
        return list(self.tokens.get(user_id, []))

    async def delete_push_tokens(self, user_id, tokens):
        tokens = list(tokens)
        self.deleted.append((user_id, tokens))
        self.tokens[user_id] = [t for t in self.tokens.get(user_id, []) if t not in tokens]
        return len(tokens)


class RecordingTransport(PushTransport):
    def __init__(self, failures: Optional[Dict[str, str]] = None, error: Optional[Exception] = None) -> None:
        self.failures = failures or {}
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    def send_multicast(self, tokens, title, body, data, options=None):
        self.calls.append(
            {"tokens": list(tokens), "title": title, "body": body, "data": dict(data), "options": options}
        )
        if self.error is not None:
            raise self.error

        responses = []
        for t in tokens:
            if t in self.failures:
                responses.append(SendResponse(success=False, error_code=self.failures[t]))
            else:
                responses.append(SendResponse(success=True, message_id=f"projects/p/messages/{t}"))
        ok = sum(1 for r in responses if r.success)
        return MulticastResult(success_count=ok, failure_count=len(responses) - ok, responses=responses)


def _matches(doc: Dict[str, Any], query: Dict[str, Any]) -> bool:
    for key, cond in query.items():
        value = doc.get(key)
        if isinstance(cond, dict):
            if "$ne" in cond and value == cond["$ne"]:
                return False
            if "$in" in cond and value not in cond["$in"]:
                return False
        elif value != cond:
            return False
    return True


class FakeCursor:
    def __init__(self, docs: List[Dict[str, Any]]) -> None:
        self.docs = docs

    def sort(self, key, direction=1):
        present = [d for d in self.docs if d.get(key) is not None]
        missing = [d for d in self.docs if d.get(key) is None]
        present.sort(key=lambda d: d[key], reverse=direction < 0)
        self.docs = present + missing
        return self

    async def to_list(self, length=None):
        return [dict(d) for d in self.docs[:length]]


class FakeCollection:
    """Just enough of a motor collection for the raw reads the store does."""

    def __init__(self, docs: Optional[List[Dict[str, Any]]] = None) -> None:
        self.docs = list(docs or [])
        self.queries: List[Dict[str, Any]] = []

    def find(self, query):
        self.queries.append(query)
        return FakeCursor([d for d in self.docs if _matches(d, query)])

    async def find_one(self, query):
        self.queries.append(query)
        for d in self.docs:
            if _matches(d, query):
                return dict(d)
        return None

    async def delete_many(self, query):
        self.queries.append(query)
        keep = [d for d in self.docs if not _matches(d, query)]
        deleted = len(self.docs) - len(keep)
        self.docs = keep
        return SimpleNamespace(deleted_count=deleted)
