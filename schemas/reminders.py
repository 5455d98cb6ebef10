from __future__ import annotations
from pydantic import BaseModel


class TickRunOut(BaseModel):
    processed_users: int = 0
    skipped_disabled: int = 0
    skipped_no_habits: int = 0
    skipped_no_due: int = 0
    skipped_no_tokens: int = 0
    skipped_quiet: int = 0
    digests_sent: int = 0
    exact_sent: int = 0
    invalid_tokens_removed: int = 0
    errors: int = 0


class PushTestOut(BaseModel):
    ok: bool
    success_count: int
    failure_count: int
    invalid_tokens_removed: int
    tz: str
    at_hm: str
    date_key: str
