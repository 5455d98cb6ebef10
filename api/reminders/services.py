from __future__ import annotations

import asyncio
import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from config import DIGEST_TIME, TICK_CONCURRENCY
from schemas.push import SendOptions
from schemas.reminders import PushTestOut, TickRunOut
from utils.due import has_exact_reminder, is_due_today
from utils.fcm import PushTransport, dispatch
from utils.time import (
    is_valid_hhmm,
    is_within_quiet_hours,
    local_date_key,
    local_time_of_day,
    local_weekday,
    validate_timezone,
)

from .store import ReminderStore

logger = logging.getLogger(__name__)

APP_TITLE = "BadAss Habits"
QUIET_START_DEFAULT = "22:00"
QUIET_END_DEFAULT = "07:00"


class ReminderPreconditionError(Exception):
    pass


class UserNotFoundError(LookupError):
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def quiet_config(user: Dict[str, Any]) -> Tuple[bool, str, str]:
    q = user.get("quiet_hours") or {}
    if not isinstance(q, dict):
        q = {}
    enabled = q.get("enabled") is True
    start = q["start"] if is_valid_hhmm(q.get("start")) else QUIET_START_DEFAULT
    end = q["end"] if is_valid_hhmm(q.get("end")) else QUIET_END_DEFAULT
    return enabled, start, end


def digest_body(due_count: int) -> str:
    if due_count == 1:
        return "You have 1 habit due today."
    return f"You have {due_count} habits due today."


def digest_options(date_key: str) -> SendOptions:
    return SendOptions(
        urgency="low",
        ttl_seconds=6 * 60 * 60,
        tag=f"digest_{date_key}_{DIGEST_TIME.replace(':', '')}",
    )


def exact_options(habit_id: Any, date_key: str, at_hm: str) -> SendOptions:
    return SendOptions(
        urgency="high",
        ttl_seconds=20 * 60,
        tag=f"exact_{habit_id}_{date_key}_{at_hm.replace(':', '')}",
        renotify=True,
        require_interaction=True,
    )


def manual_push_options(date_key: str, at_hm: str) -> SendOptions:
    return SendOptions(
        urgency="high",
        ttl_seconds=5 * 60,
        tag=f"test_{date_key}_{at_hm.replace(':', '')}",
        renotify=True,
    )


def habit_timezone(habit: Dict[str, Any], user_tz: str) -> str:
    override = habit.get("timezone")
    if override and validate_timezone(override) == override:
        return override
    return user_tz


async def purge_invalid_tokens(store: ReminderStore, user_id: str, tokens: List[str], invalid: List[str]) -> int:
    if not invalid:
        return 0
    await store.delete_push_tokens(user_id, invalid)
    tokens[:] = [t for t in tokens if t not in invalid]
    return len(invalid)


async def send_and_purge(
    store: ReminderStore,
    transport: PushTransport,
    user_id: str,
    tokens: List[str],
    title: str,
    body: str,
    url: str,
    stats: Counter,
    log_ctx: Dict[str, Any],
    options: Optional[SendOptions] = None,
) -> bool:
    """Dispatch, purge dead tokens, and report whether any device got it."""
    if not tokens:
        logger.info("[tick][skip:no-tokens-left] %s", log_ctx)
        return False

    try:
        r = await dispatch(transport, tokens, title, body, url, options)
    except Exception:
        # A provider outage for this send must not stop the remaining habits.
        logger.exception("[tick][dispatch-error] %s", log_ctx)
        stats["errors"] += 1
        return False

    stats["invalid_tokens_removed"] += await purge_invalid_tokens(store, user_id, tokens, r.invalid_tokens)
    logger.info("[tick][sent] %s", {**log_ctx, **r.model_dump()})
    return r.success_count > 0


async def process_user(
    store: ReminderStore,
    transport: PushTransport,
    user: Dict[str, Any],
    now: datetime,
    stats: Counter,
) -> None:
    uid = str(user.get("id"))

    if user.get("reminders_enabled") is False:
        logger.info("[tick][user][skip:global-off] %s", {"uid": uid})
        stats["skipped_disabled"] += 1
        return

    user_tz = validate_timezone(user.get("timezone"))
    now_hm = local_time_of_day(user_tz, now)
    weekday = local_weekday(user_tz, now)
    date_key = local_date_key(user_tz, now)
    ctx = {"uid": uid, "tz": user_tz, "nowHM": now_hm, "dateKey": date_key}

    habits = [h for h in await store.list_active_habits(uid) if not h.get("archived")]
    if not habits:
        logger.info("[tick][user][skip:no-habits] %s", ctx)
        stats["skipped_no_habits"] += 1
        return

    due = [h for h in habits if is_due_today(h.get("schedule"), weekday)]
    if not due:
        logger.info("[tick][user][skip:no-due] %s", {**ctx, "habits": len(habits)})
        stats["skipped_no_due"] += 1
        return

    tokens = [t for t in await store.list_push_tokens(uid) if t]
    if not tokens:
        logger.info("[tick][user][skip:no-tokens] %s", {**ctx, "due": len(due)})
        stats["skipped_no_tokens"] += 1
        return

    quiet_enabled, quiet_start, quiet_end = quiet_config(user)
    if quiet_enabled and is_within_quiet_hours(now_hm, quiet_start, quiet_end):
        logger.info("[tick][user][skip:quiet-hours] %s", {**ctx, "start": quiet_start, "end": quiet_end})
        stats["skipped_quiet"] += 1
        return

    logger.debug("[tick][user] %s", {**ctx, "habits": len(habits), "due": len(due), "tokenCount": len(tokens)})

    if now_hm == DIGEST_TIME:
        sent = await send_and_purge(
            store, transport, uid, tokens,
            APP_TITLE, digest_body(len(due)), "/",
            stats, {**ctx, "kind": "digest", "due": len(due)},
            digest_options(date_key),
        )
        if sent:
            stats["digests_sent"] += 1

    for h in due:
        if not has_exact_reminder(h):
            continue

        reminder_hm = h["reminders"]["time"]
        tz = habit_timezone(h, user_tz)
        if local_time_of_day(tz, now) != reminder_hm:
            continue

        name = str(h.get("name") or APP_TITLE)
        sent = await send_and_purge(
            store, transport, uid, tokens,
            name, f"Time for: {name}", f"/habits/{h.get('id')}",
            stats, {**ctx, "kind": "exact", "habitId": h.get("id"), "habitTz": tz, "atHM": reminder_hm},
            exact_options(h.get("id"), date_key, reminder_hm),
        )
        if sent:
            stats["exact_sent"] += 1


async def run_tick(
    store: ReminderStore,
    transport: PushTransport,
    now: Optional[datetime] = None,
    concurrency: int = TICK_CONCURRENCY,
) -> TickRunOut:
    """One polling pass over every user.

    Users are independent and processed concurrently; a failure while
    handling one user is logged and counted, never propagated.
    """
    now = now or utcnow()
    users = await store.list_users()
    logger.info("[tick] users: %d", len(users))

    stats: Counter = Counter()
    sem = asyncio.Semaphore(max(1, concurrency))

    async def guarded(user: Dict[str, Any]) -> None:
        async with sem:
            stats["processed_users"] += 1
            try:
                await process_user(store, transport, user, now, stats)
            except Exception:
                logger.exception("[tick][user-error] %s", {"uid": user.get("id")})
                stats["errors"] += 1

    await asyncio.gather(*(guarded(u) for u in users))
    return TickRunOut(**stats)


async def send_test_push(
    store: ReminderStore,
    transport: PushTransport,
    user_id: str,
    now: Optional[datetime] = None,
) -> PushTestOut:
    now = now or utcnow()
    user = await store.get_user(user_id)
    if not user:
        raise UserNotFoundError(user_id)

    if user.get("reminders_enabled") is False:
        raise ReminderPreconditionError("Global reminders are OFF for this user.")

    user_tz = validate_timezone(user.get("timezone"))
    now_hm = local_time_of_day(user_tz, now)
    date_key = local_date_key(user_tz, now)

    quiet_enabled, quiet_start, quiet_end = quiet_config(user)
    if quiet_enabled and is_within_quiet_hours(now_hm, quiet_start, quiet_end):
        raise ReminderPreconditionError(
            f"Quiet Hours are active ({quiet_start}-{quiet_end}). Test push is blocked right now."
        )

    tokens = [t for t in await store.list_push_tokens(user_id) if t]
    if not tokens:
        raise ReminderPreconditionError("No push tokens found for this user.")

    r = await dispatch(
        transport, tokens, APP_TITLE, f"Test notification • {now_hm}", "/",
        manual_push_options(date_key, now_hm),
    )
    removed = await purge_invalid_tokens(store, user_id, tokens, r.invalid_tokens)
    logger.info("[test-push] %s", {"uid": user_id, "tz": user_tz, "nowHM": now_hm, **r.model_dump()})

    return PushTestOut(
        ok=True,
        success_count=r.success_count,
        failure_count=r.failure_count,
        invalid_tokens_removed=removed,
        tz=user_tz,
        at_hm=now_hm,
        date_key=date_key,
    )
