from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from config import FALLBACK_TIMEZONE

HHMM_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def validate_timezone(tz: Any = None) -> str:
    """Return ``tz`` if it names a known zone, else the fallback zone.

    Timezone ids arrive as free-form user data, so this never raises.
    """
    if not isinstance(tz, str) or not tz:
        return FALLBACK_TIMEZONE
    try:
        ZoneInfo(tz)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        return FALLBACK_TIMEZONE
    return tz


def now_in_tz(tz: str, now: Optional[datetime] = None) -> datetime:
    # Re-validate so an unchecked id can never reach ZoneInfo.
    zone = ZoneInfo(validate_timezone(tz))
    instant = now or datetime.now(timezone.utc)
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(zone)


def local_time_of_day(tz: str, now: Optional[datetime] = None) -> str:
    return now_in_tz(tz, now).strftime("%H:%M")


def local_weekday(tz: str, now: Optional[datetime] = None) -> int:
    # Monday=1..Sunday=7
    return now_in_tz(tz, now).isoweekday()


def local_date_key(tz: str, now: Optional[datetime] = None) -> str:
    return now_in_tz(tz, now).date().isoformat()


def is_valid_hhmm(value: Any) -> bool:
    return isinstance(value, str) and bool(HHMM_RE.match(value))


def is_within_quiet_hours(now_hm: str, start: str, end: str) -> bool:
    """True when ``now_hm`` falls in [start, end), wrapping past midnight.

    All three are zero-padded "HH:mm" strings, so they compare lexically.
    """
    if start == end:
        return False
    if start < end:
        return start <= now_hm < end
    return now_hm >= start or now_hm < end
