from __future__ import annotations

import secrets
import string
import time
from datetime import date, datetime, timedelta
from typing import Optional, Tuple
from zoneinfo import ZoneInfo

_BASE36 = string.digits + string.ascii_lowercase


def calendar_day(year: int, month: int, day: int) -> date:
    """Build a date from a 0-based month, rolling overflowing months and days forward.

    ``calendar_day(2025, 1, 30)`` is 2 March 2025 and ``calendar_day(2025, 0, 0)``
    is 31 December 2024.
    """
    year += month // 12
    month %= 12
    return date(year, month + 1, 1) + timedelta(days=day - 1)


def next_month(year: int, month: int) -> Tuple[int, int]:
    if month >= 11:
        return year + 1, 0
    return year, month + 1


def build_due_date(day: date, tz: ZoneInfo) -> str:
    return datetime(day.year, day.month, day.day, tzinfo=tz).isoformat()


def due_date_to_date(value: Optional[str], tz: ZoneInfo) -> Optional[date]:
    """Calendar date of a stored ISO instant, read in ``tz``. ``None`` when absent or unreadable."""
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(tz)
    return parsed.date()


def match_key(day: date, title: str) -> Tuple[str, str]:
    return day.isoformat(), (title or "").strip()


def generate_id() -> str:
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"{int(time.time() * 1000)}-{suffix}"


def now_iso() -> str:
    return datetime.now().astimezone().isoformat()
