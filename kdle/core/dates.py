"""
Calendar helpers.

The daily puzzle is keyed by the calendar day in a fixed timezone
(Pacific by default), not by UTC.
"""
from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Optional

import pytz

from kdle.core.config import settings


def now_utc() -> datetime:
    return datetime.now(tz=pytz.utc)


def today_in_tz(tz_name: str, now: Optional[datetime] = None) -> date:
    tz = pytz.timezone(tz_name)
    current = now or now_utc()
    if current.tzinfo is None:
        current = pytz.utc.localize(current)
    return current.astimezone(tz).date()


def game_today(now: Optional[datetime] = None) -> date:
    """The puzzle day currently in play."""
    return today_in_tz(settings.DAILY_RESET_TZ, now)


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last calendar day of a month."""
    start = date(year, month, 1)
    if month == 12:
        end = date(year + 1, 1, 1) - timedelta(days=1)
    else:
        end = date(year, month + 1, 1) - timedelta(days=1)
    return start, end
