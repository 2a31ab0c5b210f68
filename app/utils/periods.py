"""
Calendar windows used by budget progress and the monthly trends.

All functions take an explicit ``now`` so results never depend on the
ambient server clock or time zone.
"""
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Tuple
from zoneinfo import ZoneInfo


def resolve_timezone(name: str) -> tzinfo:
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def period_start(period: str, now: datetime, tz: tzinfo = timezone.utc, week_start: int = 6) -> datetime:
    """
    Start of the current budget window, returned in UTC.

    monthly: midnight on the 1st of the current month in ``tz``.
    weekly: midnight of the most recent ``week_start`` weekday (0=Monday,
    6=Sunday) in ``tz``; today counts when it is that weekday.
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    local = now.astimezone(tz)

    if period == "monthly":
        start = local.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    elif period == "weekly":
        days_back = (local.weekday() - week_start) % 7
        start = (local - timedelta(days=days_back)).replace(hour=0, minute=0, second=0, microsecond=0)
    else:
        raise ValueError(f"Unsupported budget period: {period}")

    return start.astimezone(timezone.utc)


def trend_window_start(now: datetime, months: int = 12) -> datetime:
    """First instant of the oldest month in a trailing window of ``months`` months (UTC)."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    now = now.astimezone(timezone.utc)
    year, month = now.year, now.month - (months - 1)
    while month < 1:
        month += 12
        year -= 1
    return datetime(year, month, 1, tzinfo=timezone.utc)


def month_bucket(iso_date: str) -> Tuple[int, int]:
    """(year, month) of a stored ISO date string."""
    return int(iso_date[0:4]), int(iso_date[5:7])
