"""Accounting period boundaries

All timestamps in the store are naive UTC. Boundaries are computed in the
subscription's zone (midnight, Monday, first of month) and converted back.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from src.domain.subscription import ResetPeriod


def _to_local(moment: datetime, tz: ZoneInfo) -> datetime:
    return moment.replace(tzinfo=timezone.utc).astimezone(tz)


def _to_utc(moment: datetime) -> datetime:
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


def is_known_zone(tz_name: str) -> bool:
    try:
        ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        return False
    return True


def current_period_start(period: ResetPeriod, now: datetime, tz_name: str = "UTC") -> Optional[datetime]:
    """
    Start of the accounting period containing now, as naive UTC.

    Returns None for ResetPeriod.NEVER (no boundary).
    """
    if period == ResetPeriod.NEVER:
        return None

    tz = ZoneInfo(tz_name)
    local = _to_local(now, tz)
    midnight = datetime(local.year, local.month, local.day)

    if period == ResetPeriod.DAILY:
        start = midnight
    elif period == ResetPeriod.WEEKLY:
        start = midnight - timedelta(days=local.weekday())
    elif period == ResetPeriod.MONTHLY:
        start = midnight.replace(day=1)
    else:
        raise ValueError(f"Unsupported reset period: {period}")

    return _to_utc(start.replace(tzinfo=tz))


def period_elapsed(
    period: ResetPeriod,
    last_reset_at: Optional[datetime],
    now: datetime,
    tz_name: str = "UTC",
) -> bool:
    """True when last_reset_at lies in a period strictly before the current one"""
    start = current_period_start(period, now, tz_name)
    if start is None:
        return False
    if last_reset_at is None:
        return True
    return last_reset_at < start
