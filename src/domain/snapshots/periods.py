"""Comparison periods and their start boundaries in a fixed time zone."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from enum import Enum
from zoneinfo import ZoneInfo

DEFAULT_TIMEZONE = "Europe/Berlin"


class Period(str, Enum):
    """Rolling comparison window tracked by one snapshot file."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


def resolve_timezone(timezone: str | ZoneInfo) -> ZoneInfo:
    return timezone if isinstance(timezone, ZoneInfo) else ZoneInfo(timezone)


def period_start(period: Period, now: datetime, timezone: str | ZoneInfo = DEFAULT_TIMEZONE) -> datetime:
    """Return the local start of the period instance containing `now`.

    Weeks start on Monday. A naive `now` is interpreted in the target zone.
    """
    zone = resolve_timezone(timezone)
    local_now = now.replace(tzinfo=zone) if now.tzinfo is None else now.astimezone(zone)
    day = local_now.date()

    if period is Period.DAILY:
        start_day = day
    elif period is Period.WEEKLY:
        start_day = day - timedelta(days=day.weekday())
    elif period is Period.MONTHLY:
        start_day = day.replace(day=1)
    elif period is Period.YEARLY:
        start_day = day.replace(month=1, day=1)
    else:
        raise ValueError(f"Unsupported period: {period!r}")

    return local_midnight(start_day, zone)


def local_midnight(day: date, timezone: str | ZoneInfo = DEFAULT_TIMEZONE) -> datetime:
    return datetime(day.year, day.month, day.day, tzinfo=resolve_timezone(timezone))


__all__ = ["DEFAULT_TIMEZONE", "Period", "local_midnight", "period_start", "resolve_timezone"]
