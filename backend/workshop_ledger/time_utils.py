from __future__ import annotations

import calendar
from datetime import date, datetime, time, timezone
from typing import Optional
from zoneinfo import ZoneInfo


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 datetime string and normalize to UTC-naive datetime.

    - None / "" -> None
    - "YYYY-MM-DD" and "YYYY-MM-DDTHH:MM" (naive) are interpreted as UTC
    - "...Z" or "...+/-HH:MM" is converted to UTC and tzinfo is stripped

    Raises ValueError on malformed input.
    """
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None

    # Accept trailing Z
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    dt = datetime.fromisoformat(s)

    # Normalize to UTC-naive
    if dt.tzinfo is None:
        # interpret naive as UTC
        return dt.replace(tzinfo=None)

    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")


def parse_business_day(value: str, tz_name: str) -> date:
    """
    Resolve an ISO date or datetime string to a calendar day in the business zone.

    Date-only strings are taken as-is. Datetimes with an offset are shifted into
    the business zone first; naive datetimes are read as business-local.
    """
    s = value.strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    if len(s) == 10:
        return date.fromisoformat(s)
    dt = datetime.fromisoformat(s)
    if dt.tzinfo is not None:
        dt = dt.astimezone(ZoneInfo(tz_name))
    return dt.date()


def day_bounds_utc(start_day: date, end_day: date, tz_name: str) -> tuple[datetime, datetime]:
    """
    Inclusive [start 00:00:00.000, end 23:59:59.999] in the business zone,
    returned as UTC-naive datetimes for querying.
    """
    tz = ZoneInfo(tz_name)
    start_local = datetime.combine(start_day, time(0, 0, 0, 0), tzinfo=tz)
    end_local = datetime.combine(end_day, time(23, 59, 59, 999000), tzinfo=tz)
    return (
        start_local.astimezone(timezone.utc).replace(tzinfo=None),
        end_local.astimezone(timezone.utc).replace(tzinfo=None),
    )


def current_month_days(tz_name: str, today: date | None = None) -> tuple[date, date]:
    """First and last calendar day of the current month in the business zone."""
    if today is None:
        today = datetime.now(ZoneInfo(tz_name)).date()
    last = calendar.monthrange(today.year, today.month)[1]
    return today.replace(day=1), today.replace(day=last)


def business_date_key(dt: datetime, tz_name: str) -> str:
    """ISO day (YYYY-MM-DD) of a UTC-naive datetime, as seen in the business zone."""
    aware = dt.replace(tzinfo=timezone.utc) if dt.tzinfo is None else dt
    return aware.astimezone(ZoneInfo(tz_name)).date().isoformat()
