from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 datetime string and normalize to UTC-naive datetime.

    - None / "" -> None
    - "YYYY-MM-DDTHH:MM" (naive) is interpreted as UTC
    - "...Z" or "...+/-HH:MM" is converted to UTC and tzinfo is stripped
    """
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None

    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    dt = datetime.fromisoformat(s)

    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def parse_date(value: Optional[str]) -> date:
    """Parse a YYYY-MM-DD calendar day. Raises ValueError on anything else."""
    if not value:
        raise ValueError("date is required (YYYY-MM-DD)")
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        raise ValueError(f"Invalid date: {value} (expected YYYY-MM-DD)")


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """[start, end) of a UTC calendar day."""
    start = datetime(day.year, day.month, day.day)
    return start, start + timedelta(days=1)


def period_bounds(period: str, day: date) -> tuple[datetime, datetime]:
    """
    [start, end) for a reporting period anchored on `day`.

    - daily: the day itself
    - weekly: Monday..Sunday week containing the day
    - monthly: calendar month containing the day
    """
    if period == "daily":
        return day_bounds(day)
    if period == "weekly":
        monday = day - timedelta(days=day.weekday())
        start, _ = day_bounds(monday)
        return start, start + timedelta(days=7)
    if period == "monthly":
        start = datetime(day.year, day.month, 1)
        if day.month == 12:
            end = datetime(day.year + 1, 1, 1)
        else:
            end = datetime(day.year, day.month + 1, 1)
        return start, end
    raise ValueError(f"Unknown period: {period} (expected daily, weekly or monthly)")


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


def to_iso_date(value: Optional[date]) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat()
