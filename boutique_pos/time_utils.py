from __future__ import annotations

from datetime import datetime, time, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 datetime string and normalize to UTC-naive datetime.

    - None / "" -> None
    - "YYYY-MM-DD" is midnight of that day
    - "YYYY-MM-DDTHH:MM" (naive) is interpreted as UTC
    - "...Z" or "...+/-HH:MM" is converted to UTC and tzinfo is stripped
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


def start_of_day(dt: datetime) -> datetime:
    return datetime.combine(dt.date(), time.min)


def end_of_day(dt: datetime) -> datetime:
    return datetime.combine(dt.date(), time.max)


def resolve_report_range(
    start: Optional[str],
    end: Optional[str],
    *,
    default_days: int = 30,
) -> tuple[datetime, datetime]:
    """
    Turn optional startDate/endDate query strings into an inclusive range.

    Missing start defaults to `default_days` before the end date. Both
    bounds snap to whole days.
    """
    end_dt = parse_iso_datetime(end) or utcnow()
    start_dt = parse_iso_datetime(start) or (end_dt - timedelta(days=default_days))
    if start_dt > end_dt:
        raise ValueError("startDate must be on or before endDate")
    return start_of_day(start_dt), end_of_day(end_dt)


def resolve_named_range(name: str, now: Optional[datetime] = None) -> tuple[datetime, datetime]:
    """
    today -> midnight..now, week -> last 7 days, month -> last 30 days.

    Unknown names fall back to today.
    """
    now = now or utcnow()
    if name == "week":
        return now - timedelta(days=7), now
    if name == "month":
        return now - timedelta(days=30), now
    return start_of_day(now), now
