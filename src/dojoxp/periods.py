"""UTC period helpers: calendar days, ISO weeks and month starts.

All activity periods are computed in UTC. Callers pass timezone-aware datetimes.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(dt: datetime) -> datetime:
    """Normalize a datetime to aware UTC. Naive values are taken as UTC (SQLite reads)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utc_day(now: datetime | None = None) -> date:
    """The UTC calendar date containing ``now``."""
    if now is None:
        now = utcnow()
    return as_utc(now).date()


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """[00:00, next 00:00) in UTC for a calendar day."""
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


def get_week_iso(dt: datetime) -> str:
    """Get ISO week string e.g. '2026-W09'. Uses %G-W%V (ISO year + ISO week)."""
    return as_utc(dt).strftime("%G-W%V")


def get_week_number(dt: datetime) -> int:
    """ISO week number (1-53) of dt in UTC."""
    return as_utc(dt).isocalendar().week


def get_monday(dt: datetime | date) -> date:
    """Get the Monday of the ISO week containing dt."""
    d = as_utc(dt).date() if isinstance(dt, datetime) else dt
    return d - timedelta(days=d.weekday())


def month_start(now: datetime | None = None) -> datetime:
    """First instant of the UTC calendar month containing ``now``."""
    if now is None:
        now = utcnow()
    now = as_utc(now)
    return datetime(now.year, now.month, 1, tzinfo=timezone.utc)
