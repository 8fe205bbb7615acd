from __future__ import annotations

from datetime import datetime, time, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    # SQLite liefert naive Werte zurück, gespeichert wird immer UTC
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def start_of_today(now: datetime | None = None) -> datetime:
    current = as_utc(now) or utcnow()
    return datetime.combine(current.date(), time.min, tzinfo=timezone.utc)


def start_of_month(now: datetime | None = None) -> datetime:
    current = as_utc(now) or utcnow()
    return datetime(current.year, current.month, 1, tzinfo=timezone.utc)


def isoformat(value: datetime | None) -> str | None:
    normalized = as_utc(value)
    return normalized.isoformat() if normalized else None
