"""UTC-focused helpers for windows and run metadata."""

from __future__ import annotations

from datetime import date, datetime, time, timezone

FROST_TIME_FORMAT = "%Y-%m-%dT%H:%MZ"


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


def utc_timestamp_iso() -> str:
    return utc_now().isoformat(timespec="milliseconds")


def utc_midnight(value: datetime) -> datetime:
    value = as_utc(value)
    return datetime.combine(value.date(), time.min, tzinfo=timezone.utc)


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_utc(value: str | date | datetime | None) -> datetime | None:
    """Parse a date or datetime into an aware UTC datetime.

    Plain dates map to midnight UTC. ``None`` and empty strings pass through as
    ``None`` so callers can treat them as "now".
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    if len(text) == len("2023-02-10"):
        return datetime.combine(date.fromisoformat(text), time.min, tzinfo=timezone.utc)
    return as_utc(datetime.fromisoformat(text))


def format_frost_time(value: datetime) -> str:
    return as_utc(value).strftime(FROST_TIME_FORMAT)
