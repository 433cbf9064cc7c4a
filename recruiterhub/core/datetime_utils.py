from __future__ import annotations

import math
from datetime import date, datetime, time, timedelta, timezone

SECONDS_PER_DAY = 24 * 60 * 60


def utcnow() -> datetime:
    """Return current UTC time as a naive datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_naive(value: datetime) -> datetime:
    """Normalize a datetime to UTC and strip tzinfo."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def parse_datetime_utc(raw: str | datetime | date | None) -> datetime:
    if isinstance(raw, datetime):
        return to_utc_naive(raw)
    if isinstance(raw, date):
        return datetime.combine(raw, time.min)
    if not raw or not isinstance(raw, str):
        raise ValueError("Missing datetime value")
    value = raw.strip()
    if not value:
        raise ValueError("Missing datetime value")
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return to_utc_naive(datetime.fromisoformat(value))


def parse_optional_datetime(raw: str | datetime | date | None) -> datetime | None:
    if raw is None:
        return None
    if isinstance(raw, str) and not raw.strip():
        return None
    return parse_datetime_utc(raw)


def expand_end_of_day(raw: str | None, value: datetime | None) -> datetime | None:
    if not raw or value is None:
        return value
    if len(raw.strip()) == 10:
        return value + timedelta(days=1) - timedelta(microseconds=1)
    return value


def parse_optional_end_of_day(raw: str | datetime | date | None) -> datetime | None:
    """Parse an inclusive upper bound; a bare date covers the whole day."""
    value = parse_optional_datetime(raw)
    if value is None:
        return None
    if isinstance(raw, str):
        return expand_end_of_day(raw, value)
    if isinstance(raw, date) and not isinstance(raw, datetime):
        return value + timedelta(days=1) - timedelta(microseconds=1)
    return value


def days_remaining(deadline: datetime, now: datetime) -> int:
    # Partial days round up: a deadline 2h away is due in 1 day, one 2h past is due today.
    return math.ceil((deadline - now).total_seconds() / SECONDS_PER_DAY)
