# timetrack/utils/dates.py
# All persisted timestamps are naive UTC; a "day" is [00:00 UTC, next 00:00 UTC).
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple

ONE_MS = timedelta(milliseconds=1)


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_naive_utc(value: datetime) -> datetime:
    """Normalise an incoming timestamp to naive UTC."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def day_bucket(value: datetime) -> date:
    return as_naive_utc(value).date()


def day_bounds(day: date) -> Tuple[datetime, datetime]:
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


def duration_ms(start: datetime, end: Optional[datetime]) -> int:
    if end is None:
        return 0
    return (end - start) // ONE_MS
