"""
Telemetry time bucketing.

Range resolution, bucket key calculation and canonical timestamp strings.

Key behaviors:
- hour/day ranges bucket by minute, week buckets by UTC day
- Unknown range names fall back to hour
- Keys are fixed-width UTC strings with millisecond precision and a Z
  suffix, so lexicographic order is time order
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from enum import Enum

from .models import DataQualityError

# --- Enums ---


class TimeRange(str, Enum):
    """Query window selector."""

    HOUR = "hour"
    DAY = "day"
    WEEK = "week"


DEFAULT_RANGE = TimeRange.HOUR

_WINDOWS: dict[TimeRange, timedelta] = {
    TimeRange.HOUR: timedelta(hours=1),
    TimeRange.DAY: timedelta(days=1),
    TimeRange.WEEK: timedelta(days=7),
}


def normalize_range(value: str | TimeRange | None) -> TimeRange:
    """Parse a range selector, falling back to hour for anything unknown."""
    if isinstance(value, TimeRange):
        return value
    if not value:
        return DEFAULT_RANGE
    try:
        return TimeRange(value.strip().lower())
    except ValueError:
        return DEFAULT_RANGE


# --- Timestamp Strings ---


def to_utc(dt: datetime) -> datetime:
    """Normalize to aware UTC. Naive datetimes are taken as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def format_timestamp(dt: datetime) -> str:
    """Format as e.g. 2024-06-15T14:30:45.123Z."""
    ts = to_utc(dt)
    return f"{ts:%Y-%m-%dT%H:%M:%S}.{ts.microsecond // 1000:03d}Z"


def parse_timestamp(value: object) -> datetime:
    """
    Parse an ISO-8601 string (or datetime) to aware UTC.

    Raises DataQualityError if the value cannot be parsed.
    """
    if isinstance(value, datetime):
        return to_utc(value)
    if not isinstance(value, str) or not value.strip():
        raise DataQualityError(value)

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return to_utc(datetime.fromisoformat(text))
    except ValueError:
        raise DataQualityError(value) from None


# --- Bucket Calculation ---


def calculate_bucket_start(timestamp: datetime, time_range: TimeRange) -> datetime:
    """
    Floor a timestamp to its bucket.

    hour and day both use minute buckets; week uses day buckets.
    """
    ts = to_utc(timestamp)
    if time_range == TimeRange.WEEK:
        return ts.replace(hour=0, minute=0, second=0, microsecond=0)
    return ts.replace(second=0, microsecond=0)


def bucket_key(timestamp: datetime, time_range: TimeRange | str) -> str:
    """Canonical bucket key string for a point in time."""
    return format_timestamp(calculate_bucket_start(timestamp, normalize_range(time_range)))


def minute_key(timestamp: datetime) -> str:
    """Minute-precision key, as stored on every event record."""
    return bucket_key(timestamp, TimeRange.HOUR)


def bucket_step(time_range: TimeRange) -> timedelta:
    """Width of one bucket."""
    if time_range == TimeRange.WEEK:
        return timedelta(days=1)
    return timedelta(minutes=1)


# --- Range Resolution ---


def resolve_range(time_range: TimeRange | str | None, now: datetime) -> tuple[datetime, datetime]:
    """Return (start, end) for the window ending at now."""
    end = to_utc(now)
    return end - _WINDOWS[normalize_range(time_range)], end


def iter_bucket_keys(start: datetime, end: datetime, time_range: TimeRange) -> list[str]:
    """Every bucket key from start to end inclusive, ascending."""
    keys: list[str] = []
    step = bucket_step(time_range)
    current = to_utc(start)
    stop = to_utc(end)
    while current <= stop:
        keys.append(bucket_key(current, time_range))
        current += step
    return keys
