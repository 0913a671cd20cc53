"""
Datetime utilities for consistent timezone handling across the application.

Appointment timestamps are stored in UTC; calendar dates, weekdays and
hour buckets are always evaluated in the shop's single local zone.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Iterator, Optional, Tuple, Union

import pytz


def utc_now() -> datetime:
    """
    Get current UTC time as timezone-aware datetime.

    Returns:
        Current UTC datetime with timezone info
    """
    return datetime.now(timezone.utc)


def get_tz(tz_name: str) -> pytz.BaseTzInfo:
    """Return the pytz zone for ``tz_name``; raises ValueError if unknown."""
    try:
        return pytz.timezone(tz_name)
    except pytz.UnknownTimeZoneError as e:
        raise ValueError(f"Unknown timezone: {tz_name}") from e


def local_now(tz_name: str) -> datetime:
    """Current wall-clock time in the given zone."""
    return utc_now().astimezone(get_tz(tz_name))


def parse_iso_datetime(iso_string: str) -> datetime:
    """
    Parse ISO format datetime string to timezone-aware datetime.
    Handles both 'Z' suffix and '+00:00' timezone formats.

    Args:
        iso_string: ISO format datetime string

    Returns:
        Timezone-aware datetime object

    Raises:
        ValueError: If datetime string cannot be parsed
    """
    normalized = iso_string.replace("Z", "+00:00")

    try:
        dt = datetime.fromisoformat(normalized)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt
    except ValueError as e:
        raise ValueError(f"Invalid datetime string: {iso_string}") from e


def to_iso_string(dt: datetime) -> str:
    """
    Convert datetime to ISO format string.
    Naive datetimes are treated as UTC.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)

    return dt.isoformat()


def parse_date(value: Union[str, date]) -> date:
    """
    Parse a ``YYYY-MM-DD`` string (or pass a date through).

    Raises:
        ValueError: If the value is not a valid calendar date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError as e:
        raise ValueError(f"Invalid date string: {value}") from e


def parse_time_of_day(value: Union[str, time, None]) -> Optional[time]:
    """
    Parse a Postgres ``time`` column value.

    Accepts ``"HH:MM"`` and ``"HH:MM:SS"``; empty values become None.

    Raises:
        ValueError: If the value is not a valid time of day
    """
    if value is None or value == "":
        return None
    if isinstance(value, time):
        return value
    try:
        return time.fromisoformat(str(value).strip())
    except ValueError as e:
        raise ValueError(f"Invalid time string: {value}") from e


def format_time_of_day(value: Optional[time]) -> Optional[str]:
    """Format a time as ``HH:MM`` (the shape the dashboard sends and shows)."""
    if value is None:
        return None
    return value.strftime("%H:%M")


def iter_dates(start: date, end: date) -> Iterator[date]:
    """Yield every calendar date in [start, end]; nothing if end < start."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def local_day_bounds(day: date, tz_name: str) -> Tuple[datetime, datetime]:
    """
    Return [00:00, next 00:00) of ``day`` in the local zone, as UTC datetimes.
    """
    tz = get_tz(tz_name)
    start = tz.localize(datetime.combine(day, time.min))
    end = tz.localize(datetime.combine(day + timedelta(days=1), time.min))
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def to_local(dt: datetime, tz_name: Optional[str]) -> datetime:
    """
    Convert an aware datetime to the local zone.

    Naive datetimes are assumed to already be local wall-clock time.
    """
    if tz_name is None or dt.tzinfo is None:
        return dt
    return dt.astimezone(get_tz(tz_name))


def localize(day: date, at: time, tz_name: str) -> datetime:
    """Combine a local date and wall-clock time into an aware datetime."""
    return get_tz(tz_name).localize(datetime.combine(day, at))
