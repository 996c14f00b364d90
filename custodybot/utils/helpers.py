"""Date and time helpers shared by the codec, expander and schedule manager."""

import re
from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Optional

UTC = timezone.utc

_TIME_OF_DAY_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})(?::(\d{2}))?\s*$")


def parse_time_of_day(value: str) -> time:
    """Parse a local time-of-day string such as ``09:00`` or ``17:30:00``.

    Args:
        value: Time string in ``HH:MM`` or ``HH:MM:SS`` form

    Returns:
        Parsed time

    Raises:
        ValueError: If the string is not a valid time of day
    """
    if not isinstance(value, str):
        raise ValueError(f"Invalid time of day: {value!r}")

    match = _TIME_OF_DAY_RE.match(value)
    if not match:
        raise ValueError(f"Invalid time of day: {value!r}")

    hour, minute, second = match.groups()
    return time(int(hour), int(minute), int(second or 0))


def parse_iso_date(value: object) -> date:
    """Coerce an ISO ``YYYY-MM-DD`` string (or a date) into a date.

    Raises:
        ValueError: If the value is not a date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value.strip())
    raise ValueError(f"Invalid date: {value!r}")


def comparable_instant(value: datetime) -> datetime:
    """Return a naive datetime usable for ordering floating and UTC instants together.

    Aware values are converted to UTC wall-clock time; floating values are
    returned unchanged.
    """
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def now_local() -> datetime:
    """Current local wall-clock time as a naive datetime."""
    return datetime.now()


def today_local(now: Optional[datetime] = None) -> date:
    """Current local date."""
    return (now or now_local()).date()


def enum_value(value: object) -> str:
    """Plain string value of an enum member or string."""
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)
