"""
Time helpers shared by the scheduling core.

Weekly availability is expressed as "HH:MM" wall-clock strings and
day-of-week indexes where 0 is Sunday. Everything else in the core works on
timezone-aware pendulum ``DateTime`` instants.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime

import pendulum
from pendulum import DateTime

from .exceptions import FormatError

MINUTES_PER_DAY = 24 * 60

_HHMM_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


def time_to_minutes(value: str) -> int:
    """
    Convert an "HH:MM" string to minutes since midnight.

    Example: "14:30" -> 870

    Raises:
        FormatError: If the value is not a 24-hour "HH:MM" string
    """
    if not isinstance(value, str):
        raise FormatError(f"Time must be an 'HH:MM' string, got {value!r}")

    match = _HHMM_PATTERN.match(value.strip())
    if not match:
        raise FormatError(f"Invalid time '{value}', expected 'HH:MM' between 00:00 and 23:59")

    return int(match.group(1)) * 60 + int(match.group(2))


def minutes_to_time(minutes: int) -> str:
    """
    Convert minutes since midnight to an "HH:MM" string.

    Values outside [0, 1439] wrap around the day, so 1440 -> "00:00" and
    -30 -> "23:30".
    """
    wrapped = int(minutes) % MINUTES_PER_DAY
    return f"{wrapped // 60:02d}:{wrapped % 60:02d}"


def intervals_overlap(start1, end1, start2, end2) -> bool:
    """Half-open overlap test: touching endpoints do not overlap."""
    return start1 < end2 and start2 < end1


def round_to_interval(instant: DateTime, interval_minutes: int) -> DateTime:
    """
    Round an instant to the nearest multiple of ``interval_minutes``.

    Ties round toward the later instant. The result keeps the timezone of
    the input.
    """
    if interval_minutes <= 0:
        raise FormatError(f"Rounding interval must be positive, got {interval_minutes}")

    instant = ensure_aware(instant)
    step = interval_minutes * 60
    rounded = math.floor(instant.timestamp() / step + 0.5) * step
    return pendulum.from_timestamp(rounded, tz="UTC").in_timezone(instant.tzinfo)


def day_name(day_index: int) -> str:
    """Return the English weekday name for a 0=Sunday index."""
    if not 0 <= day_index <= 6:
        raise FormatError(f"Day of week must be between 0 and 6, got {day_index}")
    return DAY_NAMES[day_index]


def day_of_week(value: date) -> int:
    """Return the weekday of a date or instant with 0=Sunday, 6=Saturday."""
    return value.isoweekday() % 7


def minute_of_day(instant: DateTime) -> int:
    """Minutes elapsed since local midnight of the instant's own timezone."""
    return instant.hour * 60 + instant.minute


def ensure_aware(value: datetime) -> DateTime:
    """
    Coerce a datetime into a timezone-aware pendulum instant.

    Raises:
        FormatError: If the datetime carries no timezone
    """
    if not isinstance(value, datetime):
        raise FormatError(f"Expected a datetime, got {type(value).__name__}")
    if value.tzinfo is None or value.utcoffset() is None:
        raise FormatError(f"Datetime {value} has no timezone")
    if isinstance(value, DateTime):
        return value
    return pendulum.instance(value)


def convert_timezone(instant: datetime, to_timezone: str) -> DateTime:
    """Return the same instant expressed in another IANA timezone."""
    return ensure_aware(instant).in_timezone(to_timezone)


def parse_instant(value: str, tz: str = "UTC") -> DateTime:
    """
    Parse an ISO 8601 date or datetime string.

    Strings without an offset are interpreted in ``tz``.
    """
    try:
        parsed = pendulum.parse(value, tz=tz)
    except (ValueError, TypeError) as exc:
        raise FormatError(f"Invalid date/time '{value}': {exc}") from exc

    if not isinstance(parsed, DateTime):
        raise FormatError(f"'{value}' is not a date or date/time")
    return parsed


def parse_date(value: str) -> date:
    """Parse a "YYYY-MM-DD" string into a calendar date."""
    try:
        return pendulum.from_format(value, "YYYY-MM-DD").date()
    except (ValueError, TypeError) as exc:
        raise FormatError(f"Invalid date '{value}', expected YYYY-MM-DD") from exc
