"""Calendar date helpers shared by the schedule, lifecycle and attendance code.

Dates travel as ISO ``YYYY-MM-DD`` strings and are compared as local
calendar days - there is no timezone conversion anywhere in the core.
Date-key equality drives every practice invariant, so all parsing goes
through ``parse_iso_date``.

Weekdays use 0 = Sunday ... 6 = Saturday.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from datetime import date, datetime, timedelta

DAYS_OF_WEEK = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

_ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_LOOSE_DATE_RE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})(?:[T ].*)?$")
_TIME_RE = re.compile(r"^(\d{1,2})(?::?(\d{2}))?$")


def parse_iso_date(value: str | date | None) -> date | None:
    """Parse an ISO calendar date.

    Only the exact ``YYYY-MM-DD`` shape is accepted. Month must be 1-12 and
    day 1-31; a day past the end of its month rolls into the next month
    (``2024-02-30`` is March 1st), matching how stored practice dates were
    always interpreted.

    Args:
        value: ISO date string, date, or None

    Returns:
        Parsed date, or None if the value is empty or unparsable
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value:
        return None

    match = _ISO_DATE_RE.match(value)
    if not match:
        return None

    year, month, day = (int(part) for part in match.groups())
    if year < 1 or not 1 <= month <= 12 or not 1 <= day <= 31:
        return None

    try:
        return date(year, month, 1) + timedelta(days=day - 1)
    except OverflowError:
        return None


def format_date_key(d: date) -> str:
    """Format a date as its ISO ``YYYY-MM-DD`` key."""
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def date_key(value: str | date | None) -> str | None:
    """Normalize a date value to its canonical key, or None if unparsable."""
    parsed = parse_iso_date(value)
    if parsed is None:
        return None
    return format_date_key(parsed)


def loose_date_key(value: str | date | None) -> str | None:
    """Like ``date_key`` but also reads unpadded (``2024-9-2``) and timestamped values.

    Used for stored range bounds, which were not always written as keys.
    """
    key = date_key(value)
    if key is not None or not isinstance(value, str):
        return key
    match = _LOOSE_DATE_RE.match(value.strip())
    if not match:
        return None
    year, month, day = match.groups()
    return date_key(f"{year}-{int(month):02d}-{int(day):02d}")


def weekday_index(d: date) -> int:
    """Return the weekday with Sunday as 0."""
    return (d.weekday() + 1) % 7


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every calendar day from start to end, inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def month_start(d: date) -> date:
    return d.replace(day=1)


def month_end(d: date) -> date:
    if d.month == 12:
        return date(d.year, 12, 31)
    return date(d.year, d.month + 1, 1) - timedelta(days=1)


def normalize_time_value(value: str | int | None) -> str:
    """Normalize a time-of-day to zero-padded ``HH:MM``.

    Accepts ``7``, ``730``, ``7:30`` and ``07:30:00`` style input. Hours are
    clamped to 0-23 and minutes to 0-59.

    Args:
        value: Raw time value

    Returns:
        ``HH:MM`` string, or an empty string if the value cannot be read
    """
    if value is None or value == "":
        return ""
    text = str(value).strip()

    match = _TIME_RE.match(text)
    if match:
        hour = _clamp_int(match.group(1), 23)
        minute = _clamp_int(match.group(2) or "0", 59)
        return f"{hour:02d}:{minute:02d}"

    parts = text.split(":")
    if len(parts) >= 2:
        hour = _clamp_int(parts[0], 23)
        minute = _clamp_int(parts[1], 59)
        return f"{hour:02d}:{minute:02d}"
    return ""


def _clamp_int(raw: str, upper: int) -> int:
    digits = re.match(r"^\s*-?\d+", raw)
    if not digits:
        return 0
    return max(0, min(upper, int(digits.group(0))))
