"""Calendar math on UTC-midnight instants.

All dates are calendar days encoded as ``YYYY-MM-DD`` and handled as
timezone-aware datetimes at 00:00 UTC, so adding days never crosses a DST
boundary. Intervals are half-open: ``[start, end)``.
"""

import re
from datetime import datetime, timedelta, timezone

from rentrig.utils.errors import InvalidDate

_ISO_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
_MS_PER_DAY = 86_400_000


def parse_calendar_date(value: str) -> datetime:
    """Parse ``YYYY-MM-DD`` as UTC midnight."""
    if not isinstance(value, str) or not _ISO_DATE_RE.fullmatch(value):
        raise InvalidDate(f"Dates must be YYYY-MM-DD, got {value!r}.")
    year, month, day = (int(part) for part in value.split("-"))
    try:
        return datetime(year, month, day, tzinfo=timezone.utc)
    except ValueError:
        raise InvalidDate(f"{value} is not a real calendar date.")


def format_calendar_date(instant: datetime) -> str:
    return instant.astimezone(timezone.utc).strftime("%Y-%m-%d")


def add_days(instant: datetime, days: int) -> datetime:
    return instant + timedelta(days=int(days))


def intervals_overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open overlap test. Intervals that only touch at a boundary do not overlap."""
    return a_start < b_end and b_start < a_end


def days_between(start: datetime, end: datetime) -> int:
    """Whole days from ``start`` to ``end`` (nights between two half-open endpoints)."""
    delta_ms = (end - start) / timedelta(milliseconds=1)
    return round(delta_ms / _MS_PER_DAY)


def inclusive_day_count(start_date: str, end_date: str) -> int:
    """Rental days for an inclusive ``[start_date, end_date]`` range; same day is 1."""
    return days_between(parse_calendar_date(start_date), parse_calendar_date(end_date)) + 1
