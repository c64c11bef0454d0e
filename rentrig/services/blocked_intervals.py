"""Blocked date intervals derived from approved rentals."""

from datetime import datetime
from typing import Iterable, Union
from pydantic import BaseModel

from rentrig.models.booking import Booking, BookingStatus
from rentrig.services.calendar import add_days, format_calendar_date, parse_calendar_date


class BlockedInterval(BaseModel):
    """Half-open ``[start, end_exclusive)`` during which no new rental may start or run."""
    start: datetime
    end_exclusive: datetime
    buffer_days: int = 0

    def to_public(self) -> dict:
        """Shape returned to clients for availability prefetch."""
        return {
            "start": format_calendar_date(self.start),
            "end_exclusive": format_calendar_date(self.end_exclusive),
            "buffer_days": self.buffer_days,
        }


def blocked_interval_for(start_date: str, end_date: str, buffer_days: int) -> BlockedInterval:
    """The rental's own days plus its turnaround buffer."""
    buffer_days = max(0, int(buffer_days or 0))
    return BlockedInterval(
        start=parse_calendar_date(start_date),
        end_exclusive=add_days(parse_calendar_date(end_date), 1 + buffer_days),
        buffer_days=buffer_days,
    )


def build_blocked_intervals(bookings: Iterable[Union[Booking, dict]]) -> list[BlockedInterval]:
    """
    Blocked intervals for one listing, ordered by start.

    Only approved rentals contribute. Overlapping intervals are kept as-is;
    callers only test for overlap.
    """
    intervals = []
    for booking in bookings:
        if isinstance(booking, dict):
            status = booking.get("status")
            start_date, end_date = booking["start_date"], booking["end_date"]
            buffer_days = booking.get("buffer_days") or 0
        else:
            status = booking.status
            start_date, end_date = booking.start_date, booking.end_date
            buffer_days = booking.buffer_days

        if status != BookingStatus.APPROVED:
            continue
        intervals.append(blocked_interval_for(start_date, end_date, buffer_days))

    intervals.sort(key=lambda interval: interval.start)
    return intervals
