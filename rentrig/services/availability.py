"""Availability checks against approved rentals and their turnaround buffers."""

import asyncio
from typing import Iterable, Mapping, Optional

from rentrig.models.results import AvailabilityBatchResult, AvailabilityResult
from rentrig.services.blocked_intervals import BlockedInterval, build_blocked_intervals
from rentrig.services.calendar import add_days, intervals_overlap, parse_calendar_date
from rentrig.services.supabase_client import RentalStore
from rentrig.utils.errors import NotFoundError, ValidationFailure
from rentrig.utils.logging import get_structured_logger, log_timing

logger = get_structured_logger(__name__)


def probe_interval(start_date: str, end_date: str):
    """
    Convert an inclusive request range to the half-open probe ``[start, end + 1)``.

    Raises:
        InvalidDate: a date is malformed.
        ValidationFailure: end_date is before start_date.
    """
    start = parse_calendar_date(start_date)
    end = parse_calendar_date(end_date)
    if end < start:
        raise ValidationFailure("End date must be on or after start date.", reason="invalid_date_range")
    return start, add_days(end, 1)


def is_range_available(blocked: Iterable[BlockedInterval], start_date: str, end_date: str) -> bool:
    """True when the requested range touches no blocked interval."""
    probe_start, probe_end = probe_interval(start_date, end_date)
    for interval in blocked:
        if intervals_overlap(probe_start, probe_end, interval.start, interval.end_exclusive):
            return False
    return True


def partition_available(
    blocked_by_listing: Mapping[str, Optional[list[BlockedInterval]]],
    start_date: str,
    end_date: str,
) -> AvailabilityBatchResult:
    """
    Split listings into available / booked for one shared range.

    A ``None`` entry means that listing's intervals could not be fetched; it
    lands in ``failed`` and is never reported available.
    """
    probe_interval(start_date, end_date)

    result = AvailabilityBatchResult()
    for listing_id, blocked in blocked_by_listing.items():
        if blocked is None:
            result.failed.add(listing_id)
        elif is_range_available(blocked, start_date, end_date):
            result.available.add(listing_id)
        else:
            result.booked.add(listing_id)
    return result


async def get_blocked_intervals(
    store: RentalStore,
    listing_id: str,
    exclude_booking_id: Optional[str] = None,
) -> list[BlockedInterval]:
    """Blocked intervals for a listing, recomputed from approved rentals on every call."""
    approved = await store.get_approved_bookings(listing_id, exclude_booking_id=exclude_booking_id)
    return build_blocked_intervals(approved)


async def check_availability(
    store: RentalStore,
    listing_id: str,
    start_date: str,
    end_date: str,
) -> AvailabilityResult:
    """
    Single-listing availability.

    Raises:
        ValidationFailure: bad range, checked before any store access.
        NotFoundError: no such listing.
    """
    probe_interval(start_date, end_date)

    with log_timing("check_availability", logger=logger, listing_id=listing_id):
        listing = await store.get_listing(listing_id)
        if listing is None:
            raise NotFoundError("Listing not found.", reason="listing_not_found")

        blocked = await get_blocked_intervals(store, listing_id)
        available = is_range_available(blocked, start_date, end_date)

    logger.info(
        "Availability checked",
        listing_id=listing_id,
        start_date=start_date,
        end_date=end_date,
        blocked_intervals=len(blocked),
        available=available,
    )
    return AvailabilityResult(listing_id=listing_id, available=available)


async def check_availability_batch(
    store: RentalStore,
    listing_ids: Iterable[str],
    start_date: str,
    end_date: str,
) -> AvailabilityBatchResult:
    """Availability for many listings; one listing's fetch error does not fail the batch."""
    probe_interval(start_date, end_date)
    listing_ids = list(dict.fromkeys(listing_ids))

    async def fetch(listing_id: str) -> Optional[list[BlockedInterval]]:
        try:
            return await get_blocked_intervals(store, listing_id)
        except Exception as e:
            logger.warning(
                "Blocked interval fetch failed; excluding listing",
                listing_id=listing_id,
                error=str(e),
            )
            return None

    with log_timing("check_availability_batch", logger=logger, listing_count=len(listing_ids)):
        fetched = await asyncio.gather(*(fetch(listing_id) for listing_id in listing_ids))

    return partition_available(dict(zip(listing_ids, fetched)), start_date, end_date)
