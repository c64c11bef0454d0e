"""One-time owner finalization of hourly operator billing."""

from datetime import datetime, timezone
from typing import Optional

from rentrig.models.booking import Booking, BookingStatus
from rentrig.models.listing import Listing, ServiceChoice
from rentrig.models.pricing import PricingBreakdown
from rentrig.models.results import OperationResult
from rentrig.models.user import CurrentUser
from rentrig.services.pricing import quote_snapshot
from rentrig.services.supabase_client import RentalStore
from rentrig.utils.errors import (
    AuthenticationRequired,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    RentRigError,
    ValidationFailure,
)
from rentrig.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)


def finalized_breakdown(booking: Booking, listing: Listing, final_hours) -> tuple[Booking, PricingBreakdown]:
    """
    Reprice the rental with actual hours in place of the estimate.

    Raises:
        ConflictError: already finalized, or the rental is not approved.
        ValidationFailure: not an hourly operator rental, or hours out of range.
    """
    snapshot = booking.snapshot
    if snapshot.hourly_finalized_at:
        raise ConflictError("Hourly service is already finalized.", reason="already_finalized")
    if booking.status != BookingStatus.APPROVED:
        raise ConflictError("Only approved rentals can be finalized.", reason="invalid_transition")
    if not snapshot.is_hourly_operator:
        raise ValidationFailure("This rental has no hourly operator service.", reason="not_hourly")

    cap = listing.service_offering(ServiceChoice.OPERATOR).hourly_cap
    if isinstance(final_hours, bool) or not isinstance(final_hours, int) or not 1 <= final_hours <= cap:
        raise ValidationFailure(f"Final hours must be a whole number from 1 to {cap}.", reason="invalid_hours")

    service = snapshot.service.model_copy(update={"quantity": final_hours})
    final_snapshot = snapshot.model_copy(update={
        "service": service,
        "hourly_is_estimate": False,
        "hourly_final_hours": final_hours,
        "hourly_finalized_at": datetime.now(timezone.utc).isoformat(),
    })
    breakdown = quote_snapshot(booking.start_date, booking.end_date, final_snapshot)
    updated = booking.model_copy(update={
        "snapshot": final_snapshot,
        "subtotal": breakdown.daily_subtotal,
        "service_fee": breakdown.service_fee_amount,
        "total": breakdown.total,
    })
    return updated, breakdown


def _finalization_columns(booking: Booking) -> dict:
    row = booking.to_row()
    keys = (
        "service_quantity",
        "hourly_is_estimate",
        "hourly_final_hours",
        "hourly_finalized_at",
        "subtotal",
        "service_fee",
        "total",
    )
    return {k: row[k] for k in keys}


async def finalize_hourly(
    store: RentalStore,
    user: Optional[CurrentUser],
    booking_id: str,
    final_hours,
) -> OperationResult:
    """Owner records actual operator hours, exactly once. Never raises."""
    try:
        if user is None:
            raise AuthenticationRequired()

        booking = await store.get_booking(booking_id)
        if booking is None:
            raise NotFoundError("Rental not found.", reason="rental_not_found")
        listing = await store.get_listing(booking.listing_id)
        if listing is None:
            raise NotFoundError("Listing not found.", reason="listing_not_found")
        if listing.owner_id != user.id:
            raise AuthorizationError("Forbidden.")

        updated, breakdown = finalized_breakdown(booking, listing, final_hours)

        # hourly_finalized_at IS NULL guard; a concurrent finalize matches zero rows
        written = await store.finalize_hourly(booking_id, _finalization_columns(updated))
        if written is None:
            raise ConflictError("Hourly service is already finalized.", reason="already_finalized")

    except RentRigError as e:
        logger.info("Hourly finalization refused", rental_id=booking_id, reason=e.reason)
        return OperationResult.failure(e)
    except Exception as e:
        logger.exception("Unexpected error finalizing hours", rental_id=booking_id, error=str(e))
        return OperationResult.internal_error("Could not finalize hours.")

    logger.info(
        "Hourly service finalized",
        rental_id=booking_id,
        final_hours=final_hours,
        total=str(breakdown.total),
    )
    return OperationResult.success(
        f"Finalized at {final_hours} hour(s).",
        booking=written,
        breakdown=breakdown,
    )
