"""Rental status transitions: approve, reject, cancel."""

from typing import Optional

from rentrig.models.booking import Booking, BookingStatus
from rentrig.models.listing import Listing
from rentrig.models.results import OperationResult
from rentrig.models.user import CurrentUser
from rentrig.services.availability import get_blocked_intervals, is_range_available
from rentrig.services.invoice import invoice_email_text, load_invoice, render_invoice_pdf
from rentrig.services.mailer import MailTransport, SmtpMailer
from rentrig.services.supabase_client import RentalStore
from rentrig.utils.errors import (
    AuthenticationRequired,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    RentRigError,
)
from rentrig.utils.logging import get_structured_logger, mask_user_id

logger = get_structured_logger(__name__)

# Only pending rentals move; every other status is terminal.
TRANSITIONS = {
    BookingStatus.PENDING: {
        BookingStatus.APPROVED,
        BookingStatus.REJECTED,
        BookingStatus.CANCELLED,
    },
}


def ensure_transition(current: BookingStatus, target: BookingStatus) -> None:
    if target not in TRANSITIONS.get(current, set()):
        raise ConflictError(
            f"Only pending rentals can be updated (this one is {current.value}).",
            reason="invalid_transition",
        )


def _require_user(user: Optional[CurrentUser]) -> CurrentUser:
    if user is None:
        raise AuthenticationRequired()
    return user


async def _load_booking_and_listing(store: RentalStore, booking_id: str) -> tuple[Booking, Listing]:
    booking = await store.get_booking(booking_id)
    if booking is None:
        raise NotFoundError("Rental not found.", reason="rental_not_found")
    listing = await store.get_listing(booking.listing_id)
    if listing is None:
        raise NotFoundError("Listing not found.", reason="listing_not_found")
    return booking, listing


async def _apply_transition(
    store: RentalStore,
    booking: Booking,
    target: BookingStatus,
) -> Booking:
    updated = await store.transition_booking(booking.id, BookingStatus.PENDING, target)
    if updated is None:
        raise ConflictError(
            "This rental was updated by someone else. Refresh and try again.",
            reason="status_changed",
        )
    return updated


async def notify_approval(
    store: RentalStore,
    booking: Booking,
    listing: Listing,
    mailer: MailTransport,
) -> tuple[bool, Optional[str]]:
    """Email the invoice to the renter. Returns (sent, failure message)."""
    try:
        renter_email = await store.get_user_email(booking.renter_id)
        if not renter_email:
            return False, "Approved, but renter has no email."

        invoice = await load_invoice(store, booking, listing, renter_email=renter_email)
        pdf_bytes = render_invoice_pdf(invoice)
        await mailer.send(
            to=renter_email,
            subject=f"Your RentRig invoice ({invoice.invoice_number})",
            text=invoice_email_text(invoice),
            attachment=pdf_bytes,
            filename=f"rentrig-invoice-{invoice.invoice_number}.pdf",
        )
        return True, None
    except RentRigError as e:
        logger.warning("Approval email failed", rental_id=booking.id, reason=e.reason, error=e.message)
        return False, f"Approved, but email failed: {e.message}"
    except Exception as e:
        logger.exception("Unexpected approval email error", rental_id=booking.id, error=str(e))
        return False, f"Approved, but email failed: {e}"


async def approve_booking(
    store: RentalStore,
    user: Optional[CurrentUser],
    booking_id: str,
    mailer: Optional[MailTransport] = None,
) -> OperationResult:
    """
    Owner approves a pending rental.

    Availability is re-checked against the listing's other approved rentals and
    the status write is conditional on the row still being pending; the
    database overlap constraint rejects a concurrent conflicting approval. The
    invoice email is sent after the commit and its failure never undoes it.
    """
    log = logger.bind(rental_id=booking_id)
    try:
        user = _require_user(user)
        booking, listing = await _load_booking_and_listing(store, booking_id)
        if listing.owner_id != user.id:
            raise AuthorizationError("Forbidden.")
        ensure_transition(booking.status, BookingStatus.APPROVED)

        blocked = await get_blocked_intervals(store, listing.id, exclude_booking_id=booking.id)
        if not is_range_available(blocked, booking.start_date, booking.end_date):
            raise ConflictError(
                "Cannot approve: this listing is already booked for those dates.",
                reason="conflict",
            )

        approved = await _apply_transition(store, booking, BookingStatus.APPROVED)
    except RentRigError as e:
        log.info("Approval refused", reason=e.reason)
        return OperationResult.failure(e)
    except Exception as e:
        log.exception("Unexpected error approving rental", error=str(e))
        return OperationResult.internal_error("Update failed.")

    log.info("Rental approved", owner_id=mask_user_id(user.id))

    notified, failure = await notify_approval(store, approved, listing, mailer or SmtpMailer())
    return OperationResult.success(failure or "Approved.", booking=approved, notified=notified)


async def reject_booking(store: RentalStore, user: Optional[CurrentUser], booking_id: str) -> OperationResult:
    """Owner rejects a pending rental."""
    try:
        user = _require_user(user)
        booking, listing = await _load_booking_and_listing(store, booking_id)
        if listing.owner_id != user.id:
            raise AuthorizationError("Forbidden.")
        ensure_transition(booking.status, BookingStatus.REJECTED)
        rejected = await _apply_transition(store, booking, BookingStatus.REJECTED)
    except RentRigError as e:
        return OperationResult.failure(e)
    except Exception as e:
        logger.exception("Unexpected error rejecting rental", rental_id=booking_id, error=str(e))
        return OperationResult.internal_error("Update failed.")

    logger.info("Rental rejected", rental_id=booking_id)
    return OperationResult.success("Rejected.", booking=rejected)


async def cancel_booking(store: RentalStore, user: Optional[CurrentUser], booking_id: str) -> OperationResult:
    """Renter withdraws their own pending request."""
    try:
        user = _require_user(user)
        booking = await store.get_booking(booking_id)
        if booking is None:
            raise NotFoundError("Rental not found.", reason="rental_not_found")
        if booking.renter_id != user.id:
            raise AuthorizationError("Not allowed.")
        ensure_transition(booking.status, BookingStatus.CANCELLED)
        cancelled = await _apply_transition(store, booking, BookingStatus.CANCELLED)
    except RentRigError as e:
        return OperationResult.failure(e)
    except Exception as e:
        logger.exception("Unexpected error cancelling rental", rental_id=booking_id, error=str(e))
        return OperationResult.internal_error("Update failed.")

    logger.info("Rental cancelled", rental_id=booking_id)
    return OperationResult.success("Cancelled.", booking=cancelled)
