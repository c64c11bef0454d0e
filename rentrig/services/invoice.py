"""Invoice fields, PDF rendering and access control."""

from datetime import datetime, timezone
from decimal import Decimal
from io import BytesIO
from typing import Optional
from pydantic import BaseModel
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from rentrig.models.booking import Booking
from rentrig.models.listing import Listing, RateUnit, ServiceChoice
from rentrig.models.pricing import PricingBreakdown
from rentrig.models.user import CurrentUser
from rentrig.services.calendar import parse_calendar_date
from rentrig.services.pricing import quote_snapshot
from rentrig.services.supabase_client import RentalStore
from rentrig.utils.errors import AuthenticationRequired, AuthorizationError, NotFoundError, NotificationError
from rentrig.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

SERVICE_LABELS = {
    ServiceChoice.DRIVER: "Driver service",
    ServiceChoice.DRIVER_LABOR: "Driver + labor service",
    ServiceChoice.OPERATOR: "Operator service",
}


def make_invoice_number(rental_id: str) -> str:
    tail = rental_id.replace("-", "")[-8:].upper()
    return f"RR-{tail}"


def money(amount: Decimal) -> str:
    return f"${amount:,.2f}"


def display_date(iso: str) -> str:
    """2024-06-01 -> Jun 1, 2024"""
    d = parse_calendar_date(iso)
    return f"{d:%b} {d.day}, {d.year}"


def display_name(name: Optional[str], user_id: str) -> str:
    return name or f"User {user_id[:8]}"


class Invoice(BaseModel):
    """Structured invoice. Every amount comes straight from the pricing engine."""
    invoice_number: str
    rental_id: str
    issued_on: str
    renter_name: str
    owner_name: str
    renter_email: Optional[str] = None
    listing_title: str
    location: Optional[str] = None
    start_date: str
    end_date: str
    status: str
    service_choice: ServiceChoice = ServiceChoice.NONE
    service_unit: RateUnit = RateUnit.DAY
    service_rate: Decimal = Decimal("0")
    breakdown: PricingBreakdown


def build_invoice(
    booking: Booking,
    listing: Listing,
    renter_name: str,
    owner_name: str,
    renter_email: Optional[str] = None,
) -> Invoice:
    """Invoice for a rental, priced from its frozen snapshot."""
    breakdown = quote_snapshot(booking.start_date, booking.end_date, booking.snapshot)
    location = ", ".join(part for part in (listing.city, listing.state) if part) or None
    return Invoice(
        invoice_number=make_invoice_number(booking.id or ""),
        rental_id=booking.id or "",
        issued_on=datetime.now(timezone.utc).strftime("%Y-%m-%d"),
        renter_name=renter_name,
        owner_name=owner_name,
        renter_email=renter_email,
        listing_title=listing.title or "Listing",
        location=location,
        start_date=booking.start_date,
        end_date=booking.end_date,
        status=booking.status.value,
        service_choice=booking.snapshot.service.choice,
        service_unit=booking.snapshot.service.unit,
        service_rate=booking.snapshot.service.rate,
        breakdown=breakdown,
    )


def invoice_lines(invoice: Invoice) -> list[tuple[str, int, bool]]:
    """(text, font size, bold) lines in page order."""
    b = invoice.breakdown
    lines = [
        ("RentRig Invoice", 18, True),
        (f"Invoice #: {invoice.invoice_number}", 10, False),
        (f"Issued: {display_date(invoice.issued_on)}", 10, False),
        (f"Rental ID: {invoice.rental_id}", 9, False),
        (f"Billed To: {invoice.renter_name}", 10, False),
        (f"Issued By: {invoice.owner_name}", 10, False),
    ]
    if invoice.renter_email:
        lines.append((f"Email: {invoice.renter_email}", 9, False))

    lines.append(("Listing", 12, True))
    lines.append((invoice.listing_title, 11, False))
    if invoice.location:
        lines.append((invoice.location, 10, False))

    lines += [
        ("Rental Dates", 12, True),
        (f"Start: {display_date(invoice.start_date)}", 11, False),
        (f"End: {display_date(invoice.end_date)}", 11, False),
        (f"Status: {invoice.status}", 11, False),
        ("Charges (estimate)", 12, True),
        (f"Daily rate: {money(b.daily_rate)}", 11, False),
        (f"Days: {b.days}", 11, False),
        (f"Rental subtotal: {money(b.daily_subtotal)}", 11, False),
    ]

    if invoice.service_choice != ServiceChoice.NONE and b.service_charge > 0:
        unit = invoice.service_unit.value
        estimate = " (estimate)" if b.hourly_is_estimate else ""
        lines.append((
            f"{SERVICE_LABELS[invoice.service_choice]}: {b.service_quantity} {unit}(s) "
            f"@ {money(invoice.service_rate)}/{unit} = {money(b.service_charge)}{estimate}",
            11,
            False,
        ))
    if b.delivery_charge > 0:
        lines.append((f"Delivery fee: {money(b.delivery_charge)}", 11, False))

    lines += [
        (f"Service fee (10%): {money(b.service_fee_amount)}", 11, False),
        (f"Total (pre-tax estimate): {money(b.total)}", 11, False),
    ]
    if b.deposit > 0:
        lines.append((f"Security deposit (refundable): {money(b.deposit)}", 11, False))
        lines.append((f"Total + deposit: {money(b.total_with_deposit)}", 11, False))

    lines += [
        ("Notes:", 11, True),
        ("- Taxes not included.", 10, False),
        ("- Deposit shown for transparency (payments not implemented yet).", 10, False),
    ]
    return lines


def render_invoice_pdf(invoice: Invoice) -> bytes:
    """Single-page letter PDF."""
    try:
        buf = BytesIO()
        c = canvas.Canvas(buf, pagesize=letter)
        _, height = letter
        left = 60
        y = height - 60

        for text, size, bold in invoice_lines(invoice):
            if bold and y < height - 60:
                y -= 6
            c.setFont("Helvetica-Bold" if bold else "Helvetica", size)
            c.drawString(left, y, text)
            y -= size + 10

        c.showPage()
        c.save()
        return buf.getvalue()
    except Exception as e:
        raise NotificationError(f"Failed to render invoice: {e}", reason="render_failed")


def invoice_email_text(invoice: Invoice) -> str:
    return (
        f"Hi {invoice.renter_name},\n\n"
        f"Attached is your RentRig invoice for {invoice.listing_title}.\n\n"
        f"Start: {display_date(invoice.start_date)}\n"
        f"End: {display_date(invoice.end_date)}\n"
        f"Total (pre-tax estimate): {money(invoice.breakdown.total)}\n\n"
        f"Thanks,\nRentRig"
    )


async def load_invoice(
    store: RentalStore,
    booking: Booking,
    listing: Listing,
    renter_email: Optional[str] = None,
) -> Invoice:
    """Look up display names and build the invoice."""
    renter_name = display_name(await store.get_profile_name(booking.renter_id), booking.renter_id)
    owner_name = display_name(await store.get_profile_name(listing.owner_id), listing.owner_id)
    return build_invoice(booking, listing, renter_name, owner_name, renter_email)


async def get_invoice(store: RentalStore, user: Optional[CurrentUser], rental_id: str) -> tuple[Invoice, bytes]:
    """
    Invoice PDF for the rental's renter or listing owner.

    Raises:
        AuthorizationError: not signed in, or not a participant.
        NotFoundError: rental or its listing is gone.
    """
    if user is None:
        raise AuthenticationRequired()

    booking = await store.get_booking(rental_id)
    if booking is None:
        raise NotFoundError("Rental not found.", reason="rental_not_found")
    listing = await store.get_listing(booking.listing_id)
    if listing is None:
        raise NotFoundError("Listing not found.", reason="listing_not_found")

    if user.id not in (booking.renter_id, listing.owner_id):
        raise AuthorizationError("Forbidden.")

    invoice = await load_invoice(store, booking, listing)
    logger.info("Invoice rendered", rental_id=rental_id, invoice_number=invoice.invoice_number)
    return invoice, render_invoice_pdf(invoice)
