"""Rental request validation and submission."""

from typing import Iterable, Optional, Union
from pydantic import ValidationError

from rentrig.models.booking import (
    AddOnSelection,
    Booking,
    BookingRequest,
    BookingStatus,
    DeliverySnapshot,
    PricingSnapshot,
    ServiceSnapshot,
)
from rentrig.models.listing import DeliveryMode, Listing, RateUnit, ServiceChoice
from rentrig.models.pricing import PricingBreakdown
from rentrig.models.results import OperationResult
from rentrig.models.user import CurrentUser
from rentrig.services.availability import get_blocked_intervals, is_range_available, probe_interval
from rentrig.services.blocked_intervals import BlockedInterval
from rentrig.services.calendar import inclusive_day_count
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
from rentrig.utils.logging import get_structured_logger, mask_user_id

logger = get_structured_logger(__name__)


def check_listing_open(listing: Optional[Listing], renter_id: str) -> Listing:
    if listing is None:
        raise NotFoundError("Listing not found.", reason="listing_not_found")
    if not listing.is_published:
        raise ValidationFailure("This listing is not available.", reason="listing_unpublished")
    if listing.owner_id == renter_id:
        raise ValidationFailure("You cannot rent your own listing.", reason="own_listing")
    return listing


def check_license(listing: Listing, add_ons: AddOnSelection) -> None:
    """An owner-provided operator stands in for a renter license."""
    if not listing.requires_license or add_ons.license_attested:
        return
    if add_ons.service == ServiceChoice.OPERATOR:
        return
    license_type = f" ({listing.license_type})" if listing.license_type else ""
    raise ValidationFailure(
        f"This listing requires a license{license_type}. Confirm you hold one or add the operator service.",
        reason="license_required",
    )


def check_rental_length(listing: Listing, days: int) -> None:
    if listing.min_rental_days and days < listing.min_rental_days:
        raise ValidationFailure(
            f"Minimum rental is {listing.min_rental_days} day(s).",
            reason="rental_too_short",
        )
    if listing.max_rental_days and days > listing.max_rental_days:
        raise ValidationFailure(
            f"Maximum rental is {listing.max_rental_days} day(s).",
            reason="rental_too_long",
        )


def build_service_snapshot(listing: Listing, add_ons: AddOnSelection, days: int) -> ServiceSnapshot:
    """Resolve the selected service against what the listing actually offers."""
    if add_ons.service == ServiceChoice.NONE:
        return ServiceSnapshot()

    unit = add_ons.service_unit
    offering = listing.service_offering(add_ons.service)
    label = add_ons.service.value.replace("_", " + ")

    if not offering.supports(unit):
        raise ValidationFailure(
            f"The {label} service is not offered per {unit.value} on this listing.",
            reason="service_not_offered",
        )

    rate = offering.rate_for(unit)
    if rate is None or rate <= 0:
        raise ValidationFailure(
            f"The {label} service has no {unit.value} rate configured.",
            reason="service_rate_missing",
        )

    if unit == RateUnit.DAY:
        return ServiceSnapshot(choice=add_ons.service, unit=unit, rate=rate, quantity=days)

    hours = add_ons.estimated_hours
    cap = offering.hourly_cap
    if hours is None or hours < 1 or hours > cap:
        raise ValidationFailure(
            f"Estimated hours must be between 1 and {cap}.",
            reason="invalid_hours",
        )
    return ServiceSnapshot(choice=add_ons.service, unit=unit, rate=rate, quantity=hours)


def build_delivery_snapshot(listing: Listing, add_ons: AddOnSelection) -> DeliverySnapshot:
    if add_ons.delivery_selected and listing.delivery_mode == DeliveryMode.PICKUP_ONLY:
        raise ValidationFailure("This listing is pickup only.", reason="delivery_not_offered")
    if not add_ons.delivery_selected and listing.delivery_mode == DeliveryMode.DELIVERY_ONLY:
        raise ValidationFailure("This listing is delivery only.", reason="delivery_required")

    return DeliverySnapshot(
        selected=add_ons.delivery_selected,
        base_fee=listing.delivery_fee,
        discount_enabled=listing.delivery_service_discount_enabled,
        discount_amount=listing.delivery_service_discount_amount,
    )


def build_pricing_snapshot(listing: Listing, add_ons: AddOnSelection, days: int) -> PricingSnapshot:
    """Freeze every pricing input from the listing's current configuration."""
    service = build_service_snapshot(listing, add_ons, days)
    delivery = build_delivery_snapshot(listing, add_ons)
    return PricingSnapshot(
        daily_rate=listing.price_per_day,
        deposit_amount=listing.security_deposit,
        delivery=delivery,
        service=service,
        hourly_is_estimate=service.unit == RateUnit.HOUR and service.choice != ServiceChoice.NONE,
    )


def quote_for_listing(
    listing: Listing,
    start_date: str,
    end_date: str,
    add_ons: Optional[AddOnSelection] = None,
) -> PricingBreakdown:
    """Pre-submit quote. Same snapshot and formula the submitted request will store."""
    add_ons = add_ons or AddOnSelection()
    probe_interval(start_date, end_date)
    days = inclusive_day_count(start_date, end_date)
    snapshot = build_pricing_snapshot(listing, add_ons, days)
    return quote_snapshot(start_date, end_date, snapshot)


def validate_booking_request(
    request: BookingRequest,
    listing: Optional[Listing],
    renter_id: str,
    blocked: Iterable[BlockedInterval],
) -> Booking:
    """
    Run every request check in order and build the pending rental.

    Checks short-circuit on the first failure: listing open, dates, license,
    rental length, availability, service/delivery configuration, then pricing.

    Raises:
        NotFoundError, ValidationFailure, ConflictError
    """
    listing = check_listing_open(listing, renter_id)

    probe_interval(request.start_date, request.end_date)
    days = inclusive_day_count(request.start_date, request.end_date)

    check_license(listing, request.add_ons)
    check_rental_length(listing, days)

    if not is_range_available(blocked, request.start_date, request.end_date):
        raise ConflictError(
            "This listing is not available for those dates. Please choose different dates.",
            reason="unavailable",
        )

    snapshot = build_pricing_snapshot(listing, request.add_ons, days)
    breakdown = quote_snapshot(request.start_date, request.end_date, snapshot)

    return Booking(
        listing_id=listing.id,
        renter_id=renter_id,
        start_date=request.start_date,
        end_date=request.end_date,
        buffer_days=listing.turnaround_days,
        status=BookingStatus.PENDING,
        message=request.message,
        snapshot=snapshot,
        subtotal=breakdown.daily_subtotal,
        service_fee=breakdown.service_fee_amount,
        total=breakdown.total,
    )


async def submit_booking_request(
    store: RentalStore,
    user: Optional[CurrentUser],
    request: Union[BookingRequest, dict],
) -> OperationResult:
    """Validate a renter's request and persist it as pending. Never raises."""
    try:
        if user is None:
            raise AuthenticationRequired()

        if not isinstance(request, BookingRequest):
            try:
                request = BookingRequest.model_validate(request)
            except ValidationError as e:
                raise ValidationFailure(f"Invalid rental request: {e.errors()[0]['msg']}")

        if not request.listing_id:
            raise ValidationFailure("Missing listing id.", reason="missing_listing_id")

        listing = await store.get_listing(request.listing_id)
        check_listing_open(listing, user.id)
        blocked = await get_blocked_intervals(store, request.listing_id)

        pending = validate_booking_request(request, listing, user.id, blocked)
        booking = await store.insert_booking(pending)

    except RentRigError as e:
        logger.info(
            "Rental request rejected",
            reason=e.reason,
            listing_id=getattr(request, "listing_id", None),
            renter_id=mask_user_id(user.id) if user else None,
        )
        return OperationResult.failure(e)
    except Exception as e:
        logger.exception("Unexpected error submitting rental request", error=str(e))
        return OperationResult.internal_error("Could not submit the rental request.")

    breakdown = quote_snapshot(booking.start_date, booking.end_date, booking.snapshot)
    logger.info(
        "Rental request created",
        rental_id=booking.id,
        listing_id=booking.listing_id,
        renter_id=mask_user_id(user.id),
        total=str(breakdown.total),
    )
    return OperationResult.success("Rental request sent.", booking=booking, breakdown=breakdown)


async def quote_booking_request(store: RentalStore, request: Union[BookingRequest, dict]) -> OperationResult:
    """Price a prospective request against the listing's current configuration. Never raises."""
    try:
        if not isinstance(request, BookingRequest):
            try:
                request = BookingRequest.model_validate(request)
            except ValidationError as e:
                raise ValidationFailure(f"Invalid rental request: {e.errors()[0]['msg']}")

        listing = await store.get_listing(request.listing_id)
        if listing is None:
            raise NotFoundError("Listing not found.", reason="listing_not_found")
        breakdown = quote_for_listing(listing, request.start_date, request.end_date, request.add_ons)
    except RentRigError as e:
        return OperationResult.failure(e)
    except Exception as e:
        logger.exception("Unexpected error quoting rental", error=str(e))
        return OperationResult.internal_error("Could not price the rental.")

    return OperationResult.success("Quote ready.", breakdown=breakdown)
