"""
Pricing engine.

One formula for every place a price is shown or stored: the pre-submit quote,
the snapshot frozen onto a rental, the invoice and hourly finalization. Inputs
are the inclusive date range, the daily rate and the add-on snapshots; nothing
is read from the listing's current configuration here.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from rentrig.models.booking import DeliverySnapshot, PricingSnapshot, ServiceSnapshot
from rentrig.models.listing import RateUnit, ServiceChoice
from rentrig.models.pricing import PricingBreakdown
from rentrig.services.calendar import inclusive_day_count
from rentrig.utils.config import PlatformConfig
from rentrig.utils.errors import ValidationFailure

CENT = Decimal("0.01")
ZERO = Decimal("0")


def _money(value) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value or 0))


def round_cents(amount: Decimal) -> Decimal:
    """Round to cents, half away from zero."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def delivery_charge(delivery: DeliverySnapshot, service_choice: ServiceChoice) -> Decimal:
    """Base delivery fee, discounted only when a service is also booked."""
    if not delivery.selected:
        return ZERO

    base_fee = _money(delivery.base_fee)
    discount = _money(delivery.discount_amount)
    if (
        delivery.discount_enabled
        and service_choice != ServiceChoice.NONE
        and base_fee > 0
        and discount > 0
    ):
        base_fee -= min(base_fee, discount)
    return max(ZERO, base_fee)


def service_quantity(service: ServiceSnapshot, days: int) -> int:
    """Daily service spans the whole rental; hourly bills the supplied hours."""
    if service.choice == ServiceChoice.NONE:
        return 0
    if service.unit == RateUnit.DAY:
        return days
    return service.quantity


def service_charge(service: ServiceSnapshot, days: int) -> Decimal:
    if service.choice == ServiceChoice.NONE:
        return ZERO
    return _money(service.rate) * service_quantity(service, days)


def platform_fee(pre_fee_total: Decimal) -> Decimal:
    return round_cents(pre_fee_total * PlatformConfig.SERVICE_FEE_RATE)


def quote_price(
    start_date: str,
    end_date: str,
    daily_rate,
    delivery: Optional[DeliverySnapshot] = None,
    service: Optional[ServiceSnapshot] = None,
    deposit_amount=ZERO,
    hourly_is_estimate: bool = False,
) -> PricingBreakdown:
    """
    Compute the charge breakdown for an inclusive ``[start_date, end_date]`` rental.

    Pure: the same inputs always give the same breakdown.

    Raises:
        InvalidDate: a date is malformed.
        ValidationFailure: end_date is before start_date.
    """
    delivery = delivery or DeliverySnapshot()
    service = service or ServiceSnapshot()

    days = inclusive_day_count(start_date, end_date)
    if days < 1:
        raise ValidationFailure("End date must be on or after start date.", reason="invalid_date_range")

    rate = _money(daily_rate)
    daily_subtotal = rate * days
    delivery_amount = delivery_charge(delivery, service.choice)
    service_amount = service_charge(service, days)

    pre_fee_total = daily_subtotal + delivery_amount + service_amount
    fee = platform_fee(pre_fee_total)
    total = pre_fee_total + fee
    deposit = max(ZERO, _money(deposit_amount))

    return PricingBreakdown(
        days=days,
        daily_rate=rate,
        daily_subtotal=daily_subtotal,
        delivery_charge=delivery_amount,
        service_charge=service_amount,
        service_quantity=service_quantity(service, days),
        pre_fee_total=pre_fee_total,
        service_fee_amount=fee,
        total=total,
        deposit=deposit,
        total_with_deposit=total + deposit,
        hourly_is_estimate=hourly_is_estimate and service.unit == RateUnit.HOUR,
    )


def quote_snapshot(start_date: str, end_date: str, snapshot: PricingSnapshot) -> PricingBreakdown:
    """Re-derive a rental's breakdown from its frozen snapshot alone."""
    return quote_price(
        start_date,
        end_date,
        snapshot.daily_rate,
        delivery=snapshot.delivery,
        service=snapshot.service,
        deposit_amount=snapshot.deposit_amount,
        hourly_is_estimate=snapshot.hourly_is_estimate,
    )
