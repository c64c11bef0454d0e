"""Custom assertion helpers."""

from decimal import Decimal

from rentrig.models.pricing import PricingBreakdown


def assert_breakdown_consistent(breakdown: PricingBreakdown) -> None:
    """Totals add up and the fee is exactly 10% of the pre-fee total."""
    assert breakdown.pre_fee_total == (
        breakdown.daily_subtotal + breakdown.delivery_charge + breakdown.service_charge
    )
    assert breakdown.service_fee_amount == (breakdown.pre_fee_total * Decimal("0.10")).quantize(Decimal("0.01"))
    assert breakdown.total == breakdown.pre_fee_total + breakdown.service_fee_amount
    assert breakdown.total_with_deposit == breakdown.total + breakdown.deposit
    assert breakdown.delivery_charge >= 0


def assert_failed_with(result, reason: str) -> None:
    assert result.ok is False, result.message
    assert result.reason == reason, f"expected {reason}, got {result.reason}: {result.message}"
