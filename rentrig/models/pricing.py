"""Pricing breakdown model."""

from decimal import Decimal
from pydantic import BaseModel, Field


class PricingBreakdown(BaseModel):
    """Charge breakdown for one rental. All amounts in dollars, exact to the cent."""
    days: int = Field(..., ge=1, description="Inclusive rental day count")
    daily_rate: Decimal
    daily_subtotal: Decimal
    delivery_charge: Decimal = Decimal("0")
    service_charge: Decimal = Decimal("0")
    service_quantity: int = Field(0, description="Billed days or hours for the service")
    pre_fee_total: Decimal
    service_fee_amount: Decimal = Field(..., description="Platform fee, 10% of pre_fee_total")
    total: Decimal
    deposit: Decimal = Decimal("0")
    total_with_deposit: Decimal = Field(..., description="Shown only, never charged")
    hourly_is_estimate: bool = False

    @property
    def add_on_charge(self) -> Decimal:
        return self.delivery_charge + self.service_charge
