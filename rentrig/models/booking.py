"""Booking (rental request) models and the frozen pricing snapshot."""

from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from rentrig.models.listing import RateUnit, ServiceChoice


class BookingStatus(str, Enum):
    """Rental request lifecycle. Everything but PENDING is terminal."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class DeliverySnapshot(BaseModel):
    """Delivery configuration captured when the request was made."""
    selected: bool = False
    base_fee: Decimal = Field(Decimal("0"), ge=0)
    discount_enabled: bool = False
    discount_amount: Decimal = Field(Decimal("0"), ge=0)


class ServiceSnapshot(BaseModel):
    """Selected service, its unit and rate, and the billed quantity (days or hours)."""
    choice: ServiceChoice = ServiceChoice.NONE
    unit: RateUnit = RateUnit.DAY
    rate: Decimal = Field(Decimal("0"), ge=0)
    quantity: int = Field(0, ge=0)


class PricingSnapshot(BaseModel):
    """Every pricing input frozen onto the booking at request time."""
    daily_rate: Decimal = Field(Decimal("0"), ge=0)
    deposit_amount: Decimal = Field(Decimal("0"), ge=0)
    delivery: DeliverySnapshot = Field(default_factory=DeliverySnapshot)
    service: ServiceSnapshot = Field(default_factory=ServiceSnapshot)
    hourly_is_estimate: bool = False
    hourly_final_hours: Optional[int] = None
    hourly_finalized_at: Optional[str] = None

    @property
    def is_hourly_operator(self) -> bool:
        return (
            self.service.choice == ServiceChoice.OPERATOR
            and self.service.unit == RateUnit.HOUR
        )


class AddOnSelection(BaseModel):
    """Pricing inputs a renter may send. Amounts are never accepted from the client."""
    model_config = ConfigDict(extra="ignore")

    delivery_selected: bool = False
    service: ServiceChoice = ServiceChoice.NONE
    service_unit: RateUnit = RateUnit.DAY
    estimated_hours: Optional[int] = Field(None, description="Hour estimate for hourly services")
    license_attested: bool = Field(False, description="Renter states they hold the required license")


class BookingRequest(BaseModel):
    """Incoming rental request from a renter."""
    model_config = ConfigDict(extra="ignore")

    listing_id: str
    start_date: str = Field(..., description="YYYY-MM-DD, inclusive")
    end_date: str = Field(..., description="YYYY-MM-DD, inclusive")
    add_ons: AddOnSelection = Field(default_factory=AddOnSelection)
    message: Optional[str] = None

    @field_validator("listing_id", "start_date", "end_date", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("message", mode="before")
    @classmethod
    def _blank_message_is_none(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
        return value or None


class Booking(BaseModel):
    """One row of the rentals table."""
    id: Optional[str] = None
    listing_id: str
    renter_id: str
    start_date: str = Field(..., description="YYYY-MM-DD, inclusive")
    end_date: str = Field(..., description="YYYY-MM-DD, inclusive")
    buffer_days: int = Field(0, ge=0, description="Listing turnaround frozen at request time")
    status: BookingStatus = BookingStatus.PENDING
    message: Optional[str] = None
    snapshot: PricingSnapshot = Field(default_factory=PricingSnapshot)
    subtotal: Optional[Decimal] = None
    service_fee: Optional[Decimal] = None
    total: Optional[Decimal] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: dict) -> "Booking":
        """Build a booking from flat rentals columns."""
        def num(key: str) -> Decimal:
            value = row.get(key)
            return Decimal(str(value)) if value is not None else Decimal("0")

        snapshot = PricingSnapshot(
            daily_rate=num("daily_rate"),
            deposit_amount=num("security_deposit"),
            delivery=DeliverySnapshot(
                selected=bool(row.get("delivery_selected")),
                base_fee=num("delivery_base_fee"),
                discount_enabled=bool(row.get("delivery_discount_enabled")),
                discount_amount=num("delivery_discount_amount"),
            ),
            service=ServiceSnapshot(
                choice=row.get("service_choice") or ServiceChoice.NONE,
                unit=row.get("service_unit") or RateUnit.DAY,
                rate=num("service_rate"),
                quantity=int(row.get("service_quantity") or 0),
            ),
            hourly_is_estimate=bool(row.get("hourly_is_estimate")),
            hourly_final_hours=row.get("hourly_final_hours"),
            hourly_finalized_at=row.get("hourly_finalized_at"),
        )
        return cls(
            id=row.get("id"),
            listing_id=row["listing_id"],
            renter_id=row["renter_id"],
            start_date=row["start_date"],
            end_date=row["end_date"],
            buffer_days=int(row.get("buffer_days") or 0),
            status=row.get("status") or BookingStatus.PENDING,
            message=row.get("message"),
            snapshot=snapshot,
            subtotal=row.get("subtotal"),
            service_fee=row.get("service_fee"),
            total=row.get("total"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    def to_row(self) -> dict:
        """Flatten to rentals columns, JSON-safe for PostgREST."""
        snap = self.snapshot
        row = {
            "listing_id": self.listing_id,
            "renter_id": self.renter_id,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "buffer_days": self.buffer_days,
            "status": self.status.value,
            "message": self.message,
            "daily_rate": snap.daily_rate,
            "security_deposit": snap.deposit_amount,
            "delivery_selected": snap.delivery.selected,
            "delivery_base_fee": snap.delivery.base_fee,
            "delivery_discount_enabled": snap.delivery.discount_enabled,
            "delivery_discount_amount": snap.delivery.discount_amount,
            "service_choice": snap.service.choice.value,
            "service_unit": snap.service.unit.value,
            "service_rate": snap.service.rate,
            "service_quantity": snap.service.quantity,
            "hourly_is_estimate": snap.hourly_is_estimate,
            "hourly_final_hours": snap.hourly_final_hours,
            "hourly_finalized_at": snap.hourly_finalized_at,
            "subtotal": self.subtotal,
            "service_fee": self.service_fee,
            "total": self.total,
        }
        if self.id:
            row["id"] = self.id
        return {k: (str(v) if isinstance(v, Decimal) else v) for k, v in row.items()}
