"""Listing models - rentable equipment and its rate configuration."""

from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, Field, ValidationInfo, field_validator, model_validator

from rentrig.utils.config import PlatformConfig


class DeliveryMode(str, Enum):
    """How the equipment reaches the renter."""
    PICKUP_ONLY = "pickup_only"
    DELIVERY_ONLY = "delivery_only"
    PICKUP_OR_DELIVERY = "pickup_or_delivery"


class ServiceChoice(str, Enum):
    """Owner-provided service a renter can add to a rental."""
    NONE = "none"
    DRIVER = "driver"
    DRIVER_LABOR = "driver_labor"
    OPERATOR = "operator"


class RateUnit(str, Enum):
    """Billing unit for a service."""
    DAY = "day"
    HOUR = "hour"


_MONEY_FIELDS = (
    "price_per_day",
    "security_deposit",
    "delivery_fee",
    "delivery_service_discount_amount",
)


class ServiceOffering(BaseModel):
    """One service as configured on a listing."""
    choice: ServiceChoice
    enabled: bool = False
    daily_enabled: bool = False
    hourly_enabled: bool = False
    day_rate: Optional[Decimal] = None
    hour_rate: Optional[Decimal] = None
    max_hours: Optional[int] = None

    def supports(self, unit: RateUnit) -> bool:
        if not self.enabled:
            return False
        return self.daily_enabled if unit == RateUnit.DAY else self.hourly_enabled

    def rate_for(self, unit: RateUnit) -> Optional[Decimal]:
        return self.day_rate if unit == RateUnit.DAY else self.hour_rate

    @property
    def hourly_cap(self) -> int:
        """Owner's max billable hours, or the platform ceiling when unset."""
        if self.max_hours and self.max_hours > 0:
            return self.max_hours
        return PlatformConfig.DEFAULT_HOURLY_CAP


class Listing(BaseModel):
    """Rentable item, one row of the listings table."""
    id: str = Field(..., description="Listing UUID")
    owner_id: str = Field(..., description="Owning user UUID")
    title: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    is_published: bool = False

    price_per_day: Decimal = Field(Decimal("0"), ge=0, description="Daily rental rate")
    security_deposit: Decimal = Field(Decimal("0"), ge=0, description="Refundable deposit, shown not charged")

    turnaround_days: int = Field(0, ge=0, description="Buffer days blocked after each approved rental")
    min_rental_days: Optional[int] = Field(None, ge=0)
    max_rental_days: Optional[int] = Field(None, ge=0)

    license_required: bool = False
    license_type: Optional[str] = None

    delivery_mode: DeliveryMode = DeliveryMode.PICKUP_ONLY
    delivery_fee: Decimal = Field(Decimal("0"), ge=0)
    delivery_service_discount_enabled: bool = False
    delivery_service_discount_amount: Decimal = Field(Decimal("0"), ge=0)

    driver_enabled: bool = False
    driver_daily_enabled: bool = False
    driver_hourly_enabled: bool = False
    driver_day_rate: Optional[Decimal] = None
    driver_hour_rate: Optional[Decimal] = None
    driver_max_hours: Optional[int] = None

    driver_labor_enabled: bool = False
    driver_labor_daily_enabled: bool = False
    driver_labor_hourly_enabled: bool = False
    driver_labor_day_rate: Optional[Decimal] = None
    driver_labor_hour_rate: Optional[Decimal] = None
    driver_labor_max_hours: Optional[int] = None

    operator_enabled: bool = False
    operator_daily_enabled: bool = False
    operator_hourly_enabled: bool = False
    operator_day_rate: Optional[Decimal] = None
    operator_hour_rate: Optional[Decimal] = None
    operator_max_hours: Optional[int] = None

    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _expand_single_rate_operator(cls, data: Any) -> Any:
        """Rows written before per-unit operator rates carry operator_rate + operator_rate_unit."""
        if not isinstance(data, dict) or data.get("operator_rate") is None:
            return data
        if any(data.get(k) is not None for k in ("operator_day_rate", "operator_hour_rate")):
            return data

        data = dict(data)
        if data.get("operator_rate_unit") == RateUnit.HOUR.value:
            data["operator_hourly_enabled"] = True
            data["operator_hour_rate"] = data["operator_rate"]
        else:
            data["operator_daily_enabled"] = True
            data["operator_day_rate"] = data["operator_rate"]
        return data

    @field_validator(*_MONEY_FIELDS, mode="before")
    @classmethod
    def _null_money_is_zero(cls, value: Any) -> Any:
        return Decimal("0") if value is None else value

    @field_validator("*", mode="before")
    @classmethod
    def _null_flag_is_false(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None and cls.model_fields[info.field_name].annotation is bool:
            return False
        return value

    @field_validator("turnaround_days", mode="before")
    @classmethod
    def _null_turnaround_is_zero(cls, value: Any) -> Any:
        return 0 if value is None else value

    @field_validator("delivery_mode", mode="before")
    @classmethod
    def _unknown_delivery_mode_is_pickup(cls, value: Any) -> Any:
        valid = {m.value for m in DeliveryMode}
        value = getattr(value, "value", value)
        return value if value in valid else DeliveryMode.PICKUP_ONLY.value

    @property
    def requires_license(self) -> bool:
        """License is demanded by the owner and honored for this category."""
        if not self.license_required:
            return False
        licensed = PlatformConfig.LICENSED_CATEGORIES
        if not licensed:
            return True
        return (self.category or "").strip().lower() in licensed

    def service_offering(self, choice: ServiceChoice) -> ServiceOffering:
        """Collect the per-service columns for one service choice."""
        if choice == ServiceChoice.NONE:
            return ServiceOffering(choice=choice)

        prefix = choice.value
        return ServiceOffering(
            choice=choice,
            enabled=getattr(self, f"{prefix}_enabled"),
            daily_enabled=getattr(self, f"{prefix}_daily_enabled"),
            hourly_enabled=getattr(self, f"{prefix}_hourly_enabled"),
            day_rate=getattr(self, f"{prefix}_day_rate"),
            hour_rate=getattr(self, f"{prefix}_hour_rate"),
            max_hours=getattr(self, f"{prefix}_max_hours"),
        )
