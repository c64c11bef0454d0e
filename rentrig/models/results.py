"""Typed results returned by booking operations."""

from typing import Optional
from pydantic import BaseModel, Field

from rentrig.models.booking import Booking
from rentrig.models.pricing import PricingBreakdown
from rentrig.utils.errors import RentRigError


class OperationResult(BaseModel):
    """Outcome of a booking operation. Failures carry a specific reason code."""
    ok: bool
    reason: Optional[str] = Field(None, description="Machine reason code on failure")
    message: Optional[str] = Field(None, description="Human readable outcome")
    booking: Optional[Booking] = None
    breakdown: Optional[PricingBreakdown] = None
    notified: Optional[bool] = Field(None, description="Approval email sent (approvals only)")
    status_code: int = Field(200, exclude=True)

    @classmethod
    def success(cls, message: str, **payload) -> "OperationResult":
        return cls(ok=True, message=message, **payload)

    @classmethod
    def failure(cls, error: RentRigError) -> "OperationResult":
        return cls(ok=False, reason=error.reason, message=error.message, status_code=error.status_code)

    @classmethod
    def internal_error(cls, message: str) -> "OperationResult":
        return cls(ok=False, reason="internal_error", message=message, status_code=500)


class AvailabilityResult(BaseModel):
    """Single-listing availability answer."""
    listing_id: str
    available: bool


class AvailabilityBatchResult(BaseModel):
    """Partition of listings for one shared date range."""
    available: set[str] = Field(default_factory=set)
    booked: set[str] = Field(default_factory=set)
    failed: set[str] = Field(default_factory=set, description="Blocked-interval fetch errored")
