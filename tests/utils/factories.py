"""Test data factories using Faker."""

from faker import Faker
from typing import Optional

fake = Faker()

OWNER_ID = "11111111-1111-4111-8111-111111111111"
RENTER_ID = "22222222-2222-4222-8222-222222222222"
STRANGER_ID = "33333333-3333-4333-8333-333333333333"


def create_listing_data(owner_id: Optional[str] = None, **overrides) -> dict:
    """Create a listings row."""
    row = {
        "id": fake.uuid4(),
        "owner_id": owner_id or fake.uuid4(),
        "title": f"{fake.word().title()} Skid Steer",
        "category": "heavy_equipment",
        "description": fake.sentence(),
        "city": fake.city(),
        "state": fake.state_abbr(),
        "is_published": True,
        "price_per_day": "100.00",
        "security_deposit": "0",
        "turnaround_days": 0,
        "min_rental_days": None,
        "max_rental_days": None,
        "license_required": False,
        "license_type": None,
        "delivery_mode": "pickup_or_delivery",
        "delivery_fee": "50.00",
        "delivery_service_discount_enabled": False,
        "delivery_service_discount_amount": "0",
        "operator_enabled": False,
    }
    row.update(overrides)
    return row


def create_rental_data(listing_id: Optional[str] = None, renter_id: Optional[str] = None, **overrides) -> dict:
    """Create a rentals row."""
    row = {
        "id": fake.uuid4(),
        "listing_id": listing_id or fake.uuid4(),
        "renter_id": renter_id or fake.uuid4(),
        "start_date": "2024-06-01",
        "end_date": "2024-06-03",
        "buffer_days": 0,
        "status": "pending",
        "message": None,
        "daily_rate": "100.00",
        "security_deposit": "0",
        "delivery_selected": False,
        "delivery_base_fee": "0",
        "delivery_discount_enabled": False,
        "delivery_discount_amount": "0",
        "service_choice": "none",
        "service_unit": "day",
        "service_rate": "0",
        "service_quantity": 0,
        "hourly_is_estimate": False,
        "hourly_final_hours": None,
        "hourly_finalized_at": None,
        "subtotal": "300.00",
        "service_fee": "30.00",
        "total": "330.00",
    }
    row.update(overrides)
    return row


def create_hourly_operator_listing_data(owner_id: Optional[str] = None, **overrides) -> dict:
    """Listing offering an hourly operator at $60/h, capped at 10 hours."""
    row = create_listing_data(
        owner_id=owner_id,
        operator_enabled=True,
        operator_hourly_enabled=True,
        operator_hour_rate="60.00",
        operator_max_hours=10,
    )
    row.update(overrides)
    return row


def create_hourly_operator_rental_data(listing_id: str, renter_id: Optional[str] = None, **overrides) -> dict:
    """Approved rental with an 8 hour operator estimate."""
    row = create_rental_data(
        listing_id=listing_id,
        renter_id=renter_id,
        status="approved",
        service_choice="operator",
        service_unit="hour",
        service_rate="60.00",
        service_quantity=8,
        hourly_is_estimate=True,
    )
    row.update(overrides)
    return row
