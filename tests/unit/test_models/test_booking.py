"""Tests for Booking models."""

import pytest
from decimal import Decimal

from rentrig.models.booking import AddOnSelection, Booking, BookingRequest, BookingStatus
from rentrig.models.listing import RateUnit, ServiceChoice
from tests.utils.factories import create_rental_data


@pytest.mark.unit
def test_booking_from_row_builds_snapshot():
    """Test that flat rentals columns land in the typed snapshot."""
    booking = Booking.from_row(create_rental_data(
        status="approved",
        daily_rate="150.00",
        security_deposit="500",
        delivery_selected=True,
        delivery_base_fee="50",
        delivery_discount_enabled=True,
        delivery_discount_amount="20",
        service_choice="operator",
        service_unit="day",
        service_rate="80",
        service_quantity=3,
    ))

    assert booking.status == BookingStatus.APPROVED
    assert booking.snapshot.daily_rate == Decimal("150.00")
    assert booking.snapshot.deposit_amount == Decimal("500")
    assert booking.snapshot.delivery.selected is True
    assert booking.snapshot.delivery.discount_amount == Decimal("20")
    assert booking.snapshot.service.choice == ServiceChoice.OPERATOR
    assert booking.snapshot.service.unit == RateUnit.DAY
    assert booking.snapshot.service.quantity == 3
    assert booking.snapshot.is_hourly_operator is False


@pytest.mark.unit
def test_booking_from_row_tolerates_null_snapshot_columns():
    booking = Booking.from_row(create_rental_data(
        buffer_days=None,
        daily_rate=None,
        service_choice=None,
        service_unit=None,
        service_quantity=None,
    ))

    assert booking.buffer_days == 0
    assert booking.snapshot.daily_rate == Decimal("0")
    assert booking.snapshot.service.choice == ServiceChoice.NONE
    assert booking.snapshot.service.unit == RateUnit.DAY


@pytest.mark.unit
def test_booking_to_row_is_json_safe():
    """Test that Decimals and enums are flattened to strings."""
    row = create_rental_data(service_choice="operator", service_unit="hour", service_rate="60.00", service_quantity=8)
    out = Booking.from_row(row).to_row()

    assert out["id"] == row["id"]
    assert out["status"] == "pending"
    assert out["service_choice"] == "operator"
    assert out["service_unit"] == "hour"
    assert out["service_rate"] == "60.00"
    assert out["daily_rate"] == "100.00"
    assert out["service_quantity"] == 8


@pytest.mark.unit
def test_booking_to_row_omits_missing_id():
    booking = Booking(listing_id="l1", renter_id="r1", start_date="2024-06-01", end_date="2024-06-01")
    assert "id" not in booking.to_row()


@pytest.mark.unit
def test_booking_request_ignores_client_amounts():
    """Test that computed amounts sent by a client are dropped."""
    request = BookingRequest.model_validate({
        "listing_id": " l1 ",
        "start_date": "2024-06-01",
        "end_date": "2024-06-03",
        "message": "   ",
        "total": "1.00",
        "add_ons": {"delivery_selected": True, "delivery_fee": "0", "service_fee": "0"},
    })

    assert request.listing_id == "l1"
    assert request.message is None
    assert not hasattr(request, "total")
    assert request.add_ons == AddOnSelection(delivery_selected=True)
