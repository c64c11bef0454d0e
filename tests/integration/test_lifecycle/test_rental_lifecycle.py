"""End-to-end tests: request, approval, finalization and invoice against the in-memory store."""

import pytest
from decimal import Decimal

from rentrig.services.availability import check_availability
from rentrig.services.booking_validator import submit_booking_request
from rentrig.services.booking_workflow import approve_booking
from rentrig.services.hourly_finalization import finalize_hourly
from rentrig.services.invoice import get_invoice
from tests.utils.factories import OWNER_ID, RENTER_ID, create_hourly_operator_listing_data
from tests.utils.fakes import FakeRentalStore, RecordingMailer


@pytest.mark.integration
@pytest.mark.asyncio
async def test_hourly_operator_rental_lifecycle(owner, renter):
    listing = create_hourly_operator_listing_data(
        owner_id=OWNER_ID,
        id="l-hourly",
        price_per_day="150",
        turnaround_days=1,
        delivery_fee="50",
        delivery_service_discount_enabled=True,
        delivery_service_discount_amount="20",
    )
    store = FakeRentalStore(listings=[listing], emails={RENTER_ID: "renter@example.com"})
    mailer = RecordingMailer()

    requested = await submit_booking_request(store, renter, {
        "listing_id": "l-hourly",
        "start_date": "2024-06-01",
        "end_date": "2024-06-03",
        "add_ons": {"delivery_selected": True, "service": "operator", "service_unit": "hour", "estimated_hours": 8},
    })
    assert requested.ok is True
    # 450 rental + 30 delivery + 480 operator estimate = 960, +10%
    assert requested.breakdown.total == Decimal("1056.00")
    rental_id = requested.booking.id

    # owner raises prices after the request; the snapshot keeps the old ones
    store.listings["l-hourly"]["price_per_day"] = "500"
    store.listings["l-hourly"]["operator_hour_rate"] = "200"

    approved = await approve_booking(store, owner, rental_id, mailer=mailer)
    assert approved.ok is True
    assert approved.notified is True
    assert "Total (pre-tax estimate): $1,056.00" in mailer.sent[0]["text"]

    blocked = await check_availability(store, "l-hourly", "2024-06-04", "2024-06-06")
    open_after_buffer = await check_availability(store, "l-hourly", "2024-06-05", "2024-06-06")
    assert blocked.available is False
    assert open_after_buffer.available is True

    finalized = await finalize_hourly(store, owner, rental_id, 6)
    assert finalized.ok is True
    # 450 + 30 + 6h * 60 = 840, +10%
    assert finalized.breakdown.total == Decimal("924.00")

    invoice, pdf = await get_invoice(store, renter, rental_id)
    assert invoice.breakdown == finalized.breakdown
    assert invoice.breakdown.hourly_is_estimate is False
    assert pdf.startswith(b"%PDF")
