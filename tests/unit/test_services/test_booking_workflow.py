"""Tests for approve / reject / cancel transitions."""

import pytest

from rentrig.models.booking import BookingStatus
from rentrig.services.availability import check_availability
from rentrig.services.booking_validator import submit_booking_request
from rentrig.services.booking_workflow import (
    approve_booking,
    cancel_booking,
    ensure_transition,
    reject_booking,
)
from rentrig.utils.errors import ConflictError
from tests.utils.assertions import assert_failed_with
from tests.utils.factories import create_rental_data
from tests.utils.fakes import RecordingMailer


@pytest.mark.unit
@pytest.mark.parametrize("current", [BookingStatus.APPROVED, BookingStatus.REJECTED, BookingStatus.CANCELLED])
def test_terminal_states_have_no_transitions(current):
    for target in BookingStatus:
        with pytest.raises(ConflictError):
            ensure_transition(current, target)


@pytest.mark.unit
def test_pending_transitions():
    for target in (BookingStatus.APPROVED, BookingStatus.REJECTED, BookingStatus.CANCELLED):
        ensure_transition(BookingStatus.PENDING, target)
    with pytest.raises(ConflictError):
        ensure_transition(BookingStatus.PENDING, BookingStatus.PENDING)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_approve_sends_invoice(store, owner, pending_rental_row, mailer):
    result = await approve_booking(store, owner, pending_rental_row["id"], mailer=mailer)

    assert result.ok is True
    assert result.message == "Approved."
    assert result.notified is True
    assert result.booking.status == BookingStatus.APPROVED
    assert store.rentals[pending_rental_row["id"]]["status"] == "approved"

    sent = mailer.sent[0]
    assert sent["to"] == "renter@example.com"
    assert sent["subject"] == "Your RentRig invoice (RR-0000ABCD)"
    assert sent["attachment"].startswith(b"%PDF")
    assert "Riley Renter" in sent["text"]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_approve_email_failure_keeps_approval(store, owner, pending_rental_row):
    result = await approve_booking(store, owner, pending_rental_row["id"], mailer=RecordingMailer(fail=True))

    assert result.ok is True
    assert result.notified is False
    assert result.message.startswith("Approved, but email failed:")
    assert store.rentals[pending_rental_row["id"]]["status"] == "approved"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_approve_without_renter_email(store, owner, pending_rental_row, mailer):
    store.emails.clear()
    result = await approve_booking(store, owner, pending_rental_row["id"], mailer=mailer)

    assert result.ok is True
    assert result.notified is False
    assert result.message == "Approved, but renter has no email."
    assert mailer.sent == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_approve_rechecks_availability(store, owner, listing_row, mailer):
    """Test that two pending requests for the same dates cannot both be approved."""
    first = create_rental_data(listing_id=listing_row["id"], id="p1", start_date="2024-08-01", end_date="2024-08-03")
    second = create_rental_data(listing_id=listing_row["id"], id="p2", start_date="2024-08-03", end_date="2024-08-05")
    store.rentals.update({"p1": first, "p2": second})

    assert (await approve_booking(store, owner, "p1", mailer=mailer)).ok is True
    result = await approve_booking(store, owner, "p2", mailer=mailer)

    assert_failed_with(result, "conflict")
    assert result.status_code == 409
    assert store.rentals["p2"]["status"] == "pending"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_request_ending_before_approved_rental_can_be_approved(store, owner, renter, listing_row, approved_rental_row, mailer):
    """Test that the request's own turnaround does not collide with a later approved rental."""
    dates = {"start_date": "2024-05-29", "end_date": "2024-05-31"}
    availability = await check_availability(store, listing_row["id"], **dates)
    assert availability.available is True

    submitted = await submit_booking_request(store, renter, {"listing_id": listing_row["id"], **dates})
    assert submitted.ok is True
    rental_id = store.inserted[0]["id"]
    assert store.inserted[0]["buffer_days"] == 1

    result = await approve_booking(store, owner, rental_id, mailer=mailer)

    assert result.ok is True
    assert store.rentals[rental_id]["status"] == "approved"
    assert store.rentals[approved_rental_row["id"]]["status"] == "approved"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_approve_refused_inside_earlier_rental_turnaround(store, owner, listing_row, mailer):
    store.rentals["p1"] = create_rental_data(
        listing_id=listing_row["id"], id="p1", start_date="2024-09-01", end_date="2024-09-03", buffer_days=2,
        status="approved",
    )
    store.rentals["p2"] = create_rental_data(
        listing_id=listing_row["id"], id="p2", start_date="2024-09-05", end_date="2024-09-06",
    )

    result = await approve_booking(store, owner, "p2", mailer=mailer)

    assert_failed_with(result, "conflict")
    assert store.rentals["p2"]["status"] == "pending"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_approve_conflict_from_store_constraint(store, owner, pending_rental_row, mailer):
    """Test a racing approval that slips past the re-check is refused by the store."""
    async def no_conflicts(listing_id, exclude_booking_id=None):
        return []

    store.get_approved_bookings = no_conflicts
    store.rentals["other"] = create_rental_data(
        listing_id=pending_rental_row["listing_id"],
        id="other",
        start_date="2024-06-11",
        end_date="2024-06-11",
        status="approved",
    )
    result = await approve_booking(store, owner, pending_rental_row["id"], mailer=mailer)
    assert_failed_with(result, "conflict")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_approve_requires_owner(store, renter, stranger, pending_rental_row, mailer):
    by_renter = await approve_booking(store, renter, pending_rental_row["id"], mailer=mailer)
    by_nobody = await approve_booking(store, None, pending_rental_row["id"], mailer=mailer)

    assert_failed_with(by_renter, "forbidden")
    assert by_renter.status_code == 403
    assert_failed_with(by_nobody, "not_authenticated")
    assert store.rentals[pending_rental_row["id"]]["status"] == "pending"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_approve_missing_rental(store, owner, mailer):
    result = await approve_booking(store, owner, "does-not-exist", mailer=mailer)
    assert_failed_with(result, "rental_not_found")
    assert result.status_code == 404


@pytest.mark.unit
@pytest.mark.asyncio
async def test_approve_already_approved(store, owner, approved_rental_row, mailer):
    result = await approve_booking(store, owner, approved_rental_row["id"], mailer=mailer)
    assert_failed_with(result, "invalid_transition")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_concurrent_status_change(store, owner, pending_rental_row, mailer):
    """Test that a row moved by someone else between read and write is reported."""
    real_transition = store.transition_booking

    async def racing_transition(booking_id, from_status, to_status):
        store.rentals[booking_id]["status"] = "cancelled"
        return await real_transition(booking_id, from_status, to_status)

    store.transition_booking = racing_transition
    result = await approve_booking(store, owner, pending_rental_row["id"], mailer=mailer)

    assert_failed_with(result, "status_changed")
    assert mailer.sent == []


@pytest.mark.unit
@pytest.mark.asyncio
async def test_reject(store, owner, renter, pending_rental_row):
    refused = await reject_booking(store, renter, pending_rental_row["id"])
    assert_failed_with(refused, "forbidden")

    result = await reject_booking(store, owner, pending_rental_row["id"])
    assert result.ok is True
    assert result.booking.status == BookingStatus.REJECTED

    again = await reject_booking(store, owner, pending_rental_row["id"])
    assert_failed_with(again, "invalid_transition")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_cancel_only_by_renter(store, owner, renter, pending_rental_row):
    by_owner = await cancel_booking(store, owner, pending_rental_row["id"])
    assert_failed_with(by_owner, "forbidden")
    assert by_owner.message == "Not allowed."

    result = await cancel_booking(store, renter, pending_rental_row["id"])
    assert result.ok is True
    assert store.rentals[pending_rental_row["id"]]["status"] == "cancelled"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_cancel_approved_refused(store, approved_rental_row):
    from rentrig.models.user import CurrentUser

    renter = CurrentUser(id=approved_rental_row["renter_id"])
    result = await cancel_booking(store, renter, approved_rental_row["id"])
    assert_failed_with(result, "invalid_transition")
