"""Shared pytest fixtures and configuration."""

import os
import pytest
from unittest.mock import Mock
from freezegun import freeze_time

# Set test environment variables
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-key")
os.environ.setdefault("LOG_FORMAT", "text")
os.environ.setdefault("DEFAULT_HOURLY_CAP", "24")

from rentrig.models.user import CurrentUser  # noqa: E402
from tests.utils.factories import (  # noqa: E402
    OWNER_ID,
    RENTER_ID,
    STRANGER_ID,
    create_hourly_operator_listing_data,
    create_hourly_operator_rental_data,
    create_listing_data,
    create_rental_data,
)
from tests.utils.fakes import FakeRentalStore, RecordingMailer  # noqa: E402


@pytest.fixture
def mock_supabase_client():
    """Mock Supabase client for testing."""
    client = Mock()
    client.table = Mock(return_value=Mock())
    return client


@pytest.fixture
def owner():
    return CurrentUser(id=OWNER_ID, email="owner@example.com")


@pytest.fixture
def renter():
    return CurrentUser(id=RENTER_ID, email="renter@example.com")


@pytest.fixture
def stranger():
    return CurrentUser(id=STRANGER_ID, email="someone@example.com")


@pytest.fixture
def listing_row():
    """Published listing, $100/day, one turnaround day, pickup or delivery."""
    return create_listing_data(
        owner_id=OWNER_ID,
        id="aaaaaaaa-0000-4000-8000-000000000001",
        title="Bobcat S70",
        city="Austin",
        state="TX",
        price_per_day="100.00",
        turnaround_days=1,
    )


@pytest.fixture
def approved_rental_row(listing_row):
    """Approved 2024-06-01..03 with one buffer day: blocks [06-01, 06-05)."""
    return create_rental_data(
        listing_id=listing_row["id"],
        renter_id=STRANGER_ID,
        id="bbbbbbbb-0000-4000-8000-000000000001",
        start_date="2024-06-01",
        end_date="2024-06-03",
        buffer_days=1,
        status="approved",
    )


@pytest.fixture
def pending_rental_row(listing_row):
    return create_rental_data(
        listing_id=listing_row["id"],
        renter_id=RENTER_ID,
        id="cccccccc-0000-4000-8000-00000000abcd",
        start_date="2024-06-10",
        end_date="2024-06-12",
        buffer_days=1,
        status="pending",
    )


@pytest.fixture
def hourly_listing_row():
    return create_hourly_operator_listing_data(owner_id=OWNER_ID, id="aaaaaaaa-0000-4000-8000-000000000002")


@pytest.fixture
def hourly_rental_row(hourly_listing_row):
    return create_hourly_operator_rental_data(
        listing_id=hourly_listing_row["id"],
        renter_id=RENTER_ID,
        id="dddddddd-0000-4000-8000-000000000001",
    )


@pytest.fixture
def store(listing_row, approved_rental_row, pending_rental_row, hourly_listing_row, hourly_rental_row):
    return FakeRentalStore(
        listings=[listing_row, hourly_listing_row],
        rentals=[approved_rental_row, pending_rental_row, hourly_rental_row],
        profiles={OWNER_ID: "Olivia Owner", RENTER_ID: "Riley Renter"},
        emails={RENTER_ID: "renter@example.com"},
    )


@pytest.fixture
def mailer():
    return RecordingMailer()


@pytest.fixture
def freeze_time_fixture():
    """Fixture for freezing time in tests."""
    with freeze_time("2024-06-20 12:00:00") as frozen_time:
        yield frozen_time
