"""Supabase client wrapper and the rental store built on it."""

import os
from typing import Optional
from supabase import create_client, Client
from supabase.client import ClientOptions

from rentrig.models.booking import Booking, BookingStatus
from rentrig.models.listing import Listing
from rentrig.utils.errors import ConflictError, SupabaseError
from rentrig.utils.logging import get_structured_logger, timed

logger = get_structured_logger(__name__)

# Raised by the rentals trigger when an approval's days hit another approved rental's blocked interval
OVERLAP_CONSTRAINT = "rentals_no_overlapping_approved"

# Global client instance (singleton pattern)
_client: Optional[Client] = None


def get_supabase_client() -> Client:
    """Get or create the service-role Supabase client singleton."""
    global _client

    if _client is None:
        url = os.environ.get("SUPABASE_URL")
        key = os.environ.get("SUPABASE_SERVICE_ROLE_KEY")

        if not url or not key:
            raise SupabaseError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")

        options = ClientOptions(
            auto_refresh_token=False,
            persist_session=False,
        )

        _client = create_client(url, key, options)
        logger.info("Supabase client initialized", url=url)

    return _client


def close_supabase_client() -> None:
    """Drop the cached client (supabase-py has no explicit close)."""
    global _client
    if _client:
        _client = None
        logger.info("Supabase client closed")


def _first(result) -> Optional[dict]:
    return result.data[0] if result.data and len(result.data) > 0 else None


class RentalStore:
    """Row access for listings, rentals and profiles. One instance per request."""

    def __init__(self, client: Client):
        self.client = client

    @classmethod
    def from_env(cls) -> "RentalStore":
        return cls(get_supabase_client())

    # Listings
    async def get_listing(self, listing_id: str) -> Optional[Listing]:
        """Get listing by ID."""
        try:
            result = self.client.table("listings").select("*").eq("id", listing_id).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to get listing: {e}")
        row = _first(result)
        return Listing.model_validate(row) if row else None

    async def get_listings_by_owner(self, owner_id: str) -> list[Listing]:
        """Get all listings owned by a user, newest first."""
        try:
            result = (
                self.client.table("listings")
                .select("*")
                .eq("owner_id", owner_id)
                .order("created_at", desc=True)
                .execute()
            )
        except Exception as e:
            raise SupabaseError(f"Failed to get listings by owner: {e}")
        return [Listing.model_validate(row) for row in result.data or []]

    async def set_listing_published(self, listing_id: str, owner_id: str, published: bool) -> Optional[Listing]:
        """Flip publication; the owner filter makes it a no-op for anyone else."""
        try:
            result = (
                self.client.table("listings")
                .update({"is_published": published})
                .eq("id", listing_id)
                .eq("owner_id", owner_id)
                .execute()
            )
        except Exception as e:
            raise SupabaseError(f"Failed to update listing: {e}")
        row = _first(result)
        return Listing.model_validate(row) if row else None

    # Rentals
    async def get_booking(self, booking_id: str) -> Optional[Booking]:
        """Get rental by ID."""
        try:
            result = self.client.table("rentals").select("*").eq("id", booking_id).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to get rental: {e}")
        row = _first(result)
        return Booking.from_row(row) if row else None

    @timed("rentals.approved_for_listing")
    async def get_approved_bookings(self, listing_id: str, exclude_booking_id: Optional[str] = None) -> list[Booking]:
        """Approved rentals for a listing, optionally leaving one out."""
        try:
            query = (
                self.client.table("rentals")
                .select("*")
                .eq("listing_id", listing_id)
                .eq("status", BookingStatus.APPROVED.value)
            )
            if exclude_booking_id:
                query = query.neq("id", exclude_booking_id)
            result = query.order("start_date").execute()
        except Exception as e:
            raise SupabaseError(f"Failed to get approved rentals: {e}")
        return [Booking.from_row(row) for row in result.data or []]

    @timed("rentals.insert")
    async def insert_booking(self, booking: Booking) -> Booking:
        """Create a rental row."""
        try:
            result = self.client.table("rentals").insert(booking.to_row()).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to create rental: {e}")
        row = _first(result)
        if not row:
            raise SupabaseError("Failed to create rental: no data returned")
        return Booking.from_row(row)

    async def transition_booking(
        self,
        booking_id: str,
        from_status: BookingStatus,
        to_status: BookingStatus,
    ) -> Optional[Booking]:
        """
        Conditional status write.

        Returns None when the row is no longer in ``from_status`` (someone else
        moved it first). An approval that would overlap another approved rental
        is refused by the database constraint and surfaces as ConflictError.
        """
        try:
            result = (
                self.client.table("rentals")
                .update({"status": to_status.value})
                .eq("id", booking_id)
                .eq("status", from_status.value)
                .execute()
            )
        except Exception as e:
            if OVERLAP_CONSTRAINT in str(e).lower():
                raise ConflictError(
                    "Cannot approve: this listing is already booked for those dates.",
                    reason="conflict",
                )
            raise SupabaseError(f"Failed to update rental status: {e}")
        row = _first(result)
        return Booking.from_row(row) if row else None

    async def finalize_hourly(self, booking_id: str, updates: dict) -> Optional[Booking]:
        """Compare-and-set write: only lands while hourly_finalized_at is still null."""
        try:
            result = (
                self.client.table("rentals")
                .update(updates)
                .eq("id", booking_id)
                .eq("status", BookingStatus.APPROVED.value)
                .is_("hourly_finalized_at", "null")
                .execute()
            )
        except Exception as e:
            raise SupabaseError(f"Failed to finalize hourly service: {e}")
        row = _first(result)
        return Booking.from_row(row) if row else None

    # People
    async def get_profile_name(self, user_id: str) -> Optional[str]:
        """Display name from profiles, if one is set."""
        try:
            result = self.client.table("profiles").select("full_name").eq("id", user_id).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to get profile: {e}")
        row = _first(result)
        name = (row or {}).get("full_name") or ""
        return name.strip() or None

    async def get_user_email(self, user_id: str) -> Optional[str]:
        """Email from the auth admin API (service role only)."""
        try:
            response = self.client.auth.admin.get_user_by_id(user_id)
        except Exception as e:
            raise SupabaseError(f"Failed to get user: {e}")
        user = getattr(response, "user", None)
        return getattr(user, "email", None) or None
