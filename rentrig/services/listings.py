"""Owner-only listing operations."""

from typing import Optional

from rentrig.models.results import OperationResult
from rentrig.models.user import CurrentUser
from rentrig.services.supabase_client import RentalStore
from rentrig.utils.errors import AuthenticationRequired, AuthorizationError, NotFoundError, RentRigError, SupabaseError
from rentrig.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)


async def set_listing_published(
    store: RentalStore,
    user: Optional[CurrentUser],
    listing_id: str,
    published: bool,
) -> OperationResult:
    """Publish or unpublish a listing. Only its owner may do this."""
    try:
        if user is None:
            raise AuthenticationRequired("Not signed in.")

        listing = await store.get_listing(listing_id)
        if listing is None:
            raise NotFoundError("Listing not found.", reason="listing_not_found")
        if listing.owner_id != user.id:
            raise AuthorizationError("Forbidden.")

        updated = await store.set_listing_published(listing_id, user.id, published)
        if updated is None:
            raise SupabaseError("Listing update returned no row.")
    except RentRigError as e:
        return OperationResult.failure(e)
    except Exception as e:
        logger.exception("Unexpected error updating listing", listing_id=listing_id, error=str(e))
        return OperationResult.internal_error("Update failed.")

    logger.info("Listing publication changed", listing_id=listing_id, is_published=published)
    return OperationResult.success("Published." if published else "Unpublished.")
