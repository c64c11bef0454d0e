"""Rental actions endpoint for Vercel.

POST /api/rentals with a JSON body ``{"action": ..., ...}``:

    quote            listing_id, start_date, end_date, add_ons
    request          listing_id, start_date, end_date, add_ons, message
    approve          rental_id
    reject           rental_id
    cancel           rental_id
    finalize_hourly  rental_id, final_hours
    publish          listing_id, published (JSON boolean)

Every action except ``quote`` requires ``Authorization: Bearer <access token>``.
"""

from http.server import BaseHTTPRequestHandler
from typing import Optional

from rentrig.models.results import OperationResult
from rentrig.models.user import CurrentUser
from rentrig.services.booking_validator import quote_booking_request, submit_booking_request
from rentrig.services.booking_workflow import approve_booking, cancel_booking, reject_booking
from rentrig.services.hourly_finalization import finalize_hourly
from rentrig.services.listings import set_listing_published
from rentrig.services.supabase_client import RentalStore
from rentrig.utils.errors import RentRigError, ValidationFailure
from rentrig.utils.http import (
    correlation_id_from,
    current_user,
    read_json_body,
    run_async,
    send_error,
    send_result,
)
from rentrig.utils.logging import correlation_context, get_structured_logger
from rentrig.utils.logging_config import LoggingConfig

LoggingConfig.setup_logging()
logger = get_structured_logger(__name__)

ACTIONS = ("quote", "request", "approve", "reject", "cancel", "finalize_hourly", "publish")


def _rental_id(body: dict) -> str:
    rental_id = str(body.get("rental_id") or "").strip()
    if not rental_id:
        raise ValidationFailure("rental_id is required.", reason="missing_rental_id")
    return rental_id


def dispatch(store: RentalStore, user: Optional[CurrentUser], body: dict) -> OperationResult:
    """Route one action to its booking operation."""
    action = body.get("action")
    if action not in ACTIONS:
        raise ValidationFailure(f"Unknown action: {action!r}.", reason="unknown_action")

    if action == "quote":
        return run_async(quote_booking_request(store, body))
    if action == "request":
        return run_async(submit_booking_request(store, user, body))
    if action == "approve":
        return run_async(approve_booking(store, user, _rental_id(body)))
    if action == "reject":
        return run_async(reject_booking(store, user, _rental_id(body)))
    if action == "cancel":
        return run_async(cancel_booking(store, user, _rental_id(body)))
    if action == "finalize_hourly":
        return run_async(finalize_hourly(store, user, _rental_id(body), body.get("final_hours")))

    listing_id = str(body.get("listing_id") or "").strip()
    if not listing_id:
        raise ValidationFailure("listing_id is required.", reason="missing_listing_id")
    published = body.get("published")
    if not isinstance(published, bool):
        raise ValidationFailure("published must be true or false.", reason="invalid_published")
    return run_async(set_listing_published(store, user, listing_id, published))


class handler(BaseHTTPRequestHandler):
    """Vercel serverless function handler for rental actions."""

    def do_POST(self):
        with correlation_context(correlation_id_from(self)):
            try:
                body = read_json_body(self)
                store = RentalStore.from_env()
                user = current_user(self, store)
                result = dispatch(store, user, body)
                logger.info(
                    "Rental action handled",
                    action=body.get("action"),
                    ok=result.ok,
                    reason=result.reason,
                )
                send_result(self, result)
            except RentRigError as e:
                send_error(self, e.status_code, e.reason, e.message)
            except Exception as e:
                logger.exception("Rental action failed", error=str(e))
                send_error(self, 500, "internal_error", "Request failed.")
