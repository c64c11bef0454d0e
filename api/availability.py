"""Listing availability endpoint for Vercel.

GET /api/availability?listing_id=...                       blocked ranges
GET /api/availability?listing_id=...&start_date=&end_date=  {available}
GET /api/availability?listing_ids=a,b,c&start_date=&end_date=  batch partition
"""

from http.server import BaseHTTPRequestHandler

from rentrig.services.availability import (
    check_availability,
    check_availability_batch,
    get_blocked_intervals,
)
from rentrig.services.supabase_client import RentalStore
from rentrig.utils.errors import RentRigError, ValidationFailure
from rentrig.utils.http import (
    correlation_id_from,
    query_params,
    run_async,
    send_error,
    send_json,
)
from rentrig.utils.logging import correlation_context, get_structured_logger
from rentrig.utils.logging_config import LoggingConfig

LoggingConfig.setup_logging()
logger = get_structured_logger(__name__)


def availability_response(store: RentalStore, params: dict) -> dict:
    start_date = params.get("start_date")
    end_date = params.get("end_date")
    has_range = bool(start_date and end_date)

    listing_ids = [x.strip() for x in params.get("listing_ids", "").split(",") if x.strip()]
    if listing_ids:
        if not has_range:
            raise ValidationFailure("start_date and end_date are required.")
        batch = run_async(check_availability_batch(store, listing_ids, start_date, end_date))
        return {
            "available": sorted(batch.available),
            "booked": sorted(batch.booked),
            "failed": sorted(batch.failed),
        }

    listing_id = (params.get("listing_id") or "").strip()
    if not listing_id:
        raise ValidationFailure("listing_id is required.")

    if has_range:
        result = run_async(check_availability(store, listing_id, start_date, end_date))
        return {"listing_id": listing_id, "available": result.available}

    blocked = run_async(get_blocked_intervals(store, listing_id))
    return {"listing_id": listing_id, "blocked": [interval.to_public() for interval in blocked]}


class handler(BaseHTTPRequestHandler):
    """Vercel serverless function handler for availability lookups."""

    def do_GET(self):
        with correlation_context(correlation_id_from(self)):
            try:
                params = query_params(self)
                store = RentalStore.from_env()
                send_json(self, 200, availability_response(store, params))
            except RentRigError as e:
                logger.info("Availability request refused", reason=e.reason)
                send_error(self, e.status_code, e.reason, e.message)
            except Exception as e:
                logger.exception("Availability request failed", error=str(e))
                send_error(self, 500, "internal_error", "Availability lookup failed.")
