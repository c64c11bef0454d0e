"""Invoice PDF download endpoint for Vercel.

GET /api/invoice?rental_id=...  (renter or listing owner only)
"""

from http.server import BaseHTTPRequestHandler

from rentrig.services.invoice import get_invoice
from rentrig.services.supabase_client import RentalStore
from rentrig.utils.errors import RentRigError, ValidationFailure
from rentrig.utils.http import (
    correlation_id_from,
    current_user,
    query_params,
    run_async,
    send_error,
)
from rentrig.utils.logging import correlation_context, get_structured_logger
from rentrig.utils.logging_config import LoggingConfig

LoggingConfig.setup_logging()
logger = get_structured_logger(__name__)


class handler(BaseHTTPRequestHandler):
    """Vercel serverless function handler for invoice downloads."""

    def do_GET(self):
        with correlation_context(correlation_id_from(self)):
            try:
                rental_id = (query_params(self).get("rental_id") or "").strip()
                if not rental_id:
                    raise ValidationFailure("rental_id is required.", reason="missing_rental_id")

                store = RentalStore.from_env()
                user = current_user(self, store)
                invoice, pdf_bytes = run_async(get_invoice(store, user, rental_id))
            except RentRigError as e:
                logger.info("Invoice request refused", reason=e.reason)
                send_error(self, e.status_code, e.reason, e.message)
                return
            except Exception as e:
                logger.exception("Invoice request failed", error=str(e))
                send_error(self, 500, "internal_error", "Could not generate invoice.")
                return

            self.send_response(200)
            self.send_header('Content-Type', 'application/pdf')
            self.send_header(
                'Content-Disposition',
                f'inline; filename="rentrig-invoice-{invoice.invoice_number}.pdf"',
            )
            self.send_header('Content-Length', str(len(pdf_bytes)))
            self.end_headers()
            self.wfile.write(pdf_bytes)
