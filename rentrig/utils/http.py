"""Request/response helpers shared by the serverless handlers in api/."""

import asyncio
import json
from http.server import BaseHTTPRequestHandler
from typing import Any, Optional
from urllib.parse import parse_qs, urlparse

from rentrig.models.results import OperationResult
from rentrig.models.user import CurrentUser
from rentrig.services.identity import bearer_token, resolve_current_user
from rentrig.services.supabase_client import RentalStore
from rentrig.utils.errors import ValidationFailure
from rentrig.utils.logging import bind_user
from rentrig.utils.logging_config import LoggingConfig


def read_json_body(request: BaseHTTPRequestHandler) -> dict:
    """Parse the request body as a JSON object; empty body is {}."""
    content_length = int(request.headers.get("Content-Length", 0) or 0)
    raw_body = request.rfile.read(content_length).decode("utf-8") if content_length > 0 else ""
    if not raw_body:
        return {}
    try:
        body = json.loads(raw_body)
    except json.JSONDecodeError:
        raise ValidationFailure("Request body is not valid JSON.", reason="invalid_json")
    if not isinstance(body, dict):
        raise ValidationFailure("Request body must be a JSON object.", reason="invalid_json")
    return body


def query_params(request: BaseHTTPRequestHandler) -> dict[str, str]:
    """First value of each query string parameter."""
    parsed = parse_qs(urlparse(request.path).query)
    return {key: values[0] for key, values in parsed.items() if values}


def correlation_id_from(request: BaseHTTPRequestHandler) -> Optional[str]:
    return request.headers.get(LoggingConfig.LOG_CORRELATION_ID_HEADER)


def current_user(request: BaseHTTPRequestHandler, store: RentalStore) -> Optional[CurrentUser]:
    token = bearer_token(request.headers.get("Authorization"))
    user = resolve_current_user(store.client, token)
    bind_user(user.id if user else None)
    return user


def send_json(request: BaseHTTPRequestHandler, status: int, payload: Any) -> None:
    request.send_response(status)
    request.send_header("Content-Type", "application/json")
    request.end_headers()
    request.wfile.write(json.dumps(payload, default=str).encode("utf-8"))


def send_result(request: BaseHTTPRequestHandler, result: OperationResult) -> None:
    send_json(request, result.status_code, result.model_dump(mode="json", exclude_none=True))


def send_error(request: BaseHTTPRequestHandler, status: int, reason: str, message: str) -> None:
    send_json(request, status, {"ok": False, "reason": reason, "message": message})


def run_async(coro):
    """Run a coroutine to completion from a synchronous handler."""
    try:
        loop = asyncio.get_event_loop()
    except RuntimeError:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
    return loop.run_until_complete(coro)
