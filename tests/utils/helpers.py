"""Test helper functions."""

import json
from io import BytesIO
from typing import Any, Dict, Optional
from unittest.mock import MagicMock, Mock


def make_handler(handler_cls, path: str, body: Optional[Dict[str, Any]] = None, headers: Optional[Dict[str, str]] = None):
    """Build a request handler without a socket, with response calls mocked."""
    raw = json.dumps(body).encode("utf-8") if body is not None else b""
    h = handler_cls.__new__(handler_cls)
    h.path = path
    h.headers = {"Content-Length": str(len(raw)), **(headers or {})}
    h.rfile = BytesIO(raw)
    h.wfile = BytesIO()
    h.send_response = Mock()
    h.send_header = Mock()
    h.end_headers = Mock()
    return h


def response_status(h) -> int:
    return h.send_response.call_args[0][0]


def response_json(h) -> Dict[str, Any]:
    return json.loads(h.wfile.getvalue().decode("utf-8"))


def mock_query_result(rows) -> MagicMock:
    """Supabase query builder whose every chained call ends in ``rows``."""
    query = MagicMock()
    for method in ("select", "eq", "neq", "is_", "order", "update", "insert"):
        getattr(query, method).return_value = query
    query.execute.return_value = Mock(data=rows)
    return query
