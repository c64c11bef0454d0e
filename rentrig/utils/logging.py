"""
Structured logging for request handlers and booking services.

Every record carries the request's correlation id and, once the caller is
known, a masked form of the acting user's id. Both live in context variables
so they follow the request through awaited service calls without being
threaded through every signature.
"""

import hashlib
import inspect
import logging
import re
import time
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Callable, Dict, Optional

from rentrig.utils.logging_config import LoggingConfig, get_logger

_correlation_id: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)
_acting_user: ContextVar[Optional[str]] = ContextVar("acting_user", default=None)

_EMAIL_RE = re.compile(r"[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}", re.IGNORECASE)


def generate_correlation_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


def get_correlation_id() -> Optional[str]:
    return _correlation_id.get()


def set_correlation_id(correlation_id: Optional[str]) -> None:
    _correlation_id.set(correlation_id)


def bind_user(user_id: Optional[str]) -> None:
    """Attach the authenticated caller to the rest of this request's records."""
    _acting_user.set(mask_user_id(user_id))


@contextmanager
def correlation_context(correlation_id: Optional[str] = None):
    """
    Scope one request: bind a correlation id (generated when the caller sent
    none) and clear the acting user on exit.
    """
    id_token = _correlation_id.set(correlation_id or generate_correlation_id())
    user_token = _acting_user.set(None)
    try:
        yield _correlation_id.get()
    finally:
        _acting_user.reset(user_token)
        _correlation_id.reset(id_token)


def mask_email(text: Optional[str]) -> Optional[str]:
    if not text or not LoggingConfig.LOG_MASK_SENSITIVE:
        return text
    return _EMAIL_RE.sub("[REDACTED_EMAIL]", text)


def mask_user_id(user_id: Optional[str]) -> Optional[str]:
    """UUIDs become ``abcd...<sha256 prefix>``: stable across records, not reversible."""
    if not user_id or not LoggingConfig.LOG_MASK_SENSITIVE or len(user_id) <= 12:
        return user_id
    digest = hashlib.sha256(user_id.encode()).hexdigest()[:8]
    return f"{user_id[:4]}...{digest}"


def _scrub(fields: Dict[str, Any]) -> Dict[str, Any]:
    # free-text fields may quote a renter's address back at us
    return {k: mask_email(v) if isinstance(v, str) else v for k, v in fields.items()}


class StructuredLogger:
    """Keyword arguments become fields on the JSON record."""

    def __init__(self, logger: logging.Logger, context: Optional[Dict[str, Any]] = None):
        self.logger = logger
        self.context = dict(context or {})

    def bind(self, **context: Any) -> "StructuredLogger":
        """Logger that repeats ``context`` on every record."""
        return StructuredLogger(self.logger, {**self.context, **context})

    def _fields(self, **kwargs: Any) -> Dict[str, Any]:
        fields: Dict[str, Any] = {"timestamp": datetime.now(timezone.utc).isoformat()}
        correlation_id = _correlation_id.get()
        if correlation_id:
            fields["correlation_id"] = correlation_id
        acting_user = _acting_user.get()
        if acting_user:
            fields["acting_user"] = acting_user
        fields.update(_scrub({**self.context, **kwargs}))
        return fields

    def debug(self, message: str, **kwargs: Any) -> None:
        self.logger.debug(message, extra=self._fields(**kwargs))

    def info(self, message: str, **kwargs: Any) -> None:
        self.logger.info(message, extra=self._fields(**kwargs))

    def warning(self, message: str, **kwargs: Any) -> None:
        self.logger.warning(message, extra=self._fields(**kwargs))

    def error(self, message: str, exc_info: bool = False, **kwargs: Any) -> None:
        self.logger.error(message, extra=self._fields(**kwargs), exc_info=exc_info)

    def exception(self, message: str, **kwargs: Any) -> None:
        self.logger.exception(message, extra=self._fields(**kwargs))


def get_structured_logger(name: str) -> StructuredLogger:
    return StructuredLogger(get_logger(name))


@contextmanager
def log_timing(operation_name: str, logger: Optional[StructuredLogger] = None, **context: Any):
    """
    Time a block and emit one record when it ends: DEBUG normally, WARNING
    past ``LOG_SLOW_OPERATION_THRESHOLD_MS``. The record is written even if
    the block raises.
    """
    log = logger or get_structured_logger(__name__)
    started = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        threshold = LoggingConfig.LOG_SLOW_OPERATION_THRESHOLD_MS
        if elapsed_ms > threshold:
            log.warning(
                f"Slow operation: {operation_name}",
                operation=operation_name,
                processing_time_ms=elapsed_ms,
                threshold_ms=threshold,
                **context,
            )
        else:
            log.debug(
                f"Completed {operation_name}",
                operation=operation_name,
                processing_time_ms=elapsed_ms,
                **context,
            )


def timed(operation_name: Optional[str] = None):
    """``log_timing`` as a decorator for plain functions and coroutines."""
    def decorator(func: Callable) -> Callable:
        name = operation_name or func.__qualname__
        log = get_structured_logger(func.__module__)

        if inspect.iscoroutinefunction(func):
            @wraps(func)
            async def timed_coroutine(*args, **kwargs):
                with log_timing(name, logger=log):
                    return await func(*args, **kwargs)
            return timed_coroutine

        @wraps(func)
        def timed_function(*args, **kwargs):
            with log_timing(name, logger=log):
                return func(*args, **kwargs)
        return timed_function

    return decorator
