"""Error handling utilities."""

from typing import Optional


class RentRigError(Exception):
    """Base exception for RentRig backend."""

    reason = "error"
    status_code = 400

    def __init__(self, message: str, reason: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if reason:
            self.reason = reason


class ValidationFailure(RentRigError):
    """Request input is malformed or out of range."""
    reason = "invalid_request"


class InvalidDate(ValidationFailure):
    """Calendar date is not YYYY-MM-DD or does not exist."""
    reason = "invalid_date"


class AuthorizationError(RentRigError):
    """Caller is not allowed to perform the operation."""
    reason = "forbidden"
    status_code = 403


class AuthenticationRequired(AuthorizationError):
    """No signed-in user."""
    reason = "not_authenticated"
    status_code = 401

    def __init__(self, message: str = "Not authenticated.", reason: Optional[str] = None):
        super().__init__(message, reason)


class NotFoundError(RentRigError):
    """Listing or rental row does not exist."""
    reason = "not_found"
    status_code = 404


class ConflictError(RentRigError):
    """Double-booking or repeated state change."""
    reason = "conflict"
    status_code = 409


class SupabaseError(RentRigError):
    """Supabase operation error."""
    reason = "upstream_error"
    status_code = 502


class NotificationError(RentRigError):
    """Invoice rendering or email delivery failed."""
    reason = "notification_failed"
    status_code = 502
