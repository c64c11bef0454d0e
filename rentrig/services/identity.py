"""Resolve the calling user from a Supabase access token."""

from typing import Optional
from supabase import Client

from rentrig.models.user import CurrentUser
from rentrig.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Extract the token from an ``Authorization: Bearer ...`` header."""
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def resolve_current_user(client: Client, access_token: Optional[str]) -> Optional[CurrentUser]:
    """Current user for a JWT, or None when missing, expired or invalid."""
    if not access_token:
        return None
    try:
        response = client.auth.get_user(access_token)
    except Exception as e:
        logger.info("Access token rejected", error=str(e))
        return None

    user = getattr(response, "user", None)
    if user is None:
        return None
    return CurrentUser(id=str(user.id), email=getattr(user, "email", None))
