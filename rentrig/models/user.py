"""Authenticated user model."""

from typing import Optional
from pydantic import BaseModel, Field


class CurrentUser(BaseModel):
    """Identity resolved from a Supabase access token."""
    id: str = Field(..., description="Auth user UUID")
    email: Optional[str] = None
