"""
User records under verification.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from ..core.identifiers import normalize_identifier
from ..core.utils.date_utils import utcnow


class CustomerUser(BaseModel):
    """Identity under verification. Keyed by the normalized `id`."""

    id: str = Field(..., description="Phone number (E.164-like) or email address")
    is_phone_number: bool = Field(
        False, description="Whether `id` matched the phone pattern at creation"
    )
    verified: bool = Field(False, description="Verification status, never reverts")
    password_hash: str | None = Field(None, description="Bcrypt password hash")
    verification_request_id: str | None = Field(
        None, description="Provider transaction id of the dispatched code"
    )
    created_at: datetime = Field(default_factory=utcnow)

    @property
    def key(self) -> str:
        """Normalized store key."""
        return normalize_identifier(self.id)
