"""
Verification API request/response schemas.

Request fields are optional at the schema level so that a missing id, code
or password reaches the orchestrator and is answered with 400, not 422.
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator


class SignupRequest(BaseModel):
    """Request to register an identifier for verification."""

    id: str | None = Field(None, description="Phone number (+4912345678) or email")
    password: str | None = Field(None, description="Required for email signups")


class VerifyRequest(BaseModel):
    """Request to confirm a one-time code."""

    id: str | None = Field(None, description="Phone number or email used at signup")
    code: str | None = Field(None, description="Digits received by sms or email")

    @field_validator("code", mode="before")
    @classmethod
    def _code_as_text(cls, value: Any) -> Any:
        # Clients sometimes send the code as a JSON number
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class AuthorizeRequest(BaseModel):
    """Request to start the number-verification authorization flow."""

    phone: str | None = Field(None, description="Phone number to verify")
    state: str | None = Field(
        None, description="Unguessable correlation value, unique per attempt"
    )


class VerificationResponse(BaseModel):
    """Verification status of a user."""

    verified: bool


class AuthorizeResponse(BaseModel):
    """Provider URL the browser should be redirected to."""

    auth_url: str
