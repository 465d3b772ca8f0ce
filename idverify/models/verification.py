"""
Verification flow value types.
"""

from typing import Literal

from pydantic import BaseModel, Field

Channel = Literal["sms", "email"]


class SignupResult(BaseModel):
    """Outcome of a signup.

    `silent` is True when a network check was attempted (a correlation state
    was supplied for a phone-like identifier); those responses are final (200),
    the others are accepted for asynchronous code delivery (202).
    """

    model_config = {"frozen": True}

    verified: bool = Field(..., description="Verification status after signup")
    silent: bool = Field(False, description="Network check attempted")
