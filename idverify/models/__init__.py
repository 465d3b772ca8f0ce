"""
Pydantic models and value types for verification records.
"""

from .user import CustomerUser
from .verification import Channel, SignupResult

__all__ = [
    "CustomerUser",
    "Channel",
    "SignupResult",
]
