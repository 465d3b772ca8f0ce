"""
Core utility functions for the verification service.
"""

from .date_utils import utcnow
from .locks import KeyedLock

__all__ = [
    "utcnow",
    "KeyedLock",
]
