"""
Repository layer for user records.
Provides clean abstraction over storage backends.
"""

from .credential_store import (
    CredentialStore,
    InMemoryCredentialStore,
    RedisCredentialStore,
)

__all__ = [
    "CredentialStore",
    "InMemoryCredentialStore",
    "RedisCredentialStore",
]
