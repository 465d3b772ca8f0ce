"""
Credential store for user records under verification.

Records are keyed by the normalized identifier. `insert` is an atomic
insert-if-absent so the one-record-per-identifier rule holds even when two
signups for the same identifier race.
"""

from abc import ABC, abstractmethod

import structlog

from ...core.exceptions import ConflictError
from ...core.identifiers import normalize_identifier
from ...database.redis import RedisCache
from ...models.user import CustomerUser

logger = structlog.get_logger()


class CredentialStore(ABC):
    """Storage contract the orchestrator needs: lookup, insert, replace."""

    @abstractmethod
    async def find_by_id(self, identifier: str) -> CustomerUser | None:
        """
        Case-insensitive lookup.

        Args:
            identifier: Phone number or email, any case

        Returns:
            Stored record, or None if unknown
        """

    @abstractmethod
    async def insert(self, user: CustomerUser) -> None:
        """
        Store a new record.

        Raises:
            ConflictError: A record with the same normalized id exists
        """

    @abstractmethod
    async def update(self, user: CustomerUser) -> None:
        """Replace the stored record for `user.id` (last writer wins)."""


class InMemoryCredentialStore(CredentialStore):
    """
    Process-local store.

    No persistence guarantees; records live as long as the process.
    """

    def __init__(self) -> None:
        self._users: dict[str, CustomerUser] = {}

    async def find_by_id(self, identifier: str) -> CustomerUser | None:
        user = self._users.get(normalize_identifier(identifier))
        # Callers mutate what they get back; hand out copies
        return user.model_copy() if user else None

    async def insert(self, user: CustomerUser) -> None:
        key = user.key
        if key in self._users:
            raise ConflictError("User already exists", identifier=user.id)
        self._users[key] = user.model_copy()
        logger.info(
            "User record created",
            identifier=user.id,
            is_phone_number=user.is_phone_number,
            verified=user.verified,
        )

    async def update(self, user: CustomerUser) -> None:
        self._users[user.key] = user.model_copy()
        logger.debug("User record updated", identifier=user.id, verified=user.verified)

    def __len__(self) -> int:
        return len(self._users)


class RedisCredentialStore(CredentialStore):
    """Redis-backed store. Records are JSON documents; insert uses SET NX."""

    def __init__(self, redis_cache: RedisCache, key_prefix: str = "idverify"):
        """
        Initialize store.

        Args:
            redis_cache: Connected RedisCache instance
            key_prefix: Namespace for keys (`{prefix}:user:{normalized_id}`)
        """
        self.redis = redis_cache
        self.key_prefix = key_prefix

    def _make_key(self, identifier: str) -> str:
        return f"{self.key_prefix}:user:{normalize_identifier(identifier)}"

    async def find_by_id(self, identifier: str) -> CustomerUser | None:
        raw = await self.redis.get(self._make_key(identifier))
        if raw is None:
            return None
        return CustomerUser.model_validate_json(raw)

    async def insert(self, user: CustomerUser) -> None:
        created = await self.redis.set_if_absent(
            self._make_key(user.id), user.model_dump_json()
        )
        if not created:
            raise ConflictError("User already exists", identifier=user.id)
        logger.info(
            "User record created",
            identifier=user.id,
            is_phone_number=user.is_phone_number,
            verified=user.verified,
            backend="redis",
        )

    async def update(self, user: CustomerUser) -> None:
        await self.redis.set(self._make_key(user.id), user.model_dump_json())
