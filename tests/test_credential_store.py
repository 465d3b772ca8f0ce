"""
Unit tests for credential stores (in-memory and Redis).
"""

from unittest.mock import AsyncMock, Mock

import pytest

from idverify.core.exceptions import ConflictError
from idverify.database.repositories.credential_store import (
    InMemoryCredentialStore,
    RedisCredentialStore,
)
from idverify.models.user import CustomerUser

# ===== In-memory =====


class TestInMemoryCredentialStore:
    """Process-local store keyed by normalized identifier"""

    @pytest.mark.asyncio
    async def test_insert_and_find_any_case(self):
        store = InMemoryCredentialStore()
        await store.insert(CustomerUser(id="Alice@Example.com", password_hash="h"))

        found = await store.find_by_id("alice@example.COM")

        assert found is not None
        assert found.id == "Alice@Example.com"
        assert found.password_hash == "h"

    @pytest.mark.asyncio
    async def test_find_unknown_returns_none(self):
        store = InMemoryCredentialStore()
        assert await store.find_by_id("+491234567") is None

    @pytest.mark.asyncio
    async def test_duplicate_insert_conflicts(self):
        """Insert never overwrites an existing record"""
        store = InMemoryCredentialStore()
        await store.insert(CustomerUser(id="alice@example.com", password_hash="first"))

        with pytest.raises(ConflictError):
            await store.insert(
                CustomerUser(id="ALICE@example.com", password_hash="second")
            )

        found = await store.find_by_id("alice@example.com")
        assert found.password_hash == "first"
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_returned_records_are_copies(self):
        """Mutating a lookup result does not change the store"""
        store = InMemoryCredentialStore()
        await store.insert(CustomerUser(id="+491234567", is_phone_number=True))

        found = await store.find_by_id("+491234567")
        found.verified = True

        again = await store.find_by_id("+491234567")
        assert again.verified is False

    @pytest.mark.asyncio
    async def test_update_replaces_record(self):
        store = InMemoryCredentialStore()
        user = CustomerUser(id="+491234567", is_phone_number=True)
        await store.insert(user)

        user.verification_request_id = "req-1"
        user.verified = True
        await store.update(user)

        found = await store.find_by_id("+491234567")
        assert found.verified is True
        assert found.verification_request_id == "req-1"


# ===== Redis =====


@pytest.fixture
def mock_redis_cache():
    """RedisCache with async primitives mocked."""
    cache = Mock()
    cache.get = AsyncMock(return_value=None)
    cache.set = AsyncMock()
    cache.set_if_absent = AsyncMock(return_value=True)
    return cache


class TestRedisCredentialStore:
    """JSON documents under {prefix}:user:{normalized_id}"""

    @pytest.mark.asyncio
    async def test_insert_uses_set_if_absent(self, mock_redis_cache):
        store = RedisCredentialStore(mock_redis_cache, key_prefix="test")
        user = CustomerUser(id="Alice@Example.com", password_hash="h")

        await store.insert(user)

        key, payload = mock_redis_cache.set_if_absent.call_args.args
        assert key == "test:user:alice@example.com"
        assert CustomerUser.model_validate_json(payload) == user

    @pytest.mark.asyncio
    async def test_insert_conflict(self, mock_redis_cache):
        """SET NX refused -> ConflictError"""
        mock_redis_cache.set_if_absent.return_value = False
        store = RedisCredentialStore(mock_redis_cache)

        with pytest.raises(ConflictError):
            await store.insert(CustomerUser(id="+491234567"))

    @pytest.mark.asyncio
    async def test_find_decodes_document(self, mock_redis_cache):
        user = CustomerUser(
            id="+491234567", is_phone_number=True, verification_request_id="req-9"
        )
        mock_redis_cache.get.return_value = user.model_dump_json()
        store = RedisCredentialStore(mock_redis_cache)

        found = await store.find_by_id("+491234567")

        assert found == user
        mock_redis_cache.get.assert_awaited_once_with("idverify:user:+491234567")

    @pytest.mark.asyncio
    async def test_find_missing(self, mock_redis_cache):
        store = RedisCredentialStore(mock_redis_cache)
        assert await store.find_by_id("+491234567") is None

    @pytest.mark.asyncio
    async def test_update_overwrites(self, mock_redis_cache):
        store = RedisCredentialStore(mock_redis_cache)
        user = CustomerUser(id="BOB@example.com", verified=True)

        await store.update(user)

        key, payload = mock_redis_cache.set.call_args.args
        assert key == "idverify:user:bob@example.com"
        assert CustomerUser.model_validate_json(payload).verified is True
