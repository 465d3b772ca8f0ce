"""
Shared fixtures: in-memory collaborators and a mocked provider gateway.
"""

from unittest.mock import AsyncMock

import pytest

from idverify.database.repositories.credential_store import InMemoryCredentialStore
from idverify.services.providers.base import ProviderGateway
from idverify.services.token_cache import InMemoryTokenCache
from idverify.services.verification_service import VerificationOrchestrator

REDIRECT_URI = "http://localhost:3000/callback"
SCOPE = "dpv:FraudPreventionAndDetection#number-verification-verify-read"


@pytest.fixture
def gateway():
    """Mock provider gateway with successful defaults."""
    gateway = AsyncMock(spec=ProviderGateway)
    gateway.dispatch_code.return_value = "req-123"
    gateway.confirm_code.return_value = True
    gateway.exchange_authorization_code.return_value = "tok"
    gateway.check_network_verification.return_value = True
    gateway.request_authorization_url.return_value = "https://provider.example/auth?x=1"
    return gateway


@pytest.fixture
def store():
    """Empty in-memory credential store."""
    return InMemoryCredentialStore()


@pytest.fixture
def token_cache():
    """In-memory token cache with the production TTL."""
    return InMemoryTokenCache()


@pytest.fixture
def orchestrator(store, token_cache, gateway):
    """Orchestrator wired to in-memory collaborators and the mock gateway."""
    return VerificationOrchestrator(
        store=store,
        token_cache=token_cache,
        gateway=gateway,
        redirect_uri=REDIRECT_URI,
        oauth_scope=SCOPE,
    )
