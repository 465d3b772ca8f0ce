"""
Unit tests for Health API endpoints.
"""

from unittest.mock import AsyncMock, Mock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from idverify.api.dependencies.services import get_redis
from idverify.api.health import router
from idverify.core.config import get_settings

# ===== Fixtures =====


@pytest.fixture
def mock_redis():
    """Mock Redis instance."""
    redis = Mock()
    redis.health_check = AsyncMock(return_value={"connected": True})
    return redis


@pytest.fixture
def mock_settings():
    """Mock Settings instance."""
    settings = Mock()
    settings.environment = "test"
    settings.storage_backend = "redis"
    return settings


def make_client(redis, settings) -> TestClient:
    app = FastAPI()
    app.include_router(router)
    app.dependency_overrides[get_redis] = lambda: redis
    app.dependency_overrides[get_settings] = lambda: settings
    return TestClient(app)


# ===== health_check Tests =====


class TestHealthCheck:
    """Test main health check endpoint."""

    def test_memory_backend_always_ok(self, mock_settings):
        """No Redis configured -> ok"""
        mock_settings.storage_backend = "memory"
        client = make_client(None, mock_settings)

        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["environment"] == "test"
        assert data["storage"] == {"backend": "memory"}
        assert "version" in data

    def test_redis_healthy(self, mock_redis, mock_settings):
        client = make_client(mock_redis, mock_settings)

        response = client.get("/health")

        data = response.json()
        assert data["status"] == "ok"
        assert data["storage"]["redis"] == {"connected": True}

    def test_redis_unhealthy(self, mock_redis, mock_settings):
        """Test health check when Redis is unhealthy."""
        mock_redis.health_check.return_value = {
            "connected": False,
            "error": "Connection failed",
        }
        client = make_client(mock_redis, mock_settings)

        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "degraded"


# ===== liveness Tests =====


class TestLiveness:
    """Test liveness probe."""

    def test_alive(self, mock_settings):
        client = make_client(None, mock_settings)

        response = client.get("/health/live")

        assert response.status_code == 200
        assert response.json() == {"alive": True, "status": "ok"}
