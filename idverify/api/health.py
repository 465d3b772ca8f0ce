"""
Health check endpoints for monitoring and connectivity verification.
"""

from typing import Any

import structlog
from fastapi import APIRouter, Depends

from .. import __version__
from ..core.config import Settings, get_settings
from ..database.redis import RedisCache
from .dependencies.services import get_redis

logger = structlog.get_logger()

router = APIRouter()


@router.get("/health")
async def health_check(
    redis_cache: RedisCache | None = Depends(get_redis),
    settings: Settings = Depends(get_settings),
) -> dict[str, Any]:
    """
    Health check endpoint.

    Reports the storage backend and, with the Redis backend, its connectivity.
    The memory backend is always healthy.
    """
    storage_status: dict[str, Any] = {"backend": settings.storage_backend}
    healthy = True

    if redis_cache is not None:
        redis_status = await redis_cache.health_check()
        storage_status["redis"] = redis_status
        healthy = bool(redis_status.get("connected", False))

    if not healthy:
        logger.warning("Health check failed", status="degraded", storage=storage_status)

    return {
        "status": "ok" if healthy else "degraded",
        "environment": settings.environment,
        "version": __version__,
        "storage": storage_status,
    }


@router.get("/health/live")
async def liveness_check() -> dict[str, Any]:
    """
    Liveness probe endpoint.

    Simple check that the application is running.
    """
    return {"alive": True, "status": "ok"}
