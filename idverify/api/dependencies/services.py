"""
FastAPI dependencies resolving components built in the application lifespan.
"""

from fastapi import Request

from ...database.redis import RedisCache
from ...services.verification_service import VerificationOrchestrator


def get_orchestrator(request: Request) -> VerificationOrchestrator:
    """Dependency to get the verification orchestrator from app state."""
    orchestrator: VerificationOrchestrator = request.app.state.orchestrator
    return orchestrator


def get_redis(request: Request) -> RedisCache | None:
    """Dependency to get Redis from app state (None with the memory backend)."""
    redis: RedisCache | None = getattr(request.app.state, "redis", None)
    return redis
