"""
FastAPI application entry point for the identity verification service.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .api.health import router as health_router
from .api.verification import router as verification_router
from .core.config import Settings, get_settings
from .core.exceptions import AppError
from .database.redis import RedisCache
from .database.repositories.credential_store import (
    CredentialStore,
    InMemoryCredentialStore,
    RedisCredentialStore,
)
from .services.providers.http_gateway import HttpProviderGateway
from .services.token_cache import InMemoryTokenCache, RedisTokenCache, TokenCache
from .services.verification_service import VerificationOrchestrator

# Set the root logger level to INFO so we can see detailed logs
logging.basicConfig(level=logging.INFO)

logger = structlog.get_logger()


async def build_storage(
    settings: Settings,
) -> tuple[CredentialStore, TokenCache, RedisCache | None]:
    """Create the store/cache pair for the configured backend."""
    if settings.storage_backend == "redis":
        redis_cache = RedisCache()
        await redis_cache.connect(settings.redis_url)
        store: CredentialStore = RedisCredentialStore(
            redis_cache, key_prefix=settings.redis_key_prefix
        )
        token_cache: TokenCache = RedisTokenCache(
            redis_cache,
            ttl_seconds=settings.token_ttl_seconds,
            key_prefix=settings.redis_key_prefix,
        )
        return store, token_cache, redis_cache

    store = InMemoryCredentialStore()
    token_cache = InMemoryTokenCache(ttl_seconds=settings.token_ttl_seconds)
    return store, token_cache, None


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Build the orchestrator and its collaborators; release them on shutdown."""
    settings = get_settings()

    logger.info(
        "Starting identity verification service",
        environment=settings.environment,
        storage_backend=settings.storage_backend,
        redirect_uri=settings.redirect_uri,
    )

    store, token_cache, redis_cache = await build_storage(settings)
    gateway = HttpProviderGateway(settings)
    orchestrator = VerificationOrchestrator(
        store=store,
        token_cache=token_cache,
        gateway=gateway,
        redirect_uri=settings.redirect_uri,
        oauth_scope=settings.oauth_scope,
    )

    app.state.orchestrator = orchestrator
    app.state.redis = redis_cache

    try:
        yield
    finally:
        await orchestrator.aclose(timeout=settings.provider_timeout_seconds)
        await token_cache.close()
        await gateway.close()
        if redis_cache is not None:
            await redis_cache.disconnect()
        logger.info("Identity verification service stopped")


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Identity Verification API",
        description="Phone and email verification via one-time codes and network checks",
        version=__version__,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    # Security middleware - only in production
    if settings.is_production:
        app.add_middleware(
            TrustedHostMiddleware,
            allowed_hosts=settings.allowed_hosts,
        )

    # CORS middleware for browser clients
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> Response:
        """
        Render AppError subclasses with their HTTP status.

        304 Not Modified carries no body. Details stay in the logs.
        """
        if exc.status_code == status.HTTP_304_NOT_MODIFIED:
            return Response(status_code=status.HTTP_304_NOT_MODIFIED)

        log_method = logger.error if exc.status_code >= 500 else logger.warning
        log_method(
            "Application error occurred",
            path=request.url.path,
            method=request.method,
            **exc.to_dict(),
        )

        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message, "error_type": exc.error_type},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Malformed request bodies are client errors (400), like missing fields."""
        logger.warning(
            "Request validation failed",
            path=request.url.path,
            errors=len(exc.errors()),
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "detail": "Bad Request: malformed request",
                "error_type": "validation_error",
            },
        )

    app.include_router(health_router, tags=["health"])
    app.include_router(verification_router)

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint for basic connectivity check."""
        return {
            "message": "Identity Verification API",
            "version": __version__,
            "environment": settings.environment,
        }

    return app


# Create app instance
app = create_app()

if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    logger.info("Server is running", host=settings.host, port=settings.port)
    uvicorn.run(
        "idverify.main:app",
        host="0.0.0.0",  # nosec B104 - Required for Docker container
        port=settings.port,
        reload=settings.is_development,
        log_config=None,  # Use structlog configuration
    )
