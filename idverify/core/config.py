"""
Application configuration using Pydantic Settings.

Supports hierarchical environment configuration:
- .env.base: Common non-secret defaults (committed to git)
- .env.{ENVIRONMENT}: Environment-specific overrides (gitignored)
- Environment variables: Highest priority

Each provider deployment variant (sandbox gateway, live network APIs, Basic or
Bearer token exchange) is a combination of these settings, not a code fork.
"""

import os
import re
from functools import lru_cache
from typing import Literal

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Get environment from env var, default to development
ENV = os.getenv("ENVIRONMENT", "development")

DEFAULT_PORT = 3000
_URL_PORT_PATTERN = re.compile(r":(\d+)/?$")


class Settings(BaseSettings):
    """Application settings with hierarchical env file support."""

    model_config = SettingsConfigDict(
        env_file=[
            ".env.base",
            f".env.{ENV}",
        ],
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "test", "production"] = "development"

    # Server
    host: str = "localhost"
    port: int = DEFAULT_PORT
    backend_url: str = ""  # Public base URL used to build the OAuth redirect URI
    allowed_hosts: list[str] = ["*"]
    cors_origins: list[str] = ["*"]

    # Code delivery API (one-time codes over sms/email)
    api_gateway: str = "https://api.nexmo.com"
    api_key: str = ""
    api_secret: str = ""
    brand: str = "Mock company"

    # OAuth / network APIs
    oauth_token_url: str = "https://api-eu.vonage.com/oauth2/token"
    oauth_client_auth: Literal["basic", "bearer"] = "bearer"
    network_enablement_url: str = "https://api-eu.vonage.com/v1/network-enablement"
    number_verification_url: str = (
        "https://api-eu.vonage.com/camara/number-verification/v031/verify"
    )
    oauth_scope: str = "dpv:FraudPreventionAndDetection#number-verification-verify-read"

    # Application JWT for Bearer-authenticated provider calls
    application_id: str = ""
    private_key: str = ""  # PEM contents; takes precedence over private_key_path
    private_key_path: str = ""
    provider_jwt: str = ""  # Static bearer token, skips signing when set
    provider_jwt_ttl_seconds: int = 900

    # Outbound calls
    provider_timeout_seconds: float = 10.0

    # Token cache
    token_ttl_seconds: int = 7200  # 2 hours

    # Storage
    storage_backend: Literal["memory", "redis"] = "memory"
    redis_url: str = "redis://localhost:6379"
    redis_key_prefix: str = "idverify"

    @model_validator(mode="after")
    def _port_from_backend_url(self) -> "Settings":
        """A port at the end of BACKEND_URL overrides PORT."""
        match = _URL_PORT_PATTERN.search(self.backend_url)
        if match:
            self.port = int(match.group(1))
        return self

    @property
    def public_url(self) -> str:
        """Base URL the provider redirects browsers back to."""
        if self.backend_url:
            return self.backend_url.rstrip("/")
        return f"http://{self.host}:{self.port}"

    @property
    def redirect_uri(self) -> str:
        """OAuth redirect URI served by the callback endpoint."""
        return f"{self.public_url}/callback"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
