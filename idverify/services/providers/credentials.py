"""
Provider credential schemes.

- Basic: `api_key:api_secret`, used by the code delivery API.
- Bearer: an application JWT (RS256, signed with the application's private
  key) or a static token from configuration, used by the network APIs.
"""

import base64
import time
import uuid
from pathlib import Path

import structlog
from jose import jwt

from ...core.config import Settings
from ...core.exceptions import ConfigurationError

logger = structlog.get_logger()

JWT_ALGORITHM = "RS256"


class ProviderCredentials:
    """Builds Authorization header values from settings."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self._private_key: str | None = None

    def basic_auth_header(self) -> str:
        """Authorization value for Basic-authenticated calls."""
        if not self.settings.api_key or not self.settings.api_secret:
            raise ConfigurationError(
                "Provider API key and secret are not configured. "
                "Set API_KEY and API_SECRET environment variables."
            )
        raw = f"{self.settings.api_key}:{self.settings.api_secret}".encode()
        return f"Basic {base64.b64encode(raw).decode('ascii')}"

    def bearer_auth_header(self) -> str:
        """Authorization value carrying the application JWT."""
        if self.settings.provider_jwt:
            return f"Bearer {self.settings.provider_jwt}"
        return f"Bearer {self.create_application_jwt()}"

    def create_application_jwt(self) -> str:
        """
        Sign a short-lived application JWT.

        Returns:
            Encoded JWT with application_id, iat, exp and jti claims
        """
        if not self.settings.application_id:
            raise ConfigurationError(
                "Provider application id is not configured. "
                "Set APPLICATION_ID or PROVIDER_JWT."
            )

        issued_at = int(time.time())
        claims = {
            "application_id": self.settings.application_id,
            "iat": issued_at,
            "exp": issued_at + self.settings.provider_jwt_ttl_seconds,
            "jti": str(uuid.uuid4()),
        }
        token: str = jwt.encode(claims, self._load_private_key(), algorithm=JWT_ALGORITHM)
        return token

    def _load_private_key(self) -> str:
        if self._private_key is not None:
            return self._private_key

        if self.settings.private_key:
            # Env files commonly carry the PEM with escaped newlines
            self._private_key = self.settings.private_key.replace("\\n", "\n")
        elif self.settings.private_key_path:
            path = Path(self.settings.private_key_path)
            try:
                self._private_key = path.read_text(encoding="utf-8")
            except OSError as e:
                raise ConfigurationError(
                    "Cannot read provider private key", path=str(path)
                ) from e
            logger.info("Provider private key loaded", path=str(path))
        else:
            raise ConfigurationError(
                "Provider private key is not configured. "
                "Set PRIVATE_KEY or PRIVATE_KEY_PATH."
            )
        return self._private_key
