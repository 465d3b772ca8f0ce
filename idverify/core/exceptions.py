"""
Custom exception hierarchy for error categorization and HTTP status mapping.

Maps internal errors to HTTP status codes so every path returns a short,
consistent reason:
- User errors (400-level): Client sent bad data or a duplicate identifier
- Not modified (304): Re-confirming an already verified user
- Provider errors: The external verification provider failed or refused

Usage:
    from idverify.core.exceptions import ConflictError, ProviderError

    # Duplicate signup -> 409 Conflict
    raise ConflictError("User already exists", identifier=user_id)

    # Token endpoint answered 401 -> surfaced as 401
    raise ProviderError("Token exchange failed", service="oauth", status_code=401)
"""

from typing import Any


class AppError(Exception):
    """
    Base application error with HTTP status mapping.

    All custom exceptions inherit from this to enable consistent error handling.
    """

    # Default status code (subclasses override)
    status_code: int = 500
    error_type: str = "internal_error"

    def __init__(self, message: str, **context: Any):
        """
        Initialize error with message and optional context.

        Args:
            message: Human-readable error description
            **context: Additional key-value pairs for logging (e.g., identifier, state)
        """
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for structured logging."""
        return {
            "error_type": self.error_type,
            "message": self.message,
            "status_code": self.status_code,
            **self.context,
        }


# ===== 300-level: Not an error for the client =====


class UnmodifiedError(AppError):
    """User is already verified; nothing was re-checked or changed."""

    status_code = 304
    error_type = "not_modified"


# ===== 400-level: Client Errors =====


class ValidationError(AppError):
    """User provided invalid input (e.g., malformed identifier, missing fields)."""

    status_code = 400
    error_type = "validation_error"


class NotFoundError(AppError):
    """Unknown user, or the provider does not know the subscriber."""

    status_code = 404
    error_type = "not_found_error"


class ConflictError(AppError):
    """A record with the same normalized identifier already exists."""

    status_code = 409
    error_type = "conflict_error"


# ===== 500-level: Server Errors =====


class CacheError(AppError):
    """Redis operation failed."""

    status_code = 500
    error_type = "cache_error"


class ConfigurationError(AppError):
    """
    Application misconfigured (e.g., missing provider credentials).

    Raised lazily when a provider call needs a credential that is not set.
    """

    status_code = 500
    error_type = "configuration_error"


# ===== Provider Errors =====


class ProviderError(AppError):
    """
    External verification provider failed or returned a non-2xx response.

    Carries the provider's HTTP status when one is available so callers of the
    callback and authorize endpoints see what the provider said. Transport
    failures (timeouts, refused connections) have no status and map to 500.
    """

    status_code = 500
    error_type = "provider_error"

    def __init__(
        self,
        message: str,
        service: str,
        status_code: int | None = None,
        **context: Any,
    ):
        """
        Initialize with service name and optional upstream status.

        Args:
            message: Error description (safe to show to the client)
            service: Provider capability (e.g., "verify", "oauth", "network")
            status_code: Provider HTTP status, used when it is a 4xx/5xx
            **context: Additional context for logging
        """
        super().__init__(message, service=service, **context)
        self.service = service
        self.upstream_status = status_code
        if status_code is not None and 400 <= status_code < 600:
            self.status_code = status_code
