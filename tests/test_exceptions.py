"""
Unit tests for custom exception hierarchy.

Tests status codes, error types, and serialization including:
- Base AppError functionality (to_dict, context handling)
- Not modified (304) and client errors (400-level)
- ProviderError status pass-through
"""

import pytest

from idverify.core.exceptions import (
    AppError,
    CacheError,
    ConfigurationError,
    ConflictError,
    NotFoundError,
    ProviderError,
    UnmodifiedError,
    ValidationError,
)

# ===== Base AppError Tests =====


class TestAppError:
    """Test base AppError functionality"""

    def test_defaults(self):
        """Test creating basic AppError"""
        error = AppError("Something went wrong")

        assert str(error) == "Something went wrong"
        assert error.status_code == 500
        assert error.error_type == "internal_error"
        assert error.context == {}

    def test_to_dict_includes_context(self):
        """Context is flattened into the log dict"""
        error = AppError("Lookup failed", identifier="+491234567")

        assert error.to_dict() == {
            "error_type": "internal_error",
            "message": "Lookup failed",
            "status_code": 500,
            "identifier": "+491234567",
        }


# ===== Status mapping =====


class TestStatusMapping:
    """Each subclass carries its HTTP status"""

    @pytest.mark.parametrize(
        "error_class,status_code,error_type",
        [
            (UnmodifiedError, 304, "not_modified"),
            (ValidationError, 400, "validation_error"),
            (NotFoundError, 404, "not_found_error"),
            (ConflictError, 409, "conflict_error"),
            (CacheError, 500, "cache_error"),
            (ConfigurationError, 500, "configuration_error"),
        ],
    )
    def test_status(self, error_class, status_code, error_type):
        error = error_class("message")

        assert isinstance(error, AppError)
        assert error.status_code == status_code
        assert error.error_type == error_type


# ===== ProviderError =====


class TestProviderError:
    """Provider failures surface the upstream status when meaningful"""

    def test_transport_failure_is_500(self):
        """No upstream status -> 500"""
        error = ProviderError("Provider unreachable", service="verify")

        assert error.status_code == 500
        assert error.upstream_status is None
        assert error.service == "verify"
        assert error.context["service"] == "verify"

    @pytest.mark.parametrize("upstream", [400, 401, 404, 429, 502, 503])
    def test_upstream_error_status_passes_through(self, upstream):
        error = ProviderError("Refused", service="oauth", status_code=upstream)

        assert error.status_code == upstream
        assert error.upstream_status == upstream

    @pytest.mark.parametrize("upstream", [200, 302, 600])
    def test_non_error_status_maps_to_500(self, upstream):
        """Status outside 4xx/5xx is kept for logs only"""
        error = ProviderError("Odd answer", service="network", status_code=upstream)

        assert error.status_code == 500
        assert error.upstream_status == upstream

    def test_class_default_unchanged(self):
        """Instance status does not leak into the class attribute"""
        ProviderError("Refused", service="oauth", status_code=401)

        assert ProviderError.status_code == 500
