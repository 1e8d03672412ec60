"""Tests for the exception hierarchy and error registry."""

from __future__ import annotations

import pytest

from permisio.exceptions import (
    AccessDeniedError,
    ApiError,
    ConfigurationError,
    DecodeError,
    NetworkError,
    PermisError,
    ScopeError,
    error_registry,
    register_error,
)


class TestHierarchy:
    def test_all_errors_are_permis_errors(self) -> None:
        for cls in (ConfigurationError, ScopeError, NetworkError, ApiError, DecodeError, AccessDeniedError):
            assert issubclass(cls, PermisError)

    def test_default_message_and_code(self) -> None:
        err = PermisError()
        assert err.code == "INTERNAL_ERROR"
        assert err.message == "An internal error occurred"

    def test_details_kept(self) -> None:
        err = NetworkError("boom", url="https://x")
        assert err.details == {"url": "https://x"}
        assert err.code == "NETWORK_ERROR"


class TestApiError:
    def test_str_with_code(self) -> None:
        err = ApiError("role not found", status_code=404, code="NOT_FOUND")
        assert str(err) == "[NOT_FOUND] role not found (status: 404)"
        assert err.code == "NOT_FOUND"

    def test_str_without_code(self) -> None:
        err = ApiError("upstream down", status_code=503)
        assert str(err) == "upstream down (status: 503)"
        assert err.code == "API_ERROR"

    @pytest.mark.parametrize(
        "status,attr",
        [
            (400, "is_bad_request"),
            (401, "is_unauthorized"),
            (403, "is_forbidden"),
            (404, "is_not_found"),
        ],
    )
    def test_status_helpers(self, status: int, attr: str) -> None:
        err = ApiError("x", status_code=status)
        assert getattr(err, attr) is True
        assert err.is_client_error is True
        assert err.is_server_error is False

    def test_server_error(self) -> None:
        err = ApiError("x", status_code=502)
        assert err.is_server_error is True
        assert err.is_client_error is False


class TestAccessDeniedError:
    def test_status_and_code(self) -> None:
        err = AccessDeniedError("Access denied: User alice is not allowed to perform delete on document")
        assert err.status_code == 403
        assert err.code == "ACCESS_DENIED"
        assert err.is_forbidden
        assert str(err).startswith("[ACCESS_DENIED] Access denied: User alice")


class TestErrorRegistry:
    def test_builtin_codes_registered(self) -> None:
        assert error_registry.get("SCOPE_ERROR") is ScopeError
        assert error_registry.get("ACCESS_DENIED") is AccessDeniedError
        assert error_registry.get("UNKNOWN") is None

    def test_register_custom_error(self) -> None:
        @register_error("QUOTA_EXCEEDED")
        class QuotaExceededError(ApiError):
            code = "QUOTA_EXCEEDED"

        assert error_registry.get("QUOTA_EXCEEDED") is QuotaExceededError
        assert "QUOTA_EXCEEDED" in error_registry.all()
