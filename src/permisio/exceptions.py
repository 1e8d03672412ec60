"""Unified exception hierarchy for the Permis.io SDK.

This module provides:
- Base exception hierarchy with stable error codes
- ``ApiError`` carrying HTTP status, machine code and message
- ErrorRegistry for mapping error codes back to classes

Usage:
    from permisio.exceptions import ApiError, ScopeError

    try:
        await permis.check_and_fail(user, "read", "document")
    except AccessDeniedError:
        ...
"""

from __future__ import annotations

from http import HTTPStatus
from typing import Any, Callable, TypeVar, cast

__all__ = [
    # Base hierarchy
    "PermisError",
    "ConfigurationError",
    "ScopeError",
    "NetworkError",
    "ApiError",
    "DecodeError",
    "AccessDeniedError",
    # Registry
    "ErrorRegistry",
    "error_registry",
    "register_error",
]


# ---- Exception Hierarchy ----------------------------------------------------


class PermisError(Exception):
    """Base exception for all SDK errors.

    Attributes:
        code: Stable error code string (e.g. "SCOPE_ERROR").
        message: Human-readable error description.
        details: Additional context as keyword arguments.
    """

    code: str = "INTERNAL_ERROR"
    message: str = "An internal error occurred"

    def __init__(self, message: str | None = None, code: str | None = None, **kwargs: Any) -> None:
        self.message = message or self.message
        self.code = code or self.code
        self.details = kwargs
        super().__init__(self.message)


class ConfigurationError(PermisError):
    """Invalid or missing configuration."""

    code: str = "CONFIGURATION_ERROR"


class ScopeError(PermisError):
    """Project/environment scope could not be discovered and none was configured."""

    code: str = "SCOPE_ERROR"


class NetworkError(PermisError):
    """The request never produced an HTTP response (connect/read failure, timeout)."""

    code: str = "NETWORK_ERROR"


class ApiError(PermisError):
    """Non-2xx response from the authorization service.

    ``code`` is the machine code returned by the service when present; it
    falls back to the class code otherwise.
    """

    code: str = "API_ERROR"

    def __init__(
        self,
        message: str | None = None,
        status_code: int = 0,
        code: str | None = None,
        **kwargs: Any,
    ) -> None:
        self.status_code = status_code
        self.api_code = code
        super().__init__(message, code, **kwargs)

    def __str__(self) -> str:
        if self.api_code:
            return f"[{self.api_code}] {self.message} (status: {self.status_code})"
        return f"{self.message} (status: {self.status_code})"

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status_code < 500

    @property
    def is_server_error(self) -> bool:
        return self.status_code >= 500

    @property
    def is_not_found(self) -> bool:
        return self.status_code == HTTPStatus.NOT_FOUND

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code == HTTPStatus.UNAUTHORIZED

    @property
    def is_forbidden(self) -> bool:
        return self.status_code == HTTPStatus.FORBIDDEN

    @property
    def is_bad_request(self) -> bool:
        return self.status_code == HTTPStatus.BAD_REQUEST


class DecodeError(ApiError):
    """Response body did not match the expected shape."""

    code: str = "DECODE_ERROR"


class AccessDeniedError(ApiError):
    """Raised by fail-fast checks when the decision is negative."""

    code: str = "ACCESS_DENIED"

    def __init__(self, message: str | None = None, **kwargs: Any) -> None:
        super().__init__(message or "Access denied", status_code=int(HTTPStatus.FORBIDDEN), code=self.code, **kwargs)


# ---- Error Registry ---------------------------------------------------------

_E = TypeVar("_E", bound=type[PermisError])


class ErrorRegistry:
    """Registry mapping stable error codes to exception classes."""

    def __init__(self) -> None:
        self._errors: dict[str, type[PermisError]] = {}

    def register(self, code: str, error_cls: type[PermisError]) -> None:
        self._errors[code] = error_cls

    def get(self, code: str) -> type[PermisError] | None:
        return self._errors.get(code)

    def all(self) -> dict[str, type[PermisError]]:
        return dict(self._errors)


error_registry = ErrorRegistry()


def register_error(code: str) -> Callable[[_E], _E]:
    """Decorator to register a custom error type.

    Usage:
        @register_error("QUOTA_EXCEEDED")
        class QuotaExceededError(ApiError):
            code = "QUOTA_EXCEEDED"
    """

    def decorator(cls: _E) -> _E:
        error_registry.register(code, cls)
        return cls

    return cast(Callable[[_E], _E], decorator)


# Register base errors
error_registry.register("INTERNAL_ERROR", PermisError)
error_registry.register("CONFIGURATION_ERROR", ConfigurationError)
error_registry.register("SCOPE_ERROR", ScopeError)
error_registry.register("NETWORK_ERROR", NetworkError)
error_registry.register("API_ERROR", ApiError)
error_registry.register("DECODE_ERROR", DecodeError)
error_registry.register("ACCESS_DENIED", AccessDeniedError)
