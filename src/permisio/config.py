"""Client configuration for the Permis.io SDK.

This module provides the Pydantic-validated configuration model consumed by
the transport, the scope resolver and the permission evaluator.

Direct os.environ/os.getenv usage is confined to ``load_config_from_env()``;
everything else receives a ``PermisConfig`` instance.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from .exceptions import ConfigurationError

DEFAULT_API_URL = "https://api.permis.io"
DEFAULT_TIMEOUT = 30.0
DEFAULT_RETRY_ATTEMPTS = 3
DEFAULT_ROLE_PAGE_SIZE = 100

# Every API key issued by the service carries this prefix
API_KEY_PREFIX = "permis_key_"


class LogLevel(str, Enum):
    """Standard log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ErrorMode(str, Enum):
    """How evaluation calls react to transport failures.

    - STRICT: the failure is raised to the caller.
    - LENIENT: the failure becomes a negative decision whose reason carries
      the underlying error text.
    """

    STRICT = "strict"
    LENIENT = "lenient"


class PermisConfig(BaseModel):
    """Configuration for a ``Permis`` client.

    Environment variables (see ``load_config_from_env``):
        PERMIS_API_KEY          API key, must start with ``permis_key_``
        PERMIS_API_URL          base URL of the authorization service
        PERMIS_PROJECT_ID       pre-configured project (skips discovery)
        PERMIS_ENVIRONMENT_ID   pre-configured environment (skips discovery)
        PERMIS_TIMEOUT          request timeout in seconds
        PERMIS_RETRY_ATTEMPTS   retries after the first attempt
        PERMIS_ERROR_MODE       strict | lenient
    """

    token: str = Field(description="API key used as bearer credential")
    api_url: str = Field(default=DEFAULT_API_URL, description="Base URL of the authorization service")

    project_id: Optional[str] = Field(default=None, description="Project identifier")
    environment_id: Optional[str] = Field(default=None, description="Environment identifier")

    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0, description="Request timeout in seconds")
    retry_attempts: int = Field(
        default=DEFAULT_RETRY_ATTEMPTS,
        ge=0,
        description="Retries after the first attempt on network errors and 5xx responses",
    )
    retry_backoff: float = Field(
        default=0.1,
        ge=0,
        description="Backoff unit in seconds; retry n waits n*n*retry_backoff",
    )

    error_mode: ErrorMode = Field(
        default=ErrorMode.LENIENT,
        description="strict raises transport failures from checks, lenient turns them into denials",
    )
    custom_headers: dict[str, str] = Field(default_factory=dict, description="Extra headers sent on every request")
    role_page_size: int = Field(
        default=DEFAULT_ROLE_PAGE_SIZE,
        ge=1,
        le=1000,
        description="Page size used when fetching the role catalog",
    )

    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")
    log_json: bool = Field(default=False, description="Use JSON log format (default: plain text)")

    model_config = {
        "use_enum_values": True,
        "extra": "forbid",
        "frozen": True,
    }

    @field_validator("token")
    @classmethod
    def validate_token(cls, v: str) -> str:
        """Validate API key presence and prefix."""
        if not v:
            raise ValueError("API token is required")
        if not v.startswith(API_KEY_PREFIX):
            raise ValueError(f"invalid API key format: must start with '{API_KEY_PREFIX}'")
        return v

    @field_validator("api_url")
    @classmethod
    def validate_api_url(cls, v: str) -> str:
        """Validate API URL scheme and drop trailing slashes."""
        if not v:
            raise ValueError("API URL is required")
        if not v.startswith(("http://", "https://")):
            raise ValueError("API URL must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str | LogLevel) -> LogLevel:
        """Convert string to LogLevel enum."""
        if isinstance(v, LogLevel):
            return v
        if isinstance(v, str):
            try:
                return LogLevel[v.upper()]
            except KeyError:
                raise ValueError(f"Invalid log level: {v}. Must be one of {[e.value for e in LogLevel]}")
        raise ValueError(f"Log level must be string or LogLevel enum, got {type(v)}")

    @property
    def has_scope(self) -> bool:
        """True if both project_id and environment_id are configured."""
        return bool(self.project_id and self.environment_id)

    @property
    def strict(self) -> bool:
        return self.error_mode == ErrorMode.STRICT


def _env_flag(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes", "on")


def load_config_from_env(**overrides) -> PermisConfig:
    """Load client configuration from environment variables.

    This is the ONLY place where os.getenv is allowed for client settings.
    Keyword arguments override values read from the environment.

    Environment variables:
    - PERMIS_API_KEY: API key (required)
    - PERMIS_API_URL: Base URL (default: https://api.permis.io)
    - PERMIS_PROJECT_ID / PERMIS_ENVIRONMENT_ID: Pre-configured scope
    - PERMIS_TIMEOUT: Request timeout in seconds
    - PERMIS_RETRY_ATTEMPTS: Retries after the first attempt
    - PERMIS_ERROR_MODE: strict | lenient
    - PERMIS_THROW_ON_ERROR: true selects strict mode (legacy switch)
    - LOG_LEVEL: Logging level
    - LOG_JSON: Use JSON log format (true/false)

    Returns:
        PermisConfig instance.

    Raises:
        ConfigurationError: If the resulting configuration is invalid.
    """
    import os

    error_mode = os.getenv("PERMIS_ERROR_MODE", "").strip().lower()
    if not error_mode:
        error_mode = "strict" if _env_flag(os.getenv("PERMIS_THROW_ON_ERROR", "false")) else "lenient"

    try:
        values = {
            "token": os.getenv("PERMIS_API_KEY", ""),
            "api_url": os.getenv("PERMIS_API_URL", DEFAULT_API_URL),
            "project_id": os.getenv("PERMIS_PROJECT_ID") or None,
            "environment_id": os.getenv("PERMIS_ENVIRONMENT_ID") or None,
            "timeout": float(os.getenv("PERMIS_TIMEOUT", str(DEFAULT_TIMEOUT))),
            "retry_attempts": int(os.getenv("PERMIS_RETRY_ATTEMPTS", str(DEFAULT_RETRY_ATTEMPTS))),
            "error_mode": error_mode,
            "log_level": os.getenv("LOG_LEVEL", "INFO"),
            "log_json": _env_flag(os.getenv("LOG_JSON", "false")),
        }
        values.update(overrides)
        return PermisConfig(**values)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid Permis configuration: {e}", errors=e.errors()) from e
    except ValueError as e:
        # Non-numeric PERMIS_TIMEOUT / PERMIS_RETRY_ATTEMPTS
        raise ConfigurationError(f"Invalid Permis configuration: {e}") from e


__all__ = [
    "API_KEY_PREFIX",
    "DEFAULT_API_URL",
    "ErrorMode",
    "LogLevel",
    "PermisConfig",
    "load_config_from_env",
]
