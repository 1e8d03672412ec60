from .client import Permis
from .config import ErrorMode, LogLevel, PermisConfig, load_config_from_env
from .exceptions import (
    AccessDeniedError,
    ApiError,
    ConfigurationError,
    DecodeError,
    NetworkError,
    PermisError,
    ScopeError,
)
from .logging import (
    PermisFormatter,
    redact_secrets,
    safe_log_value,
    safe_preview,
    setup_logging,
)
from .models import (
    BulkCheckResult,
    CheckRequest,
    Decision,
    EffectivePermissions,
    Principal,
    ResourceRef,
    RoleAssignmentCreate,
    RoleCreate,
    Scope,
    TenantCreate,
    UserCreate,
)

__version__ = "0.1.0"

__all__ = [
    'Permis',
    'PermisConfig',
    'ErrorMode',
    'LogLevel',
    'load_config_from_env',
    'PermisError',
    'ConfigurationError',
    'ScopeError',
    'NetworkError',
    'ApiError',
    'DecodeError',
    'AccessDeniedError',
    'safe_preview',
    'redact_secrets',
    'safe_log_value',
    'PermisFormatter',
    'setup_logging',
    'Principal',
    'ResourceRef',
    'Decision',
    'CheckRequest',
    'BulkCheckResult',
    'EffectivePermissions',
    'Scope',
    'UserCreate',
    'TenantCreate',
    'RoleCreate',
    'RoleAssignmentCreate',
]
