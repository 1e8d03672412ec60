"""gRPC enforcement for services protected by Permis.io.

Usage::

    from permisio.security import PermissionInterceptor

    server = grpc.aio.server(
        interceptors=[PermissionInterceptor(permis, rpc_map=RPC_MAP, service_name="Documents")]
    )

Configuration (env vars)::

    PERMIS_ENFORCEMENT=enforce    # off | warn | enforce (default: warn)
"""

from .interceptors import (
    DEFAULT_TENANT_HEADER,
    DEFAULT_USER_HEADER,
    EnforcementMode,
    PermissionInterceptor,
    extract_rpc_name,
    should_skip,
)

__all__ = [
    "DEFAULT_TENANT_HEADER",
    "DEFAULT_USER_HEADER",
    "EnforcementMode",
    "PermissionInterceptor",
    "extract_rpc_name",
    "should_skip",
]
