"""gRPC server interceptor enforcing Permis.io checks per RPC.

Provides:
- ``EnforcementMode``: three-state toggle (off / warn / enforce).
- ``PermissionInterceptor``: maps each RPC to an ``(action, resource_type)``
  pair and evaluates it for the principal named in call metadata.
- ``extract_rpc_name``, ``should_skip``: helper utilities.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any

import grpc

from ..exceptions import PermisError
from ..models import ResourceRef

if TYPE_CHECKING:
    from ..client import Permis

logger = logging.getLogger(__name__)

DEFAULT_USER_HEADER = "x-user-key"
DEFAULT_TENANT_HEADER = "x-tenant"


class EnforcementMode(str, Enum):
    """Three-state enforcement toggle.

    - ``off``     no checks, only caller logging.
    - ``warn``    evaluate, log denials as WARNING, but allow through.
    - ``enforce`` evaluate and abort denied calls.

    Set via env ``PERMIS_ENFORCEMENT=off|warn|enforce``.
    """

    OFF = "off"
    WARN = "warn"
    ENFORCE = "enforce"

    @classmethod
    def from_env(cls) -> EnforcementMode:
        """Read from ``PERMIS_ENFORCEMENT`` env var (default: warn)."""
        import os

        raw = os.environ.get("PERMIS_ENFORCEMENT", "warn").strip().lower()
        try:
            return cls(raw)
        except ValueError:
            logger.warning("Unknown PERMIS_ENFORCEMENT=%r, defaulting to 'warn'", raw)
            return cls.WARN


# Method prefixes that bypass permission checks
_SKIP_PREFIXES = (
    "grpc.health.v1",
    "grpc.reflection.v1",
)


def extract_rpc_name(full_method: str) -> str:
    """``/docs.DocumentService/Read`` → ``Read``"""
    return full_method.rsplit("/", 1)[-1] if "/" in full_method else full_method


def should_skip(method: str) -> bool:
    return any(prefix in method for prefix in _SKIP_PREFIXES)


class PermissionInterceptor(grpc.aio.ServerInterceptor):
    """gRPC server interceptor evaluating a permission check for every call.

    Unmapped RPCs are denied.

    Args:
        permis: Client used to evaluate checks.
        rpc_map: RPC name → ``(action, resource_type)``.
        service_name: Human-readable service name for log messages.
        enforcement: Three-state mode. Defaults to ``PERMIS_ENFORCEMENT``.
        user_header: Metadata key carrying the principal key.
        tenant_header: Metadata key carrying the tenant, if any.

    Usage::

        interceptor = PermissionInterceptor(
            permis,
            rpc_map={"GetDocument": ("read", "document")},
            service_name="Documents",
            enforcement=EnforcementMode.ENFORCE,
        )
        server = grpc.aio.server(interceptors=[interceptor])
    """

    def __init__(
        self,
        permis: Permis,
        rpc_map: dict[str, tuple[str, str]],
        *,
        service_name: str = "Service",
        enforcement: EnforcementMode | None = None,
        user_header: str = DEFAULT_USER_HEADER,
        tenant_header: str = DEFAULT_TENANT_HEADER,
    ) -> None:
        self._permis = permis
        self._rpc_map = rpc_map
        self._service_name = service_name
        self._mode = enforcement if enforcement is not None else EnforcementMode.from_env()
        self._user_header = user_header
        self._tenant_header = tenant_header

        if self._mode != EnforcementMode.OFF:
            logger.info("%s permission interceptor mode: %s", self._service_name, self._mode.value)

    @property
    def mode(self) -> EnforcementMode:
        return self._mode

    async def intercept_service(
        self,
        continuation: Any,
        handler_call_details: grpc.HandlerCallDetails,
    ) -> grpc.RpcMethodHandler:
        method = handler_call_details.method or ""

        if should_skip(method):
            return await continuation(handler_call_details)

        rpc_name = extract_rpc_name(method)
        metadata = dict(handler_call_details.invocation_metadata or [])
        user_key = str(metadata.get(self._user_header, "")).strip()
        tenant = str(metadata.get(self._tenant_header, "")).strip() or None

        logger.info(
            "%s RPC %s | user=%s tenant=%s",
            self._service_name,
            rpc_name,
            user_key or "anonymous",
            tenant or "-",
        )

        if self._mode == EnforcementMode.OFF:
            return await continuation(handler_call_details)

        mapping = self._rpc_map.get(rpc_name)
        deny_reason: str | None = None
        deny_code = grpc.StatusCode.PERMISSION_DENIED

        if mapping is None:
            deny_reason = "RPC not mapped to permission"
        elif not user_key:
            action, resource_type = mapping
            deny_reason = f"no user (requires {resource_type}:{action})"
            deny_code = grpc.StatusCode.UNAUTHENTICATED
        else:
            action, resource_type = mapping
            try:
                decision = await self._permis.check_with_details(
                    user_key,
                    action,
                    ResourceRef(type=resource_type, tenant=tenant),
                )
            except PermisError as e:
                deny_reason = f"permission check failed: {e}"
                deny_code = grpc.StatusCode.UNAVAILABLE
            else:
                if not decision.allowed:
                    deny_reason = decision.reason

        if deny_reason:
            if self._mode == EnforcementMode.WARN:
                logger.warning(
                    "%s WARN_DENIED '%s': %s (would block in enforce mode)",
                    self._service_name,
                    rpc_name,
                    deny_reason,
                )
                return await continuation(handler_call_details)

            logger.warning("%s DENIED '%s': %s", self._service_name, rpc_name, deny_reason)

            deny_msg = f"{self._service_name}: {rpc_name} denied: {deny_reason}"
            deny_status = deny_code

            async def _denied(request, context):
                await context.abort(deny_status, deny_msg)

            return grpc.unary_unary_rpc_method_handler(_denied)

        logger.debug("%s ALLOWED '%s' for user '%s'", self._service_name, rpc_name, user_key)
        return await continuation(handler_call_details)


__all__ = [
    "DEFAULT_TENANT_HEADER",
    "DEFAULT_USER_HEADER",
    "EnforcementMode",
    "PermissionInterceptor",
    "extract_rpc_name",
    "should_skip",
]
