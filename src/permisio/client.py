"""Top-level Permis.io client.

Usage:
    from permisio import Permis, PermisConfig, ResourceRef

    async with Permis(PermisConfig(token="permis_key_...")) as permis:
        if await permis.check("alice", "read", ResourceRef(type="document", tenant="acme")):
            ...
        await permis.check_and_fail("alice", "delete", "document")
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Optional

import httpx
from pydantic import ValidationError

from .api import PermisApi
from .config import PermisConfig
from .enforcement import BulkEvaluator, PermissionEvaluator
from .enforcement.evaluator import ResourceLike, UserLike
from .exceptions import ConfigurationError, PermisError
from .models import (
    BulkCheckResult,
    CheckRequest,
    Decision,
    EffectivePermissions,
    RoleAssignmentCreate,
    Scope,
    UserCreate,
    UserRead,
)
from .scope import ScopeResolver
from .transport import Transport

logger = logging.getLogger(__name__)


class Permis:
    """Authorization client: resource APIs plus client-side permission checks.

    Args:
        config: A ``PermisConfig`` or a mapping of its fields.
        http_client: Optional ``httpx.AsyncClient`` to send requests through.

    Raises:
        ConfigurationError: ``config`` is not a valid configuration.
    """

    def __init__(self, config: PermisConfig | dict, http_client: httpx.AsyncClient | None = None) -> None:
        if not isinstance(config, PermisConfig):
            try:
                config = PermisConfig(**config)
            except ValidationError as e:
                raise ConfigurationError(f"Invalid Permis configuration: {e}", errors=e.errors()) from e

        self.config = config
        self._transport = Transport(config, http_client)
        self._scope = ScopeResolver(self._transport)
        self.api = PermisApi(self._transport, self._scope)
        self._evaluator = PermissionEvaluator(
            config,
            self._scope,
            self.api.role_assignments,
            self.api.roles,
        )
        self._bulk = BulkEvaluator(self._evaluator)

    async def __aenter__(self) -> Permis:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # ── Scope ───────────────────────────────────────────

    async def init(self) -> None:
        """Resolve the project/environment scope up-front.

        Raises:
            ScopeError: Scope is not configured and cannot be discovered.
        """
        await self._scope.ensure_scope()

    async def get_scope(self) -> Scope:
        return await self._scope.ensure_scope()

    # ── Checks ──────────────────────────────────────────

    async def check(self, user: UserLike, action: str, resource: ResourceLike) -> bool:
        return await self._evaluator.check(user, action, resource)

    async def check_with_details(self, user: UserLike, action: str, resource: ResourceLike) -> Decision:
        return await self._evaluator.evaluate(user, action, resource)

    async def check_and_fail(self, user: UserLike, action: str, resource: ResourceLike) -> None:
        await self._evaluator.check_and_fail(user, action, resource)

    async def bulk_check(self, checks: Sequence[CheckRequest]) -> list[BulkCheckResult]:
        decisions = await self._bulk.evaluate_batch(checks)
        return [BulkCheckResult(request=check, decision=decision) for check, decision in zip(checks, decisions)]

    async def get_permissions(
        self,
        user: UserLike,
        tenant: Optional[str] = None,
        resource: Optional[str] = None,
    ) -> EffectivePermissions:
        return await self._evaluator.get_effective_permissions(user, tenant=tenant, resource=resource)

    # ── Provisioning ────────────────────────────────────

    async def sync_user(self, user: UserCreate, roles: Iterable[RoleAssignmentCreate] = ()) -> UserRead:
        """Upsert a user, then assign ``roles`` to it.

        Individual role assignment failures are logged and skipped.
        """
        await self._scope.ensure_scope()
        result = await self.api.users.sync(user)

        for assignment in roles:
            assignment = assignment.model_copy(update={"user": user.key})
            try:
                await self.api.role_assignments.assign(assignment)
            except PermisError as e:
                logger.warning("Failed to assign role %s to %s: %s", assignment.role, user.key, e)

        return result

    async def aclose(self) -> None:
        await self._transport.aclose()


__all__ = ["Permis"]
