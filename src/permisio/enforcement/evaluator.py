"""Client-side permission evaluation.

A check resolves, fresh for every call:

1. the project/environment scope (errors always propagate);
2. the principal's role assignments, filtered by tenant when the resource has one;
3. the role catalog, following server-reported pagination;
4. each assigned role's expansion over ``extends``.

Access is granted when any assigned role's expansion contains
``{type}:{action}``, ``{type}:*`` or ``*:*``.

Transport failures in steps 2 and 3 are raised in strict mode and turned
into a negative decision in lenient mode.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Optional, Union

from ..api.role_assignments import RoleAssignmentsApi
from ..api.roles import RolesApi
from ..config import PermisConfig
from ..exceptions import AccessDeniedError, PermisError
from ..models import Decision, EffectivePermissions, Principal, ResourceRef, RoleAssignmentRead
from ..permissions import (
    Permissions,
    RoleCatalog,
    build_role_catalog,
    expand_role_permissions,
    expand_roles,
    has_permission,
)
from ..scope import ScopeResolver

logger = logging.getLogger(__name__)

UserLike = Union[Principal, str]
ResourceLike = Union[ResourceRef, str]


def as_principal(user: UserLike) -> Principal:
    return user if isinstance(user, Principal) else Principal(key=user)


def as_resource(resource: ResourceLike) -> ResourceRef:
    return resource if isinstance(resource, ResourceRef) else ResourceRef(type=resource)


def distinct_roles(assignments: Iterable[RoleAssignmentRead]) -> list[str]:
    """Role keys of ``assignments`` without duplicates, in first-seen order."""
    return list(dict.fromkeys(a.role for a in assignments if a.role))


class PermissionEvaluator:
    """Decides whether a principal may perform an action on a resource."""

    def __init__(
        self,
        config: PermisConfig,
        scope: ScopeResolver,
        role_assignments: RoleAssignmentsApi,
        roles: RolesApi,
    ) -> None:
        self._config = config
        self._scope = scope
        self._role_assignments = role_assignments
        self._roles = roles

    async def evaluate(self, user: UserLike, action: str, resource: ResourceLike) -> Decision:
        """Evaluate one permission check.

        Raises:
            ScopeError: Scope could not be established.
            PermisError: Transport failure in strict mode.
        """
        await self._scope.ensure_scope()

        principal = as_principal(user)
        target = as_resource(resource)
        required = Permissions.of(target.type, action)

        logger.debug(
            "Permission check user=%s action=%s resource=%s tenant=%s required=%s",
            principal.key,
            action,
            target.type,
            target.tenant,
            required,
        )

        try:
            assignments = await self._role_assignments.list(user=principal.key, tenant=target.tenant)
        except PermisError as e:
            if self._config.strict:
                raise
            logger.warning("Failed to fetch role assignments for %s: %s", principal.key, e)
            return Decision(allowed=False, reason=f"Error fetching role assignments: {e}")

        logger.debug("Fetched %d role assignments for %s", len(assignments), principal.key)

        if not assignments:
            return Decision(allowed=False, reason=f"User {principal.key} has no role assignments")

        role_keys = distinct_roles(assignments)

        try:
            catalog = await self.fetch_catalog()
        except PermisError as e:
            if self._config.strict:
                raise
            logger.warning("Failed to fetch role catalog: %s", e)
            return Decision(allowed=False, reason=f"Error fetching roles: {e}")

        matched_roles: list[str] = []
        for role_key in role_keys:
            if has_permission(expand_role_permissions(role_key, catalog), target.type, action):
                matched_roles.append(role_key)

        allowed = bool(matched_roles)
        if allowed:
            reason = f"Granted by role(s): {', '.join(matched_roles)}"
        else:
            reason = f"No role grants permission {required}"

        logger.debug("Permission check result allowed=%s roles=%s", allowed, matched_roles)

        return Decision(
            allowed=allowed,
            reason=reason,
            matched_roles=matched_roles,
            matched_permissions=[required] if allowed else [],
        )

    async def check(self, user: UserLike, action: str, resource: ResourceLike) -> bool:
        decision = await self.evaluate(user, action, resource)
        return decision.allowed

    async def check_and_fail(self, user: UserLike, action: str, resource: ResourceLike) -> None:
        """Evaluate and raise ``AccessDeniedError`` on a negative decision."""
        decision = await self.evaluate(user, action, resource)
        if decision.allowed:
            return

        principal = as_principal(user)
        target = as_resource(resource)
        raise AccessDeniedError(
            f"Access denied: User {principal.key} is not allowed to perform {action} on {target.type}",
            reason=decision.reason,
        )

    async def get_effective_permissions(
        self,
        user: UserLike,
        tenant: Optional[str] = None,
        resource: Optional[str] = None,
    ) -> EffectivePermissions:
        """Every role held by the principal and the union of their expansions.

        Args:
            user: Principal or principal key.
            tenant: Only consider assignments in this tenant.
            resource: Only consider assignments scoped to this resource type.
        """
        await self._scope.ensure_scope()
        principal = as_principal(user)

        try:
            assignments = await self._role_assignments.list(user=principal.key, tenant=tenant, resource=resource)
            if not assignments:
                return EffectivePermissions()
            catalog = await self.fetch_catalog()
        except PermisError as e:
            if self._config.strict:
                raise
            logger.warning("Failed to resolve effective permissions for %s: %s", principal.key, e)
            return EffectivePermissions()

        role_keys = distinct_roles(assignments)
        return EffectivePermissions(roles=role_keys, permissions=list(expand_roles(role_keys, catalog)))

    async def fetch_catalog(self) -> RoleCatalog:
        roles = await self._roles.list_all(per_page=self._config.role_page_size)
        logger.debug("Fetched %d role definitions", len(roles))
        return build_role_catalog(roles)


__all__ = [
    "PermissionEvaluator",
    "ResourceLike",
    "UserLike",
    "as_principal",
    "as_resource",
    "distinct_roles",
]
