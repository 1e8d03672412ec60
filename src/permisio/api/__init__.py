"""Typed wrappers for the Permis.io REST resources.

Usage:
    async with Permis(config) as permis:
        await permis.api.users.sync(UserCreate(key="alice"))
        await permis.api.role_assignments.assign(
            RoleAssignmentCreate(user="alice", role="editor", tenant="acme")
        )
"""

from __future__ import annotations

from ..scope import ScopeResolver
from ..transport import Transport
from .base import BaseApi
from .resources import ResourcesApi
from .role_assignments import RoleAssignmentsApi
from .roles import RolesApi
from .tenants import TenantsApi
from .users import UsersApi


class PermisApi:
    """Groups the resource APIs sharing one transport and scope."""

    def __init__(self, transport: Transport, scope: ScopeResolver) -> None:
        self.users = UsersApi(transport, scope)
        self.tenants = TenantsApi(transport, scope)
        self.roles = RolesApi(transport, scope)
        self.resources = ResourcesApi(transport, scope)
        self.role_assignments = RoleAssignmentsApi(transport, scope)


__all__ = [
    "BaseApi",
    "PermisApi",
    "ResourcesApi",
    "RoleAssignmentsApi",
    "RolesApi",
    "TenantsApi",
    "UsersApi",
]
