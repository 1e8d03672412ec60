"""Role assignments API (facts tree).

The list endpoints return a bare JSON array of assignments.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Optional

from ..models import BulkRoleAssignmentResponse, RoleAssignmentCreate, RoleAssignmentList, RoleAssignmentRead
from .base import BaseApi, list_params, segment


class RoleAssignmentsApi(BaseApi):
    async def list(
        self,
        user: Optional[str] = None,
        role: Optional[str] = None,
        tenant: Optional[str] = None,
        resource: Optional[str] = None,
        resource_instance: Optional[str] = None,
        page: int = 0,
        per_page: int = 0,
    ) -> list[RoleAssignmentRead]:
        """List assignments matching every given filter."""
        url = await self.facts_url("/role_assignments")
        params = list_params(
            page,
            per_page,
            user=user,
            role=role,
            tenant=tenant,
            resource=resource,
            resource_instance=resource_instance,
        )
        result = await self._transport.get(url, params=params, result=RoleAssignmentList)
        return result or []

    async def list_by_user(self, user_key: str, **filters) -> list[RoleAssignmentRead]:
        return await self.list(user=user_key, **filters)

    async def list_by_tenant(self, tenant_key: str, **filters) -> list[RoleAssignmentRead]:
        return await self.list(tenant=tenant_key, **filters)

    async def list_by_resource(self, resource_type: str, instance_key: str, **filters) -> list[RoleAssignmentRead]:
        return await self.list(resource=resource_type, resource_instance=instance_key, **filters)

    async def list_detailed(
        self,
        user: Optional[str] = None,
        role: Optional[str] = None,
        tenant: Optional[str] = None,
        resource: Optional[str] = None,
        resource_instance: Optional[str] = None,
        page: int = 0,
        per_page: int = 0,
    ) -> list[RoleAssignmentRead]:
        """Like ``list`` but the server expands user/role/tenant identifiers."""
        url = await self.facts_url("/role_assignments/detailed")
        params = list_params(
            page,
            per_page,
            user=user,
            role=role,
            tenant=tenant,
            resource=resource,
            resource_instance=resource_instance,
        )
        result = await self._transport.get(url, params=params, result=RoleAssignmentList)
        return result or []

    async def get_by_id(self, assignment_id: str) -> RoleAssignmentRead:
        url = await self.facts_url(f"/role_assignments/{segment(assignment_id)}")
        return await self._transport.get(url, result=RoleAssignmentRead)

    async def assign(self, assignment: RoleAssignmentCreate) -> RoleAssignmentRead:
        url = await self.facts_url("/role_assignments")
        return await self._transport.post(url, assignment, result=RoleAssignmentRead)

    async def unassign(
        self,
        user: str,
        role: str,
        tenant: Optional[str] = None,
        resource: Optional[str] = None,
        resource_instance: Optional[str] = None,
    ) -> None:
        url = await self.facts_url("/role_assignments")
        body = RoleAssignmentCreate(
            user=user,
            role=role,
            tenant=tenant,
            resource=resource,
            resource_instance=resource_instance,
        )
        await self._transport.delete(url, body)

    async def bulk_assign(self, assignments: Sequence[RoleAssignmentCreate]) -> BulkRoleAssignmentResponse:
        url = await self.facts_url("/role_assignments/bulk")
        return await self._transport.post(
            url,
            {"assignments": list(assignments)},
            result=BulkRoleAssignmentResponse,
        )

    async def bulk_unassign(self, assignments: Sequence[RoleAssignmentCreate]) -> BulkRoleAssignmentResponse:
        url = await self.facts_url("/role_assignments/bulk")
        return await self._transport.delete(
            url,
            {"assignments": list(assignments)},
            result=BulkRoleAssignmentResponse,
        )

    async def has_role(
        self,
        user_key: str,
        role_key: str,
        tenant: Optional[str] = None,
        resource: Optional[str] = None,
        resource_instance: Optional[str] = None,
    ) -> bool:
        assignments = await self.list(
            user=user_key,
            role=role_key,
            tenant=tenant,
            resource=resource,
            resource_instance=resource_instance,
        )
        return len(assignments) > 0

    async def get_user_roles(
        self,
        user_key: str,
        tenant: Optional[str] = None,
        resource: Optional[str] = None,
        resource_instance: Optional[str] = None,
    ) -> list[str]:
        """Distinct role keys assigned to a user, in first-seen order."""
        assignments = await self.list(
            user=user_key,
            tenant=tenant,
            resource=resource,
            resource_instance=resource_instance,
        )
        return list(dict.fromkeys(a.role for a in assignments if a.role))

    async def get_role_users(
        self,
        role_key: str,
        tenant: Optional[str] = None,
        resource: Optional[str] = None,
        resource_instance: Optional[str] = None,
    ) -> list[str]:
        """Distinct user keys holding a role, in first-seen order."""
        assignments = await self.list(
            role=role_key,
            tenant=tenant,
            resource=resource,
            resource_instance=resource_instance,
        )
        return list(dict.fromkeys(a.user for a in assignments if a.user))


__all__ = ["RoleAssignmentsApi"]
