"""Users API (facts tree)."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from ..models import RoleAssignmentRead, UserCreate, UserList, UserRead, UserUpdate
from .base import BaseApi, list_params, segment


class _UserRoles(BaseModel):
    roles: list[str] = Field(default_factory=list)


class _UserTenants(BaseModel):
    tenants: list[str] = Field(default_factory=list)


class UsersApi(BaseApi):
    async def list(
        self,
        page: int = 0,
        per_page: int = 0,
        search: Optional[str] = None,
        role: Optional[str] = None,
        tenant: Optional[str] = None,
    ) -> UserList:
        url = await self.facts_url("/users")
        params = list_params(page, per_page, search=search, role=role, tenant=tenant)
        return await self._transport.get(url, params=params, result=UserList)

    async def get(self, user_key: str) -> UserRead:
        url = await self.facts_url(f"/users/{segment(user_key)}")
        return await self._transport.get(url, result=UserRead)

    async def create(self, user: UserCreate) -> UserRead:
        url = await self.facts_url("/users")
        return await self._transport.post(url, user, result=UserRead)

    async def update(self, user_key: str, data: UserUpdate) -> UserRead:
        url = await self.facts_url(f"/users/{segment(user_key)}")
        return await self._transport.patch(url, data, result=UserRead)

    async def delete(self, user_key: str) -> None:
        url = await self.facts_url(f"/users/{segment(user_key)}")
        await self._transport.delete(url)

    async def sync(self, user: UserCreate) -> UserRead:
        """Create or replace a user (upsert keyed by ``user.key``)."""
        url = await self.facts_url(f"/users/{segment(user.key)}")
        return await self._transport.put(url, user, result=UserRead)

    async def assign_role(self, user_key: str, role: str, tenant: str = "") -> RoleAssignmentRead:
        url = await self.facts_url(f"/users/{segment(user_key)}/roles")
        return await self._transport.post(url, {"role": role, "tenant": tenant}, result=RoleAssignmentRead)

    async def unassign_role(self, user_key: str, role: str, tenant: str = "") -> None:
        url = await self.facts_url(f"/users/{segment(user_key)}/roles/{segment(role)}")
        await self._transport.delete(url, params={"tenant": tenant})

    async def get_roles(self, user_key: str, tenant: str = "") -> list[str]:
        url = await self.facts_url(f"/users/{segment(user_key)}/roles")
        result = await self._transport.get(url, params={"tenant": tenant}, result=_UserRoles)
        return result.roles if result else []

    async def add_tenant(self, user_key: str, tenant_key: str) -> None:
        url = await self.facts_url(f"/users/{segment(user_key)}/tenants")
        await self._transport.post(url, {"tenant": tenant_key})

    async def remove_tenant(self, user_key: str, tenant_key: str) -> None:
        url = await self.facts_url(f"/users/{segment(user_key)}/tenants/{segment(tenant_key)}")
        await self._transport.delete(url)

    async def get_tenants(self, user_key: str) -> list[str]:
        url = await self.facts_url(f"/users/{segment(user_key)}/tenants")
        result = await self._transport.get(url, result=_UserTenants)
        return result.tenants if result else []


__all__ = ["UsersApi"]
