"""Tenants API (facts tree)."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from ..models import TenantCreate, TenantList, TenantRead, TenantUpdate
from .base import BaseApi, list_params, segment


class _TenantUsers(BaseModel):
    users: list[str] = Field(default_factory=list)


class TenantsApi(BaseApi):
    async def list(self, page: int = 0, per_page: int = 0, search: Optional[str] = None) -> TenantList:
        url = await self.facts_url("/tenants")
        return await self._transport.get(url, params=list_params(page, per_page, search=search), result=TenantList)

    async def get(self, tenant_key: str) -> TenantRead:
        url = await self.facts_url(f"/tenants/{segment(tenant_key)}")
        return await self._transport.get(url, result=TenantRead)

    async def create(self, tenant: TenantCreate) -> TenantRead:
        url = await self.facts_url("/tenants")
        return await self._transport.post(url, tenant, result=TenantRead)

    async def update(self, tenant_key: str, data: TenantUpdate) -> TenantRead:
        url = await self.facts_url(f"/tenants/{segment(tenant_key)}")
        return await self._transport.patch(url, data, result=TenantRead)

    async def delete(self, tenant_key: str) -> None:
        url = await self.facts_url(f"/tenants/{segment(tenant_key)}")
        await self._transport.delete(url)

    async def sync(self, tenant: TenantCreate) -> TenantRead:
        """Create or replace a tenant (upsert)."""
        url = await self.facts_url("/tenants")
        return await self._transport.put(url, tenant, result=TenantRead)

    async def add_user(self, tenant_key: str, user_key: str) -> None:
        url = await self.facts_url(f"/tenants/{segment(tenant_key)}/users")
        await self._transport.post(url, {"user": user_key})

    async def remove_user(self, tenant_key: str, user_key: str) -> None:
        url = await self.facts_url(f"/tenants/{segment(tenant_key)}/users/{segment(user_key)}")
        await self._transport.delete(url)

    async def get_users(self, tenant_key: str) -> list[str]:
        url = await self.facts_url(f"/tenants/{segment(tenant_key)}/users")
        result = await self._transport.get(url, result=_TenantUsers)
        return result.users if result else []


__all__ = ["TenantsApi"]
