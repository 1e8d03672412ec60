"""Roles API (schema tree)."""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import BaseModel, Field

from ..models import RoleCreate, RoleList, RoleRead, RoleUpdate
from .base import BaseApi, list_params, segment

logger = logging.getLogger(__name__)


class _RolePermissions(BaseModel):
    permissions: list[str] = Field(default_factory=list)


class _RoleExtends(BaseModel):
    extends: list[str] = Field(default_factory=list)


class RolesApi(BaseApi):
    async def list(self, page: int = 0, per_page: int = 0, search: Optional[str] = None) -> RoleList:
        url = await self.schema_url("/roles")
        return await self._transport.get(url, params=list_params(page, per_page, search=search), result=RoleList)

    async def list_all(self, per_page: int, search: Optional[str] = None) -> list[RoleRead]:
        """Fetch every page of the role catalog.

        Page 1 is always fetched; further pages are requested while the
        server reports ``page < totalPages``. A response without pagination
        metadata is treated as the whole catalog.
        """
        roles: list[RoleRead] = []
        page = 1
        while True:
            result = await self.list(page=page, per_page=per_page, search=search)
            if result is None:
                break
            roles.extend(result.data)
            if not result.data or page >= result.total_pages:
                break
            page += 1

        if page > 1:
            logger.debug("Fetched %d roles across %d pages", len(roles), page)
        return roles

    async def get(self, role_key: str) -> RoleRead:
        url = await self.schema_url(f"/roles/{segment(role_key)}")
        return await self._transport.get(url, result=RoleRead)

    async def create(self, role: RoleCreate) -> RoleRead:
        url = await self.schema_url("/roles")
        return await self._transport.post(url, role, result=RoleRead)

    async def update(self, role_key: str, data: RoleUpdate) -> RoleRead:
        url = await self.schema_url(f"/roles/{segment(role_key)}")
        return await self._transport.patch(url, data, result=RoleRead)

    async def delete(self, role_key: str) -> None:
        url = await self.schema_url(f"/roles/{segment(role_key)}")
        await self._transport.delete(url)

    async def sync(self, role: RoleCreate) -> RoleRead:
        """Create or replace a role (upsert)."""
        url = await self.schema_url("/roles")
        return await self._transport.put(url, role, result=RoleRead)

    async def get_permissions(self, role_key: str) -> list[str]:
        """Permissions declared directly on the role (not inherited ones)."""
        url = await self.schema_url(f"/roles/{segment(role_key)}/permissions")
        result = await self._transport.get(url, result=_RolePermissions)
        return result.permissions if result else []

    async def add_permission(self, role_key: str, permission: str) -> None:
        url = await self.schema_url(f"/roles/{segment(role_key)}/permissions")
        await self._transport.post(url, {"permission": permission})

    async def remove_permission(self, role_key: str, permission: str) -> None:
        url = await self.schema_url(f"/roles/{segment(role_key)}/permissions/{segment(permission)}")
        await self._transport.delete(url)

    async def get_extends(self, role_key: str) -> list[str]:
        url = await self.schema_url(f"/roles/{segment(role_key)}/extends")
        result = await self._transport.get(url, result=_RoleExtends)
        return result.extends if result else []

    async def add_extends(self, role_key: str, parent_role_key: str) -> None:
        url = await self.schema_url(f"/roles/{segment(role_key)}/extends")
        await self._transport.post(url, {"role": parent_role_key})

    async def remove_extends(self, role_key: str, parent_role_key: str) -> None:
        url = await self.schema_url(f"/roles/{segment(role_key)}/extends/{segment(parent_role_key)}")
        await self._transport.delete(url)


__all__ = ["RolesApi"]
