"""Resource types (schema tree) and resource instances (facts tree)."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from ..models import (
    ResourceCreate,
    ResourceInstanceCreate,
    ResourceInstanceRead,
    ResourceList,
    ResourceRead,
    ResourceUpdate,
)
from .base import BaseApi, list_params, segment


class _ResourceActions(BaseModel):
    actions: list[str] = Field(default_factory=list)


class ResourcesApi(BaseApi):
    async def list(self, page: int = 0, per_page: int = 0, search: Optional[str] = None) -> ResourceList:
        url = await self.schema_url("/resources")
        return await self._transport.get(url, params=list_params(page, per_page, search=search), result=ResourceList)

    async def get(self, resource_key: str) -> ResourceRead:
        url = await self.schema_url(f"/resources/{segment(resource_key)}")
        return await self._transport.get(url, result=ResourceRead)

    async def create(self, resource: ResourceCreate) -> ResourceRead:
        url = await self.schema_url("/resources")
        return await self._transport.post(url, resource, result=ResourceRead)

    async def update(self, resource_key: str, data: ResourceUpdate) -> ResourceRead:
        url = await self.schema_url(f"/resources/{segment(resource_key)}")
        return await self._transport.patch(url, data, result=ResourceRead)

    async def delete(self, resource_key: str) -> None:
        url = await self.schema_url(f"/resources/{segment(resource_key)}")
        await self._transport.delete(url)

    async def sync(self, resource: ResourceCreate) -> ResourceRead:
        """Create or replace a resource type (upsert)."""
        url = await self.schema_url("/resources")
        return await self._transport.put(url, resource, result=ResourceRead)

    async def get_actions(self, resource_key: str) -> list[str]:
        url = await self.schema_url(f"/resources/{segment(resource_key)}/actions")
        result = await self._transport.get(url, result=_ResourceActions)
        return result.actions if result else []

    async def add_action(self, resource_key: str, action: str) -> None:
        url = await self.schema_url(f"/resources/{segment(resource_key)}/actions")
        await self._transport.post(url, {"action": action})

    async def remove_action(self, resource_key: str, action: str) -> None:
        url = await self.schema_url(f"/resources/{segment(resource_key)}/actions/{segment(action)}")
        await self._transport.delete(url)

    # ── Instances ───────────────────────────────────────

    async def create_instance(self, resource_key: str, instance: ResourceInstanceCreate) -> ResourceInstanceRead:
        url = await self.facts_url(f"/resources/{segment(resource_key)}/instances")
        return await self._transport.post(url, instance, result=ResourceInstanceRead)

    async def get_instance(self, resource_key: str, instance_key: str) -> ResourceInstanceRead:
        url = await self.facts_url(f"/resources/{segment(resource_key)}/instances/{segment(instance_key)}")
        return await self._transport.get(url, result=ResourceInstanceRead)

    async def delete_instance(self, resource_key: str, instance_key: str) -> None:
        url = await self.facts_url(f"/resources/{segment(resource_key)}/instances/{segment(instance_key)}")
        await self._transport.delete(url)


__all__ = ["ResourcesApi"]
