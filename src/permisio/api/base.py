"""Shared plumbing for the resource API wrappers.

Each wrapper addresses either the *facts* tree (users, tenants, role
assignments, resource instances) or the *schema* tree (roles, resource
types), both rooted at the current project/environment scope. The scope is
resolved on first use, so wrappers never need ``init()`` to have been called.
"""

from __future__ import annotations

from typing import Any, Optional
from urllib.parse import quote

from ..scope import ScopeResolver
from ..transport import Transport


def segment(value: str) -> str:
    """Percent-encode one path segment."""
    return quote(value, safe=":@")


def list_params(page: int = 0, per_page: int = 0, **filters: Optional[str]) -> dict[str, Any]:
    """Query parameters for a list endpoint. Empty values are dropped by the transport."""
    return {"page": page, "perPage": per_page, **filters}


class BaseApi:
    def __init__(self, transport: Transport, scope: ScopeResolver) -> None:
        self._transport = transport
        self._scope = scope

    async def facts_url(self, path: str) -> str:
        return self._transport.facts_url(await self._scope.ensure_scope(), path)

    async def schema_url(self, path: str) -> str:
        return self._transport.schema_url(await self._scope.ensure_scope(), path)


__all__ = ["BaseApi", "list_params", "segment"]
