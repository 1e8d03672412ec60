"""Project/environment scope resolution.

Every facts/schema endpoint is addressed by a project and an environment.
They are either configured up-front or discovered once from the API key via
``GET /v1/api-key/scope``. Concurrent callers share a single discovery
request; once a scope is known it never changes for the life of the client.
"""

from __future__ import annotations

import asyncio
import logging

from pydantic import BaseModel

from .exceptions import PermisError, ScopeError
from .models import Scope
from .transport import Transport

logger = logging.getLogger(__name__)

SCOPE_PATH = "/v1/api-key/scope"

SCOPE_HINT = (
    "Either provide project_id and environment_id in config, "
    "or ensure the API key has valid scope"
)


class _ScopeResponse(BaseModel):
    project_id: str = ""
    environment_id: str = ""


class ScopeResolver:
    """Lazily resolves and caches the scope addressed by the API key."""

    def __init__(self, transport: Transport) -> None:
        self._transport = transport
        self._lock = asyncio.Lock()
        self._scope: Scope | None = None

        config = transport.config
        if config.has_scope:
            self._scope = Scope(project_id=config.project_id, environment_id=config.environment_id)

    @property
    def scope(self) -> Scope | None:
        return self._scope

    async def ensure_scope(self) -> Scope:
        """Return the scope, discovering it on first use.

        Raises:
            ScopeError: Discovery failed and no scope has been established.
        """
        if self._scope is not None:
            return self._scope

        async with self._lock:
            # Another caller may have resolved it while we waited
            if self._scope is not None:
                return self._scope

            try:
                scope = await self._fetch()
            except PermisError as e:
                if self._scope is not None:
                    logger.debug("Ignoring scope discovery failure, scope already set: %s", e)
                    return self._scope
                raise ScopeError(f"failed to fetch API key scope: {e}. {SCOPE_HINT}") from e

            self._scope = scope
            logger.debug("Resolved scope project=%s environment=%s", scope.project_id, scope.environment_id)
            return scope

    async def _fetch(self) -> Scope:
        response: _ScopeResponse = await self._transport.request(
            "GET",
            self._transport.build_url(SCOPE_PATH),
            result=_ScopeResponse,
            retry=False,
        )
        if response is None or not response.project_id or not response.environment_id:
            raise ScopeError("API key scope response is missing project_id or environment_id")
        return Scope(project_id=response.project_id, environment_id=response.environment_id)


__all__ = ["SCOPE_HINT", "ScopeResolver"]
