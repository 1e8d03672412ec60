"""Tests for scope resolution."""

from __future__ import annotations

import asyncio

import httpx
import pytest
from conftest import make_config

from permisio.exceptions import ScopeError
from permisio.models import Scope
from permisio.scope import ScopeResolver
from permisio.transport import Transport


def _resolver(handler, **overrides) -> ScopeResolver:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ScopeResolver(Transport(make_config(**overrides), client))


class TestScopeResolver:
    @pytest.mark.asyncio
    async def test_preconfigured_scope_skips_discovery(self) -> None:
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(500)

        resolver = _resolver(handler, project_id="p", environment_id="e")

        assert await resolver.ensure_scope() == Scope(project_id="p", environment_id="e")
        assert calls == []

    @pytest.mark.asyncio
    async def test_discovered_once(self) -> None:
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json={"project_id": "p", "environment_id": "e", "organization_id": "o"})

        resolver = _resolver(handler)
        assert resolver.scope is None

        first = await resolver.ensure_scope()
        second = await resolver.ensure_scope()

        assert first == second == Scope(project_id="p", environment_id="e")
        assert len(calls) == 1
        assert calls[0].url.path == "/v1/api-key/scope"
        assert resolver.scope == first

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_request(self) -> None:
        calls: list[httpx.Request] = []

        async def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            await asyncio.sleep(0.01)
            return httpx.Response(200, json={"project_id": "p", "environment_id": "e"})

        resolver = _resolver(handler)

        scopes = await asyncio.gather(*(resolver.ensure_scope() for _ in range(10)))

        assert len(calls) == 1
        assert len(set(scopes)) == 1

    @pytest.mark.asyncio
    async def test_failure_names_both_remediations(self) -> None:
        resolver = _resolver(lambda request: httpx.Response(401, json={"message": "invalid key"}))

        with pytest.raises(ScopeError) as exc_info:
            await resolver.ensure_scope()

        message = str(exc_info.value)
        assert "failed to fetch API key scope" in message
        assert "provide project_id and environment_id in config" in message
        assert "ensure the API key has valid scope" in message
        assert resolver.scope is None

    @pytest.mark.asyncio
    async def test_discovery_not_retried(self) -> None:
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(503)

        resolver = _resolver(handler)

        with pytest.raises(ScopeError):
            await resolver.ensure_scope()
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_empty_fields_rejected(self) -> None:
        resolver = _resolver(lambda request: httpx.Response(200, json={"project_id": "p", "environment_id": ""}))

        with pytest.raises(ScopeError):
            await resolver.ensure_scope()

    @pytest.mark.asyncio
    async def test_failure_then_success(self) -> None:
        responses = [
            httpx.Response(500),
            httpx.Response(200, json={"project_id": "p", "environment_id": "e"}),
        ]
        resolver = _resolver(lambda request: responses.pop(0))

        with pytest.raises(ScopeError):
            await resolver.ensure_scope()
        assert await resolver.ensure_scope() == Scope(project_id="p", environment_id="e")
