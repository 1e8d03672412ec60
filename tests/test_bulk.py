"""Tests for bulk evaluation."""

from __future__ import annotations

from unittest.mock import AsyncMock

import httpx
import pytest

from permisio import CheckRequest, Decision, NetworkError, ResourceRef
from permisio.enforcement import BulkEvaluator


class TestBulkCheck:
    @pytest.mark.asyncio
    async def test_results_in_input_order(self, backend, make_permis) -> None:
        backend.role("viewer", ["document:read"])
        backend.assign("alice", "viewer", tenant="acme")

        checks = [
            CheckRequest(user="alice", action="read", resource="document", tenant="acme"),
            CheckRequest(user="alice", action="write", resource="document", tenant="acme"),
            CheckRequest(user="bob", action="read", resource="document"),
        ]

        async with make_permis() as permis:
            results = await permis.bulk_check(checks)

        assert [r.decision.allowed for r in results] == [True, False, False]
        assert [r.request for r in results] == checks
        assert results[2].decision.reason == "User bob has no role assignments"

    @pytest.mark.asyncio
    async def test_request_tenant_overrides_resource_tenant(self, backend, make_permis) -> None:
        backend.role("viewer", ["document:read"])
        backend.assign("alice", "viewer", tenant="acme")

        check = CheckRequest(
            user="alice",
            action="read",
            resource=ResourceRef(type="document", tenant="globex"),
            tenant="acme",
        )

        async with make_permis() as permis:
            [result] = await permis.bulk_check([check])

        assert result.decision.allowed is True
        assert check.resource.tenant == "globex"

    @pytest.mark.asyncio
    async def test_undecodable_item_isolated_in_strict_mode(self, backend, make_permis) -> None:
        backend.role("viewer", ["document:read"])
        backend.assign("alice", "viewer", tenant="acme")
        backend.respond(
            "/role_assignments",
            lambda request: (
                httpx.Response(200, headers={"Content-Encoding": "gzip"}, content=b"not-gzip")
                if request.url.params.get("user") == "bob"
                else httpx.Response(200, json=backend.assignments)
            ),
        )

        checks = [
            CheckRequest(user="bob", action="read", resource="document"),
            CheckRequest(user="alice", action="read", resource="document", tenant="acme"),
        ]

        async with make_permis(error_mode="strict") as permis:
            results = await permis.bulk_check(checks)

        assert [r.decision.allowed for r in results] == [False, True]
        assert results[0].decision.reason.startswith("failed to decode response")

    @pytest.mark.asyncio
    async def test_empty_batch(self, make_permis) -> None:
        async with make_permis() as permis:
            assert await permis.bulk_check([]) == []


class TestBulkEvaluator:
    @pytest.mark.asyncio
    async def test_failing_item_isolated(self) -> None:
        evaluator = AsyncMock()
        evaluator.evaluate.side_effect = [
            Decision(allowed=True, reason="Granted by role(s): viewer"),
            NetworkError("request failed: connection refused"),
            Decision(allowed=False, reason="No role grants permission document:delete"),
        ]
        bulk = BulkEvaluator(evaluator)

        decisions = await bulk.evaluate_batch(
            [
                CheckRequest(user="alice", action="read", resource="document"),
                CheckRequest(user="alice", action="write", resource="document"),
                CheckRequest(user="alice", action="delete", resource="document"),
            ]
        )

        assert [d.allowed for d in decisions] == [True, False, False]
        assert decisions[1].reason == "request failed: connection refused"
        assert evaluator.evaluate.await_count == 3

    @pytest.mark.asyncio
    async def test_tenant_passed_to_evaluator(self) -> None:
        evaluator = AsyncMock()
        evaluator.evaluate.return_value = Decision(allowed=True)
        bulk = BulkEvaluator(evaluator)

        await bulk.evaluate_batch([CheckRequest(user="alice", action="read", resource="document", tenant="acme")])

        user, action, resource = evaluator.evaluate.await_args.args
        assert user == "alice"
        assert action == "read"
        assert resource == ResourceRef(type="document", tenant="acme")
