"""Tests for client-side permission evaluation."""

from __future__ import annotations

import httpx
import pytest

from permisio import AccessDeniedError, ApiError, DecodeError, Principal, ResourceRef, ScopeError


def _gzip_garbage(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, headers={"Content-Encoding": "gzip"}, content=b"not-gzip")


@pytest.fixture
def docs(backend):
    """alice is an editor (which extends viewer) in tenant acme."""
    backend.role("viewer", ["document:read"])
    backend.role("editor", ["document:write"], extends=["viewer"])
    backend.assign("alice", "editor", tenant="acme")
    return backend


class TestEvaluate:
    """Tests for PermissionEvaluator.evaluate via the client."""

    @pytest.mark.asyncio
    async def test_inherited_permission_granted(self, docs, make_permis) -> None:
        async with make_permis() as permis:
            decision = await permis.check_with_details(
                Principal(key="alice"), "read", ResourceRef(type="document", tenant="acme")
            )

        assert decision.allowed is True
        assert decision.reason == "Granted by role(s): editor"
        assert decision.matched_roles == ["editor"]
        assert decision.matched_permissions == ["document:read"]

    @pytest.mark.asyncio
    async def test_missing_permission_denied(self, docs, make_permis) -> None:
        async with make_permis() as permis:
            decision = await permis.check_with_details("alice", "delete", ResourceRef(type="document", tenant="acme"))

        assert decision.allowed is False
        assert decision.reason == "No role grants permission document:delete"
        assert decision.matched_roles == []
        assert decision.matched_permissions == []

    @pytest.mark.asyncio
    async def test_no_assignments(self, docs, make_permis) -> None:
        async with make_permis() as permis:
            decision = await permis.check_with_details("bob", "read", "document")

        assert decision.allowed is False
        assert decision.reason == "User bob has no role assignments"
        assert docs.count("/roles") == 0

    @pytest.mark.asyncio
    async def test_tenant_filter_applied(self, docs, make_permis) -> None:
        async with make_permis() as permis:
            decision = await permis.check_with_details("alice", "read", ResourceRef(type="document", tenant="globex"))

        assert decision.allowed is False
        assert decision.reason == "User alice has no role assignments"
        request = docs.requests[-1]
        assert request.url.params["tenant"] == "globex"
        assert request.url.params["user"] == "alice"

    @pytest.mark.asyncio
    async def test_no_tenant_lists_all_assignments(self, docs, make_permis) -> None:
        async with make_permis() as permis:
            assert await permis.check("alice", "read", "document") is True

        assignments_request = next(r for r in docs.requests if r.url.path.endswith("/role_assignments"))
        assert "tenant" not in assignments_request.url.params

    @pytest.mark.asyncio
    async def test_type_wildcard(self, backend, make_permis) -> None:
        backend.role("doc_admin", ["document:*"])
        backend.assign("carol", "doc_admin")

        async with make_permis() as permis:
            decision = await permis.check_with_details("carol", "archive", "document")
            other = await permis.check("carol", "read", "folder")

        assert decision.allowed is True
        assert decision.matched_permissions == ["document:archive"]
        assert other is False

    @pytest.mark.asyncio
    async def test_universal_wildcard(self, backend, make_permis) -> None:
        backend.role("root", ["*:*"])
        backend.assign("dave", "root")

        async with make_permis() as permis:
            decision = await permis.check_with_details("dave", "approve", "invoice")

        assert decision.allowed is True
        assert decision.matched_permissions == ["invoice:approve"]

    @pytest.mark.asyncio
    async def test_multiple_roles_in_first_seen_order(self, backend, make_permis) -> None:
        backend.role("writer", ["post:write"])
        backend.role("reviewer", ["post:*"])
        backend.role("guest", ["comment:read"])
        backend.assign("erin", "reviewer")
        backend.assign("erin", "guest")
        backend.assign("erin", "writer")
        backend.assign("erin", "reviewer", tenant="other")

        async with make_permis() as permis:
            decision = await permis.check_with_details("erin", "write", "post")

        assert decision.matched_roles == ["reviewer", "writer"]
        assert decision.matched_permissions == ["post:write"]
        assert decision.reason == "Granted by role(s): reviewer, writer"

    @pytest.mark.asyncio
    async def test_cyclic_roles_terminate(self, backend, make_permis) -> None:
        backend.role("a", ["x:read"], extends=["b"])
        backend.role("b", extends=["a"])
        backend.assign("frank", "b")

        async with make_permis() as permis:
            assert await permis.check("frank", "read", "x") is True
            assert await permis.check("frank", "write", "x") is False

    @pytest.mark.asyncio
    async def test_unknown_assigned_role(self, backend, make_permis) -> None:
        backend.assign("gina", "deleted_role")

        async with make_permis() as permis:
            decision = await permis.check_with_details("gina", "read", "document")

        assert decision.allowed is False
        assert decision.reason == "No role grants permission document:read"

    @pytest.mark.asyncio
    async def test_malformed_catalog_entry_ignored(self, backend, make_permis) -> None:
        backend.role("viewer", ["document:read"])
        backend.roles.append({"id": 42, "key": "other"})
        backend.roles.append({"id": "r-null", "key": None, "permissions": ["*:*"]})
        backend.assign("alice", "viewer")

        async with make_permis() as permis:
            decision = await permis.check_with_details("alice", "read", ResourceRef(type="document"))

        assert decision.allowed is True
        assert decision.matched_roles == ["viewer"]

    @pytest.mark.asyncio
    async def test_fresh_fetch_every_call(self, docs, make_permis) -> None:
        async with make_permis() as permis:
            await permis.check("alice", "read", "document")
            await permis.check("alice", "read", "document")

        assert docs.count("/role_assignments") == 2
        assert docs.count("/roles") == 2


class TestRoleCatalogPagination:
    @pytest.mark.asyncio
    async def test_follows_total_pages(self, backend, make_permis) -> None:
        for i in range(5):
            backend.role(f"filler{i}", [f"f:{i}"])
        backend.role("late", ["report:read"])
        backend.assign("hank", "late")

        async with make_permis(role_page_size=2) as permis:
            assert await permis.check("hank", "read", "report") is True

        assert backend.count("/roles") == 3
        pages = [r.url.params["page"] for r in backend.requests if r.url.path.endswith("/roles")]
        assert pages == ["1", "2", "3"]

    @pytest.mark.asyncio
    async def test_no_pagination_metadata_single_page(self, docs, make_permis) -> None:
        docs.paginate_roles = False

        async with make_permis() as permis:
            assert await permis.check("alice", "write", "document") is True

        assert docs.count("/roles") == 1

    @pytest.mark.asyncio
    async def test_page_size_sent(self, docs, make_permis) -> None:
        async with make_permis(role_page_size=50) as permis:
            await permis.check("alice", "read", "document")

        roles_request = next(r for r in docs.requests if r.url.path.endswith("/roles"))
        assert roles_request.url.params["perPage"] == "50"


class TestErrorModes:
    """Lenient turns transport failures into denials; strict raises them."""

    @pytest.mark.asyncio
    async def test_lenient_assignment_failure(self, docs, make_permis) -> None:
        docs.fail("/role_assignments", 403)

        async with make_permis() as permis:
            decision = await permis.check_with_details("alice", "read", "document")

        assert decision.allowed is False
        assert decision.reason == "Error fetching role assignments: backend failure (status: 403)"

    @pytest.mark.asyncio
    async def test_lenient_roles_failure(self, docs, make_permis) -> None:
        docs.fail("/roles", 400)

        async with make_permis() as permis:
            decision = await permis.check_with_details("alice", "read", "document")

        assert decision.allowed is False
        assert decision.reason.startswith("Error fetching roles: ")

    @pytest.mark.asyncio
    async def test_lenient_broken_content_encoding(self, docs, make_permis) -> None:
        docs.respond("/role_assignments", _gzip_garbage)

        async with make_permis() as permis:
            decision = await permis.check_with_details("alice", "read", ResourceRef(type="document"))

        assert decision.allowed is False
        assert decision.reason.startswith("Error fetching role assignments: failed to decode response")
        assert docs.count("/role_assignments") == 1

    @pytest.mark.asyncio
    async def test_strict_broken_content_encoding(self, docs, make_permis) -> None:
        docs.respond("/roles", _gzip_garbage)

        async with make_permis(error_mode="strict") as permis:
            with pytest.raises(DecodeError):
                await permis.check("alice", "read", "document")

    @pytest.mark.asyncio
    async def test_strict_raises(self, docs, make_permis) -> None:
        docs.fail("/role_assignments", 403)

        async with make_permis(error_mode="strict") as permis:
            with pytest.raises(ApiError) as exc_info:
                await permis.check("alice", "read", "document")

        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_server_errors_retried_before_lenient_denial(self, docs, make_permis) -> None:
        docs.fail("/role_assignments", 500, 500)

        async with make_permis() as permis:
            assert await permis.check("alice", "read", "document") is True

        assert docs.count("/role_assignments") == 3

    @pytest.mark.asyncio
    async def test_scope_errors_always_propagate(self, docs, make_permis) -> None:
        docs.fail("/v1/api-key/scope", 401)

        async with make_permis(project_id=None, environment_id=None) as permis:
            with pytest.raises(ScopeError):
                await permis.check("alice", "read", "document")


class TestCheckAndFail:
    @pytest.mark.asyncio
    async def test_allowed_returns_none(self, docs, make_permis) -> None:
        async with make_permis() as permis:
            assert await permis.check_and_fail("alice", "read", "document") is None

    @pytest.mark.asyncio
    async def test_denied_raises_access_denied(self, docs, make_permis) -> None:
        async with make_permis() as permis:
            with pytest.raises(AccessDeniedError) as exc_info:
                await permis.check_and_fail(Principal(key="alice"), "delete", ResourceRef(type="document"))

        err = exc_info.value
        assert err.status_code == 403
        assert err.code == "ACCESS_DENIED"
        assert err.message == "Access denied: User alice is not allowed to perform delete on document"
        assert err.details["reason"] == "No role grants permission document:delete"


class TestEffectivePermissions:
    @pytest.mark.asyncio
    async def test_union_of_roles(self, docs, make_permis) -> None:
        docs.role("commenter", ["comment:write", "document:read"])
        docs.assign("alice", "commenter", tenant="acme")

        async with make_permis() as permis:
            result = await permis.get_permissions("alice", tenant="acme")

        assert result.roles == ["editor", "commenter"]
        assert result.permissions == ["document:write", "document:read", "comment:write"]

    @pytest.mark.asyncio
    async def test_no_assignments(self, docs, make_permis) -> None:
        async with make_permis() as permis:
            result = await permis.get_permissions("nobody")

        assert result.roles == []
        assert result.permissions == []

    @pytest.mark.asyncio
    async def test_lenient_failure_is_empty(self, docs, make_permis) -> None:
        docs.fail("/roles", 404)

        async with make_permis() as permis:
            result = await permis.get_permissions("alice")

        assert result.roles == []
        assert result.permissions == []

    @pytest.mark.asyncio
    async def test_strict_failure_raises(self, docs, make_permis) -> None:
        docs.fail("/roles", 404)

        async with make_permis(error_mode="strict") as permis:
            with pytest.raises(ApiError):
                await permis.get_permissions("alice")
