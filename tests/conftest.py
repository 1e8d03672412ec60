"""Shared fixtures: an in-memory authorization service behind httpx.MockTransport."""

from __future__ import annotations

import math
from typing import Any, Callable

import httpx
import pytest

from permisio import Permis, PermisConfig

TOKEN = "permis_key_test123"
API_URL = "https://api.permis.test"
SCOPE = {"project_id": "proj", "environment_id": "env"}


class FakeBackend:
    """Serves scope, role assignments and roles from in-memory lists.

    ``fail(path_suffix, *statuses)`` queues error responses that are served
    before the normal response for matching paths.
    """

    def __init__(self) -> None:
        self.assignments: list[dict[str, Any]] = []
        self.roles: list[dict[str, Any]] = []
        self.paginate_roles = True
        self.requests: list[httpx.Request] = []
        self._failures: dict[str, list[int]] = {}
        self._raw: dict[str, Callable[[httpx.Request], httpx.Response]] = {}

    def assign(self, user: str, role: str, tenant: str | None = None) -> None:
        self.assignments.append({"id": f"ra-{len(self.assignments)}", "user": user, "role": role, "tenant": tenant})

    def role(self, key: str, permissions: list[str] | None = None, extends: list[str] | None = None) -> None:
        self.roles.append({"id": f"r-{key}", "key": key, "permissions": permissions or [], "extends": extends or []})

    def fail(self, path_suffix: str, *statuses: int) -> None:
        self._failures.setdefault(path_suffix, []).extend(statuses)

    def respond(self, path_suffix: str, factory: Callable[[httpx.Request], httpx.Response]) -> None:
        """Serve responses built by ``factory`` for matching paths."""
        self._raw[path_suffix] = factory

    def count(self, path_suffix: str) -> int:
        return sum(1 for r in self.requests if r.url.path.endswith(path_suffix))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        for suffix, queue in self._failures.items():
            if path.endswith(suffix) and queue:
                return httpx.Response(queue.pop(0), json={"message": "backend failure"})

        for suffix, factory in self._raw.items():
            if path.endswith(suffix):
                return factory(request)

        if path == "/v1/api-key/scope":
            return httpx.Response(200, json=SCOPE)

        if path.endswith("/role_assignments"):
            params = request.url.params
            user = params.get("user")
            tenant = params.get("tenant")
            data = [
                a
                for a in self.assignments
                if (user is None or a["user"] == user) and (tenant is None or a["tenant"] == tenant)
            ]
            return httpx.Response(200, json=data)

        if path.endswith("/roles"):
            if not self.paginate_roles:
                return httpx.Response(200, json={"data": self.roles})
            page = int(request.url.params.get("page", "1"))
            per_page = int(request.url.params.get("perPage", "100"))
            chunk = self.roles[(page - 1) * per_page : page * per_page]
            total_pages = max(1, math.ceil(len(self.roles) / per_page))
            return httpx.Response(
                200,
                json={
                    "data": chunk,
                    "page": page,
                    "perPage": per_page,
                    "total": len(self.roles),
                    "totalPages": total_pages,
                },
            )

        return httpx.Response(404, json={"message": f"no route for {path}"})

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


def make_config(**overrides: Any) -> PermisConfig:
    values: dict[str, Any] = {"token": TOKEN, "api_url": API_URL, "retry_backoff": 0.0}
    values.update(overrides)
    return PermisConfig(**values)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def make_permis(backend: FakeBackend) -> Callable[..., Permis]:
    """Factory for clients wired to ``backend`` with a pre-configured scope."""

    def _make(**overrides: Any) -> Permis:
        overrides.setdefault("project_id", SCOPE["project_id"])
        overrides.setdefault("environment_id", SCOPE["environment_id"])
        return Permis(make_config(**overrides), http_client=backend.client())

    return _make
