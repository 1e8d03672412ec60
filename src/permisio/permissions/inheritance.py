"""Role inheritance and permission expansion.

Provides:
- ``build_role_catalog()``: key role definitions by role key.
- ``expand_role_permissions()``: resolve a role's own and inherited permissions.
- ``expand_roles()``: union of several roles' expansions.

Role catalogs come from the remote service and the ``extends`` graph is not
guaranteed to be acyclic. Expansion therefore tracks visited role keys: a
role already expanded within the same call contributes nothing further, and
role keys missing from the catalog contribute nothing at all.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from ..models import RoleRead

RoleCatalog = Mapping[str, RoleRead]


def build_role_catalog(roles: Iterable[RoleRead]) -> dict[str, RoleRead]:
    """Key role definitions by role key.

    When the same key appears twice the first definition wins.
    """
    catalog: dict[str, RoleRead] = {}
    for role in roles:
        if role.key and role.key not in catalog:
            catalog[role.key] = role
    return catalog


def expand_role_permissions(role_key: str, catalog: RoleCatalog) -> tuple[str, ...]:
    """Expand a role into its full permission set by following ``extends``.

    Depth-first: the role's own permissions come first, then each parent's
    expansion in declaration order. Duplicates keep their first position.

    Args:
        role_key: Role to expand.
        catalog: Role definitions keyed by role key.

    Returns:
        Deduplicated tuple of permission strings in first-seen order.

    Example::

        catalog = build_role_catalog([
            RoleRead(key="viewer", permissions=["doc:read"]),
            RoleRead(key="editor", permissions=["doc:write"], extends=["viewer"]),
        ])
        expand_role_permissions("editor", catalog)
        # ('doc:write', 'doc:read')

        # a → b → a terminates
        catalog = build_role_catalog([
            RoleRead(key="a", permissions=["x:read"], extends=["b"]),
            RoleRead(key="b", extends=["a"]),
        ])
        expand_role_permissions("a", catalog)
        # ('x:read',)
    """
    expanded: dict[str, None] = {}
    visited: set[str] = set()
    stack = [role_key]

    while stack:
        key = stack.pop()
        if key in visited:
            continue
        visited.add(key)

        role = catalog.get(key)
        if role is None:
            continue

        for perm in role.permissions:
            expanded.setdefault(perm, None)

        # Reversed so the first declared parent is expanded first
        stack.extend(parent for parent in reversed(role.extends) if parent not in visited)

    return tuple(expanded)


def expand_roles(role_keys: Iterable[str], catalog: RoleCatalog) -> tuple[str, ...]:
    """Union of the expansions of several roles, in first-seen order.

    Each role is expanded independently (its own visited set).
    """
    expanded: dict[str, None] = {}
    for role_key in role_keys:
        for perm in expand_role_permissions(role_key, catalog):
            expanded.setdefault(perm, None)
    return tuple(expanded)


__all__ = [
    "RoleCatalog",
    "build_role_catalog",
    "expand_role_permissions",
    "expand_roles",
]
