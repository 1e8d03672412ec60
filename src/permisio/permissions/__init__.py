"""Permission strings, role inheritance and matching.

Defines:
- Permissions: builders for ``{resource_type}:{action}`` strings
- build_role_catalog() / expand_role_permissions(): resolve inherited permissions
- granting_permission() / has_permission(): exact and wildcard matching
"""

from .access import (
    candidate_permissions,
    granting_permission,
    has_permission,
)
from .constants import ALL_PERMISSIONS, WILDCARD, Permissions
from .inheritance import (
    RoleCatalog,
    build_role_catalog,
    expand_role_permissions,
    expand_roles,
)

__all__ = [
    "ALL_PERMISSIONS",
    "Permissions",
    "RoleCatalog",
    "WILDCARD",
    "build_role_catalog",
    "candidate_permissions",
    "expand_role_permissions",
    "expand_roles",
    "granting_permission",
    "has_permission",
]
