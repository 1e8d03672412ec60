"""Permission matching.

A permission set grants ``action`` on ``resource_type`` when it contains
any of, in order of precedence:

1. ``{resource_type}:{action}`` (exact)
2. ``{resource_type}:*`` (type wildcard)
3. ``*:*`` (universal wildcard)

No other wildcard forms are recognised: ``*:read`` is a literal string.
"""

from __future__ import annotations

from collections.abc import Iterable

from .constants import ALL_PERMISSIONS, Permissions


def candidate_permissions(resource_type: str, action: str) -> tuple[str, str, str]:
    """Permission strings that would grant ``action`` on ``resource_type``."""
    return (
        Permissions.of(resource_type, action),
        Permissions.any_action(resource_type),
        ALL_PERMISSIONS,
    )


def granting_permission(
    permissions: Iterable[str],
    resource_type: str,
    action: str,
) -> str | None:
    """Return the first permission in ``permissions`` that grants the access.

    Iterates ``permissions`` in order, so for an expanded role the result is
    the earliest granting entry of its expansion.

    Args:
        permissions: Permission strings, e.g. a role's expansion.
        resource_type: Resource type being accessed (e.g. ``"document"``).
        action: Action being performed (e.g. ``"read"``).

    Returns:
        The granting permission string, or None if access is not granted.

    Example::

        granting_permission(("doc:write", "doc:*"), "doc", "read")  # "doc:*"
        granting_permission(("doc:write",), "doc", "read")          # None
        granting_permission(("*:*",), "invoice", "approve")         # "*:*"
    """
    candidates = candidate_permissions(resource_type, action)
    for perm in permissions:
        if perm in candidates:
            return perm
    return None


def has_permission(permissions: Iterable[str], resource_type: str, action: str) -> bool:
    """Check if a permission set grants ``action`` on ``resource_type``."""
    return granting_permission(permissions, resource_type, action) is not None


__all__ = [
    "candidate_permissions",
    "granting_permission",
    "has_permission",
]
