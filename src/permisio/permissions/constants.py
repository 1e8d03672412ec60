"""Permission string constants and builders.

Provides:
- ``WILDCARD``: the ``*`` segment.
- ``ALL_PERMISSIONS``: ``*:*``, matches every action on every resource type.
- ``Permissions``: builders for ``{resource_type}:{action}`` strings.
"""

from __future__ import annotations

WILDCARD = "*"
SEPARATOR = ":"
ALL_PERMISSIONS = f"{WILDCARD}{SEPARATOR}{WILDCARD}"


class Permissions:
    """Builders for canonical permission strings.

    Format: ``{resource_type}:{action}``

    Example::

        Permissions.of("document", "read")   → "document:read"
        Permissions.any_action("document")  → "document:*"
        Permissions.ALL                     → "*:*"
    """

    ALL = ALL_PERMISSIONS

    @staticmethod
    def of(resource_type: str, action: str) -> str:
        """Build the permission string required for ``action`` on ``resource_type``."""
        return f"{resource_type}{SEPARATOR}{action}"

    @staticmethod
    def any_action(resource_type: str) -> str:
        """Build the type wildcard granting every action on ``resource_type``."""
        return f"{resource_type}{SEPARATOR}{WILDCARD}"

    @staticmethod
    def split(permission: str) -> tuple[str, str]:
        """Split a permission string into ``(resource_type, action)``.

        The action keeps any further ``:`` segments. A string without a
        separator yields an empty action.

        Example::

            Permissions.split("document:read")  # ("document", "read")
            Permissions.split("document")       # ("document", "")
        """
        resource_type, _, action = permission.partition(SEPARATOR)
        return resource_type, action


__all__ = [
    "ALL_PERMISSIONS",
    "Permissions",
    "SEPARATOR",
    "WILDCARD",
]
