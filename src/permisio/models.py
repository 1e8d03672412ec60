"""Data models for the Permis.io SDK.

These are Pydantic models used for request payloads, API responses and
permission decisions. Response models ignore unknown fields and treat
malformed optional fields as absent.
"""

from __future__ import annotations

from typing import Annotated, Any, Optional, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator


class _Read(BaseModel):
    """Base for models decoded from API responses."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class _Write(BaseModel):
    """Base for request payloads."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


def _string_list(v: Any) -> list[str]:
    if not isinstance(v, (list, tuple)):
        return []
    return [item for item in v if isinstance(item, str) and item]


def _str_or_empty(v: Any) -> str:
    return v if isinstance(v, str) else ""


def _str_or_none(v: Any) -> Optional[str]:
    return v if isinstance(v, str) else None


def _int_or_zero(v: Any) -> int:
    if isinstance(v, bool):
        return 0
    if isinstance(v, int):
        return v
    if isinstance(v, str) and v.strip().isdigit():
        return int(v)
    return 0


def _dict_or_empty(v: Any) -> dict[str, Any]:
    return v if isinstance(v, dict) else {}


def _objects(v: Any) -> Any:
    # A non-list is left for validation to reject as a whole.
    if not isinstance(v, list):
        return v
    return [item for item in v if isinstance(item, dict)]


def _keyed_objects(v: Any) -> list[dict[str, Any]]:
    if not isinstance(v, list):
        return []
    return [item for item in v if isinstance(item, dict) and isinstance(item.get("key"), str) and item["key"]]


LenientStr = Annotated[str, BeforeValidator(_str_or_empty)]
LenientOptionalStr = Annotated[Optional[str], BeforeValidator(_str_or_none)]
LenientInt = Annotated[int, BeforeValidator(_int_or_zero)]
StringList = Annotated[list[str], BeforeValidator(_string_list)]
Attributes = Annotated[dict[str, Any], BeforeValidator(_dict_or_empty)]


# ── Check subjects ──────────────────────────────────────


class Principal(BaseModel):
    """The user a permission check is made for.

    Attributes are forwarded as-is and never evaluated client-side.
    """

    key: str
    attributes: dict[str, Any] = Field(default_factory=dict)


class ResourceRef(BaseModel):
    """Resource a permission check targets.

    Only ``type`` and ``tenant`` take part in client-side evaluation;
    ``key`` identifies the instance for logging and forwarding.
    """

    type: str
    key: Optional[str] = None
    tenant: Optional[str] = None
    attributes: dict[str, Any] = Field(default_factory=dict)


# ── Scope & pagination ──────────────────────────────────


class Scope(_Read):
    """Project/environment pair addressed by the API key."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    project_id: str
    environment_id: str


class Paginated(_Read):
    page: LenientInt = 0
    per_page: LenientInt = Field(default=0, alias="perPage")
    total: LenientInt = 0
    total_pages: LenientInt = Field(default=0, alias="totalPages")


# ── Roles ───────────────────────────────────────────────


class RoleCreate(_Write):
    key: str
    name: Optional[str] = None
    description: Optional[str] = None
    permissions: list[str] = Field(default_factory=list)
    extends: list[str] = Field(default_factory=list)
    attributes: Optional[dict[str, Any]] = None


class RoleUpdate(_Write):
    name: Optional[str] = None
    description: Optional[str] = None
    permissions: Optional[list[str]] = None
    extends: Optional[list[str]] = None
    attributes: Optional[dict[str, Any]] = None


class RoleRead(_Read):
    """Role definition; ``extends`` lists parent role keys in declaration order."""

    id: LenientStr = ""
    key: LenientStr = ""
    name: LenientOptionalStr = None
    description: LenientOptionalStr = None
    permissions: StringList = Field(default_factory=list)
    extends: StringList = Field(default_factory=list)
    attributes: Attributes = Field(default_factory=dict)
    created_at: LenientOptionalStr = None
    updated_at: LenientOptionalStr = None


class RoleList(Paginated):
    data: list[RoleRead] = Field(default_factory=list)

    @field_validator("data", mode="before")
    @classmethod
    def _drop_unkeyed(cls, v: Any) -> list[dict[str, Any]]:
        return _keyed_objects(v)


# ── Role assignments ────────────────────────────────────


class RoleAssignmentCreate(_Write):
    user: str = ""
    role: str
    tenant: Optional[str] = None
    resource: Optional[str] = None
    resource_instance: Optional[str] = None


class RoleAssignmentRead(_Read):
    id: LenientStr = ""
    user: LenientStr = ""
    role: LenientStr = ""
    tenant: LenientOptionalStr = None
    resource: LenientOptionalStr = None
    resource_instance: LenientOptionalStr = None
    user_id: LenientOptionalStr = None
    role_id: LenientOptionalStr = None
    tenant_id: LenientOptionalStr = None
    organization_id: LenientOptionalStr = None
    project_id: LenientOptionalStr = None
    environment_id: LenientOptionalStr = None
    created_at: LenientOptionalStr = None
    updated_at: LenientOptionalStr = None


# Bare JSON array returned by the assignment list endpoints.
RoleAssignmentList = Annotated[list[RoleAssignmentRead], BeforeValidator(_objects)]


class BulkRoleAssignmentError(_Read):
    assignment: Optional[RoleAssignmentCreate] = None
    error: LenientStr = ""


class BulkRoleAssignmentResponse(_Read):
    created: LenientInt = 0
    failed: LenientInt = 0
    errors: list[BulkRoleAssignmentError] = Field(default_factory=list)

    @field_validator("errors", mode="before")
    @classmethod
    def _drop_non_objects(cls, v: Any) -> list[dict[str, Any]]:
        return _objects(v) if isinstance(v, list) else []


# ── Users ───────────────────────────────────────────────


class UserCreate(_Write):
    key: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    attributes: Optional[dict[str, Any]] = None


class UserUpdate(_Write):
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    attributes: Optional[dict[str, Any]] = None


class UserRead(_Read):
    id: LenientStr = ""
    key: LenientStr = ""
    email: LenientOptionalStr = None
    first_name: LenientOptionalStr = None
    last_name: LenientOptionalStr = None
    attributes: Attributes = Field(default_factory=dict)
    created_at: LenientOptionalStr = None
    updated_at: LenientOptionalStr = None


class UserList(Paginated):
    data: list[UserRead] = Field(default_factory=list)

    @field_validator("data", mode="before")
    @classmethod
    def _drop_unkeyed(cls, v: Any) -> list[dict[str, Any]]:
        return _keyed_objects(v)


# ── Tenants ─────────────────────────────────────────────


class TenantCreate(_Write):
    key: str
    name: Optional[str] = None
    description: Optional[str] = None
    attributes: Optional[dict[str, Any]] = None


class TenantUpdate(_Write):
    name: Optional[str] = None
    description: Optional[str] = None
    attributes: Optional[dict[str, Any]] = None


class TenantRead(_Read):
    id: LenientStr = ""
    key: LenientStr = ""
    name: LenientOptionalStr = None
    description: LenientOptionalStr = None
    attributes: Attributes = Field(default_factory=dict)
    created_at: LenientOptionalStr = None
    updated_at: LenientOptionalStr = None


class TenantList(Paginated):
    data: list[TenantRead] = Field(default_factory=list)

    @field_validator("data", mode="before")
    @classmethod
    def _drop_unkeyed(cls, v: Any) -> list[dict[str, Any]]:
        return _keyed_objects(v)


# ── Resource types & instances ──────────────────────────


class ResourceCreate(_Write):
    key: str
    name: Optional[str] = None
    description: Optional[str] = None
    actions: list[str] = Field(default_factory=list)
    attributes: Optional[dict[str, Any]] = None


class ResourceUpdate(_Write):
    name: Optional[str] = None
    description: Optional[str] = None
    actions: Optional[list[str]] = None
    attributes: Optional[dict[str, Any]] = None


class ResourceRead(_Read):
    id: LenientStr = ""
    key: LenientStr = ""
    name: LenientOptionalStr = None
    description: LenientOptionalStr = None
    actions: StringList = Field(default_factory=list)
    attributes: Attributes = Field(default_factory=dict)
    created_at: LenientOptionalStr = None
    updated_at: LenientOptionalStr = None


class ResourceList(Paginated):
    data: list[ResourceRead] = Field(default_factory=list)

    @field_validator("data", mode="before")
    @classmethod
    def _drop_unkeyed(cls, v: Any) -> list[dict[str, Any]]:
        return _keyed_objects(v)


class ResourceInstanceCreate(_Write):
    key: str
    resource_type: str
    tenant: Optional[str] = None
    attributes: Optional[dict[str, Any]] = None


class ResourceInstanceRead(_Read):
    id: LenientStr = ""
    key: LenientStr = ""
    resource_type: LenientStr = ""
    tenant: LenientOptionalStr = None
    attributes: Attributes = Field(default_factory=dict)
    created_at: LenientOptionalStr = None
    updated_at: LenientOptionalStr = None


# ── Decisions ───────────────────────────────────────────


class Decision(BaseModel):
    """Outcome of one permission check.

    ``matched_roles`` and ``matched_permissions`` are ordered sets: the role
    keys that granted access and the required permission string they
    satisfied, whether through an exact or a wildcard entry.
    """

    allowed: bool
    reason: str = ""
    matched_roles: list[str] = Field(default_factory=list)
    matched_permissions: list[str] = Field(default_factory=list)

    def __bool__(self) -> bool:
        return self.allowed


class CheckRequest(BaseModel):
    """One entry of a bulk check. ``tenant`` overrides the resource's tenant."""

    user: Union[Principal, str]
    action: str
    resource: Union[ResourceRef, str]
    tenant: Optional[str] = None


class BulkCheckResult(BaseModel):
    request: CheckRequest
    decision: Decision


class EffectivePermissions(BaseModel):
    """Union of roles and expanded permissions held by a user."""

    roles: list[str] = Field(default_factory=list)
    permissions: list[str] = Field(default_factory=list)


__all__ = [
    "BulkCheckResult",
    "BulkRoleAssignmentError",
    "BulkRoleAssignmentResponse",
    "CheckRequest",
    "Decision",
    "EffectivePermissions",
    "Paginated",
    "Principal",
    "ResourceCreate",
    "ResourceInstanceCreate",
    "ResourceInstanceRead",
    "ResourceList",
    "ResourceRead",
    "ResourceRef",
    "ResourceUpdate",
    "RoleAssignmentCreate",
    "RoleAssignmentList",
    "RoleAssignmentRead",
    "RoleCreate",
    "RoleList",
    "RoleRead",
    "RoleUpdate",
    "Scope",
    "TenantCreate",
    "TenantList",
    "TenantRead",
    "TenantUpdate",
    "UserCreate",
    "UserList",
    "UserRead",
    "UserUpdate",
]
