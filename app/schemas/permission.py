# app/schemas/permission.py
from pydantic import Field

from app.schemas.common import CamelModel


class PermissionResponse(CamelModel):
    id: int
    code: str
    name: str
    description: str | None = None
    category: str | None = None


class UserPermissionsUpdate(CamelModel):
    permissions: list[str] = Field(default_factory=list)


class UserPermissionGrant(CamelModel):
    code: str


class UserPermissionsResponse(CamelModel):
    user_id: int
    role: str
    role_permissions: list[str]
    explicit_permissions: list[str]
    permissions: list[str]


class RolePermissionsResponse(CamelModel):
    role: str
    permissions: list[str]


class PermissionCheckResponse(CamelModel):
    code: str
    granted: bool
