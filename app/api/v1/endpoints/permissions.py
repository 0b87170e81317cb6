# app/api/v1/endpoints/permissions.py
import logging

from fastapi import APIRouter, Depends, Query, status

from app.api.deps import get_permission_service
from app.api.responses import success_response
from app.core.security import normalize_role
from app.dependencies.authz import require_permission
from app.models.user import User, UserRole
from app.schemas.common import ApiResponse
from app.schemas.permission import (
    PermissionCheckResponse,
    PermissionResponse,
    RolePermissionsResponse,
    UserPermissionGrant,
    UserPermissionsResponse,
    UserPermissionsUpdate,
)
from app.services.permission_service import PermissionService

router = APIRouter()
logger = logging.getLogger(__name__)


# -------------------------
# Catalog & role defaults
# -------------------------
@router.get("", response_model=ApiResponse[list[PermissionResponse]])
def list_permissions(
    category: str | None = Query(None),
    current_user: User = Depends(require_permission("permissions.view")),
    service: PermissionService = Depends(get_permission_service),
) -> ApiResponse[list[PermissionResponse]]:
    permissions = service.list_permissions(category)
    return success_response([PermissionResponse.model_validate(p) for p in permissions])


@router.get("/roles", response_model=ApiResponse[list[RolePermissionsResponse]])
def list_role_defaults(
    current_user: User = Depends(require_permission("permissions.view")),
    service: PermissionService = Depends(get_permission_service),
) -> ApiResponse[list[RolePermissionsResponse]]:
    roles = [
        RolePermissionsResponse(role=role.value, permissions=sorted(service.get_default_permissions_for_role(role.value)))
        for role in UserRole
    ]
    return success_response(roles)


@router.get("/roles/{role}", response_model=ApiResponse[RolePermissionsResponse])
def get_role_defaults(
    role: str,
    current_user: User = Depends(require_permission("permissions.view")),
    service: PermissionService = Depends(get_permission_service),
) -> ApiResponse[RolePermissionsResponse]:
    permissions = sorted(service.get_default_permissions_for_role(role))
    return success_response(RolePermissionsResponse(role=normalize_role(role), permissions=permissions))


# -------------------------
# Per-user permissions
# -------------------------
@router.get("/users/{user_id}", response_model=ApiResponse[UserPermissionsResponse])
def get_user_permissions(
    user_id: int,
    current_user: User = Depends(require_permission("permissions.view")),
    service: PermissionService = Depends(get_permission_service),
) -> ApiResponse[UserPermissionsResponse]:
    return success_response(UserPermissionsResponse(**service.describe_user_permissions(user_id)))


@router.put("/users/{user_id}", response_model=ApiResponse[UserPermissionsResponse])
def update_user_permissions(
    user_id: int,
    payload: UserPermissionsUpdate,
    current_user: User = Depends(require_permission("permissions.manage")),
    service: PermissionService = Depends(get_permission_service),
) -> ApiResponse[UserPermissionsResponse]:
    service.update_user_permissions(user_id, payload.permissions, updated_by=current_user.id)
    described = service.describe_user_permissions(user_id)
    return success_response(UserPermissionsResponse(**described), "Permissions updated")


@router.post(
    "/users/{user_id}/grants",
    response_model=ApiResponse[UserPermissionsResponse],
    status_code=status.HTTP_201_CREATED,
)
def grant_user_permission(
    user_id: int,
    payload: UserPermissionGrant,
    current_user: User = Depends(require_permission("permissions.manage")),
    service: PermissionService = Depends(get_permission_service),
) -> ApiResponse[UserPermissionsResponse]:
    added = service.add_user_permission(user_id, payload.code, granted_by=current_user.id)
    message = "Permission granted" if added else "Permission already granted"
    return success_response(
        UserPermissionsResponse(**service.describe_user_permissions(user_id)),
        message,
        status.HTTP_201_CREATED,
    )


@router.delete("/users/{user_id}/grants/{code}", response_model=ApiResponse[UserPermissionsResponse])
def revoke_user_permission(
    user_id: int,
    code: str,
    current_user: User = Depends(require_permission("permissions.manage")),
    service: PermissionService = Depends(get_permission_service),
) -> ApiResponse[UserPermissionsResponse]:
    removed = service.remove_user_permission(user_id, code, removed_by=current_user.id)
    message = "Permission revoked" if removed else "Permission was not granted"
    return success_response(UserPermissionsResponse(**service.describe_user_permissions(user_id)), message)


@router.get("/users/{user_id}/check/{code}", response_model=ApiResponse[PermissionCheckResponse])
def check_user_permission(
    user_id: int,
    code: str,
    current_user: User = Depends(require_permission("permissions.view")),
    service: PermissionService = Depends(get_permission_service),
) -> ApiResponse[PermissionCheckResponse]:
    granted = service.has_permission(user_id, code)
    return success_response(PermissionCheckResponse(code=code, granted=granted))
