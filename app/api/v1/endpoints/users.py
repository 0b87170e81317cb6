# app/api/v1/endpoints/users.py
import logging

from fastapi import APIRouter, Depends, Query, status

from app.api.deps import ListParams, get_list_params, get_service_context, get_user_service
from app.api.responses import paginated, success_response
from app.core.errors import NotFoundError
from app.dependencies.authz import require_permission
from app.models.user import User
from app.schemas.activity_log import ActivityLogResponse
from app.schemas.common import ApiResponse, DeleteResult, PaginatedData
from app.schemas.stats import PeriodStat
from app.schemas.user import UserCreate, UserResponse, UserStatusUpdate, UserUpdate
from app.services.base_service import ServiceContext
from app.services.user_service import UserService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=ApiResponse[PaginatedData[UserResponse]])
def list_users(
    current_user: User = Depends(require_permission("users.view")),
    params: ListParams = Depends(get_list_params),
    service: UserService = Depends(get_user_service),
) -> ApiResponse[PaginatedData[UserResponse]]:
    result = service.get_all(page=params.page, limit=params.limit, sort=params.sort, criteria=params.criteria)
    return success_response(paginated(result))


@router.get("/stats/{period}", response_model=ApiResponse[list[PeriodStat]])
def get_user_stats(
    period: str,
    periods: int | None = Query(None, ge=1, le=104),
    current_user: User = Depends(require_permission("users.view")),
    service: UserService = Depends(get_user_service),
) -> ApiResponse[list[PeriodStat]]:
    return success_response(service.get_period_stats(period, periods=periods))


@router.get("/{user_id}", response_model=ApiResponse[UserResponse])
def get_user(
    user_id: int,
    current_user: User = Depends(require_permission("users.view")),
    service: UserService = Depends(get_user_service),
) -> ApiResponse[UserResponse]:
    user = service.get_by_id(user_id)
    if user is None:
        raise NotFoundError(resource="User", resource_id=user_id)
    return success_response(user)


@router.post("", response_model=ApiResponse[UserResponse], status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreate,
    current_user: User = Depends(require_permission("users.create")),
    context: ServiceContext = Depends(get_service_context),
    service: UserService = Depends(get_user_service),
) -> ApiResponse[UserResponse]:
    # Defaults (role, status) are part of the request, not left to the database
    user = service.create(payload.model_dump(), context)
    logger.info("User %s created by %s", user.id, current_user.id)
    return success_response(user, "User created successfully", status.HTTP_201_CREATED)


@router.put("/{user_id}", response_model=ApiResponse[UserResponse])
def update_user(
    user_id: int,
    payload: UserUpdate,
    current_user: User = Depends(require_permission("users.edit")),
    context: ServiceContext = Depends(get_service_context),
    service: UserService = Depends(get_user_service),
) -> ApiResponse[UserResponse]:
    user = service.update(user_id, payload, context)
    return success_response(user, "User updated successfully")


@router.patch("/{user_id}/status", response_model=ApiResponse[UserResponse])
def update_user_status(
    user_id: int,
    payload: UserStatusUpdate,
    current_user: User = Depends(require_permission("users.edit")),
    context: ServiceContext = Depends(get_service_context),
    service: UserService = Depends(get_user_service),
) -> ApiResponse[UserResponse]:
    user = service.update_status(user_id, payload.status, context)
    return success_response(user, "User status updated")


@router.delete("/{user_id}", response_model=ApiResponse[DeleteResult])
def delete_user(
    user_id: int,
    current_user: User = Depends(require_permission("users.delete")),
    context: ServiceContext = Depends(get_service_context),
    service: UserService = Depends(get_user_service),
) -> ApiResponse[DeleteResult]:
    deleted = service.delete(user_id, context)
    return success_response(DeleteResult(id=user_id, deleted=deleted), "User deleted successfully")


@router.get("/{user_id}/activity", response_model=ApiResponse[list[ActivityLogResponse]])
def get_user_activity(
    user_id: int,
    limit: int = Query(50, ge=1, le=200),
    current_user: User = Depends(require_permission("users.view")),
    service: UserService = Depends(get_user_service),
) -> ApiResponse[list[ActivityLogResponse]]:
    logs = service.get_user_activity(user_id, limit=limit)
    return success_response([ActivityLogResponse.model_validate(log) for log in logs])
