# app/api/v1/endpoints/activity_logs.py
import logging

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_activity_log_service
from app.api.responses import success_response
from app.dependencies.authz import require_permission
from app.models.activity_log import EntityType
from app.models.user import User
from app.schemas.activity_log import ActivityLogResponse
from app.schemas.common import ApiResponse, CountResponse
from app.services.activity_log_service import ActivityLogService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=ApiResponse[list[ActivityLogResponse]])
def list_latest_activity(
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(require_permission("system.logs")),
    service: ActivityLogService = Depends(get_activity_log_service),
) -> ApiResponse[list[ActivityLogResponse]]:
    logs = service.get_latest(limit=limit)
    return success_response([ActivityLogResponse.model_validate(log) for log in logs])


@router.get("/{entity_type}/{entity_id}", response_model=ApiResponse[list[ActivityLogResponse]])
def list_entity_activity(
    entity_type: EntityType,
    entity_id: int,
    limit: int = Query(50, ge=1, le=200),
    current_user: User = Depends(require_permission("system.logs")),
    service: ActivityLogService = Depends(get_activity_log_service),
) -> ApiResponse[list[ActivityLogResponse]]:
    logs = service.find_by_entity(entity_type.value, entity_id, limit=limit)
    return success_response([ActivityLogResponse.model_validate(log) for log in logs])


@router.delete("/cleanup", response_model=ApiResponse[CountResponse])
def cleanup_activity(
    days: int = Query(90, ge=1),
    current_user: User = Depends(require_permission("system.admin")),
    service: ActivityLogService = Depends(get_activity_log_service),
) -> ApiResponse[CountResponse]:
    deleted = service.cleanup_old_logs(days)
    logger.info("Activity log cleanup by user %s removed %s rows", current_user.id, deleted)
    return success_response(CountResponse(count=deleted), "Old activity logs removed")
