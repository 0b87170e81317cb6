# app/api/v1/endpoints/notifications.py
import logging

from fastapi import APIRouter, Depends, Query, status

from app.api.deps import get_notification_service, get_service_context
from app.api.responses import paginated, success_response
from app.dependencies.authz import require_permission
from app.models.user import User
from app.schemas.common import ApiResponse, BulkUpdateResult, CountResponse, PaginatedData
from app.schemas.notification import NotificationCreate, NotificationResponse
from app.services.base_service import ServiceContext
from app.services.notification_service import NotificationService

router = APIRouter()
logger = logging.getLogger(__name__)


# Notifications are always scoped to the authenticated user.
@router.get("", response_model=ApiResponse[PaginatedData[NotificationResponse]])
def list_my_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    unread_only: bool = Query(False, alias="unreadOnly"),
    current_user: User = Depends(require_permission("notifications.view")),
    service: NotificationService = Depends(get_notification_service),
) -> ApiResponse[PaginatedData[NotificationResponse]]:
    result = service.find_by_user(current_user.id, page=page, limit=limit, unread_only=unread_only)
    return success_response(paginated(result))


@router.get("/unread-count", response_model=ApiResponse[CountResponse])
def count_my_unread_notifications(
    current_user: User = Depends(require_permission("notifications.view")),
    service: NotificationService = Depends(get_notification_service),
) -> ApiResponse[CountResponse]:
    return success_response(CountResponse(count=service.count_unread(current_user.id)))


@router.patch("/read-all", response_model=ApiResponse[BulkUpdateResult])
def mark_all_my_notifications_read(
    current_user: User = Depends(require_permission("notifications.view")),
    service: NotificationService = Depends(get_notification_service),
) -> ApiResponse[BulkUpdateResult]:
    updated = service.mark_all_as_read(current_user.id)
    return success_response(BulkUpdateResult(updated=updated), "All notifications marked as read")


@router.patch("/{notification_id}/read", response_model=ApiResponse[NotificationResponse])
def mark_notification_read(
    notification_id: int,
    current_user: User = Depends(require_permission("notifications.view")),
    service: NotificationService = Depends(get_notification_service),
) -> ApiResponse[NotificationResponse]:
    return success_response(service.mark_as_read(notification_id, current_user.id), "Notification marked as read")


@router.delete("", response_model=ApiResponse[CountResponse])
def delete_all_my_notifications(
    current_user: User = Depends(require_permission("notifications.view")),
    service: NotificationService = Depends(get_notification_service),
) -> ApiResponse[CountResponse]:
    deleted = service.delete_all_for_user(current_user.id)
    return success_response(CountResponse(count=deleted), "Notifications deleted")


@router.post("", response_model=ApiResponse[NotificationResponse], status_code=status.HTTP_201_CREATED)
def create_notification(
    payload: NotificationCreate,
    current_user: User = Depends(require_permission("notifications.create")),
    context: ServiceContext = Depends(get_service_context),
    service: NotificationService = Depends(get_notification_service),
) -> ApiResponse[NotificationResponse]:
    notification = service.create(payload, context)
    return success_response(notification, "Notification created", status.HTTP_201_CREATED)
