# app/services/notification_service.py
import logging
from datetime import timedelta
from typing import Any, Iterable

from sqlalchemy.orm import Session

from app.core.errors import NotFoundError
from app.models.base import utcnow
from app.models.notification import Notification, NotificationType
from app.repositories.base import PaginationResult, unit_of_work
from app.repositories.notification_repository import NotificationRepository
from app.repositories.user_repository import UserRepository
from app.schemas.notification import NotificationResponse
from app.services.base_service import (
    CrudService,
    FieldErrors,
    ModelMapper,
    ServiceContext,
    ValidationResult,
)

logger = logging.getLogger(__name__)


class NotificationValidator:
    def __init__(self, users: UserRepository):
        self.users = users

    def validate(self, data: dict[str, Any], *, is_update: bool = False, entity_id: Any = None) -> ValidationResult:
        errors = FieldErrors()
        if not is_update:
            errors.require(data, "title", "Title")
            errors.require(data, "message", "Message")
            if errors.require(data, "user_id", "Recipient") and not self.users.exists(data["user_id"]):
                errors.add("user_id", f"User {data['user_id']} does not exist", "reference")
        errors.max_length(data, "title", 200)
        return errors.result()


class NotificationService(CrudService[Notification, NotificationResponse]):
    entity_name = "Notification"

    def __init__(self, db: Session):
        super().__init__(
            NotificationRepository(db),
            mapper=ModelMapper(NotificationResponse),
            validator=NotificationValidator(UserRepository(db)),
        )

    def find_by_user(
        self,
        user_id: int,
        *,
        page: int = 1,
        limit: int = 10,
        unread_only: bool = False,
    ) -> PaginationResult[NotificationResponse]:
        criteria: dict[str, Any] = {"user_id": user_id}
        if unread_only:
            criteria["is_read"] = False
        return self.get_all(page=page, limit=limit, criteria=criteria)

    def mark_as_read(self, notification_id: int, user_id: int) -> NotificationResponse:
        """Only the recipient may mark a notification; others get a 404."""
        notification = self.repository.find_one_by_criteria({"id": notification_id, "user_id": user_id})
        if notification is None:
            raise NotFoundError(resource=self.entity_name, resource_id=notification_id)
        if notification.is_read:
            return self.mapper.to_dto(notification)
        return self.mapper.to_dto(self.repository.update(notification_id, {"is_read": True}))

    def mark_all_as_read(self, user_id: int) -> int:
        return self.repository.mark_all_as_read(user_id)

    def count_unread(self, user_id: int) -> int:
        return self.repository.count_unread(user_id)

    def delete_all_for_user(self, user_id: int) -> int:
        return self.repository.delete_all_for_user(user_id)

    def create_notification(
        self,
        *,
        user_id: int,
        title: str,
        message: str,
        type: NotificationType = NotificationType.INFO,
        context: ServiceContext | None = None,
        **references: Any,
    ) -> NotificationResponse:
        return self.create(
            {"user_id": user_id, "title": title, "message": message, "type": type, **references},
            context,
        )

    def create_for_users(
        self,
        user_ids: Iterable[int],
        *,
        title: str,
        message: str,
        type: NotificationType = NotificationType.INFO,
        context: ServiceContext | None = None,
        **references: Any,
    ) -> int:
        """Create the same notification for several users in one unit of work."""
        recipients = list(dict.fromkeys(user_ids))
        with unit_of_work(self.db):
            for user_id in recipients:
                self.create_notification(
                    user_id=user_id,
                    title=title,
                    message=message,
                    type=type,
                    context=context,
                    **references,
                )
        return len(recipients)

    def notify(self, user_ids: Iterable[int], *, title: str, message: str, **kwargs: Any) -> int:
        """
        Best-effort fan-out used as a side effect of other operations.
        Failures are logged and never propagate.
        """
        try:
            return self.create_for_users(user_ids, title=title, message=message, **kwargs)
        except Exception as exc:
            logger.warning(f"Failed to create notifications '{title}': {exc}")
            return 0

    def cleanup_old_notifications(self, days: int = 30) -> int:
        deleted = self.repository.delete_older_than(utcnow() - timedelta(days=days))
        logger.info("Removed %s notifications older than %s days", deleted, days)
        return deleted
