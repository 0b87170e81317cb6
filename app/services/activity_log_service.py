# app/services/activity_log_service.py
import logging
from datetime import timedelta
from typing import Any

from sqlalchemy.orm import Session

from app.models.activity_log import ActivityLog, EntityType, LogActionType
from app.models.base import utcnow
from app.repositories.activity_log_repository import ActivityLogRepository
from app.repositories.base import in_unit_of_work
from app.services.base_service import ServiceContext, ServiceHooks

logger = logging.getLogger(__name__)


class ActivityLogService:
    def __init__(self, db: Session):
        self.db = db
        self.repository = ActivityLogRepository(db)

    def create_log(
        self,
        *,
        entity_type: EntityType | str,
        entity_id: int | None,
        action: LogActionType,
        user_id: int | None = None,
        details: str | None = None,
    ) -> ActivityLog | None:
        """
        Write one activity log row.

        Best-effort: failures are logged and swallowed so the operation that
        triggered the log never fails because of it.
        """
        entity_type = getattr(entity_type, "value", entity_type)
        try:
            with self.db.begin_nested():
                log = ActivityLog(
                    entity_type=entity_type,
                    entity_id=entity_id,
                    action=action,
                    user_id=user_id,
                    details=details,
                    created_by=user_id,
                    updated_by=user_id,
                )
                self.db.add(log)
            if not in_unit_of_work(self.db):
                self.db.commit()
            return log
        except Exception as exc:
            logger.warning(
                "Failed to write activity log (%s %s #%s): %s",
                action,
                entity_type,
                entity_id,
                exc,
            )
            if not in_unit_of_work(self.db):
                self.db.rollback()
            return None

    def find_by_entity(self, entity_type: str, entity_id: int, *, limit: int = 50) -> list[ActivityLog]:
        return self.repository.find_by_entity(entity_type, entity_id, limit=limit)

    def find_by_user(self, user_id: int, *, limit: int = 50) -> list[ActivityLog]:
        return self.repository.find_by_user(user_id, limit=limit)

    def get_latest(self, *, limit: int = 20) -> list[ActivityLog]:
        return self.repository.find_by_criteria(limit=limit)

    def cleanup_old_logs(self, days: int = 90) -> int:
        deleted = self.repository.delete_older_than(utcnow() - timedelta(days=days))
        logger.info("Removed %s activity logs older than %s days", deleted, days)
        return deleted


class ActivityLogHooks(ServiceHooks):
    """Hooks that record create/update/delete in the activity log."""

    def __init__(self, db: Session, entity_type: EntityType, label: str = "name"):
        self.activity = ActivityLogService(db)
        self.entity_type = entity_type
        self.label = label

    def _describe(self, entity: Any) -> str:
        return str(getattr(entity, self.label, None) or f"#{getattr(entity, 'id', '?')}")

    def after_create(self, entity, context: ServiceContext | None):
        self.activity.create_log(
            entity_type=self.entity_type,
            entity_id=entity.id,
            action=LogActionType.CREATE,
            user_id=context.user_id if context else None,
            details=f"Created {self.entity_type.value} {self._describe(entity)}",
        )
        return entity

    def after_update(self, entity, context: ServiceContext | None):
        self.activity.create_log(
            entity_type=self.entity_type,
            entity_id=entity.id,
            action=LogActionType.UPDATE,
            user_id=context.user_id if context else None,
            details=f"Updated {self.entity_type.value} {self._describe(entity)}",
        )
        return entity

    def after_delete(self, entity_id, snapshot, context: ServiceContext | None) -> None:
        self.activity.create_log(
            entity_type=self.entity_type,
            entity_id=entity_id,
            action=LogActionType.DELETE,
            user_id=context.user_id if context else None,
            details=f"Deleted {self.entity_type.value} {self._describe(snapshot)}",
        )
