# app/repositories/notification_repository.py
from datetime import datetime

from app.models.notification import Notification
from app.repositories.base import SqlAlchemyRepository


class NotificationRepository(SqlAlchemyRepository[Notification]):
    model = Notification
    resource_name = "Notification"
    search_fields = ("title", "message")

    def count_unread(self, user_id: int) -> int:
        return self.count({"user_id": user_id, "is_read": False})

    def mark_all_as_read(self, user_id: int) -> int:
        return self.update_by_criteria({"user_id": user_id, "is_read": False}, {"is_read": True})

    def delete_all_for_user(self, user_id: int) -> int:
        return self.delete_by_criteria({"user_id": user_id})

    def delete_older_than(self, cutoff: datetime) -> int:
        return self.delete_by_criteria({"created_at": {"lt": cutoff}})
