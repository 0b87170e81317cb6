# app/repositories/activity_log_repository.py
from datetime import datetime

from app.models.activity_log import ActivityLog
from app.repositories.base import SortOptions, SqlAlchemyRepository


class ActivityLogRepository(SqlAlchemyRepository[ActivityLog]):
    model = ActivityLog
    resource_name = "Activity log"
    search_fields = ("details",)

    def find_by_entity(self, entity_type: str, entity_id: int, *, limit: int = 50) -> list[ActivityLog]:
        return self.find_by_criteria(
            {"entity_type": entity_type, "entity_id": entity_id},
            sort=SortOptions("created_at", "desc"),
            limit=limit,
        )

    def find_by_user(self, user_id: int, *, limit: int = 50) -> list[ActivityLog]:
        return self.find_by_criteria(
            {"user_id": user_id},
            sort=SortOptions("created_at", "desc"),
            limit=limit,
        )

    def delete_older_than(self, cutoff: datetime) -> int:
        return self.delete_by_criteria({"created_at": {"lt": cutoff}})
