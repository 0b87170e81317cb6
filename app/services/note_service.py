# app/services/note_service.py
from sqlalchemy.orm import Session

from app.core.errors import ValidationError
from app.models.activity_log import EntityType, LogActionType
from app.models.note import Note
from app.repositories.note_repository import NoteRepository
from app.services.activity_log_service import ActivityLogService
from app.services.base_service import ServiceContext


class NoteService:
    """Notes shared by customers, appointments and requests."""

    def __init__(self, db: Session):
        self.repository = NoteRepository(db)
        self.activity = ActivityLogService(db)

    def add_note(
        self,
        entity_type: EntityType,
        entity_id: int,
        text: str,
        context: ServiceContext | None = None,
    ) -> Note:
        if not text or not text.strip():
            raise ValidationError(
                "Note text is required",
                field_errors=[{"field": "text", "message": "Note text is required", "type": "required"}],
            )

        user_id = context.user_id if context else None
        note = self.repository.create(
            {
                "entity_type": entity_type.value,
                "entity_id": entity_id,
                "user_id": user_id,
                "user_name": context.user_name if context else None,
                "text": text.strip(),
                "created_by": user_id,
                "updated_by": user_id,
            }
        )
        self.activity.create_log(
            entity_type=entity_type,
            entity_id=entity_id,
            action=LogActionType.NOTE,
            user_id=user_id,
            details=f"Added note to {entity_type.value} #{entity_id}",
        )
        return note

    def get_notes(self, entity_type: EntityType, entity_id: int) -> list[Note]:
        return self.repository.find_for(entity_type.value, entity_id)
