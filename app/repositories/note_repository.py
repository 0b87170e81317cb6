# app/repositories/note_repository.py
from app.models.note import Note
from app.repositories.base import SortOptions, SqlAlchemyRepository


class NoteRepository(SqlAlchemyRepository[Note]):
    model = Note
    resource_name = "Note"
    search_fields = ("text",)

    def find_for(self, entity_type: str, entity_id: int) -> list[Note]:
        return self.find_by_criteria(
            {"entity_type": entity_type, "entity_id": entity_id},
            sort=SortOptions("created_at", "desc"),
        )
