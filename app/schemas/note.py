# app/schemas/note.py
from datetime import datetime

from pydantic import Field

from app.schemas.common import CamelModel


class NoteCreate(CamelModel):
    text: str = Field(min_length=1, max_length=5000)


class NoteResponse(CamelModel):
    id: int
    entity_type: str
    entity_id: int
    user_id: int | None = None
    user_name: str | None = None
    text: str
    created_at: datetime
