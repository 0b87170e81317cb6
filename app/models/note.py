# app/models/note.py
from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import AuditedEntity


class Note(AuditedEntity):
    """
    Free-text note attached to a customer, appointment or request.

    ``entity_type`` / ``entity_id`` are typed columns; the author name is
    denormalized so the note survives the user being deleted.
    """

    __tablename__ = "notes"

    entity_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    entity_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    user_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    user_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    text: Mapped[str] = mapped_column(Text, nullable=False)
