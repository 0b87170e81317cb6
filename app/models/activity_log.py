# app/models/activity_log.py
from enum import Enum as PyEnum

from sqlalchemy import Enum, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import AuditedEntity


class LogActionType(str, PyEnum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    VIEW = "view"
    LOGIN = "login"
    LOGOUT = "logout"
    CHANGE_PASSWORD = "change_password"
    CHANGE_STATUS = "change_status"
    CHANGE_ROLE = "change_role"
    CHANGE_PERMISSION = "change_permission"
    ASSIGN = "assign"
    LINK = "link"
    CONVERT = "convert"
    NOTE = "note"


class EntityType(str, PyEnum):
    USER = "user"
    CUSTOMER = "customer"
    APPOINTMENT = "appointment"
    REQUEST = "request"
    NOTIFICATION = "notification"
    PERMISSION = "permission"


class ActivityLog(AuditedEntity):
    """
    Append-only audit trail.

    The subject of the action is always addressed through the typed
    ``entity_type`` / ``entity_id`` columns; ``details`` is free text for humans.
    """

    __tablename__ = "activity_logs"

    entity_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    entity_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    user_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    action: Mapped[LogActionType] = mapped_column(
        Enum(LogActionType, name="log_action_type_enum", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    details: Mapped[str | None] = mapped_column(Text, nullable=True)
