# app/schemas/activity_log.py
from datetime import datetime

from app.models.activity_log import LogActionType
from app.schemas.common import CamelModel


class ActivityLogResponse(CamelModel):
    id: int
    entity_type: str
    entity_id: int | None = None
    user_id: int | None = None
    action: LogActionType
    details: str | None = None
    created_at: datetime
