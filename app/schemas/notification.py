# app/schemas/notification.py
from datetime import datetime

from pydantic import Field

from app.models.notification import NotificationType
from app.schemas.common import CamelModel


class NotificationCreate(CamelModel):
    user_id: int
    type: NotificationType = NotificationType.INFO
    title: str = Field(min_length=1, max_length=200)
    message: str = Field(min_length=1)
    customer_id: int | None = None
    appointment_id: int | None = None
    request_id: int | None = None
    link: str | None = None


class NotificationResponse(CamelModel):
    id: int
    user_id: int
    type: NotificationType
    title: str
    message: str
    is_read: bool
    customer_id: int | None = None
    appointment_id: int | None = None
    request_id: int | None = None
    link: str | None = None
    created_at: datetime
