# app/schemas/appointment.py
from datetime import datetime

from pydantic import Field

from app.models.appointment import AppointmentStatus
from app.schemas.common import CamelModel


class AppointmentCreate(CamelModel):
    title: str = Field(min_length=1, max_length=200)
    customer_id: int | None = None
    appointment_date: datetime
    duration: int = Field(default=60, gt=0, le=24 * 60)  # minutes
    location: str | None = None
    description: str | None = None
    status: AppointmentStatus = AppointmentStatus.PLANNED


class AppointmentUpdate(CamelModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    customer_id: int | None = None
    appointment_date: datetime | None = None
    duration: int | None = Field(default=None, gt=0, le=24 * 60)
    location: str | None = None
    description: str | None = None
    status: AppointmentStatus | None = None


class AppointmentStatusUpdate(CamelModel):
    status: AppointmentStatus
    note: str | None = None


class AppointmentResponse(CamelModel):
    id: int
    title: str
    customer_id: int | None = None
    appointment_date: datetime
    duration: int
    location: str | None = None
    description: str | None = None
    status: AppointmentStatus
    created_at: datetime
    updated_at: datetime
    created_by: int | None = None
    updated_by: int | None = None

    # Computed fields for frontend convenience
    customer_name: str | None = None
