# app/models/appointment.py
from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import AuditedEntity
from app.models.customer import Customer


class AppointmentStatus(str, PyEnum):
    PLANNED = "planned"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    RESCHEDULED = "rescheduled"
    SCHEDULED = "scheduled"


class Appointment(AuditedEntity):
    __tablename__ = "appointments"

    # Foreign Keys
    customer_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("customers.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )

    # Appointment Details
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    appointment_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )
    duration: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=60,
        doc="Duration in minutes.",
    )
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Status
    status: Mapped[AppointmentStatus] = mapped_column(
        Enum(
            AppointmentStatus,
            name="appointment_status_enum",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=AppointmentStatus.PLANNED,
    )

    # Relationships
    customer: Mapped[Customer | None] = relationship(Customer, back_populates="appointments")
