# app/models/request.py
"""
Inbound service requests (contact form leads).

A request can be assigned to a processing user, linked to an existing
customer, and converted into a customer plus an optional appointment.
"""

from enum import Enum as PyEnum

from sqlalchemy import Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.appointment import Appointment
from app.models.base import AuditedEntity
from app.models.customer import Customer
from app.models.user import User


class RequestStatus(str, PyEnum):
    NEW = "new"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ServiceRequest(AuditedEntity):
    __tablename__ = "requests"

    # Contact
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Content
    service: Mapped[str | None] = mapped_column(String(100), nullable=True)
    message: Mapped[str] = mapped_column(Text, nullable=False)

    # Status
    status: Mapped[RequestStatus] = mapped_column(
        Enum(RequestStatus, name="request_status_enum", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=RequestStatus.NEW,
    )

    # Foreign Keys
    processor_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        doc="User currently processing the request.",
    )
    customer_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("customers.id", ondelete="SET NULL"),
        nullable=True,
    )
    appointment_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("appointments.id", ondelete="SET NULL"),
        nullable=True,
    )

    # Origin
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    source: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Relationships
    processor: Mapped[User | None] = relationship(User)
    customer: Mapped[Customer | None] = relationship(Customer)
    appointment: Mapped[Appointment | None] = relationship(Appointment)
