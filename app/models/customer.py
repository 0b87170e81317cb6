# app/models/customer.py
from enum import Enum as PyEnum

from sqlalchemy import Boolean, Enum, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import AuditedEntity


class CommonStatus(str, PyEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"
    ARCHIVED = "archived"
    SUSPENDED = "suspended"
    DELETED = "deleted"


class CustomerType(str, PyEnum):
    PRIVATE = "private"
    BUSINESS = "business"
    INDIVIDUAL = "individual"
    GOVERNMENT = "government"
    NON_PROFIT = "non_profit"


def _enum_values(enum_cls):
    return [m.value for m in enum_cls]


class Customer(AuditedEntity):
    __tablename__ = "customers"

    # Identity
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    company: Mapped[str | None] = mapped_column(String(200), nullable=True)

    # Contact
    email: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Address
    address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    postal_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    country: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        default="Deutschland",
        server_default=text("'Deutschland'"),
    )

    # Business
    vat_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    newsletter: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Status
    status: Mapped[CommonStatus] = mapped_column(
        Enum(CommonStatus, name="common_status_enum", values_callable=_enum_values),
        nullable=False,
        default=CommonStatus.ACTIVE,
    )
    type: Mapped[CustomerType] = mapped_column(
        Enum(CustomerType, name="customer_type_enum", values_callable=_enum_values),
        nullable=False,
        default=CustomerType.PRIVATE,
    )

    # Relationships
    appointments: Mapped[list["Appointment"]] = relationship(
        "Appointment",
        back_populates="customer",
        passive_deletes=True,
    )
