# app/schemas/request.py
from datetime import datetime

from pydantic import EmailStr, Field

from app.models.request import RequestStatus
from app.schemas.appointment import AppointmentCreate, AppointmentResponse
from app.schemas.common import CamelModel
from app.schemas.customer import CustomerCreate, CustomerResponse


class RequestCreate(CamelModel):
    name: str = Field(min_length=1, max_length=200)
    email: EmailStr
    phone: str | None = None
    service: str | None = None
    message: str = Field(min_length=1)
    source: str | None = None


class PublicRequestCreate(CamelModel):
    """Contact form payload; every field the form shows is required except phone."""

    name: str = Field(min_length=1, max_length=200)
    email: EmailStr
    phone: str | None = None
    service: str = Field(min_length=1, max_length=200)
    message: str = Field(min_length=1)


class PublicRequestReceipt(CamelModel):
    id: int
    created_at: datetime


class RequestUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    email: EmailStr | None = None
    phone: str | None = None
    service: str | None = None
    message: str | None = None
    status: RequestStatus | None = None


class RequestStatusUpdate(CamelModel):
    status: RequestStatus
    note: str | None = None


class RequestAssign(CamelModel):
    processor_id: int


class RequestLinkCustomer(CamelModel):
    customer_id: int


class RequestConvert(CamelModel):
    customer: CustomerCreate | None = None
    appointment: AppointmentCreate | None = None
    note: str | None = None


class RequestResponse(CamelModel):
    id: int
    name: str
    email: str
    phone: str | None = None
    service: str | None = None
    message: str
    status: RequestStatus
    processor_id: int | None = None
    customer_id: int | None = None
    appointment_id: int | None = None
    ip_address: str | None = None
    source: str | None = None
    created_at: datetime
    updated_at: datetime

    # Computed fields for frontend convenience
    processor_name: str | None = None
    customer_name: str | None = None


class RequestConversionResponse(CamelModel):
    customer: CustomerResponse
    appointment: AppointmentResponse | None = None
    request: RequestResponse


class RequestStats(CamelModel):
    total: int
    by_status: dict[str, int]
