# app/schemas/customer.py
from datetime import datetime

from pydantic import EmailStr, Field, field_validator

from app.models.customer import CommonStatus, CustomerType
from app.schemas.common import CamelModel


class CustomerCreate(CamelModel):
    name: str = Field(min_length=1, max_length=200)
    company: str | None = None
    email: EmailStr | None = None
    phone: str | None = None
    address: str | None = None
    postal_code: str | None = None
    city: str | None = None
    country: str | None = None
    vat_number: str | None = None
    notes: str | None = None
    newsletter: bool = False
    status: CommonStatus = CommonStatus.ACTIVE
    type: CustomerType = CustomerType.PRIVATE

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        return value.strip()


class CustomerUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    company: str | None = None
    email: EmailStr | None = None
    phone: str | None = None
    address: str | None = None
    postal_code: str | None = None
    city: str | None = None
    country: str | None = None
    vat_number: str | None = None
    notes: str | None = None
    newsletter: bool | None = None
    status: CommonStatus | None = None
    type: CustomerType | None = None


class CustomerStatusUpdate(CamelModel):
    status: CommonStatus
    reason: str | None = None


class CustomerResponse(CamelModel):
    id: int
    name: str
    company: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    postal_code: str | None = None
    city: str | None = None
    country: str | None = None
    vat_number: str | None = None
    notes: str | None = None
    newsletter: bool = False
    status: CommonStatus
    type: CustomerType
    created_at: datetime
    updated_at: datetime
    created_by: int | None = None
    updated_by: int | None = None
