from datetime import datetime

from pydantic import EmailStr, Field, field_validator

from app.models.user import UserRole, UserStatus
from app.schemas.common import CamelModel


class UserCreate(CamelModel):
    name: str = Field(min_length=1, max_length=200)
    email: EmailStr
    password: str = Field(min_length=8)
    role: UserRole = UserRole.USER
    phone: str | None = None
    status: UserStatus = UserStatus.ACTIVE

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class UserUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    email: EmailStr | None = None
    role: UserRole | None = None
    phone: str | None = None
    profile_picture: str | None = None
    status: UserStatus | None = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str | None) -> str | None:
        return value.strip().lower() if value else value


class UserStatusUpdate(CamelModel):
    status: UserStatus


class UserResponse(CamelModel):
    id: int
    name: str
    email: str
    role: str
    phone: str | None = None
    profile_picture: str | None = None
    status: UserStatus
    last_login_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
