from pydantic import EmailStr, Field

from app.schemas.common import CamelModel


class LoginRequest(CamelModel):
    email: EmailStr
    password: str


class TokenResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"


class ChangePasswordRequest(CamelModel):
    current_password: str
    new_password: str = Field(min_length=8)
