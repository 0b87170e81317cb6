from sqlalchemy.orm import Session

from app.core.security import create_access_token, normalize_role
from app.models.user import User
from app.schemas.auth import LoginRequest
from app.services.user_service import UserService


def authenticate_user(db: Session, login_data: LoginRequest) -> User:
    """
    Authenticate a user by email and password.

    Raises UnauthorizedError. Unknown email and wrong password share one
    message; an inactive account gets its own.
    """
    return UserService(db).authenticate(login_data.email, login_data.password)


def issue_access_token_for_user(user: User) -> str:
    return create_access_token(
        subject=str(user.id),
        role=normalize_role(user.role),
    )
