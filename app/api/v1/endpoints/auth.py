import logging

from fastapi import APIRouter, Depends, Request
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from app.api.responses import success_response
from app.core.config import get_settings
from app.core.database import get_db
from app.core.errors import UnauthorizedError
from app.core.security import decode_token
from app.models.user import User, UserStatus
from app.schemas.auth import ChangePasswordRequest, LoginRequest, TokenResponse
from app.schemas.common import ApiResponse
from app.schemas.permission import UserPermissionsResponse
from app.schemas.user import UserResponse
from app.services.auth_service import authenticate_user, issue_access_token_for_user
from app.services.base_service import ServiceContext
from app.services.permission_service import PermissionService
from app.services.user_service import UserService

router = APIRouter()
logger = logging.getLogger(__name__)

settings = get_settings()

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.api_v1_prefix}/auth/login", auto_error=False)


def get_current_user(
    token: str | None = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """
    Dependency to retrieve the current user from a JWT bearer token.
    """
    if not token:
        raise UnauthorizedError("Not authenticated")

    try:
        payload = decode_token(token)
    except ValueError as exc:
        raise UnauthorizedError(str(exc)) from exc

    subject = payload.get("sub")
    try:
        user_id = int(subject)
    except (TypeError, ValueError):
        raise UnauthorizedError("Invalid token payload")

    user = db.get(User, user_id)
    if user is None:
        raise UnauthorizedError("User not found")
    if user.status != UserStatus.ACTIVE:
        raise UnauthorizedError("User account is not active")
    return user


@router.post("/login", response_model=TokenResponse, response_model_by_alias=False)
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
) -> TokenResponse:
    """
    OAuth2-style login: ``username`` carries the email.

    The bare token body (not the envelope) is returned so standard OAuth2
    clients such as the Swagger UI can use it.
    """
    try:
        login_data = LoginRequest(email=form_data.username, password=form_data.password)
    except PydanticValidationError as exc:
        raise UnauthorizedError("Invalid email or password") from exc
    user = authenticate_user(db, login_data)
    token = issue_access_token_for_user(user)
    logger.info("User %s logged in", user.id)
    return TokenResponse(access_token=token)


@router.get("/me", response_model=ApiResponse[UserResponse])
def read_current_user(
    current_user: User = Depends(get_current_user),
) -> ApiResponse[UserResponse]:
    return success_response(UserResponse.model_validate(current_user))


@router.get("/me/permissions", response_model=ApiResponse[UserPermissionsResponse])
def read_current_user_permissions(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ApiResponse[UserPermissionsResponse]:
    described = PermissionService(db).describe_user_permissions(current_user.id)
    return success_response(UserPermissionsResponse(**described))


@router.post("/change-password", response_model=ApiResponse[None])
def change_password(
    payload: ChangePasswordRequest,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ApiResponse[None]:
    context = ServiceContext(
        user_id=current_user.id,
        user_name=current_user.name,
        ip_address=request.client.host if request.client else None,
    )
    UserService(db).change_password(current_user.id, payload.current_password, payload.new_password, context)
    return success_response(message="Password changed successfully")
