# app/services/user_service.py
import logging
from typing import Any

from sqlalchemy.orm import Session

from app.core.errors import BadRequestError, UnauthorizedError, ValidationError
from app.core.security import get_password_hash, normalize_role, verify_password
from app.models.activity_log import ActivityLog, EntityType, LogActionType
from app.models.base import utcnow
from app.models.user import User, UserRole, UserStatus
from app.repositories.user_repository import UserRepository
from app.schemas.user import UserResponse
from app.services.activity_log_service import ActivityLogHooks
from app.services.base_service import (
    CrudService,
    FieldErrors,
    ModelMapper,
    ServiceContext,
    ValidationResult,
)
from app.services.permission_service import invalidate_permission_cache

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8
_VALID_ROLES = {role.value for role in UserRole}


class UserValidator:
    def __init__(self, repository: UserRepository):
        self.repository = repository

    def validate(self, data: dict[str, Any], *, is_update: bool = False, entity_id: Any = None) -> ValidationResult:
        errors = FieldErrors()
        if not is_update or "name" in data:
            errors.require(data, "name", "Name")
        if not is_update or "email" in data:
            errors.require(data, "email", "Email")
        errors.email(data)
        errors.not_null(data, "status")

        if not is_update:
            password = data.get("password") or ""
            if len(password) < MIN_PASSWORD_LENGTH:
                errors.add("password", f"Password must be at least {MIN_PASSWORD_LENGTH} characters", "length")

        if "role" in data and normalize_role(data["role"]) not in _VALID_ROLES:
            errors.add("role", f"Unknown role: {data['role']}", "invalid")

        email = data.get("email")
        if email:
            existing = self.repository.find_by_email(str(email))
            if existing is not None and existing.id != entity_id:
                errors.add("email", "A user with this email already exists", "unique")
        return errors.result()


class UserMapper(ModelMapper[User, UserResponse]):
    def to_entity(self, data: dict[str, Any], existing: User | None = None) -> dict[str, Any]:
        values = dict(data)
        password = values.pop("password", None)
        if password:
            values["hashed_password"] = get_password_hash(password)
        if values.get("email"):
            values["email"] = str(values["email"]).strip().lower()
        if "role" in values:
            values["role"] = normalize_role(values["role"])
        return values


class UserHooks(ActivityLogHooks):
    def __init__(self, db: Session):
        super().__init__(db, EntityType.USER)

    def after_update(self, entity: User, context: ServiceContext | None) -> User:
        # Role or status may have changed
        invalidate_permission_cache(entity.id)
        return super().after_update(entity, context)

    def before_delete(self, entity: User, context: ServiceContext | None) -> None:
        if context and context.user_id == entity.id:
            raise BadRequestError("You cannot delete your own account")

    def after_delete(self, entity_id, snapshot, context: ServiceContext | None) -> None:
        invalidate_permission_cache(entity_id)
        super().after_delete(entity_id, snapshot, context)


class UserService(CrudService[User, UserResponse]):
    entity_name = "User"
    stats_group_field = "role"
    stats_group_values = tuple(r.value for r in UserRole)

    def __init__(self, db: Session):
        repository = UserRepository(db)
        super().__init__(
            repository,
            mapper=UserMapper(UserResponse),
            validator=UserValidator(repository),
            hooks=UserHooks(db),
        )

    def find_by_email(self, email: str) -> User | None:
        return self.repository.find_by_email(email)

    def get_entity(self, user_id: int) -> User:
        return self._get_or_404(user_id)

    def authenticate(self, email: str, password: str) -> User:
        user = self.repository.find_by_email(email)
        if user is None or not verify_password(password, user.hashed_password):
            raise UnauthorizedError("Invalid email or password")
        if user.status != UserStatus.ACTIVE:
            raise UnauthorizedError("User account is not active")

        user = self.repository.update(user.id, {"last_login_at": utcnow()})
        self.hooks.activity.create_log(
            entity_type=EntityType.USER,
            entity_id=user.id,
            action=LogActionType.LOGIN,
            user_id=user.id,
            details="User logged in",
        )
        return user

    def change_password(
        self,
        user_id: int,
        current_password: str,
        new_password: str,
        context: ServiceContext | None = None,
    ) -> None:
        user = self._get_or_404(user_id)
        if not verify_password(current_password, user.hashed_password):
            raise ValidationError(
                "Current password is incorrect",
                field_errors=[
                    {"field": "current_password", "message": "Current password is incorrect", "type": "mismatch"}
                ],
            )
        if len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                "New password is too short",
                field_errors=[
                    {
                        "field": "new_password",
                        "message": f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
                        "type": "length",
                    }
                ],
            )

        stamped = self.stamper.stamp({"hashed_password": get_password_hash(new_password)}, context, is_create=False)
        self.repository.update(user_id, stamped)
        self.hooks.activity.create_log(
            entity_type=EntityType.USER,
            entity_id=user_id,
            action=LogActionType.CHANGE_PASSWORD,
            user_id=context.user_id if context else user_id,
            details="Password changed",
        )

    def update_status(
        self,
        user_id: int,
        status: UserStatus,
        context: ServiceContext | None = None,
    ) -> UserResponse:
        user = self.update(user_id, {"status": status}, context)
        self.hooks.activity.create_log(
            entity_type=EntityType.USER,
            entity_id=user_id,
            action=LogActionType.CHANGE_STATUS,
            user_id=context.user_id if context else None,
            details=f"Status changed to {UserStatus(status).value}",
        )
        return user

    def soft_delete(self, user_id: int, context: ServiceContext | None = None) -> UserResponse:
        return self.update_status(user_id, UserStatus.DELETED, context)

    def get_user_activity(self, user_id: int, *, limit: int = 50) -> list[ActivityLog]:
        self._get_or_404(user_id)
        return self.hooks.activity.find_by_user(user_id, limit=limit)
