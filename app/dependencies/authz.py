# app/dependencies/authz.py
from fastapi import Depends
from sqlalchemy.orm import Session

from app.api.v1.endpoints.auth import get_current_user
from app.core.database import get_db
from app.core.errors import ForbiddenError
from app.models.user import User
from app.services.permission_service import PermissionService


def require_permission(permission_code: str):
    """
    Dependency factory for permission-based access control.

    Usage:

    @router.get("/customers")
    def list_customers(
        current_user: User = Depends(require_permission("customers.view")),
        ...
    ):
        ...

    Returns the current_user if role defaults or an explicit grant include
    the code.
    """

    def dependency(
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
    ) -> User:
        if not PermissionService(db).has_permission(current_user.id, permission_code):
            raise ForbiddenError(
                f"Insufficient permissions. Required: {permission_code}",
                context={"permission": permission_code},
            )
        return current_user

    return dependency
