# app/services/permission_service.py
"""
Service for resolving user permissions.

A user's effective permission set is the union of the defaults for their
role and the explicit grants stored in user_permissions. Explicit grants can
only add to the role defaults; there is no stored "deny".
"""

import logging
from typing import Iterable, Mapping

from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.errors import NotFoundError, ValidationError
from app.core.redis import cache_delete, cache_get_json, cache_set_json
from app.core.security import normalize_role
from app.models.activity_log import EntityType, LogActionType
from app.models.permission import Permission
from app.models.user import User
from app.repositories.base import unit_of_work
from app.repositories.permission_repository import PermissionRepository
from app.repositories.user_repository import UserRepository
from app.services.activity_log_service import ActivityLogService
from app.services.seed_service import ROLE_PERMISSIONS, seed_default_permissions

logger = logging.getLogger(__name__)


def permission_cache_key(user_id: int) -> str:
    return f"permissions:user:{user_id}"


def invalidate_permission_cache(user_id: int) -> None:
    """Best-effort: a Redis failure only logs (see app.core.redis)."""
    cache_delete(permission_cache_key(user_id))


class PermissionService:
    def __init__(
        self,
        db: Session,
        *,
        role_defaults: Mapping[str, Iterable[str]] | None = None,
        use_cache: bool = True,
    ):
        self.db = db
        self.permissions = PermissionRepository(db)
        self.users = UserRepository(db)
        self.activity = ActivityLogService(db)
        source = ROLE_PERMISSIONS if role_defaults is None else role_defaults
        self.role_defaults: dict[str, frozenset[str]] = {
            normalize_role(role): frozenset(codes) for role, codes in source.items()
        }
        self.use_cache = use_cache
        self.cache_ttl = get_settings().permission_cache_ttl_seconds

    # -------------------------
    # Resolution
    # -------------------------
    def get_default_permissions_for_role(self, role: str | None) -> set[str]:
        return set(self.role_defaults.get(normalize_role(role), frozenset()))

    def get_user_permissions(self, user_id: int) -> set[str]:
        """
        Resolve all permission codes for a user.

        Args:
            user_id: User primary key

        Returns:
            Set of permission codes (role defaults ∪ explicit grants)

        Raises:
            NotFoundError: the user does not exist
        """
        user = self.users.find_by_id(user_id)
        if user is None:
            if self.use_cache:
                invalidate_permission_cache(user_id)
            raise NotFoundError(resource="User", resource_id=user_id)

        if self.use_cache:
            cached = cache_get_json(permission_cache_key(user_id))
            if cached is not None:
                return set(cached)

        permissions = self.get_default_permissions_for_role(user.role) | self.permissions.get_explicit_codes(user.id)

        if self.use_cache:
            cache_set_json(permission_cache_key(user_id), sorted(permissions), ttl=self.cache_ttl)
        return permissions

    def has_permission(self, user_id: int, code: str) -> bool:
        user = self._get_user(user_id)
        if code in self.get_default_permissions_for_role(user.role):
            return True
        return self.permissions.has_explicit_grant(user.id, code)

    def describe_user_permissions(self, user_id: int) -> dict:
        user = self._get_user(user_id)
        role_permissions = self.get_default_permissions_for_role(user.role)
        explicit = self.permissions.get_explicit_codes(user.id)
        return {
            "user_id": user.id,
            "role": normalize_role(user.role),
            "role_permissions": sorted(role_permissions),
            "explicit_permissions": sorted(explicit),
            "permissions": sorted(role_permissions | explicit),
        }

    # -------------------------
    # Grants
    # -------------------------
    def update_user_permissions(
        self,
        user_id: int,
        codes: Iterable[str],
        updated_by: int | None = None,
    ) -> set[str]:
        """
        Replace a user's explicit grants so that role defaults ∪ grants
        matches ``codes`` as closely as the model allows.

        Only codes beyond the role defaults are stored. Role defaults missing
        from ``codes`` cannot be revoked per user and stay in effect.
        """
        desired = set(codes)
        unknown = desired - {p.code for p in self.permissions.find_by_codes(desired)}
        if unknown:
            raise ValidationError(
                "Unknown permission codes",
                field_errors=[
                    {"field": "permissions", "message": f"Unknown permission code: {code}", "type": "unknown"}
                    for code in sorted(unknown)
                ],
            )

        user = self._get_user(user_id)
        role_permissions = self.get_default_permissions_for_role(user.role)
        additional = desired - role_permissions
        removed = role_permissions - desired
        if removed:
            logger.info(
                "Role defaults cannot be revoked per user; ignoring removal of %s for user %s",
                sorted(removed),
                user.id,
            )

        with unit_of_work(self.db):
            self.permissions.replace_user_grants(
                user.id,
                self.permissions.find_by_codes(additional),
                granted_by=updated_by,
            )

        invalidate_permission_cache(user.id)
        self._log_change(user.id, updated_by, f"Explicit permissions set to {sorted(additional)}")
        return self.get_user_permissions(user.id)

    def add_user_permission(self, user_id: int, code: str, granted_by: int | None = None) -> bool:
        user = self._get_user(user_id)
        permission = self._get_permission(code)
        added = self.permissions.add_grant(user.id, permission, granted_by)
        invalidate_permission_cache(user.id)
        if added:
            self._log_change(user.id, granted_by, f"Granted {code}")
        return added

    def remove_user_permission(self, user_id: int, code: str, removed_by: int | None = None) -> bool:
        user = self._get_user(user_id)
        permission = self._get_permission(code)
        removed = self.permissions.remove_grant(user.id, permission)
        invalidate_permission_cache(user.id)
        if removed:
            self._log_change(user.id, removed_by, f"Revoked {code}")
        return removed

    # -------------------------
    # Catalog
    # -------------------------
    def list_permissions(self, category: str | None = None) -> list[Permission]:
        criteria = {"category": category} if category else None
        return self.permissions.find_by_criteria(criteria)

    def seed_default_permissions(self) -> int:
        return seed_default_permissions(self.db)

    # -------------------------
    # Helpers
    # -------------------------
    def _log_change(self, user_id: int, actor_id: int | None, details: str) -> None:
        self.activity.create_log(
            entity_type=EntityType.USER,
            entity_id=user_id,
            action=LogActionType.CHANGE_PERMISSION,
            user_id=actor_id,
            details=details,
        )

    def _get_user(self, user_id: int) -> User:
        user = self.users.find_by_id(user_id)
        if user is None:
            raise NotFoundError(resource="User", resource_id=user_id)
        return user

    def _get_permission(self, code: str) -> Permission:
        permission = self.permissions.find_by_code(code)
        if permission is None:
            raise NotFoundError(f"Permission '{code}' not found", context={"code": code})
        return permission
