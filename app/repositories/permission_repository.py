# app/repositories/permission_repository.py
from typing import Iterable

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from app.models.permission import Permission, UserPermission
from app.repositories.base import SqlAlchemyRepository, unit_of_work


class PermissionRepository(SqlAlchemyRepository[Permission]):
    """
    Permission catalog plus the explicit user grants that reference it.
    """

    model = Permission
    resource_name = "Permission"
    search_fields = ("code", "name", "description")
    default_sort_field = "code"
    default_sort_direction = "asc"

    def find_by_code(self, code: str) -> Permission | None:
        return self.find_one_by_criteria({"code": code})

    def find_by_codes(self, codes: Iterable[str]) -> list[Permission]:
        codes = list(codes)
        if not codes:
            return []
        return self.find_by_criteria({"code": {"in": codes}})

    # -------------------------
    # Explicit grants
    # -------------------------
    def get_explicit_codes(self, user_id: int) -> set[str]:
        stmt = (
            select(Permission.code)
            .join(UserPermission, UserPermission.permission_id == Permission.id)
            .where(UserPermission.user_id == user_id)
        )
        try:
            return set(self.db.scalars(stmt))
        except SQLAlchemyError as exc:
            raise self._wrap_error(exc, "get_explicit_codes") from exc

    def has_explicit_grant(self, user_id: int, code: str) -> bool:
        stmt = (
            select(UserPermission.id)
            .join(Permission, UserPermission.permission_id == Permission.id)
            .where(UserPermission.user_id == user_id, Permission.code == code)
            .limit(1)
        )
        try:
            return self.db.scalar(stmt) is not None
        except SQLAlchemyError as exc:
            raise self._wrap_error(exc, "has_explicit_grant") from exc

    def replace_user_grants(
        self,
        user_id: int,
        permissions: Iterable[Permission],
        granted_by: int | None,
    ) -> int:
        """
        Delete every grant of ``user_id`` and insert one row per permission,
        as a single unit of work.
        """
        permissions = list(permissions)
        try:
            with unit_of_work(self.db):
                self.db.execute(delete(UserPermission).where(UserPermission.user_id == user_id))
                for permission in permissions:
                    self.db.add(
                        UserPermission(
                            user_id=user_id,
                            permission_id=permission.id,
                            granted_by=granted_by,
                        )
                    )
                self.db.flush()
        except SQLAlchemyError as exc:
            raise self._wrap_error(exc, "replace_user_grants") from exc
        return len(permissions)

    def add_grant(self, user_id: int, permission: Permission, granted_by: int | None) -> bool:
        """Returns False when the grant already existed."""
        if self.has_explicit_grant(user_id, permission.code):
            return False
        try:
            self.db.add(UserPermission(user_id=user_id, permission_id=permission.id, granted_by=granted_by))
            self._persist()
        except SQLAlchemyError as exc:
            self._rollback()
            raise self._wrap_error(exc, "add_grant") from exc
        return True

    def remove_grant(self, user_id: int, permission: Permission) -> bool:
        stmt = delete(UserPermission).where(
            UserPermission.user_id == user_id,
            UserPermission.permission_id == permission.id,
        )
        try:
            result = self.db.execute(stmt)
            self._persist()
        except SQLAlchemyError as exc:
            self._rollback()
            raise self._wrap_error(exc, "remove_grant") from exc
        return bool(result.rowcount)

    # -------------------------
    # Seeding
    # -------------------------
    def seed(self, catalog: Iterable[dict]) -> int:
        """
        Insert the catalog only if the table is completely empty.

        Returns the number of rows inserted (0 when seeding was skipped).
        """
        if self.count() > 0:
            return 0

        rows = list(catalog)
        try:
            with unit_of_work(self.db):
                self.db.add_all(Permission(**row) for row in rows)
                self.db.flush()
        except SQLAlchemyError as exc:
            raise self._wrap_error(exc, "seed") from exc
        return len(rows)
