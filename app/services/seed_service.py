# app/services/seed_service.py
import logging

from sqlalchemy.orm import Session

from app.models.user import UserRole
from app.repositories.permission_repository import PermissionRepository

logger = logging.getLogger(__name__)

# Permission catalog: (code, name, description, category)
DEFAULT_PERMISSIONS = [
    ("system.access", "System access", "Access the application", "system"),
    ("system.admin", "System administration", "Full administrative access", "system"),
    ("system.logs", "System logs", "View system and activity logs", "system"),
    ("dashboard.view", "View dashboard", "View the dashboard", "dashboard"),
    ("users.view", "View users", "View user accounts", "users"),
    ("users.create", "Create users", "Create user accounts", "users"),
    ("users.edit", "Edit users", "Edit user accounts", "users"),
    ("users.delete", "Delete users", "Delete user accounts", "users"),
    ("users.manage", "Manage users", "Manage user status and roles", "users"),
    ("roles.view", "View roles", "View roles", "roles"),
    ("roles.create", "Create roles", "Create roles", "roles"),
    ("roles.edit", "Edit roles", "Edit roles", "roles"),
    ("roles.delete", "Delete roles", "Delete roles", "roles"),
    ("customers.view", "View customers", "View customer records", "customers"),
    ("customers.create", "Create customers", "Create customer records", "customers"),
    ("customers.edit", "Edit customers", "Edit customer records", "customers"),
    ("customers.delete", "Delete customers", "Delete customer records", "customers"),
    ("customers.hard_delete", "Hard delete customers", "Permanently delete customers", "customers"),
    ("requests.view", "View requests", "View service requests", "requests"),
    ("requests.create", "Create requests", "Create service requests", "requests"),
    ("requests.edit", "Edit requests", "Edit service requests", "requests"),
    ("requests.delete", "Delete requests", "Delete service requests", "requests"),
    ("requests.approve", "Approve requests", "Approve service requests", "requests"),
    ("requests.reject", "Reject requests", "Reject service requests", "requests"),
    ("requests.assign", "Assign requests", "Assign requests to users", "requests"),
    ("requests.manage", "Manage requests", "Manage service requests", "requests"),
    ("requests.convert", "Convert requests", "Convert requests into customers", "requests"),
    ("appointments.view", "View appointments", "View appointments", "appointments"),
    ("appointments.create", "Create appointments", "Create appointments", "appointments"),
    ("appointments.edit", "Edit appointments", "Edit appointments", "appointments"),
    ("appointments.delete", "Delete appointments", "Delete appointments", "appointments"),
    ("notifications.view", "View notifications", "View notifications", "notifications"),
    ("notifications.create", "Create notifications", "Send notifications", "notifications"),
    ("notifications.edit", "Edit notifications", "Edit notifications", "notifications"),
    ("notifications.delete", "Delete notifications", "Delete notifications", "notifications"),
    ("notifications.manage", "Manage notifications", "Manage notifications of all users", "notifications"),
    ("settings.view", "View settings", "View settings", "settings"),
    ("settings.edit", "Edit settings", "Edit settings", "settings"),
    ("profile.view", "View profile", "View own profile", "profile"),
    ("profile.edit", "Edit profile", "Edit own profile", "profile"),
    ("permissions.view", "View permissions", "View permission assignments", "permissions"),
    ("permissions.manage", "Manage permissions", "Grant and revoke permissions", "permissions"),
]

ALL_PERMISSION_CODES = frozenset(code for code, _, _, _ in DEFAULT_PERMISSIONS)

# Role to permission mappings (role defaults, never persisted)
ROLE_PERMISSIONS: dict[str, frozenset[str]] = {
    UserRole.ADMIN.value: ALL_PERMISSION_CODES,
    UserRole.MANAGER.value: frozenset(
        {
            "system.access",
            "dashboard.view",
            "users.view",
            "users.manage",
            "customers.view",
            "customers.create",
            "customers.edit",
            "requests.view",
            "requests.create",
            "requests.edit",
            "requests.delete",
            "requests.approve",
            "requests.reject",
            "requests.assign",
            "requests.convert",
            "appointments.view",
            "appointments.create",
            "appointments.edit",
            "appointments.delete",
            "notifications.view",
            "settings.view",
            "permissions.view",
            "profile.view",
            "profile.edit",
        }
    ),
    UserRole.EMPLOYEE.value: frozenset(
        {
            "system.access",
            "dashboard.view",
            "customers.view",
            "customers.create",
            "requests.view",
            "requests.create",
            "appointments.view",
            "appointments.create",
            "appointments.edit",
            "notifications.view",
            "profile.view",
            "profile.edit",
        }
    ),
    UserRole.USER.value: frozenset(
        {
            "system.access",
            "notifications.view",
            "profile.view",
            "profile.edit",
            "appointments.view",
            "appointments.create",
        }
    ),
}


def catalog_rows() -> list[dict]:
    return [
        {"code": code, "name": name, "description": description, "category": category}
        for code, name, description, category in DEFAULT_PERMISSIONS
    ]


def seed_default_permissions(db: Session) -> int:
    """
    Seed the permission catalog.

    Runs only against an empty table: if any permission row exists the call
    is a no-op, so codes added to DEFAULT_PERMISSIONS later are not inserted
    retroactively. Returns the number of rows inserted.
    """
    inserted = PermissionRepository(db).seed(catalog_rows())
    if inserted:
        logger.info("Seeded %s permissions", inserted)
    else:
        logger.debug("Permission catalog already present, skipping seed")
    return inserted
