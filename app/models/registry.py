# app/models/registry.py
"""
Import every model module so that Base.metadata and the mapper registry are
complete (string relationship targets such as "Appointment" resolve).

Import this from entry points (app.main, alembic/env.py) rather than from
individual models.
"""

from app.models.base import Base
from app.models.user import User, UserRole, UserStatus
from app.models.permission import Permission, UserPermission
from app.models.customer import CommonStatus, Customer, CustomerType
from app.models.appointment import Appointment, AppointmentStatus
from app.models.request import RequestStatus, ServiceRequest
from app.models.note import Note
from app.models.notification import Notification, NotificationType
from app.models.activity_log import ActivityLog, EntityType, LogActionType

__all__ = [
    "Base",
    "User",
    "UserRole",
    "UserStatus",
    "Permission",
    "UserPermission",
    "CommonStatus",
    "Customer",
    "CustomerType",
    "Appointment",
    "AppointmentStatus",
    "RequestStatus",
    "ServiceRequest",
    "Note",
    "Notification",
    "NotificationType",
    "ActivityLog",
    "EntityType",
    "LogActionType",
]
