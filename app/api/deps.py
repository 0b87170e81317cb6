# app/api/deps.py
"""
Dependency wiring for route handlers.

Services are built explicitly per request from the request's Session; there
is no container or runtime lookup.
"""

from dataclasses import dataclass, field
from typing import Any

from fastapi import Depends, Query, Request
from sqlalchemy.orm import Session

from app.api.v1.endpoints.auth import get_current_user
from app.core.config import get_settings
from app.core.database import get_db
from app.models.user import User
from app.repositories.base import SortOptions
from app.services.activity_log_service import ActivityLogService
from app.services.appointment_service import AppointmentService
from app.services.base_service import ServiceContext
from app.services.customer_service import CustomerService
from app.services.dashboard_service import DashboardService
from app.services.notification_service import NotificationService
from app.services.permission_service import PermissionService
from app.services.request_service import RequestService
from app.services.user_service import UserService

settings = get_settings()

# Query keys that are never treated as filters
RESERVED_QUERY_KEYS = {"page", "limit", "sortBy", "sortDirection", "search"}


# -------------------------
# Service factories
# -------------------------
def get_customer_service(db: Session = Depends(get_db)) -> CustomerService:
    return CustomerService(db)


def get_appointment_service(db: Session = Depends(get_db)) -> AppointmentService:
    return AppointmentService(db)


def get_request_service(db: Session = Depends(get_db)) -> RequestService:
    return RequestService(db)


def get_notification_service(db: Session = Depends(get_db)) -> NotificationService:
    return NotificationService(db)


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    return UserService(db)


def get_permission_service(db: Session = Depends(get_db)) -> PermissionService:
    return PermissionService(db)


def get_activity_log_service(db: Session = Depends(get_db)) -> ActivityLogService:
    return ActivityLogService(db)


def get_dashboard_service(db: Session = Depends(get_db)) -> DashboardService:
    return DashboardService(db)


# -------------------------
# Request context
# -------------------------
def get_service_context(
    request: Request,
    current_user: User = Depends(get_current_user),
) -> ServiceContext:
    return ServiceContext(
        user_id=current_user.id,
        user_name=current_user.name,
        ip_address=client_ip(request),
    )


def client_ip(request: Request) -> str | None:
    """First hop of X-Forwarded-For, then X-Real-IP, then the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded and forwarded.split(",")[0].strip():
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else None


def get_anonymous_context(request: Request) -> ServiceContext:
    return ServiceContext(ip_address=client_ip(request))


# -------------------------
# Listing
# -------------------------
@dataclass
class ListParams:
    page: int = 1
    limit: int = settings.default_page_size
    sort: SortOptions | None = None
    search: str | None = None
    filters: dict[str, Any] = field(default_factory=dict)

    @property
    def criteria(self) -> dict[str, Any]:
        criteria = dict(self.filters)
        if self.search:
            criteria["search"] = self.search
        return criteria


def _coerce_filter(value: str) -> Any:
    lowered = value.strip().lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    if lowered == "null":
        return None
    if "," in value:
        return [part.strip() for part in value.split(",") if part.strip()]
    return value


def get_list_params(
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    sort_by: str | None = Query(None, alias="sortBy"),
    sort_direction: str = Query("asc", alias="sortDirection", pattern="^(asc|desc|ASC|DESC)$"),
    search: str | None = Query(None),
) -> ListParams:
    """
    Common pagination / sort / search parameters. Every other query key is a
    filter; comma-separated values become IN filters.
    """
    filters = {
        key: _coerce_filter(value)
        for key, value in request.query_params.items()
        if key not in RESERVED_QUERY_KEYS and value != ""
    }
    return ListParams(
        page=page,
        limit=limit,
        sort=SortOptions(sort_by, sort_direction) if sort_by else None,
        search=search.strip() if search and search.strip() else None,
        filters=filters,
    )
