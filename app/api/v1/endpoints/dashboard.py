# app/api/v1/endpoints/dashboard.py
import logging

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_dashboard_service
from app.api.responses import success_response
from app.dependencies.authz import require_permission
from app.models.user import User
from app.schemas.common import ApiResponse
from app.schemas.stats import DashboardStats
from app.services.dashboard_service import DashboardService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/stats", response_model=ApiResponse[DashboardStats])
def get_dashboard_stats(
    window: str = Query("month", description="day, week, month or year"),
    current_user: User = Depends(require_permission("dashboard.view")),
    service: DashboardService = Depends(get_dashboard_service),
) -> ApiResponse[DashboardStats]:
    return success_response(service.get_stats(window), "Dashboard statistics retrieved successfully")
