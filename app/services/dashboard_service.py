# app/services/dashboard_service.py
"""
Aggregate numbers for the dashboard summary cards.

Every metric compares the current window (``now - window`` .. ``now``) with
the window of the same length directly before it.
"""

import logging
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from app.core.errors import ParameterError
from app.models.appointment import AppointmentStatus
from app.models.base import utcnow
from app.models.customer import CommonStatus
from app.models.request import RequestStatus
from app.repositories.appointment_repository import AppointmentRepository
from app.repositories.base import SqlAlchemyRepository
from app.repositories.customer_repository import CustomerRepository
from app.repositories.request_repository import RequestRepository
from app.repositories.user_repository import UserRepository
from app.schemas.stats import DashboardStats, MetricSummary

logger = logging.getLogger(__name__)

WINDOWS = {
    "day": timedelta(days=1),
    "week": timedelta(days=7),
    "month": timedelta(days=30),
    "year": timedelta(days=365),
}


def percent_change(current: int, previous: int) -> float:
    if previous == 0:
        return 100.0 if current else 0.0
    return round((current - previous) / previous * 100, 1)


def _ratio(part: int, whole: int) -> float:
    return round(part / whole, 4) if whole else 0.0


class DashboardService:
    def __init__(self, db: Session):
        self.db = db
        self.customers = CustomerRepository(db)
        self.appointments = AppointmentRepository(db)
        self.requests = RequestRepository(db)
        self.users = UserRepository(db)

    def get_stats(self, window: str = "month", *, now: datetime | None = None) -> DashboardStats:
        if window not in WINDOWS:
            raise ParameterError(
                f"Unknown dashboard window '{window}'",
                context={"window": window, "allowed": list(WINDOWS)},
            )
        end = now or utcnow()
        start = end - WINDOWS[window]
        previous_start = start - WINDOWS[window]

        customers = self._summarize(self.customers, "created_at", start, end, previous_start, CommonStatus)
        appointments = self._summarize(
            self.appointments, "appointment_date", start, end, previous_start, AppointmentStatus
        )
        requests = self._summarize(self.requests, "created_at", start, end, previous_start, RequestStatus)
        users = self._summarize(self.users, "created_at", start, end, previous_start)

        converted = self.requests.count(
            {"created_at": {"gte": start, "lt": end}, "customer_id": {"neq": None}}
        )
        completed = appointments.by_status.get(AppointmentStatus.COMPLETED.value, 0)

        return DashboardStats(
            window=window,
            start_date=start,
            end_date=end,
            customers=customers,
            appointments=appointments,
            requests=requests,
            users=users,
            request_conversion_rate=_ratio(converted, requests.new),
            appointment_completion_rate=_ratio(completed, appointments.new),
        )

    @staticmethod
    def _summarize(
        repository: SqlAlchemyRepository,
        date_field: str,
        start: datetime,
        end: datetime,
        previous_start: datetime,
        statuses: type | None = None,
    ) -> MetricSummary:
        current_window = {date_field: {"gte": start, "lt": end}}
        new = repository.count(current_window)
        previous = repository.count({date_field: {"gte": previous_start, "lt": start}})

        by_status: dict[str, int] = {}
        if statuses is not None:
            counts = repository.count_by_group("status", current_window)
            by_status = {status.value: counts.get(status.value, 0) for status in statuses}

        return MetricSummary(
            total=repository.count(),
            new=new,
            previous=previous,
            percent_change=percent_change(new, previous),
            by_status=by_status,
        )
