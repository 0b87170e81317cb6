# app/schemas/stats.py
from datetime import datetime

from app.schemas.common import CamelModel


class PeriodStat(CamelModel):
    period: str
    start: datetime
    end: datetime
    count: int
    breakdown: dict[str, int] = {}


class MetricSummary(CamelModel):
    total: int
    new: int
    previous: int
    percent_change: float
    by_status: dict[str, int] = {}


class DashboardStats(CamelModel):
    window: str
    start_date: datetime
    end_date: datetime
    customers: MetricSummary
    appointments: MetricSummary
    requests: MetricSummary
    users: MetricSummary
    request_conversion_rate: float
    appointment_completion_rate: float
