from datetime import datetime, timedelta, timezone

import pytest

from app.core.errors import ParameterError
from app.models.appointment import Appointment, AppointmentStatus
from app.models.customer import CommonStatus
from app.models.request import ServiceRequest
from app.repositories.base import period_buckets
from app.services.appointment_service import AppointmentService
from app.services.customer_service import CustomerService
from app.services.dashboard_service import DashboardService, percent_change

API = "/api/v1"
NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


def _utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


# =============================================================================
# Buckets
# =============================================================================

def test_weekly_buckets_start_on_monday():
    buckets = period_buckets("weekly", 3, _utc(2024, 3, 13, 9, 30))

    assert [b.period for b in buckets] == ["2024-W09", "2024-W10", "2024-W11"]
    assert buckets[0].start == _utc(2024, 2, 26)
    assert buckets[-1].end == _utc(2024, 3, 18)


def test_monthly_buckets_cross_year_boundary():
    buckets = period_buckets("monthly", 3, _utc(2024, 2, 10))

    assert [b.period for b in buckets] == ["2023-12", "2024-01", "2024-02"]
    assert buckets[0].start == _utc(2023, 12, 1)
    assert buckets[-1].end == _utc(2024, 3, 1)


def test_yearly_buckets():
    buckets = period_buckets("yearly", 2, _utc(2024, 6, 1))

    assert [(b.period, b.start, b.end) for b in buckets] == [
        ("2023", _utc(2023, 1, 1), _utc(2024, 1, 1)),
        ("2024", _utc(2024, 1, 1), _utc(2025, 1, 1)),
    ]


@pytest.mark.parametrize("period,periods", [("hourly", 3), ("monthly", 0)])
def test_bad_period_arguments(period, periods):
    with pytest.raises(ParameterError):
        period_buckets(period, periods, NOW)


# =============================================================================
# Per-resource statistics
# =============================================================================

def test_customer_monthly_stats_with_status_breakdown(db, make_customer):
    make_customer(created_at=_utc(2023, 11, 30), status=CommonStatus.ACTIVE)
    make_customer(created_at=_utc(2024, 1, 5), status=CommonStatus.ACTIVE)
    make_customer(created_at=_utc(2024, 3, 2), status=CommonStatus.INACTIVE)
    make_customer(created_at=_utc(2024, 3, 10), status=CommonStatus.ACTIVE)

    stats = CustomerService(db).get_period_stats("monthly", periods=3, now=NOW)

    assert [(s.period, s.count) for s in stats] == [("2024-01", 1), ("2024-02", 0), ("2024-03", 2)]
    assert stats[1].breakdown == {status.value: 0 for status in CommonStatus}
    assert stats[2].breakdown["active"] == 1
    assert stats[2].breakdown["inactive"] == 1


def test_appointment_stats_bucket_by_appointment_date(db):
    db.add_all(
        [
            Appointment(title="Past", appointment_date=_utc(2022, 5, 1), status=AppointmentStatus.COMPLETED),
            Appointment(title="Soon", appointment_date=_utc(2024, 4, 2), status=AppointmentStatus.PLANNED),
        ]
    )
    db.commit()

    stats = AppointmentService(db).get_period_stats("yearly", now=NOW)

    assert [(s.period, s.count) for s in stats] == [("2022", 1), ("2023", 0), ("2024", 1)]
    assert stats[0].breakdown["completed"] == 1
    assert stats[2].breakdown["planned"] == 1


def test_stats_endpoints(client, admin_headers, make_customer):
    make_customer()

    response = client.get(f"{API}/customers/stats/weekly", headers=admin_headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert len(data) == 12
    assert data[-1]["count"] == 1
    assert set(data[-1]) == {"period", "start", "end", "count", "breakdown"}

    assert client.get(f"{API}/users/stats/yearly?periods=2", headers=admin_headers).json()["data"][-1]["count"] == 1
    assert client.get(f"{API}/requests/stats/monthly", headers=admin_headers).status_code == 200
    assert client.get(f"{API}/appointments/stats/monthly", headers=admin_headers).status_code == 200


def test_unknown_stats_period_is_parameter_error(client, admin_headers):
    response = client.get(f"{API}/customers/stats/hourly", headers=admin_headers)

    assert response.status_code == 400
    assert response.json()["errorType"] == "validation"


# =============================================================================
# Dashboard
# =============================================================================

@pytest.mark.parametrize(
    "current,previous,expected",
    [(2, 1, 100.0), (1, 4, -75.0), (0, 0, 0.0), (3, 0, 100.0)],
)
def test_percent_change(current, previous, expected):
    assert percent_change(current, previous) == expected


def test_dashboard_compares_with_previous_window(db, make_customer):
    make_customer(created_at=NOW - timedelta(days=1))
    converted_to = make_customer(created_at=NOW - timedelta(days=2))
    make_customer(created_at=NOW - timedelta(days=10))
    db.add_all(
        [
            ServiceRequest(name="A", email="a@example.com", message="hi", created_at=NOW - timedelta(days=1)),
            ServiceRequest(
                name="B",
                email="b@example.com",
                message="hi",
                customer_id=converted_to.id,
                created_at=NOW - timedelta(days=3),
            ),
            Appointment(title="Done", appointment_date=NOW - timedelta(days=2), status=AppointmentStatus.COMPLETED),
            Appointment(title="Next", appointment_date=NOW - timedelta(hours=2), status=AppointmentStatus.CONFIRMED),
        ]
    )
    db.commit()

    stats = DashboardService(db).get_stats("week", now=NOW)

    assert (stats.customers.total, stats.customers.new, stats.customers.previous) == (3, 2, 1)
    assert stats.customers.percent_change == 100.0
    assert stats.requests.new == 2
    assert stats.requests.by_status["new"] == 2
    assert stats.request_conversion_rate == 0.5
    assert stats.appointments.by_status["completed"] == 1
    assert stats.appointment_completion_rate == 0.5
    assert stats.users.total == 0


def test_dashboard_rejects_unknown_window(db):
    with pytest.raises(ParameterError):
        DashboardService(db).get_stats("decade")


def test_dashboard_endpoint(client, admin_headers):
    response = client.get(f"{API}/dashboard/stats?window=year", headers=admin_headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["window"] == "year"
    assert data["users"]["total"] == 1
    assert "requestConversionRate" in data
