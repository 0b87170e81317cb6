from datetime import datetime, timedelta, timezone

import pytest

from app.core.errors import BadRequestError, NotFoundError, ValidationError
from app.models.activity_log import ActivityLog, LogActionType
from app.models.appointment import Appointment
from app.models.customer import Customer
from app.models.notification import Notification
from app.models.request import RequestStatus, ServiceRequest
from app.models.user import UserRole, UserStatus
from app.services.base_service import ServiceContext
from app.services.request_service import RequestService

API = "/api/v1"


@pytest.fixture
def make_request(db):
    def factory(**overrides):
        data = {"name": "Lena Lead", "email": "Lena@Example.com", "phone": "+49 30 1234", "message": "Please call me"}
        data.update(overrides)
        return RequestService(db).create(data)

    return factory


def _appointment_payload(**overrides):
    data = {"title": "First meeting", "appointment_date": datetime.now(timezone.utc) + timedelta(days=2)}
    data.update(overrides)
    return data


# =============================================================================
# Create & notify
# =============================================================================

def test_new_request_notifies_active_admins_and_managers(db, make_user, make_request):
    admin = make_user(UserRole.ADMIN)
    manager = make_user(UserRole.MANAGER)
    make_user(UserRole.MANAGER, status=UserStatus.INACTIVE)
    make_user(UserRole.EMPLOYEE)

    request = make_request()

    assert request.status == RequestStatus.NEW
    assert request.email == "lena@example.com"
    recipients = {n.user_id for n in db.query(Notification).all()}
    assert recipients == {admin.id, manager.id}
    assert db.query(Notification).first().link == f"/requests/{request.id}"


def test_request_requires_message(db):
    with pytest.raises(ValidationError) as exc_info:
        RequestService(db).create({"name": "No Message", "email": "x@example.com"})

    assert [e["field"] for e in exc_info.value.field_errors] == ["message"]


# =============================================================================
# Workflow
# =============================================================================

def test_assign_moves_new_request_in_progress_and_notifies(db, admin_user, employee_user, make_request):
    request = make_request()
    db.query(Notification).delete()
    db.commit()

    assigned = RequestService(db).assign_to(request.id, employee_user.id, ServiceContext(user_id=admin_user.id))

    assert assigned.processor_id == employee_user.id
    assert assigned.processor_name == "Erik Employee"
    assert assigned.status == RequestStatus.IN_PROGRESS
    assert [n.user_id for n in db.query(Notification).all()] == [employee_user.id]
    assert db.query(ActivityLog).filter_by(action=LogActionType.ASSIGN).count() == 1


def test_self_assignment_is_not_notified(db, employee_user, make_request):
    request = make_request()

    RequestService(db).assign_to(request.id, employee_user.id, ServiceContext(user_id=employee_user.id))

    assert db.query(Notification).filter_by(user_id=employee_user.id).count() == 0


def test_assign_to_unknown_user(db, make_request):
    request = make_request()

    with pytest.raises(NotFoundError):
        RequestService(db).assign_to(request.id, 999)


def test_update_status_with_note(db, make_request):
    request = make_request()
    service = RequestService(db)

    updated = service.update_status(request.id, RequestStatus.COMPLETED, note="Offer sent")

    assert updated.status == RequestStatus.COMPLETED
    assert [n.text for n in service.get_notes(request.id)] == ["Offer sent"]


def test_link_to_customer(db, make_customer, make_request):
    customer = make_customer(name="Existing Kunde")
    request = make_request()

    linked = RequestService(db).link_to_customer(request.id, customer.id)

    assert linked.customer_id == customer.id
    assert linked.customer_name == "Existing Kunde"


def test_create_appointment_for_request_uses_linked_customer(db, make_customer, make_request):
    customer = make_customer()
    request = make_request()
    service = RequestService(db)
    service.link_to_customer(request.id, customer.id)

    appointment = service.create_appointment_for_request(request.id, _appointment_payload())

    assert appointment.customer_id == customer.id
    assert service.get_by_id(request.id).appointment_id == appointment.id


# =============================================================================
# Conversion
# =============================================================================

def test_convert_creates_customer_and_appointment(db, admin_user, make_request):
    request = make_request(service="Consulting")

    result = RequestService(db).convert_to_customer(
        request.id,
        customer_data={"city": "Leipzig"},
        appointment_data=_appointment_payload(),
        note="Converted after call",
        context=ServiceContext(user_id=admin_user.id),
    )

    assert result.customer.name == "Lena Lead"
    assert result.customer.email == "lena@example.com"
    assert result.customer.city == "Leipzig"
    assert result.appointment is not None
    assert result.appointment.customer_id == result.customer.id
    assert result.request.customer_id == result.customer.id
    assert result.request.appointment_id == result.appointment.id
    assert result.request.status == RequestStatus.IN_PROGRESS
    assert db.query(ActivityLog).filter_by(action=LogActionType.CONVERT).count() == 1


def test_convert_twice_is_rejected(db, make_request):
    request = make_request()
    service = RequestService(db)
    service.convert_to_customer(request.id)

    with pytest.raises(BadRequestError):
        service.convert_to_customer(request.id)
    assert db.query(Customer).count() == 1


def test_failed_conversion_rolls_back_everything(db, make_customer, make_request):
    make_customer(email="lena@example.com")
    request = make_request()

    with pytest.raises(ValidationError):
        RequestService(db).convert_to_customer(request.id, appointment_data=_appointment_payload())

    assert db.query(Customer).count() == 1
    assert db.query(Appointment).count() == 0
    stored = db.get(ServiceRequest, request.id)
    assert stored.customer_id is None
    assert stored.status == RequestStatus.NEW


def test_failing_appointment_undoes_new_customer(db, make_request):
    request = make_request()

    with pytest.raises(ValidationError):
        RequestService(db).convert_to_customer(request.id, appointment_data={"duration": 15})

    assert db.query(Customer).count() == 0
    assert db.get(ServiceRequest, request.id).customer_id is None


# =============================================================================
# Stats & HTTP
# =============================================================================

def test_stats_include_every_status(db, make_request):
    service = RequestService(db)
    first = make_request()
    make_request(email="other@example.com")
    service.update_status(first.id, RequestStatus.CANCELLED)

    stats = service.get_stats()

    assert stats.total == 2
    assert stats.by_status == {"new": 1, "in_progress": 0, "completed": 0, "cancelled": 1}


def test_convert_endpoint(client, admin_headers, make_request):
    request = make_request()

    response = client.post(
        f"{API}/requests/{request.id}/convert",
        json={
            "customer": {"name": "Lena Lead", "email": "lena@example.com", "type": "business"},
            "appointment": {"title": "Kickoff", "appointmentDate": "2031-05-04T10:00:00Z", "duration": 45},
        },
        headers=admin_headers,
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["customer"]["type"] == "business"
    assert data["appointment"]["duration"] == 45
    assert data["request"]["status"] == "in_progress"


def test_stats_endpoint(client, admin_headers, make_request):
    make_request()

    response = client.get(f"{API}/requests/stats", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["data"]["byStatus"]["new"] == 1


# =============================================================================
# Public intake
# =============================================================================

def _public_payload(**overrides):
    data = {"name": "Web Visitor", "email": "Visitor@Example.com", "service": "Consulting", "message": "Hello"}
    data.update(overrides)
    return data


def test_public_submission_needs_no_login(client, db, admin_user):
    response = client.post(
        f"{API}/requests/public",
        json=_public_payload(),
        headers={"X-Forwarded-For": "203.0.113.7, 10.0.0.1"},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Thank you for your request! We will contact you shortly."
    assert set(body["data"]) == {"id", "createdAt"}

    stored = db.get(ServiceRequest, body["data"]["id"])
    assert stored.source == "form"
    assert stored.ip_address == "203.0.113.7"
    assert stored.created_by is None
    assert stored.email == "visitor@example.com"
    assert {n.user_id for n in db.query(Notification).all()} == {admin_user.id}


def test_create_public_keeps_context_ip(db):
    request = RequestService(db).create_public(_public_payload(), ServiceContext(ip_address="198.51.100.4"))

    assert request.source == "form"
    assert request.ip_address == "198.51.100.4"


def test_public_submission_requires_service(client, db):
    payload = _public_payload()
    del payload["service"]

    response = client.post(f"{API}/requests/public", json=payload)

    assert response.status_code == 422
    assert db.query(ServiceRequest).count() == 0


def test_public_submission_uses_real_ip_header(client, db):
    response = client.post(f"{API}/requests/public", json=_public_payload(), headers={"X-Real-IP": "192.0.2.9"})

    assert response.status_code == 201
    assert db.get(ServiceRequest, response.json()["data"]["id"]).ip_address == "192.0.2.9"
