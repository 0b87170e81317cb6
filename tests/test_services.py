from datetime import datetime, timedelta, timezone

import pytest

from app.core.errors import BadRequestError, NotFoundError, UnauthorizedError, ValidationError
from app.models.activity_log import ActivityLog, LogActionType
from app.models.appointment import Appointment
from app.models.customer import CommonStatus, Customer
from app.models.note import Note
from app.models.user import UserStatus
from app.repositories.customer_repository import CustomerRepository
from app.schemas.customer import CustomerResponse
from app.services.appointment_service import AppointmentService
from app.services.base_service import (
    AuditStamper,
    CrudService,
    FieldErrors,
    ModelMapper,
    ServiceContext,
    ServiceHooks,
    ValidationResult,
)
from app.services.customer_service import CustomerService
from app.services.notification_service import NotificationService
from app.services.user_service import UserService

TEST_PASSWORD = "Secret123!"


def _tomorrow() -> datetime:
    return datetime.now(timezone.utc) + timedelta(days=1)


class SpyRepository:
    """Records calls; any write reaching it is a failure of the pipeline."""

    def __init__(self, db):
        self.db = db
        self.created: list[dict] = []

    def create(self, data):
        self.created.append(data)
        raise AssertionError("repository.create must not be called")


class RejectName:
    def validate(self, data, *, is_update=False, entity_id=None):
        errors = FieldErrors()
        errors.require(data, "name", "Name")
        return errors.result()


# =============================================================================
# Pipeline
# =============================================================================

def test_invalid_create_never_reaches_repository(db):
    spy = SpyRepository(db)
    service = CrudService(spy, mapper=ModelMapper(CustomerResponse), validator=RejectName())

    with pytest.raises(ValidationError) as exc_info:
        service.create({"name": "   "})

    assert spy.created == []
    assert exc_info.value.status_code == 422
    assert exc_info.value.field_errors[0]["field"] == "name"


def test_customer_validation_error_writes_nothing(db):
    with pytest.raises(ValidationError) as exc_info:
        CustomerService(db).create({"name": "Broken", "email": "not-an-email"})

    assert "email: Invalid email address" in exc_info.value.errors
    assert db.query(Customer).count() == 0
    assert db.query(ActivityLog).count() == 0


def test_create_stamps_created_and_updated_by(db):
    created = CustomerService(db).create({"name": "Stamped"}, ServiceContext(user_id=7))

    assert created.created_by == 7
    assert created.updated_by == 7


def test_update_stamps_updated_by_and_keeps_created_by(db):
    service = CustomerService(db)
    created = service.create({"name": "Stamped"}, ServiceContext(user_id=3))

    updated = service.update(created.id, {"city": "Bonn", "created_by": 99}, ServiceContext(user_id=7))

    assert updated.created_by == 3
    assert updated.updated_by == 7


def test_stamper_without_user_leaves_payload_alone():
    stamped = AuditStamper().stamp({"name": "X"}, ServiceContext(), is_create=True)
    assert stamped == {"name": "X"}


@pytest.mark.parametrize("operation", ["update", "delete"])
def test_missing_entity_raises_not_found_without_writes(db, operation):
    service = CustomerService(db)

    with pytest.raises(NotFoundError) as exc_info:
        if operation == "update":
            service.update(404, {"name": "Nobody"}, ServiceContext(user_id=1))
        else:
            service.delete(404, ServiceContext(user_id=1))

    assert exc_info.value.status_code == 404
    assert db.query(Customer).count() == 0
    assert db.query(ActivityLog).count() == 0


class RecordingRepository(CustomerRepository):
    def __init__(self, db, calls):
        super().__init__(db)
        self.calls = calls

    def create(self, data):
        self.calls.append("repo.create")
        return super().create(data)

    def update(self, entity_id, data):
        self.calls.append("repo.update")
        return super().update(entity_id, data)

    def delete(self, entity_id):
        self.calls.append("repo.delete")
        return super().delete(entity_id)

    def bulk_update(self, ids, data):
        self.calls.append("repo.bulk_update")
        return super().bulk_update(ids, data)


class RecordingValidator:
    def __init__(self, calls):
        self.calls = calls

    def validate(self, data, *, is_update=False, entity_id=None):
        self.calls.append("validate")
        return ValidationResult.success()


class RecordingStamper(AuditStamper):
    def __init__(self, calls):
        self.calls = calls

    def stamp(self, data, context, *, is_create):
        self.calls.append("stamp")
        return super().stamp(data, context, is_create=is_create)


class RecordingMapper(ModelMapper):
    def __init__(self, calls):
        super().__init__(CustomerResponse)
        self.calls = calls

    def to_entity(self, data, existing=None):
        self.calls.append("to_entity")
        return super().to_entity(data, existing)

    def to_dto(self, entity):
        self.calls.append("to_dto")
        return super().to_dto(entity)


class RecordingHooks(ServiceHooks):
    def __init__(self, calls):
        self.calls = calls

    def before_create(self, data, context):
        self.calls.append("before_create")
        return data

    def after_create(self, entity, context):
        self.calls.append("after_create")
        return entity

    def before_update(self, entity_id, data, existing, context):
        self.calls.append("before_update")
        return data

    def after_update(self, entity, context):
        self.calls.append("after_update")
        return entity

    def before_delete(self, entity, context):
        self.calls.append("before_delete")

    def after_delete(self, entity_id, snapshot, context):
        self.calls.append("after_delete")


def _recording_service(db, calls: list[str]) -> CrudService:
    return CrudService(
        RecordingRepository(db, calls),
        mapper=RecordingMapper(calls),
        validator=RecordingValidator(calls),
        stamper=RecordingStamper(calls),
        hooks=RecordingHooks(calls),
    )


def test_write_steps_run_in_fixed_order(db):
    calls: list[str] = []
    service = _recording_service(db, calls)
    context = ServiceContext(user_id=1)

    created = service.create({"name": "Ordered"}, context)
    assert calls == ["validate", "stamp", "before_create", "to_entity", "repo.create", "after_create", "to_dto"]

    calls.clear()
    service.update(created.id, {"city": "Essen"}, context)
    assert calls == ["validate", "stamp", "before_update", "to_entity", "repo.update", "after_update", "to_dto"]

    calls.clear()
    service.bulk_update([created.id], {"city": "Bochum"}, context)
    assert calls == ["validate", "stamp", "to_entity", "repo.bulk_update"]

    calls.clear()
    service.delete(created.id, context)
    assert calls == ["before_delete", "to_dto", "repo.delete", "after_delete"]


def test_bulk_update_stamps_and_skips_missing_ids(db, make_customer):
    first = make_customer()
    second = make_customer()

    count = CustomerService(db).bulk_update([first.id, second.id, 999], {"city": "Köln"}, ServiceContext(user_id=5))

    assert count == 2
    for customer_id in (first.id, second.id):
        stored = db.get(Customer, customer_id)
        assert stored.city == "Köln"
        assert stored.updated_by == 5
        assert stored.created_by is None


def test_invalid_bulk_update_changes_nothing(db, make_customer):
    customer = make_customer()

    with pytest.raises(ValidationError):
        CustomerService(db).bulk_update([customer.id], {"status": None}, ServiceContext(user_id=5))

    stored = db.get(Customer, customer.id)
    assert stored.status == CommonStatus.ACTIVE
    assert stored.updated_by is None


def test_service_transaction_commits_together(db):
    service = CustomerService(db)

    names = service.transaction(
        lambda tx: [tx.create({"name": "One"}).name, tx.create({"name": "Two"}).name]
    )

    assert names == ["One", "Two"]
    assert db.query(Customer).count() == 2


def test_service_transaction_rolls_back_on_failure(db):
    service = CustomerService(db)

    def work(tx):
        tx.create({"name": "Kept only if all succeed"}, ServiceContext(user_id=1))
        tx.create({"name": "Broken", "email": "not-an-email"})

    with pytest.raises(ValidationError):
        service.transaction(work)

    assert db.query(Customer).count() == 0
    assert db.query(ActivityLog).count() == 0


# =============================================================================
# Customers
# =============================================================================

def test_create_writes_activity_log(db):
    customer = CustomerService(db).create({"name": "Logged"}, ServiceContext(user_id=5))

    log = db.query(ActivityLog).one()
    assert log.entity_type == "customer"
    assert log.entity_id == customer.id
    assert log.action == LogActionType.CREATE
    assert log.user_id == 5


def test_customer_with_appointments_cannot_be_deleted(db, make_customer):
    customer = make_customer(name="Busy")
    appointments = AppointmentService(db)
    for title in ("Kickoff", "Review"):
        appointments.create({"title": title, "appointment_date": _tomorrow(), "customer_id": customer.id})

    with pytest.raises(BadRequestError) as exc_info:
        CustomerService(db).delete(customer.id)

    assert exc_info.value.status_code == 400
    assert exc_info.value.context["appointments"] == 2
    assert CustomerRepository(db).exists(customer.id)


def test_customer_without_appointments_is_deleted(db, make_customer):
    customer = make_customer()

    assert CustomerService(db).delete(customer.id) is True
    assert not CustomerRepository(db).exists(customer.id)


def test_update_status_with_reason_adds_note(db, make_customer):
    customer = make_customer()

    updated = CustomerService(db).update_status(
        customer.id, CommonStatus.INACTIVE, reason="Moved abroad", context=ServiceContext(user_id=1, user_name="Ada")
    )

    assert updated.status == CommonStatus.INACTIVE
    note = db.query(Note).one()
    assert note.entity_type == "customer"
    assert note.entity_id == customer.id
    assert "Moved abroad" in note.text
    assert note.user_name == "Ada"


def test_notes_for_missing_customer_raise_not_found(db):
    with pytest.raises(NotFoundError):
        CustomerService(db).add_note(321, "hello")


# =============================================================================
# Appointments
# =============================================================================

def test_appointment_requires_title_and_date(db):
    with pytest.raises(ValidationError) as exc_info:
        AppointmentService(db).create({"duration": 30})

    fields = {e["field"] for e in exc_info.value.field_errors}
    assert fields == {"title", "appointment_date"}
    assert db.query(Appointment).count() == 0


def test_appointment_rejects_unknown_customer(db):
    with pytest.raises(ValidationError) as exc_info:
        AppointmentService(db).create({"title": "Ghost", "appointment_date": _tomorrow(), "customer_id": 77})

    assert exc_info.value.field_errors[0]["field"] == "customer_id"


def test_date_range_rejects_inverted_bounds(db):
    now = datetime.now(timezone.utc)
    with pytest.raises(ValidationError):
        AppointmentService(db).find_by_date_range(now, now - timedelta(days=1))


def test_upcoming_skips_past_appointments(db):
    service = AppointmentService(db)
    service.create({"title": "Past", "appointment_date": datetime.now(timezone.utc) - timedelta(days=2)})
    service.create({"title": "Soon", "appointment_date": _tomorrow()})

    assert [a.title for a in service.get_upcoming()] == ["Soon"]


# =============================================================================
# Notifications
# =============================================================================

def test_mark_as_read_is_limited_to_recipient(db, admin_user, employee_user):
    service = NotificationService(db)
    notification = service.create_notification(user_id=admin_user.id, title="Hi", message="Hello")

    with pytest.raises(NotFoundError):
        service.mark_as_read(notification.id, employee_user.id)

    assert service.mark_as_read(notification.id, admin_user.id).is_read is True
    assert service.count_unread(admin_user.id) == 0


def test_create_for_users_and_mark_all(db, admin_user, employee_user):
    service = NotificationService(db)

    assert service.create_for_users([admin_user.id, employee_user.id, admin_user.id], title="T", message="M") == 2
    assert service.count_unread(admin_user.id) == 1
    assert service.mark_all_as_read(admin_user.id) == 1
    assert service.count_unread(admin_user.id) == 0
    assert service.count_unread(employee_user.id) == 1


def test_notify_swallows_failures(db):
    # unknown recipient fails validation; notify only logs it
    assert NotificationService(db).notify([999], title="T", message="M") == 0


# =============================================================================
# Users
# =============================================================================

def test_authenticate_stamps_last_login(db, admin_user):
    user = UserService(db).authenticate("admin@example.com", TEST_PASSWORD)

    assert user.id == admin_user.id
    assert user.last_login_at is not None
    assert db.query(ActivityLog).filter_by(action=LogActionType.LOGIN).count() == 1


@pytest.mark.parametrize("email,password", [("admin@example.com", "wrong-password"), ("nobody@example.com", TEST_PASSWORD)])
def test_authenticate_rejects_bad_credentials(db, admin_user, email, password):
    with pytest.raises(UnauthorizedError):
        UserService(db).authenticate(email, password)


def test_authenticate_rejects_inactive_user(db, make_user):
    make_user(email="sleepy@example.com", status=UserStatus.INACTIVE)

    with pytest.raises(UnauthorizedError) as exc_info:
        UserService(db).authenticate("sleepy@example.com", TEST_PASSWORD)
    assert exc_info.value.message == "User account is not active"


def test_change_password(db, admin_user):
    service = UserService(db)

    with pytest.raises(ValidationError):
        service.change_password(admin_user.id, "wrong-password", "NewSecret123")
    with pytest.raises(ValidationError):
        service.change_password(admin_user.id, TEST_PASSWORD, "short")

    service.change_password(admin_user.id, TEST_PASSWORD, "NewSecret123", ServiceContext(user_id=admin_user.id))
    assert service.authenticate("admin@example.com", "NewSecret123").id == admin_user.id


def test_create_user_hashes_password_and_normalizes(db):
    created = UserService(db).create(
        {"name": "New Hire", "email": "New.Hire@Example.com", "password": "LongEnough1", "role": "Manager"}
    )

    user = UserService(db).get_entity(created.id)
    assert user.email == "new.hire@example.com"
    assert user.role == "manager"
    assert user.hashed_password != "LongEnough1"


def test_user_cannot_delete_own_account(db, admin_user):
    with pytest.raises(BadRequestError):
        UserService(db).delete(admin_user.id, ServiceContext(user_id=admin_user.id))
