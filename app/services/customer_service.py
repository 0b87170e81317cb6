# app/services/customer_service.py
from typing import Any

from sqlalchemy.orm import Session

from app.core.errors import BadRequestError
from app.models.activity_log import EntityType
from app.models.customer import CommonStatus, Customer
from app.models.note import Note
from app.repositories.appointment_repository import AppointmentRepository
from app.repositories.customer_repository import CustomerRepository
from app.schemas.customer import CustomerResponse
from app.services.activity_log_service import ActivityLogHooks
from app.services.base_service import (
    CrudService,
    FieldErrors,
    ModelMapper,
    ServiceContext,
    ValidationResult,
)
from app.services.note_service import NoteService


class CustomerValidator:
    def __init__(self, repository: CustomerRepository):
        self.repository = repository

    def validate(self, data: dict[str, Any], *, is_update: bool = False, entity_id: Any = None) -> ValidationResult:
        errors = FieldErrors()
        if not is_update or "name" in data:
            errors.require(data, "name", "Name")
        errors.max_length(data, "name", 200)
        errors.email(data)
        errors.not_null(data, "status", "type", "newsletter")

        email = data.get("email")
        if email:
            existing = self.repository.find_by_email(str(email).strip().lower())
            if existing is not None and existing.id != entity_id:
                errors.add("email", "A customer with this email already exists", "unique")
        return errors.result()


class CustomerMapper(ModelMapper[Customer, CustomerResponse]):
    def to_entity(self, data: dict[str, Any], existing: Customer | None = None) -> dict[str, Any]:
        values = dict(data)
        if values.get("email"):
            values["email"] = str(values["email"]).strip().lower()
        # country is NOT NULL with a database default
        if "country" in values and not values["country"]:
            values.pop("country")
        return values


class CustomerHooks(ActivityLogHooks):
    def __init__(self, db: Session):
        super().__init__(db, EntityType.CUSTOMER)
        self.appointments = AppointmentRepository(db)

    def before_delete(self, entity: Customer, context: ServiceContext | None) -> None:
        appointment_count = self.appointments.count({"customer_id": entity.id})
        if appointment_count:
            raise BadRequestError(
                "This customer has appointments and cannot be deleted. "
                "Please delete or reassign the appointments first.",
                context={"customer_id": entity.id, "appointments": appointment_count},
            )


class CustomerService(CrudService[Customer, CustomerResponse]):
    entity_name = "Customer"
    stats_group_field = "status"
    stats_group_values = tuple(s.value for s in CommonStatus)

    def __init__(self, db: Session):
        repository = CustomerRepository(db)
        super().__init__(
            repository,
            mapper=CustomerMapper(CustomerResponse),
            validator=CustomerValidator(repository),
            hooks=CustomerHooks(db),
        )
        self.notes = NoteService(db)

    def find_by_email(self, email: str) -> CustomerResponse | None:
        customer = self.repository.find_by_email(email.strip().lower())
        return self.mapper.to_dto(customer) if customer else None

    def update_status(
        self,
        customer_id: int,
        status: CommonStatus,
        reason: str | None = None,
        context: ServiceContext | None = None,
    ) -> CustomerResponse:
        """Change the status; a non-empty reason is kept as a note."""
        customer = self.update(customer_id, {"status": status}, context)
        if reason and reason.strip():
            self.notes.add_note(
                EntityType.CUSTOMER,
                customer_id,
                f"Status changed to {CommonStatus(status).value}: {reason.strip()}",
                context,
            )
        return customer

    def soft_delete(self, customer_id: int, context: ServiceContext | None = None) -> CustomerResponse:
        return self.update_status(customer_id, CommonStatus.DELETED, context=context)

    def add_note(self, customer_id: int, text: str, context: ServiceContext | None = None) -> Note:
        self._get_or_404(customer_id)
        return self.notes.add_note(EntityType.CUSTOMER, customer_id, text, context)

    def get_notes(self, customer_id: int) -> list[Note]:
        self._get_or_404(customer_id)
        return self.notes.get_notes(EntityType.CUSTOMER, customer_id)
