# app/services/appointment_service.py
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from app.core.errors import NotFoundError, ValidationError
from app.models.activity_log import EntityType, LogActionType
from app.models.appointment import Appointment, AppointmentStatus
from app.models.base import utcnow
from app.models.note import Note
from app.repositories.appointment_repository import AppointmentRepository
from app.repositories.customer_repository import CustomerRepository
from app.schemas.appointment import AppointmentResponse
from app.services.activity_log_service import ActivityLogHooks
from app.services.base_service import (
    CrudService,
    FieldErrors,
    ModelMapper,
    ServiceContext,
    ValidationResult,
)
from app.services.note_service import NoteService


class AppointmentValidator:
    def __init__(self, customers: CustomerRepository):
        self.customers = customers

    def validate(self, data: dict[str, Any], *, is_update: bool = False, entity_id: Any = None) -> ValidationResult:
        errors = FieldErrors()
        if not is_update or "title" in data:
            errors.require(data, "title", "Title")
        if not is_update or "appointment_date" in data:
            if errors.require(data, "appointment_date", "Appointment date") and not isinstance(
                data["appointment_date"], datetime
            ):
                errors.add("appointment_date", "Appointment date must be a datetime", "type")
        errors.max_length(data, "title", 200)
        errors.not_null(data, "duration", "status")

        duration = data.get("duration")
        if duration is not None and (not isinstance(duration, int) or duration <= 0):
            errors.add("duration", "Duration must be a positive number of minutes", "range")

        customer_id = data.get("customer_id")
        if customer_id is not None and not self.customers.exists(customer_id):
            errors.add("customer_id", f"Customer {customer_id} does not exist", "reference")
        return errors.result()


class AppointmentMapper(ModelMapper[Appointment, AppointmentResponse]):
    def to_dto(self, entity: Appointment) -> AppointmentResponse:
        dto = super().to_dto(entity)
        dto.customer_name = entity.customer.name if entity.customer else None
        return dto


class AppointmentService(CrudService[Appointment, AppointmentResponse]):
    entity_name = "Appointment"
    stats_date_field = "appointment_date"
    stats_group_field = "status"
    stats_group_values = tuple(s.value for s in AppointmentStatus)

    def __init__(self, db: Session):
        self.customers = CustomerRepository(db)
        super().__init__(
            AppointmentRepository(db),
            mapper=AppointmentMapper(AppointmentResponse),
            validator=AppointmentValidator(self.customers),
            hooks=ActivityLogHooks(db, EntityType.APPOINTMENT, label="title"),
        )
        self.notes = NoteService(db)

    def update_status(
        self,
        appointment_id: int,
        status: AppointmentStatus,
        note: str | None = None,
        context: ServiceContext | None = None,
    ) -> AppointmentResponse:
        appointment = self.update(appointment_id, {"status": status}, context)
        self.hooks.activity.create_log(
            entity_type=EntityType.APPOINTMENT,
            entity_id=appointment_id,
            action=LogActionType.CHANGE_STATUS,
            user_id=context.user_id if context else None,
            details=f"Status changed to {AppointmentStatus(status).value}",
        )
        if note and note.strip():
            self.notes.add_note(EntityType.APPOINTMENT, appointment_id, note, context)
        return appointment

    def find_by_customer(self, customer_id: int) -> list[AppointmentResponse]:
        if not self.customers.exists(customer_id):
            raise NotFoundError(resource="Customer", resource_id=customer_id)
        return [self.mapper.to_dto(a) for a in self.repository.find_by_customer(customer_id)]

    def find_by_date_range(self, start: datetime, end: datetime) -> list[AppointmentResponse]:
        if start > end:
            raise ValidationError(
                "Invalid date range",
                field_errors=[{"field": "start", "message": "start must not be after end", "type": "range"}],
            )
        return [self.mapper.to_dto(a) for a in self.repository.find_by_date_range(start, end)]

    def get_upcoming(self, limit: int = 5) -> list[AppointmentResponse]:
        return [self.mapper.to_dto(a) for a in self.repository.find_upcoming(utcnow(), limit=limit)]

    def add_note(self, appointment_id: int, text: str, context: ServiceContext | None = None) -> Note:
        self._get_or_404(appointment_id)
        return self.notes.add_note(EntityType.APPOINTMENT, appointment_id, text, context)

    def get_notes(self, appointment_id: int) -> list[Note]:
        self._get_or_404(appointment_id)
        return self.notes.get_notes(EntityType.APPOINTMENT, appointment_id)
