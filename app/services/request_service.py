# app/services/request_service.py
"""
Service requests: inbound leads from the contact form.

Besides plain CRUD a request can be assigned to a processor, linked to an
existing customer, and converted into a new customer (optionally with a
first appointment) in a single unit of work.
"""

import logging
from typing import Any

from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.core.errors import BadRequestError, NotFoundError
from app.models.activity_log import EntityType, LogActionType
from app.models.note import Note
from app.models.notification import NotificationType
from app.models.request import RequestStatus, ServiceRequest
from app.models.user import UserRole, UserStatus
from app.repositories.base import unit_of_work
from app.repositories.customer_repository import CustomerRepository
from app.repositories.request_repository import RequestRepository
from app.repositories.user_repository import UserRepository
from app.schemas.appointment import AppointmentResponse
from app.schemas.request import RequestConversionResponse, RequestResponse, RequestStats
from app.services.activity_log_service import ActivityLogHooks
from app.services.appointment_service import AppointmentService
from app.services.base_service import (
    CrudService,
    FieldErrors,
    ModelMapper,
    ServiceContext,
    ValidationResult,
)
from app.services.customer_service import CustomerService
from app.services.note_service import NoteService
from app.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

PUBLIC_FORM_SOURCE = "form"


class RequestValidator:
    def validate(self, data: dict[str, Any], *, is_update: bool = False, entity_id: Any = None) -> ValidationResult:
        errors = FieldErrors()
        if not is_update or "name" in data:
            errors.require(data, "name", "Name")
        if not is_update or "email" in data:
            errors.require(data, "email", "Email")
        if not is_update or "message" in data:
            errors.require(data, "message", "Message")
        errors.email(data)
        errors.max_length(data, "name", 200)
        errors.not_null(data, "status")
        return errors.result()


class RequestMapper(ModelMapper[ServiceRequest, RequestResponse]):
    def to_entity(self, data: dict[str, Any], existing: ServiceRequest | None = None) -> dict[str, Any]:
        values = dict(data)
        if values.get("email"):
            values["email"] = str(values["email"]).strip().lower()
        return values

    def to_dto(self, entity: ServiceRequest) -> RequestResponse:
        dto = super().to_dto(entity)
        dto.processor_name = entity.processor.name if entity.processor else None
        dto.customer_name = entity.customer.name if entity.customer else None
        return dto


class RequestHooks(ActivityLogHooks):
    def __init__(self, db: Session):
        super().__init__(db, EntityType.REQUEST)
        self.users = UserRepository(db)
        self.notifications = NotificationService(db)

    def after_create(self, entity: ServiceRequest, context: ServiceContext | None) -> ServiceRequest:
        entity = super().after_create(entity, context)
        recipients = [
            user.id
            for user in self.users.find_by_criteria(
                {
                    "role": {"in": [UserRole.ADMIN.value, UserRole.MANAGER.value]},
                    "status": UserStatus.ACTIVE,
                }
            )
        ]
        if recipients:
            self.notifications.notify(
                recipients,
                title="New request",
                message=f"New request from {entity.name}",
                type=NotificationType.REQUEST,
                request_id=entity.id,
                link=f"/requests/{entity.id}",
            )
        return entity


class RequestService(CrudService[ServiceRequest, RequestResponse]):
    entity_name = "Request"
    stats_group_field = "status"
    stats_group_values = tuple(s.value for s in RequestStatus)

    def __init__(self, db: Session):
        super().__init__(
            RequestRepository(db),
            mapper=RequestMapper(RequestResponse),
            validator=RequestValidator(),
            hooks=RequestHooks(db),
        )
        self.users = UserRepository(db)
        self.customers = CustomerRepository(db)
        self.notes = NoteService(db)

    def _log(self, request_id: int, action: LogActionType, details: str, context: ServiceContext | None) -> None:
        self.hooks.activity.create_log(
            entity_type=EntityType.REQUEST,
            entity_id=request_id,
            action=action,
            user_id=context.user_id if context else None,
            details=details,
        )

    def create_public(self, data: BaseModel | dict[str, Any], context: ServiceContext | None = None) -> RequestResponse:
        """Intake from the website contact form: no user, source ``form``, submitter IP kept."""
        payload = self._as_dict(data)
        payload["source"] = PUBLIC_FORM_SOURCE
        payload["ip_address"] = context.ip_address if context else None
        request = self.create(payload, context)
        logger.info("Public request %s received from %s", request.id, payload["ip_address"] or "unknown address")
        return request

    # -------------------------
    # Workflow
    # -------------------------
    def update_status(
        self,
        request_id: int,
        status: RequestStatus,
        note: str | None = None,
        context: ServiceContext | None = None,
    ) -> RequestResponse:
        request = self.update(request_id, {"status": status}, context)
        self._log(request_id, LogActionType.CHANGE_STATUS, f"Status changed to {RequestStatus(status).value}", context)
        if note and note.strip():
            self.notes.add_note(EntityType.REQUEST, request_id, note, context)
        return request

    def assign_to(self, request_id: int, processor_id: int, context: ServiceContext | None = None) -> RequestResponse:
        """
        Assign a processor. A request that is still NEW moves to IN_PROGRESS.
        The processor is notified unless they assigned themselves.
        """
        existing = self._get_or_404(request_id)
        processor = self.users.find_by_id(processor_id)
        if processor is None:
            raise NotFoundError(resource="User", resource_id=processor_id)

        changes: dict[str, Any] = {"processor_id": processor_id}
        if existing.status == RequestStatus.NEW:
            changes["status"] = RequestStatus.IN_PROGRESS

        request = self.update(request_id, changes, context)
        self._log(request_id, LogActionType.ASSIGN, f"Assigned to {processor.name}", context)

        if not context or context.user_id != processor_id:
            NotificationService(self.db).notify(
                [processor_id],
                title="Request assigned",
                message=f"The request from {request.name} was assigned to you",
                type=NotificationType.REQUEST,
                request_id=request_id,
                link=f"/requests/{request_id}",
            )
        return request

    def link_to_customer(self, request_id: int, customer_id: int, context: ServiceContext | None = None) -> RequestResponse:
        self._get_or_404(request_id)
        customer = self.customers.find_by_id(customer_id)
        if customer is None:
            raise NotFoundError(resource="Customer", resource_id=customer_id)

        request = self.update(request_id, {"customer_id": customer_id}, context)
        self._log(request_id, LogActionType.LINK, f"Linked to customer {customer.name}", context)
        return request

    def create_appointment_for_request(
        self,
        request_id: int,
        data: BaseModel | dict[str, Any],
        context: ServiceContext | None = None,
    ) -> AppointmentResponse:
        """Create an appointment for the request; the request's customer is the default."""
        existing = self._get_or_404(request_id)
        payload = self._as_dict(data)
        if payload.get("customer_id") is None and existing.customer_id is not None:
            payload["customer_id"] = existing.customer_id

        with unit_of_work(self.db):
            appointment = AppointmentService(self.db).create(payload, context)
            self.update(request_id, {"appointment_id": appointment.id}, context)
        return appointment

    def convert_to_customer(
        self,
        request_id: int,
        customer_data: BaseModel | dict[str, Any] | None = None,
        appointment_data: BaseModel | dict[str, Any] | None = None,
        note: str | None = None,
        context: ServiceContext | None = None,
    ) -> RequestConversionResponse:
        """
        Turn a request into a customer, optionally with an appointment.

        Customer fields default to the request's contact data. Everything is
        written in one unit of work: if any step fails, no customer,
        appointment or request change is kept.
        """
        existing = self._get_or_404(request_id)
        if existing.customer_id is not None:
            raise BadRequestError(
                "This request is already linked to a customer",
                context={"request_id": request_id, "customer_id": existing.customer_id},
            )

        customer_payload = {
            "name": existing.name,
            "email": existing.email,
            "phone": existing.phone,
        }
        if customer_data is not None:
            customer_payload.update({k: v for k, v in self._as_dict(customer_data).items() if v is not None})

        with unit_of_work(self.db):
            customer = CustomerService(self.db).create(customer_payload, context)

            appointment = None
            if appointment_data is not None:
                appointment_payload = self._as_dict(appointment_data)
                appointment_payload["customer_id"] = customer.id
                appointment = AppointmentService(self.db).create(appointment_payload, context)

            changes: dict[str, Any] = {"customer_id": customer.id, "status": RequestStatus.IN_PROGRESS}
            if appointment is not None:
                changes["appointment_id"] = appointment.id
            request = self.update(request_id, changes, context)

            self._log(request_id, LogActionType.CONVERT, f"Converted to customer {customer.name}", context)
            if note and note.strip():
                self.notes.add_note(EntityType.REQUEST, request_id, note, context)

        logger.info("Request %s converted to customer %s", request_id, customer.id)
        return RequestConversionResponse(customer=customer, appointment=appointment, request=request)

    # -------------------------
    # Notes & stats
    # -------------------------
    def add_note(self, request_id: int, text: str, context: ServiceContext | None = None) -> Note:
        self._get_or_404(request_id)
        return self.notes.add_note(EntityType.REQUEST, request_id, text, context)

    def get_notes(self, request_id: int) -> list[Note]:
        self._get_or_404(request_id)
        return self.notes.get_notes(EntityType.REQUEST, request_id)

    def get_stats(self) -> RequestStats:
        counts = self.repository.count_by_group("status")
        by_status = {status.value: counts.get(status.value, 0) for status in RequestStatus}
        return RequestStats(total=sum(by_status.values()), by_status=by_status)
