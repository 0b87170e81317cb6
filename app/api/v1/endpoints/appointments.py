# app/api/v1/endpoints/appointments.py
import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Query, status

from app.api.deps import ListParams, get_appointment_service, get_list_params, get_service_context
from app.api.responses import paginated, success_response
from app.core.errors import NotFoundError
from app.dependencies.authz import require_permission
from app.models.user import User
from app.schemas.appointment import (
    AppointmentCreate,
    AppointmentResponse,
    AppointmentStatusUpdate,
    AppointmentUpdate,
)
from app.schemas.common import ApiResponse, DeleteResult, PaginatedData
from app.schemas.note import NoteCreate, NoteResponse
from app.schemas.stats import PeriodStat
from app.services.appointment_service import AppointmentService
from app.services.base_service import ServiceContext

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=ApiResponse[PaginatedData[AppointmentResponse]])
def list_appointments(
    current_user: User = Depends(require_permission("appointments.view")),
    params: ListParams = Depends(get_list_params),
    service: AppointmentService = Depends(get_appointment_service),
) -> ApiResponse[PaginatedData[AppointmentResponse]]:
    result = service.get_all(
        page=params.page,
        limit=params.limit,
        sort=params.sort,
        criteria=params.criteria,
        relations=["customer"],
    )
    return success_response(paginated(result))


@router.get("/upcoming", response_model=ApiResponse[list[AppointmentResponse]])
def list_upcoming_appointments(
    limit: int = Query(5, ge=1, le=50),
    current_user: User = Depends(require_permission("appointments.view")),
    service: AppointmentService = Depends(get_appointment_service),
) -> ApiResponse[list[AppointmentResponse]]:
    return success_response(service.get_upcoming(limit))


@router.get("/range", response_model=ApiResponse[list[AppointmentResponse]])
def list_appointments_in_range(
    start: datetime = Query(...),
    end: datetime = Query(...),
    current_user: User = Depends(require_permission("appointments.view")),
    service: AppointmentService = Depends(get_appointment_service),
) -> ApiResponse[list[AppointmentResponse]]:
    return success_response(service.find_by_date_range(start, end))


@router.get("/stats/{period}", response_model=ApiResponse[list[PeriodStat]])
def get_appointment_stats(
    period: str,
    periods: int | None = Query(None, ge=1, le=104),
    current_user: User = Depends(require_permission("appointments.view")),
    service: AppointmentService = Depends(get_appointment_service),
) -> ApiResponse[list[PeriodStat]]:
    return success_response(service.get_period_stats(period, periods=periods))


@router.get("/{appointment_id}", response_model=ApiResponse[AppointmentResponse])
def get_appointment(
    appointment_id: int,
    current_user: User = Depends(require_permission("appointments.view")),
    service: AppointmentService = Depends(get_appointment_service),
) -> ApiResponse[AppointmentResponse]:
    appointment = service.get_by_id(appointment_id, relations=["customer"])
    if appointment is None:
        raise NotFoundError(resource="Appointment", resource_id=appointment_id)
    return success_response(appointment)


@router.post("", response_model=ApiResponse[AppointmentResponse], status_code=status.HTTP_201_CREATED)
def create_appointment(
    payload: AppointmentCreate,
    current_user: User = Depends(require_permission("appointments.create")),
    context: ServiceContext = Depends(get_service_context),
    service: AppointmentService = Depends(get_appointment_service),
) -> ApiResponse[AppointmentResponse]:
    appointment = service.create(payload, context)
    return success_response(appointment, "Appointment created successfully", status.HTTP_201_CREATED)


@router.put("/{appointment_id}", response_model=ApiResponse[AppointmentResponse])
def update_appointment(
    appointment_id: int,
    payload: AppointmentUpdate,
    current_user: User = Depends(require_permission("appointments.edit")),
    context: ServiceContext = Depends(get_service_context),
    service: AppointmentService = Depends(get_appointment_service),
) -> ApiResponse[AppointmentResponse]:
    appointment = service.update(appointment_id, payload, context)
    return success_response(appointment, "Appointment updated successfully")


@router.patch("/{appointment_id}/status", response_model=ApiResponse[AppointmentResponse])
def update_appointment_status(
    appointment_id: int,
    payload: AppointmentStatusUpdate,
    current_user: User = Depends(require_permission("appointments.edit")),
    context: ServiceContext = Depends(get_service_context),
    service: AppointmentService = Depends(get_appointment_service),
) -> ApiResponse[AppointmentResponse]:
    appointment = service.update_status(appointment_id, payload.status, payload.note, context)
    return success_response(appointment, "Appointment status updated")


@router.delete("/{appointment_id}", response_model=ApiResponse[DeleteResult])
def delete_appointment(
    appointment_id: int,
    current_user: User = Depends(require_permission("appointments.delete")),
    context: ServiceContext = Depends(get_service_context),
    service: AppointmentService = Depends(get_appointment_service),
) -> ApiResponse[DeleteResult]:
    deleted = service.delete(appointment_id, context)
    return success_response(DeleteResult(id=appointment_id, deleted=deleted), "Appointment deleted successfully")


# -------------------------
# Notes
# -------------------------
@router.get("/{appointment_id}/notes", response_model=ApiResponse[list[NoteResponse]])
def list_appointment_notes(
    appointment_id: int,
    current_user: User = Depends(require_permission("appointments.view")),
    service: AppointmentService = Depends(get_appointment_service),
) -> ApiResponse[list[NoteResponse]]:
    notes = service.get_notes(appointment_id)
    return success_response([NoteResponse.model_validate(n) for n in notes])


@router.post(
    "/{appointment_id}/notes",
    response_model=ApiResponse[NoteResponse],
    status_code=status.HTTP_201_CREATED,
)
def add_appointment_note(
    appointment_id: int,
    payload: NoteCreate,
    current_user: User = Depends(require_permission("appointments.edit")),
    context: ServiceContext = Depends(get_service_context),
    service: AppointmentService = Depends(get_appointment_service),
) -> ApiResponse[NoteResponse]:
    note = service.add_note(appointment_id, payload.text, context)
    return success_response(NoteResponse.model_validate(note), "Note added", status.HTTP_201_CREATED)
