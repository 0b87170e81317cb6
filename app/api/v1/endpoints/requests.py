# app/api/v1/endpoints/requests.py
import logging

from fastapi import APIRouter, Depends, Query, status

from app.api.deps import (
    ListParams,
    get_anonymous_context,
    get_list_params,
    get_request_service,
    get_service_context,
)
from app.api.responses import paginated, success_response
from app.core.errors import NotFoundError
from app.dependencies.authz import require_permission
from app.models.user import User
from app.schemas.appointment import AppointmentCreate, AppointmentResponse
from app.schemas.common import ApiResponse, DeleteResult, PaginatedData
from app.schemas.note import NoteCreate, NoteResponse
from app.schemas.request import (
    PublicRequestCreate,
    PublicRequestReceipt,
    RequestAssign,
    RequestConversionResponse,
    RequestConvert,
    RequestCreate,
    RequestLinkCustomer,
    RequestResponse,
    RequestStats,
    RequestStatusUpdate,
    RequestUpdate,
)
from app.schemas.stats import PeriodStat
from app.services.base_service import ServiceContext
from app.services.request_service import RequestService

router = APIRouter()
logger = logging.getLogger(__name__)

_RELATIONS = ["processor", "customer"]


@router.get("", response_model=ApiResponse[PaginatedData[RequestResponse]])
def list_requests(
    current_user: User = Depends(require_permission("requests.view")),
    params: ListParams = Depends(get_list_params),
    service: RequestService = Depends(get_request_service),
) -> ApiResponse[PaginatedData[RequestResponse]]:
    result = service.get_all(
        page=params.page,
        limit=params.limit,
        sort=params.sort,
        criteria=params.criteria,
        relations=_RELATIONS,
    )
    return success_response(paginated(result))


@router.get("/stats", response_model=ApiResponse[RequestStats])
def get_request_stats(
    current_user: User = Depends(require_permission("requests.view")),
    service: RequestService = Depends(get_request_service),
) -> ApiResponse[RequestStats]:
    return success_response(service.get_stats())


@router.get("/stats/{period}", response_model=ApiResponse[list[PeriodStat]])
def get_request_period_stats(
    period: str,
    periods: int | None = Query(None, ge=1, le=104),
    current_user: User = Depends(require_permission("requests.view")),
    service: RequestService = Depends(get_request_service),
) -> ApiResponse[list[PeriodStat]]:
    return success_response(service.get_period_stats(period, periods=periods))


@router.get("/{request_id}", response_model=ApiResponse[RequestResponse])
def get_request(
    request_id: int,
    current_user: User = Depends(require_permission("requests.view")),
    service: RequestService = Depends(get_request_service),
) -> ApiResponse[RequestResponse]:
    request = service.get_by_id(request_id, relations=_RELATIONS)
    if request is None:
        raise NotFoundError(resource="Request", resource_id=request_id)
    return success_response(request)


@router.post("/public", response_model=ApiResponse[PublicRequestReceipt], status_code=status.HTTP_201_CREATED)
def submit_public_request(
    payload: PublicRequestCreate,
    context: ServiceContext = Depends(get_anonymous_context),
    service: RequestService = Depends(get_request_service),
) -> ApiResponse[PublicRequestReceipt]:
    """Website contact form. No authentication."""
    request = service.create_public(payload, context)
    return success_response(
        PublicRequestReceipt(id=request.id, created_at=request.created_at),
        "Thank you for your request! We will contact you shortly.",
        status.HTTP_201_CREATED,
    )


@router.post("", response_model=ApiResponse[RequestResponse], status_code=status.HTTP_201_CREATED)
def create_request(
    payload: RequestCreate,
    current_user: User = Depends(require_permission("requests.create")),
    context: ServiceContext = Depends(get_service_context),
    service: RequestService = Depends(get_request_service),
) -> ApiResponse[RequestResponse]:
    data = payload.model_dump(exclude_unset=True)
    data["ip_address"] = context.ip_address
    request = service.create(data, context)
    return success_response(request, "Request created successfully", status.HTTP_201_CREATED)


@router.put("/{request_id}", response_model=ApiResponse[RequestResponse])
def update_request(
    request_id: int,
    payload: RequestUpdate,
    current_user: User = Depends(require_permission("requests.edit")),
    context: ServiceContext = Depends(get_service_context),
    service: RequestService = Depends(get_request_service),
) -> ApiResponse[RequestResponse]:
    request = service.update(request_id, payload, context)
    return success_response(request, "Request updated successfully")


@router.delete("/{request_id}", response_model=ApiResponse[DeleteResult])
def delete_request(
    request_id: int,
    current_user: User = Depends(require_permission("requests.delete")),
    context: ServiceContext = Depends(get_service_context),
    service: RequestService = Depends(get_request_service),
) -> ApiResponse[DeleteResult]:
    deleted = service.delete(request_id, context)
    return success_response(DeleteResult(id=request_id, deleted=deleted), "Request deleted successfully")


# -------------------------
# Workflow
# -------------------------
@router.patch("/{request_id}/status", response_model=ApiResponse[RequestResponse])
def update_request_status(
    request_id: int,
    payload: RequestStatusUpdate,
    current_user: User = Depends(require_permission("requests.edit")),
    context: ServiceContext = Depends(get_service_context),
    service: RequestService = Depends(get_request_service),
) -> ApiResponse[RequestResponse]:
    request = service.update_status(request_id, payload.status, payload.note, context)
    return success_response(request, "Request status updated")


@router.post("/{request_id}/assign", response_model=ApiResponse[RequestResponse])
def assign_request(
    request_id: int,
    payload: RequestAssign,
    current_user: User = Depends(require_permission("requests.assign")),
    context: ServiceContext = Depends(get_service_context),
    service: RequestService = Depends(get_request_service),
) -> ApiResponse[RequestResponse]:
    request = service.assign_to(request_id, payload.processor_id, context)
    return success_response(request, "Request assigned")


@router.post("/{request_id}/link-customer", response_model=ApiResponse[RequestResponse])
def link_request_to_customer(
    request_id: int,
    payload: RequestLinkCustomer,
    current_user: User = Depends(require_permission("requests.edit")),
    context: ServiceContext = Depends(get_service_context),
    service: RequestService = Depends(get_request_service),
) -> ApiResponse[RequestResponse]:
    request = service.link_to_customer(request_id, payload.customer_id, context)
    return success_response(request, "Request linked to customer")


@router.post(
    "/{request_id}/appointment",
    response_model=ApiResponse[AppointmentResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_request_appointment(
    request_id: int,
    payload: AppointmentCreate,
    current_user: User = Depends(require_permission("appointments.create")),
    context: ServiceContext = Depends(get_service_context),
    service: RequestService = Depends(get_request_service),
) -> ApiResponse[AppointmentResponse]:
    appointment = service.create_appointment_for_request(request_id, payload, context)
    return success_response(appointment, "Appointment created for request", status.HTTP_201_CREATED)


@router.post(
    "/{request_id}/convert",
    response_model=ApiResponse[RequestConversionResponse],
    status_code=status.HTTP_201_CREATED,
)
def convert_request(
    request_id: int,
    payload: RequestConvert,
    current_user: User = Depends(require_permission("requests.convert")),
    context: ServiceContext = Depends(get_service_context),
    service: RequestService = Depends(get_request_service),
) -> ApiResponse[RequestConversionResponse]:
    result = service.convert_to_customer(
        request_id,
        customer_data=payload.customer,
        appointment_data=payload.appointment,
        note=payload.note,
        context=context,
    )
    return success_response(result, "Request converted to customer", status.HTTP_201_CREATED)


# -------------------------
# Notes
# -------------------------
@router.get("/{request_id}/notes", response_model=ApiResponse[list[NoteResponse]])
def list_request_notes(
    request_id: int,
    current_user: User = Depends(require_permission("requests.view")),
    service: RequestService = Depends(get_request_service),
) -> ApiResponse[list[NoteResponse]]:
    notes = service.get_notes(request_id)
    return success_response([NoteResponse.model_validate(n) for n in notes])


@router.post(
    "/{request_id}/notes",
    response_model=ApiResponse[NoteResponse],
    status_code=status.HTTP_201_CREATED,
)
def add_request_note(
    request_id: int,
    payload: NoteCreate,
    current_user: User = Depends(require_permission("requests.edit")),
    context: ServiceContext = Depends(get_service_context),
    service: RequestService = Depends(get_request_service),
) -> ApiResponse[NoteResponse]:
    note = service.add_note(request_id, payload.text, context)
    return success_response(NoteResponse.model_validate(note), "Note added", status.HTTP_201_CREATED)
