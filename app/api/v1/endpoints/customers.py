# app/api/v1/endpoints/customers.py
import logging

from fastapi import APIRouter, Depends, Query, status

from app.api.deps import (
    ListParams,
    get_appointment_service,
    get_customer_service,
    get_list_params,
    get_service_context,
)
from app.api.responses import paginated, success_response
from app.core.errors import NotFoundError
from app.dependencies.authz import require_permission
from app.models.user import User
from app.schemas.appointment import AppointmentResponse
from app.schemas.common import ApiResponse, DeleteResult, PaginatedData
from app.schemas.customer import CustomerCreate, CustomerResponse, CustomerStatusUpdate, CustomerUpdate
from app.schemas.note import NoteCreate, NoteResponse
from app.schemas.stats import PeriodStat
from app.services.appointment_service import AppointmentService
from app.services.base_service import ServiceContext
from app.services.customer_service import CustomerService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=ApiResponse[PaginatedData[CustomerResponse]])
def list_customers(
    current_user: User = Depends(require_permission("customers.view")),
    params: ListParams = Depends(get_list_params),
    service: CustomerService = Depends(get_customer_service),
) -> ApiResponse[PaginatedData[CustomerResponse]]:
    result = service.get_all(page=params.page, limit=params.limit, sort=params.sort, criteria=params.criteria)
    return success_response(paginated(result))


@router.get("/stats/{period}", response_model=ApiResponse[list[PeriodStat]])
def get_customer_stats(
    period: str,
    periods: int | None = Query(None, ge=1, le=104),
    current_user: User = Depends(require_permission("customers.view")),
    service: CustomerService = Depends(get_customer_service),
) -> ApiResponse[list[PeriodStat]]:
    return success_response(service.get_period_stats(period, periods=periods))


@router.get("/{customer_id}", response_model=ApiResponse[CustomerResponse])
def get_customer(
    customer_id: int,
    current_user: User = Depends(require_permission("customers.view")),
    service: CustomerService = Depends(get_customer_service),
) -> ApiResponse[CustomerResponse]:
    customer = service.get_by_id(customer_id)
    if customer is None:
        raise NotFoundError(resource="Customer", resource_id=customer_id)
    return success_response(customer)


@router.post("", response_model=ApiResponse[CustomerResponse], status_code=status.HTTP_201_CREATED)
def create_customer(
    payload: CustomerCreate,
    current_user: User = Depends(require_permission("customers.create")),
    context: ServiceContext = Depends(get_service_context),
    service: CustomerService = Depends(get_customer_service),
) -> ApiResponse[CustomerResponse]:
    customer = service.create(payload, context)
    return success_response(customer, "Customer created successfully", status.HTTP_201_CREATED)


@router.put("/{customer_id}", response_model=ApiResponse[CustomerResponse])
def update_customer(
    customer_id: int,
    payload: CustomerUpdate,
    current_user: User = Depends(require_permission("customers.edit")),
    context: ServiceContext = Depends(get_service_context),
    service: CustomerService = Depends(get_customer_service),
) -> ApiResponse[CustomerResponse]:
    customer = service.update(customer_id, payload, context)
    return success_response(customer, "Customer updated successfully")


@router.patch("/{customer_id}/status", response_model=ApiResponse[CustomerResponse])
def update_customer_status(
    customer_id: int,
    payload: CustomerStatusUpdate,
    current_user: User = Depends(require_permission("customers.edit")),
    context: ServiceContext = Depends(get_service_context),
    service: CustomerService = Depends(get_customer_service),
) -> ApiResponse[CustomerResponse]:
    customer = service.update_status(customer_id, payload.status, payload.reason, context)
    return success_response(customer, "Customer status updated")


@router.delete("/{customer_id}", response_model=ApiResponse[DeleteResult])
def delete_customer(
    customer_id: int,
    current_user: User = Depends(require_permission("customers.delete")),
    context: ServiceContext = Depends(get_service_context),
    service: CustomerService = Depends(get_customer_service),
) -> ApiResponse[DeleteResult]:
    deleted = service.delete(customer_id, context)
    return success_response(DeleteResult(id=customer_id, deleted=deleted), "Customer deleted successfully")


# -------------------------
# Related records
# -------------------------
@router.get("/{customer_id}/appointments", response_model=ApiResponse[list[AppointmentResponse]])
def list_customer_appointments(
    customer_id: int,
    current_user: User = Depends(require_permission("appointments.view")),
    service: AppointmentService = Depends(get_appointment_service),
) -> ApiResponse[list[AppointmentResponse]]:
    return success_response(service.find_by_customer(customer_id))


@router.get("/{customer_id}/notes", response_model=ApiResponse[list[NoteResponse]])
def list_customer_notes(
    customer_id: int,
    current_user: User = Depends(require_permission("customers.view")),
    service: CustomerService = Depends(get_customer_service),
) -> ApiResponse[list[NoteResponse]]:
    notes = service.get_notes(customer_id)
    return success_response([NoteResponse.model_validate(n) for n in notes])


@router.post(
    "/{customer_id}/notes",
    response_model=ApiResponse[NoteResponse],
    status_code=status.HTTP_201_CREATED,
)
def add_customer_note(
    customer_id: int,
    payload: NoteCreate,
    current_user: User = Depends(require_permission("customers.edit")),
    context: ServiceContext = Depends(get_service_context),
    service: CustomerService = Depends(get_customer_service),
) -> ApiResponse[NoteResponse]:
    note = service.add_note(customer_id, payload.text, context)
    return success_response(NoteResponse.model_validate(note), "Note added", status.HTTP_201_CREATED)
