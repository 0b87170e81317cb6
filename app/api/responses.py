# app/api/responses.py
"""
Response envelope helpers.

Success: {success: true, data, message, statusCode}
Error:   {success: false, data: null, message, errors, statusCode, errorType}
"""

from typing import Any, Callable, TypeVar

from fastapi.responses import JSONResponse

from app.core.errors import AppError
from app.repositories.base import PaginationResult
from app.schemas.common import ApiResponse, ErrorResponse, PaginatedData, PaginationMeta

T = TypeVar("T")


def success_response(data: T = None, message: str = "Operation successful", status_code: int = 200) -> ApiResponse[T]:
    return ApiResponse(success=True, data=data, message=message, status_code=status_code)


def paginated(result: PaginationResult[T], map_item: Callable[[Any], T] | None = None) -> PaginatedData[T]:
    items = [map_item(item) for item in result.data] if map_item else list(result.data)
    meta = result.pagination
    return PaginatedData(
        data=items,
        pagination=PaginationMeta(
            page=meta.page,
            limit=meta.limit,
            total=meta.total,
            total_pages=meta.total_pages,
        ),
    )


def error_type_for(status_code: int) -> str:
    if status_code in (401, 403):
        return "permission"
    if status_code in (400, 422):
        return "validation"
    return "unknown"


def error_response(
    status_code: int,
    message: str,
    errors: list[str] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = ErrorResponse(
        message=message,
        errors=errors or [],
        status_code=status_code,
        error_type=error_type_for(status_code),
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(by_alias=True),
        headers=headers,
    )


def app_error_response(exc: AppError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return error_response(exc.status_code, exc.message, exc.errors, headers=headers)
