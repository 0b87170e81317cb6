# app/schemas/common.py
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """
    Base for every wire schema: camelCase on the wire, snake_case in Python.
    Input accepts either spelling.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ApiResponse(CamelModel, Generic[T]):
    success: bool = True
    data: T | None = None
    message: str = "Operation successful"
    status_code: int = 200


class ErrorResponse(CamelModel):
    success: bool = False
    data: None = None
    message: str
    errors: list[str] = []
    status_code: int
    error_type: str = "unknown"


class PaginationMeta(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int


class PaginatedData(CamelModel, Generic[T]):
    data: list[T]
    pagination: PaginationMeta


class CountResponse(CamelModel):
    count: int


class DeleteResult(CamelModel):
    id: int
    deleted: bool = True


class BulkUpdateResult(CamelModel):
    updated: int
