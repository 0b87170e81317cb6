# app/core/errors.py
"""
Application error taxonomy.

Every anticipated failure is raised as an AppError subclass carrying an HTTP
status code, a machine-readable code and a structured context. Route-level
exception handlers turn these into the JSON error envelope.
"""

from typing import Any

from fastapi import status


class AppError(Exception):
    """Base application error (500, ``app_error``)."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "app_error"
    default_message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: str | None = None,
        *,
        context: dict[str, Any] | None = None,
        errors: list[str] | None = None,
        status_code: int | None = None,
        code: str | None = None,
    ):
        self.message = message or self.default_message
        self.context = context or {}
        self.errors = errors or []
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "code": self.code,
            "statusCode": self.status_code,
            "errors": self.errors,
            "context": self.context,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, status_code={self.status_code})"


class ValidationError(AppError):
    """Raised when a ValidationResult comes back with result=ERROR."""

    status_code = 422
    code = "validation_error"
    default_message = "Validation failed"

    def __init__(
        self,
        message: str | None = None,
        *,
        field_errors: list[dict[str, str]] | None = None,
        context: dict[str, Any] | None = None,
    ):
        self.field_errors = field_errors or []
        errors = [f"{e.get('field')}: {e.get('message')}" for e in self.field_errors]
        ctx = dict(context or {})
        if self.field_errors:
            ctx.setdefault("fields", self.field_errors)
        super().__init__(message, context=ctx, errors=errors)


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    default_message = "Resource not found"

    def __init__(
        self,
        message: str | None = None,
        *,
        resource: str | None = None,
        resource_id: Any = None,
        context: dict[str, Any] | None = None,
    ):
        ctx = dict(context or {})
        if resource:
            ctx["resource"] = resource
        if resource_id is not None:
            ctx["id"] = resource_id
        if message is None and resource:
            message = f"{resource} with ID {resource_id} not found" if resource_id is not None else f"{resource} not found"
        super().__init__(message, context=ctx)


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"
    default_message = "You do not have permission to perform this action"


class UnauthorizedError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "unauthorized"
    default_message = "Authentication required"


class DatabaseError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "database_error"
    default_message = "A database error occurred"


class ParameterError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "parameter_error"
    default_message = "Invalid parameter"


class ConfigurationError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "configuration_error"
    default_message = "Server configuration error"


class BadRequestError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "bad_request"
    default_message = "Bad request"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    code = "conflict"
    default_message = "Resource conflict"


def to_app_error(exc: BaseException, message: str | None = None) -> AppError:
    """
    Coerce any exception into an AppError.

    Already-typed errors are returned unchanged; everything else becomes a
    generic 500 whose context records the original exception type.
    """
    if isinstance(exc, AppError):
        return exc
    return AppError(
        message or "An unexpected error occurred",
        context={"cause": type(exc).__name__},
    )
