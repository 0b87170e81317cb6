# app/api/errors.py
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.responses import app_error_response, error_response
from app.core.errors import AppError, ParameterError

logger = logging.getLogger(__name__)


def _format_location(loc: tuple) -> str:
    parts = [str(p) for p in loc if p not in ("body", "query", "path")]
    return ".".join(parts) or "request"


async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %r context=%s", request.method, request.url.path, exc, exc.context)
    return app_error_response(exc)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    """
    Path parameter failures (e.g. ``/customers/abc``) are parameter errors (400);
    anything else is a schema validation error (422).
    """
    details = exc.errors()
    messages = [f"{_format_location(tuple(e.get('loc', ())))}: {e.get('msg')}" for e in details]
    path_only = bool(details) and all(tuple(e.get("loc", ()))[:1] == ("path",) for e in details)
    if path_only:
        return app_error_response(ParameterError("Invalid path parameter", errors=messages))
    return error_response(422, "Validation failed", messages)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return error_response(exc.status_code, message, headers=getattr(exc, "headers", None))


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(500, "An unexpected error occurred")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
