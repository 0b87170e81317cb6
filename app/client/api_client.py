# app/client/api_client.py
"""
HTTP client for the BizService API.

All state (base URL, headers, token) lives on the ApiClient instance. Every
call returns a normalized ApiResponse instead of raising, so callers can
branch on ``success`` / ``error_type``.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

import httpx

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


@dataclass
class ApiResponse:
    success: bool
    data: Any = None
    message: str = ""
    errors: list[str] = field(default_factory=list)
    status_code: int = 200
    error_type: str | None = None


def error_type_for(status_code: int) -> str:
    if status_code in (401, 403):
        return "permission"
    if status_code in (400, 422):
        return "validation"
    return "unknown"


class ApiClient:
    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.headers: dict[str, str] = {"Accept": "application/json", **(headers or {})}
        self.token = token
        self._client = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)

    # -------------------------
    # Configuration
    # -------------------------
    def set_token(self, token: str | None) -> None:
        self.token = token

    def clear_token(self) -> None:
        self.token = None

    def set_header(self, name: str, value: str | None) -> None:
        if value is None:
            self.headers.pop(name, None)
        else:
            self.headers[name] = value

    # -------------------------
    # Verbs
    # -------------------------
    def get(self, path: str, params: Mapping[str, Any] | None = None) -> ApiResponse:
        return self.request("GET", path, params=params)

    def post(self, path: str, json: Any = None, params: Mapping[str, Any] | None = None) -> ApiResponse:
        return self.request("POST", path, json=json, params=params)

    def put(self, path: str, json: Any = None, params: Mapping[str, Any] | None = None) -> ApiResponse:
        return self.request("PUT", path, json=json, params=params)

    def patch(self, path: str, json: Any = None, params: Mapping[str, Any] | None = None) -> ApiResponse:
        return self.request("PATCH", path, json=json, params=params)

    def delete(self, path: str, params: Mapping[str, Any] | None = None) -> ApiResponse:
        return self.request("DELETE", path, params=params)

    def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Mapping[str, Any] | None = None,
    ) -> ApiResponse:
        try:
            response = self._client.request(
                method,
                path,
                json=json,
                params=params,
                headers=self._request_headers(),
            )
        except httpx.TimeoutException as exc:
            logger.warning("%s %s timed out: %s", method, path, exc)
            return ApiResponse(
                success=False,
                message="Request timed out",
                errors=[str(exc)],
                status_code=408,
                error_type="network",
            )
        except httpx.TransportError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            return ApiResponse(
                success=False,
                message="Network error",
                errors=[str(exc)],
                status_code=0,
                error_type="network",
            )
        return self._normalize(response)

    # -------------------------
    # Lifecycle
    # -------------------------
    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "ApiClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # -------------------------
    # Helpers
    # -------------------------
    def _request_headers(self) -> dict[str, str]:
        headers = dict(self.headers)
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    @staticmethod
    def _normalize(response: httpx.Response) -> ApiResponse:
        status_code = response.status_code
        ok = 200 <= status_code < 300
        try:
            body = response.json() if response.content else None
        except ValueError:
            body = None

        if isinstance(body, dict) and "success" in body:
            success = bool(body.get("success"))
            return ApiResponse(
                success=success,
                data=body.get("data"),
                message=body.get("message") or "",
                errors=list(body.get("errors") or []),
                status_code=body.get("statusCode") or status_code,
                error_type=None if success else body.get("errorType") or error_type_for(status_code),
            )

        if ok:
            return ApiResponse(success=True, data=body, message="", status_code=status_code)

        message = response.reason_phrase or "Request failed"
        if isinstance(body, dict) and isinstance(body.get("detail"), str):
            message = body["detail"]
        return ApiResponse(
            success=False,
            data=None,
            message=message,
            errors=[message],
            status_code=status_code,
            error_type=error_type_for(status_code),
        )
