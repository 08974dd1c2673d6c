"""Error responses for the Inkwell API.

Every failure leaves the API in one JSON shape (``ErrorResponse``) carrying a
stable ``error`` code and the request id. GitHub failures that escape a route
are translated from their ``ErrorKind`` here, and only their user-facing
message is returned; the detailed message stays in the logs.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

import logfire
from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from inkwell.github.errors import ErrorKind, GitHubError


class ErrorCode(StrEnum):
    """Machine-readable error codes."""

    # 400 / 422
    INVALID_REQUEST = "INVALID_REQUEST"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    PUBLISH_DIRECTORY_MISSING = "PUBLISH_DIRECTORY_MISSING"

    # 401 / 403
    AUTHENTICATION_REQUIRED = "AUTHENTICATION_REQUIRED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    GITHUB_AUTH_FAILED = "GITHUB_AUTH_FAILED"

    # 404
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    SETTINGS_NOT_FOUND = "SETTINGS_NOT_FOUND"
    REPOSITORY_NOT_FOUND = "REPOSITORY_NOT_FOUND"

    # 409
    GITHUB_NOT_CONNECTED = "GITHUB_NOT_CONNECTED"

    # 429
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"

    # 5xx
    INTERNAL_ERROR = "INTERNAL_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"


class FieldError(BaseModel):
    """A single invalid request field."""

    field: str = Field(..., description="Dotted location of the field")
    message: str = Field(..., description="Human-readable error message")
    code: str = Field("invalid", description="Pydantic error type")


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: str = Field(..., description="Error code for programmatic handling")
    message: str = Field(..., description="Human-readable error description")
    request_id: str = Field(..., description="Unique request ID for support reference")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="When the error occurred"
    )
    details: dict[str, Any] | None = Field(None, description="Additional error details")
    errors: list[FieldError] | None = Field(None, description="Field errors for validation failures")
    suggestion: str | None = Field(None, description="Suggested action to resolve the error")


@dataclass
class APIError(Exception):
    """An error a route raises to produce a formatted response."""

    code: ErrorCode
    message: str
    status_code: int = 400
    details: dict[str, Any] | None = None
    errors: list[FieldError] = field(default_factory=list)
    suggestion: str | None = None

    def to_response(self, request_id: str) -> ErrorResponse:
        return ErrorResponse(
            error=self.code.value,
            message=self.message,
            request_id=request_id,
            details=self.details,
            errors=self.errors or None,
            suggestion=self.suggestion,
        )


class SettingsNotFoundError(APIError):
    """The user has never saved GitHub settings."""

    def __init__(self, user_id: str) -> None:
        super().__init__(
            code=ErrorCode.SETTINGS_NOT_FOUND,
            message=f"GitHub settings for user '{user_id}' not found",
            status_code=404,
            suggestion="Save a repository on the settings page first",
        )


# ErrorKind -> (HTTP status, error code, suggestion)
_GITHUB_ERROR_MAP: dict[ErrorKind, tuple[int, ErrorCode, str | None]] = {
    ErrorKind.CONFIGURATION: (500, ErrorCode.CONFIGURATION_ERROR, None),
    ErrorKind.AUTH: (401, ErrorCode.GITHUB_AUTH_FAILED, "Reconnect the GitHub App"),
    ErrorKind.NOT_FOUND: (404, ErrorCode.REPOSITORY_NOT_FOUND, "Check your repository settings"),
    ErrorKind.VALIDATION: (422, ErrorCode.VALIDATION_ERROR, "Try again"),
    ErrorKind.DIRECTORY_MISSING: (422, ErrorCode.PUBLISH_DIRECTORY_MISSING, None),
    ErrorKind.NOT_CONNECTED: (409, ErrorCode.GITHUB_NOT_CONNECTED, "Connect the GitHub App"),
    ErrorKind.API: (502, ErrorCode.EXTERNAL_SERVICE_ERROR, None),
}

_HTTP_STATUS_CODES: dict[int, ErrorCode] = {
    400: ErrorCode.INVALID_REQUEST,
    401: ErrorCode.AUTHENTICATION_REQUIRED,
    403: ErrorCode.PERMISSION_DENIED,
    404: ErrorCode.RESOURCE_NOT_FOUND,
    422: ErrorCode.VALIDATION_ERROR,
    429: ErrorCode.RATE_LIMIT_EXCEEDED,
}


def github_error_to_api_error(exc: GitHubError) -> APIError:
    """Map a GitHub integration failure onto an API error."""
    status_code, code, suggestion = _GITHUB_ERROR_MAP.get(
        exc.kind, (502, ErrorCode.EXTERNAL_SERVICE_ERROR, None)
    )
    details: dict[str, Any] = {"kind": exc.kind.value}
    if exc.status is not None:
        details["github_status"] = exc.status
    return APIError(
        code=code,
        message=exc.user_message(),
        status_code=status_code,
        details=details,
        suggestion=suggestion,
    )


def generate_request_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


def get_request_id(request: Request) -> str:
    """Request id set by the middleware, or a fresh one outside it."""
    return getattr(request.state, "request_id", None) or generate_request_id()


def error_json(status_code: int, response: ErrorResponse, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=response.model_dump(mode="json", exclude_none=True),
        headers={"X-Request-ID": response.request_id, **(headers or {})},
    )


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Handle APIError exceptions."""
    return error_json(exc.status_code, exc.to_response(get_request_id(request)))


async def github_error_handler(request: Request, exc: GitHubError) -> JSONResponse:
    """Handle GitHub integration errors that escaped a route."""
    logfire.warn(
        "GitHub error in request",
        path=request.url.path,
        kind=exc.kind.value,
        status=exc.status,
        error=exc.message,
    )
    return await api_error_handler(request, github_error_to_api_error(exc))


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTPException in the standard format."""
    code = _HTTP_STATUS_CODES.get(exc.status_code, ErrorCode.INTERNAL_ERROR)
    response = ErrorResponse(
        error=code.value,
        message=str(exc.detail) if exc.detail else "An error occurred",
        request_id=get_request_id(request),
    )
    return error_json(exc.status_code, response, headers=exc.headers)


async def validation_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle request validation errors with per-field details."""
    request_id = get_request_id(request)

    errors_fn = getattr(exc, "errors", None)
    if callable(errors_fn):
        response = ErrorResponse(
            error=ErrorCode.VALIDATION_ERROR.value,
            message="Request validation failed",
            request_id=request_id,
            errors=[
                FieldError(
                    field=".".join(str(loc) for loc in error["loc"]),
                    message=error["msg"],
                    code=error["type"],
                )
                for error in errors_fn()
            ],
            suggestion="Check the 'errors' field for details on invalid fields",
        )
    else:
        response = ErrorResponse(
            error=ErrorCode.VALIDATION_ERROR.value,
            message=str(exc),
            request_id=request_id,
        )

    return error_json(422, response)
