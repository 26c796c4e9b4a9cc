"""Typed errors raised by the versioning store and the auth layer.

Each error carries its HTTP status and a machine-readable code so routes
never have to translate them by hand; see `register_exception_handlers`.
Ineligibility is not an error — the eligibility engine returns it as data.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from prohub.admin.events import emit
from prohub.schemas.events import EventType, SystemEvent

logger = logging.getLogger(__name__)


class ProHubError(Exception):
    """Base error with HTTP status, error code, and context for API responses."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    error_code: str = "PROHUB_ERROR"

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        self.message = message
        self.context = context or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for API responses."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "context": self.context,
        }


class ValidationError(ProHubError):
    """Payload failed schema validation. `context["fields"]` lists each problem."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "VALIDATION_ERROR"

    def __init__(self, message: str, fields: list[dict[str, str]]) -> None:
        super().__init__(message, context={"fields": fields})
        self.fields = fields


class VersionConflict(ProHubError):
    """Stale write — the caller must re-fetch and retry."""

    status_code = status.HTTP_409_CONFLICT
    error_code = "VERSION_CONFLICT"

    def __init__(self, expected_row_version: int, current_row_version: int) -> None:
        super().__init__(
            "Someone else edited this draft",
            context={
                "expected_row_version": expected_row_version,
                "current_row_version": current_row_version,
            },
        )
        self.expected_row_version = expected_row_version
        self.current_row_version = current_row_version


class StateConflict(ProHubError):
    """Requested transition is not allowed from the version's current state."""

    status_code = status.HTTP_409_CONFLICT
    error_code = "STATE_CONFLICT"


class NotFound(ProHubError):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"


class AuthenticationRequired(ProHubError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "AUTHENTICATION_REQUIRED"


class Forbidden(ProHubError):
    status_code = status.HTTP_403_FORBIDDEN
    error_code = "FORBIDDEN"


class UpstreamFailure(ProHubError):
    """Database or identity provider unreachable. Transient; safe to retry."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error_code = "UPSTREAM_FAILURE"


def field_errors(errors: Any) -> list[dict[str, str]]:
    """Flatten pydantic error dicts into `{"field": "a.b.0", "message": ...}`."""
    return [
        {
            "field": ".".join(str(part) for part in err.get("loc", ())),
            "message": err.get("msg", "Invalid value"),
        }
        for err in errors
    ]


def register_exception_handlers(app: FastAPI) -> None:
    """Map typed errors and request validation errors to JSON responses."""

    @app.exception_handler(ProHubError)
    async def prohub_error_handler(request: Request, exc: ProHubError) -> JSONResponse:
        if isinstance(exc, UpstreamFailure):
            logger.warning("Upstream failure on %s %s: %s", request.method, request.url.path, exc.message)
            await emit(SystemEvent(
                event_type=EventType.UPSTREAM_ERROR,
                data={"method": request.method, "path": request.url.path, **exc.context},
                source_module="errors",
            ))
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationRequired) else None
        return JSONResponse(exc.to_dict(), status_code=exc.status_code, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        err = ValidationError("Invalid request", fields=field_errors(exc.errors()))
        return JSONResponse(err.to_dict(), status_code=err.status_code)
