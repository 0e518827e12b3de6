"""Exception handlers for the impostor-py web relay.

Every response is JSON with a correlation id. Room errors are mapped to HTTP
statuses by exception type; the most specific registered type wins.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog
from litestar import Response
from litestar.status_codes import (
    HTTP_400_BAD_REQUEST,
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_422_UNPROCESSABLE_ENTITY,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_503_SERVICE_UNAVAILABLE,
)

from impostor_py.exceptions import (
    GameAlreadyStartedError,
    ImpostorError,
    InvalidPhaseError,
    NameTakenError,
    NotHostError,
    PlayerKickedError,
    RoomExpiredError,
    RoomFullError,
    RoomNotFoundError,
    StoreError,
    TransactionConflictError,
)

if TYPE_CHECKING:
    from litestar import Request
    from litestar.exceptions import HTTPException, ValidationException

logger = structlog.get_logger(__name__)

# (status, error code) by exception type
ERROR_STATUS: dict[type[ImpostorError], tuple[int, str]] = {
    RoomExpiredError: (HTTP_404_NOT_FOUND, "room_expired"),
    RoomNotFoundError: (HTTP_404_NOT_FOUND, "room_not_found"),
    NotHostError: (HTTP_403_FORBIDDEN, "not_host"),
    NameTakenError: (HTTP_409_CONFLICT, "name_taken"),
    GameAlreadyStartedError: (HTTP_409_CONFLICT, "game_already_started"),
    RoomFullError: (HTTP_409_CONFLICT, "room_full"),
    PlayerKickedError: (HTTP_409_CONFLICT, "player_kicked"),
    InvalidPhaseError: (HTTP_409_CONFLICT, "invalid_phase"),
    TransactionConflictError: (HTTP_503_SERVICE_UNAVAILABLE, "transaction_conflict"),
    StoreError: (HTTP_503_SERVICE_UNAVAILABLE, "store_unavailable"),
}


@dataclass
class ErrorDetail:
    """Details about a specific error."""

    field: str | None = None
    message: str = ""
    code: str = "error"


@dataclass
class ErrorResponse:
    """Structured error response format."""

    status: str = "error"
    message: str = ""
    code: str = "internal_error"
    correlation_id: str | None = None
    details: list[ErrorDetail] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON response."""
        result: dict[str, Any] = {
            "status": self.status,
            "message": self.message,
            "code": self.code,
        }
        if self.correlation_id:
            result["correlation_id"] = self.correlation_id
        if self.details:
            result["details"] = [{"field": d.field, "message": d.message, "code": d.code} for d in self.details]
        return result


def get_correlation_id(request: Request) -> str | None:
    """Extract the correlation id from the scope state or request headers."""
    correlation_id = request.scope.get("state", {}).get("correlation_id")
    if correlation_id:
        return correlation_id
    return request.headers.get("X-Correlation-ID") or request.headers.get("X-Request-ID")


def status_for(exc: ImpostorError) -> tuple[int, str]:
    """Resolve the HTTP status and error code for a room error.

    Unregistered :class:`ImpostorError` subclasses are validation failures and
    map to 400 with a snake_case code derived from the class name.
    """
    for klass in type(exc).__mro__:
        if klass in ERROR_STATUS:
            return ERROR_STATUS[klass]
    name = type(exc).__name__.removesuffix("Error")
    code = "".join(f"_{c.lower()}" if c.isupper() else c for c in name).lstrip("_")
    return HTTP_400_BAD_REQUEST, code or "bad_request"


def _json(error: ErrorResponse, status_code: int) -> Response[dict[str, Any]]:
    return Response(content=error.to_dict(), status_code=status_code, media_type="application/json")


def impostor_error_handler(request: Request, exc: ImpostorError) -> Response[dict[str, Any]]:
    """Handle room state machine errors."""
    correlation_id = get_correlation_id(request)
    status_code, code = status_for(exc)

    log_method = logger.error if status_code >= 500 else logger.warning
    log_method("Room operation rejected", status_code=status_code, error_code=code, error=str(exc))
    return _json(ErrorResponse(message=str(exc), code=code, correlation_id=correlation_id), status_code)


def validation_exception_handler(request: Request, exc: ValidationException) -> Response[dict[str, Any]]:
    """Handle request validation errors with per-field details."""
    correlation_id = get_correlation_id(request)

    details: list[ErrorDetail] = []
    for error in exc.extra or []:
        if isinstance(error, dict):
            key = error.get("key") or ".".join(str(p) for p in error.get("loc", [])) or None
            details.append(
                ErrorDetail(field=key, message=str(error.get("message", error)), code="validation_error")
            )
        else:
            details.append(ErrorDetail(message=str(error), code="validation_error"))
    if not details:
        details.append(ErrorDetail(message=str(exc.detail), code="validation_error"))

    logger.warning("Validation error", error_count=len(details))
    error = ErrorResponse(
        message="Validation failed",
        code="validation_error",
        correlation_id=correlation_id,
        details=details,
    )
    return _json(error, HTTP_422_UNPROCESSABLE_ENTITY)


def http_exception_handler(request: Request, exc: HTTPException) -> Response[dict[str, Any]]:
    """Handle framework HTTP exceptions."""
    correlation_id = get_correlation_id(request)
    code_map = {
        400: "bad_request",
        403: "forbidden",
        404: "not_found",
        405: "method_not_allowed",
        409: "conflict",
        422: "validation_error",
        500: "internal_error",
        503: "service_unavailable",
    }
    code = code_map.get(exc.status_code, "error")
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)

    log_method = logger.warning if exc.status_code < 500 else logger.error
    log_method("HTTP exception", status_code=exc.status_code, error_code=code)
    return _json(ErrorResponse(message=message, code=code, correlation_id=correlation_id), exc.status_code)


def generic_exception_handler(request: Request, exc: Exception) -> Response[dict[str, Any]]:
    """Log unexpected exceptions in full and return a safe message."""
    correlation_id = get_correlation_id(request)
    logger.exception("Unhandled exception", exc_info=exc)
    error = ErrorResponse(
        message="An unexpected error occurred. Please try again later.",
        code="internal_error",
        correlation_id=correlation_id,
    )
    return _json(error, HTTP_500_INTERNAL_SERVER_ERROR)


def get_exception_handlers() -> dict[type[Exception] | int, Any]:
    """Exception handlers for the application, keyed by exception type."""
    from litestar.exceptions import HTTPException, ValidationException

    return {
        ValidationException: validation_exception_handler,
        HTTPException: http_exception_handler,
        ImpostorError: impostor_error_handler,
        Exception: generic_exception_handler,
    }
