"""Exception handlers rendering every API failure as an ErrorResponse."""

import traceback
import uuid
from typing import Any, Dict, List, Optional, Union

import structlog
from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from ..models.errors import ErrorDetail, ErrorResponse, ErrorType, PitStateException

logger = structlog.get_logger(__name__)

_STATUS_ERROR_TYPES = {
    400: ErrorType.VALIDATION,
    404: ErrorType.RESOURCE_NOT_FOUND,
    405: ErrorType.VALIDATION,
    422: ErrorType.VALIDATION,
    502: ErrorType.EXTERNAL_SERVICE,
    503: ErrorType.SERVICE_UNAVAILABLE,
    504: ErrorType.TIMEOUT,
}


def generate_request_id() -> str:
    """Short random id tying a response to its log line."""
    return uuid.uuid4().hex[:16]


def _request_context(request: Request) -> Dict[str, Any]:
    context = {
        "path": request.url.path,
        "method": request.method,
        "client_ip": request.client.host if request.client else "unknown",
    }
    # provider/fixture are present on every /states route
    for key in ("provider", "fixture"):
        value = request.path_params.get(key)
        if value is not None:
            context[key] = value
    return context


def _log_failure(
    event: str,
    status_code: int,
    request: Request,
    request_id: str,
    details: Optional[List[ErrorDetail]] = None,
    **fields: Any,
) -> None:
    if details:
        fields["details"] = [d.model_dump(exclude_none=True) for d in details]
    log = logger.error if status_code >= 500 else logger.warning
    log(
        event,
        status_code=status_code,
        request_id=request_id,
        **_request_context(request),
        **fields,
    )


def _respond(status_code: int, response: ErrorResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=response.model_dump())


async def pitstate_exception_handler(
    request: Request, exc: PitStateException
) -> JSONResponse:
    """Render a PitStateException with its own status and error type."""
    if not exc.request_id:
        exc.request_id = generate_request_id()

    _log_failure(
        "State operation failed",
        exc.status_code,
        request,
        exc.request_id,
        details=exc.details,
        error_type=exc.error_type.value,
        error=exc.message,
    )
    return _respond(exc.status_code, exc.to_response())


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Render routing and framework HTTP errors."""
    request_id = generate_request_id()
    error_type = _STATUS_ERROR_TYPES.get(exc.status_code, ErrorType.INTERNAL_SERVER)

    _log_failure("HTTP error", exc.status_code, request, request_id, detail=exc.detail)
    return _respond(
        exc.status_code,
        ErrorResponse(error=str(exc.detail), error_type=error_type, request_id=request_id),
    )


async def validation_exception_handler(
    request: Request, exc: Union[RequestValidationError, PydanticValidationError]
) -> JSONResponse:
    """Render request and model validation failures as 422."""
    request_id = generate_request_id()
    details = [
        ErrorDetail(
            field=".".join(str(part) for part in error["loc"]),
            message=error["msg"],
            code=error["type"],
        )
        for error in exc.errors()
    ]

    _log_failure("Invalid request", 422, request, request_id, details=details)
    return _respond(
        422,
        ErrorResponse(
            error="Request validation failed",
            error_type=ErrorType.VALIDATION,
            details=details,
            request_id=request_id,
        ),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render anything unexpected as a bare 500."""
    request_id = generate_request_id()

    _log_failure(
        "Unhandled exception",
        500,
        request,
        request_id,
        exception_type=type(exc).__name__,
        error=str(exc),
        traceback=traceback.format_exc(),
    )
    # internals stay in the log
    return _respond(
        500,
        ErrorResponse(
            error="An unexpected error occurred",
            error_type=ErrorType.INTERNAL_SERVER,
            request_id=request_id,
        ),
    )
