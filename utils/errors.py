"""Error taxonomy and the uniform error envelope shared by both services."""
import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class FieldViolation(BaseModel):
    """A single field-level rule violation."""
    field: str
    message: str
    value: Any = None


class ServiceError(Exception):
    """Base class for every error reported through the error envelope."""

    status_code: int = 500
    message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None,
                 details: Optional[List[FieldViolation]] = None):
        self.message = message or self.message
        if status_code is not None:
            self.status_code = status_code
        self.details = details
        super().__init__(self.message)


# --- Request / domain errors ---

class ValidationError(ServiceError):
    status_code = 400
    message = "Validation failed"

    def __init__(self, details: List[FieldViolation], message: Optional[str] = None):
        super().__init__(message, details=details)


class NotFound(ServiceError):
    status_code = 404
    message = "Expense not found"


class EmptyUpdate(ServiceError):
    status_code = 400
    message = "No update data provided"


class InvalidFilter(ServiceError):
    status_code = 400
    message = "Invalid category filter"


class InvalidDateFormat(ServiceError):
    status_code = 400

    def __init__(self, param: str):
        self.param = param
        super().__init__(f"Invalid {param} date format. Use YYYY-MM-DD")


class InvalidDateRange(ServiceError):
    status_code = 400
    message = "Start date cannot be after end date"


class MissingParameters(ServiceError):
    status_code = 400
    message = "Required query params: from1, to1, from2, to2 (all in YYYY-MM-DD format)"


# --- Storage errors ---

class DatabaseUnavailable(ServiceError):
    status_code = 503
    message = "Database service not available."


class DatabaseError(ServiceError):
    status_code = 500
    message = "Database error"


# --- Cross-service errors ---

class UpstreamUnavailable(ServiceError):
    status_code = 503
    message = "Expenses service is not available. Please ensure it is running."


class UpstreamTimeout(ServiceError):
    status_code = 504
    message = "Request to expenses service timed out"


class UpstreamError(ServiceError):
    """The expenses service answered, but with an error of its own."""
    status_code = 502


class RateLimited(ServiceError):
    status_code = 429
    message = "Rate limit exceeded"


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def error_envelope(message: str, status_code: int,
                   details: Optional[List[FieldViolation]] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "error": message,
        "statusCode": status_code,
        "timestamp": utc_timestamp(),
    }
    if details:
        body["details"] = [_json_safe(detail.model_dump()) for detail in details]
    return body


def _json_safe(detail: Dict[str, Any]) -> Dict[str, Any]:
    # NaN and Infinity are accepted in request bodies but cannot be rendered back
    value = detail.get("value")
    if isinstance(value, float) and not math.isfinite(value):
        detail["value"] = str(value)
    return detail


def error_response(message: str, status_code: int,
                   details: Optional[List[FieldViolation]] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(error_envelope(message, status_code, details)),
    )


# --- FastAPI exception handlers ---

async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path} rejected ({exc.status_code}): {exc.message}")
    return error_response(exc.message, exc.status_code, exc.details)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        message = f"Route not found: {request.url.path}"
    else:
        message = str(exc.detail)
    return error_response(message, exc.status_code)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        FieldViolation(
            field=".".join(str(part) for part in error.get("loc", ())[1:]) or "body",
            message=error.get("msg", "Invalid value"),
            value=error.get("input"),
        )
        for error in exc.errors()
    ]
    logger.warning(f"{request.method} {request.url.path} rejected: malformed request")
    return error_response("Invalid request body", 400, details)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unexpected error on {request.method} {request.url.path}: {exc}")
    return error_response("Internal server error", 500)


def register_error_handlers(app: FastAPI) -> None:
    """Install the envelope-producing handlers on ``app``."""
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
