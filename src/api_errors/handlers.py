"""Exception Handlers & Error Response Builder.

Every failure leaves the API as the same envelope::

    {"success": false, "error": "...", "code": "...", "timestamp": "...",
     "details": [...], "requestId": "..."}

``build_error_response`` is the single place that decides how an
exception maps onto it; the FastAPI handlers and the ASGI middleware
both go through it.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from src.api_errors.config import (
    DEFAULT_ERROR_CONFIG,
    ERROR_SEVERITY_MAP,
    ERROR_STATUS_MAP,
    ErrorCode,
    ErrorConfig,
    ErrorSeverity,
)
from src.api_errors.exceptions import ConflictError, FolioAPIError
from src.logging_config.context import get_request_id

logger = logging.getLogger(__name__)

_SEVERITY_LEVELS = {
    ErrorSeverity.LOW: logging.INFO,
    ErrorSeverity.MEDIUM: logging.WARNING,
    ErrorSeverity.HIGH: logging.ERROR,
    ErrorSeverity.CRITICAL: logging.CRITICAL,
}


@dataclass
class ErrorResponse:
    """Error envelope; ``to_dict()`` is the JSON body."""

    code: str
    message: str
    status_code: int = 500
    details: List[Dict[str, Any]] = field(default_factory=list)
    request_id: Optional[str] = None
    timestamp: str = ""

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = datetime.now(timezone.utc).isoformat()

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "success": False,
            "error": self.message,
            "code": self.code,
            "timestamp": self.timestamp,
        }
        if self.details:
            body["details"] = self.details
        if self.request_id:
            body["requestId"] = self.request_id
        return body


def create_error_response(
    error_code: ErrorCode,
    message: str,
    details: Optional[List[Dict[str, Any]]] = None,
    request_id: Optional[str] = None,
    status_code: Optional[int] = None,
) -> ErrorResponse:
    return ErrorResponse(
        code=error_code.value,
        message=message,
        status_code=status_code or ERROR_STATUS_MAP.get(error_code, 500),
        details=details or [],
        request_id=request_id,
    )


def translate_database_error(exc: SQLAlchemyError) -> FolioAPIError:
    """Map a database exception that escaped the services onto the API hierarchy.

    A lost optimistic-lock race is a retryable 409, a constraint
    violation is a plain conflict, anything else is a 500.
    """
    if isinstance(exc, StaleDataError):
        return ConflictError(
            "Record was modified by another request, please retry",
            error_code=ErrorCode.CONCURRENT_UPDATE,
        )
    if isinstance(exc, IntegrityError):
        return ConflictError("Request conflicts with existing data")
    return FolioAPIError("A database error occurred", ErrorCode.DATABASE_ERROR)


def _log_error(error_code: ErrorCode, message: str, status_code: int, config: ErrorConfig) -> None:
    if config.log_all_errors:
        severity = ERROR_SEVERITY_MAP.get(error_code, ErrorSeverity.MEDIUM)
        logger.log(
            _SEVERITY_LEVELS[severity],
            f"API Error [{error_code.value}] ({status_code}): {message}",
            extra={"error_code": error_code.value, "status_code": status_code},
        )


def _request_id(config: ErrorConfig) -> Optional[str]:
    return (get_request_id() or None) if config.include_request_id else None


def handle_folio_error(exc: FolioAPIError, config: Optional[ErrorConfig] = None) -> ErrorResponse:
    config = config or DEFAULT_ERROR_CONFIG
    _log_error(exc.error_code, exc.message, exc.status_code, config)
    return create_error_response(
        error_code=exc.error_code,
        message=config.custom_error_messages.get(exc.error_code.value, exc.message),
        details=exc.details,
        request_id=_request_id(config),
        status_code=exc.status_code,
    )


def handle_unhandled_error(exc: Exception, config: Optional[ErrorConfig] = None) -> ErrorResponse:
    """500 response for an unexpected exception.

    The exception text only reaches the client when
    ``suppress_internal_details`` is off; the traceback is always logged.
    """
    config = config or DEFAULT_ERROR_CONFIG
    logger.error(f"Unhandled exception: {type(exc).__name__}: {exc}", exc_info=exc)

    message = "An internal error occurred"
    if not config.suppress_internal_details:
        message = f"{type(exc).__name__}: {exc}"[: config.max_error_detail_length]

    return create_error_response(ErrorCode.INTERNAL_ERROR, message, request_id=_request_id(config))


def handle_request_validation_error(exc: Any, config: Optional[ErrorConfig] = None) -> ErrorResponse:
    """Turn a FastAPI RequestValidationError into a 400 envelope."""
    config = config or DEFAULT_ERROR_CONFIG

    details = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        details.append({"field": ".".join(loc) or None, "issue": err.get("msg")})

    message = "Invalid request"
    if details and details[0]["field"]:
        message = f"Invalid value for {details[0]['field']}: {details[0]['issue']}"
    elif details:
        message = f"Invalid request: {details[0]['issue']}"

    _log_error(ErrorCode.VALIDATION_ERROR, message, 400, config)
    return create_error_response(
        error_code=ErrorCode.VALIDATION_ERROR,
        message=message,
        details=details,
        request_id=_request_id(config),
        status_code=400,
    )


def build_error_response(exc: Exception, config: Optional[ErrorConfig] = None) -> ErrorResponse:
    """Dispatch any exception to the matching handler."""
    if isinstance(exc, SQLAlchemyError):
        logger.debug("Translating database error", exc_info=exc)
        exc = translate_database_error(exc)
    if isinstance(exc, FolioAPIError):
        return handle_folio_error(exc, config)
    return handle_unhandled_error(exc, config)


def register_exception_handlers(app: Any, config: Optional[ErrorConfig] = None) -> None:
    """Register the Folio exception handlers on a FastAPI application."""
    from fastapi.exceptions import RequestValidationError
    from fastapi.responses import JSONResponse

    config = config or DEFAULT_ERROR_CONFIG
    app.state.error_config = config

    async def _api_error_handler(request, exc: Exception):
        response = build_error_response(exc, config)
        headers = exc.headers if isinstance(exc, FolioAPIError) else None
        return JSONResponse(response.to_dict(), status_code=response.status_code, headers=headers or None)

    async def _validation_error_handler(request, exc: RequestValidationError):
        response = handle_request_validation_error(exc, config)
        return JSONResponse(response.to_dict(), status_code=400)

    app.add_exception_handler(FolioAPIError, _api_error_handler)
    app.add_exception_handler(SQLAlchemyError, _api_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
