"""Custom Exception Hierarchy.

Defines typed exceptions that map to specific HTTP status codes
and error codes for consistent API error responses.
"""

from typing import Any, Dict, List, Optional

from src.api_errors.config import ErrorCode, ERROR_STATUS_MAP


class FolioAPIError(Exception):
    """Base exception for all Folio API errors.

    All custom API exceptions inherit from this, allowing a single
    exception handler to catch the entire hierarchy.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[List[Dict[str, Any]]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = ERROR_STATUS_MAP.get(error_code, 500)
        self.details = details or []
        self.headers = headers or {}


class ValidationError(FolioAPIError):
    """Raised when request input is missing or malformed."""

    def __init__(
        self,
        message: str = "Validation failed",
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
        details: Optional[List[Dict[str, Any]]] = None,
        field: Optional[str] = None,
    ):
        if field and not details:
            details = [{"field": field, "issue": message}]
        super().__init__(message, error_code, details)


class NotFoundError(FolioAPIError):
    """Raised when a referenced entity does not exist."""

    def __init__(
        self,
        message: str = "Resource not found",
        error_code: ErrorCode = ErrorCode.RESOURCE_NOT_FOUND,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
    ):
        details = []
        if resource_type or resource_id:
            details = [{"resource_type": resource_type, "resource_id": resource_id}]
        super().__init__(message, error_code, details)


class StateError(FolioAPIError):
    """Raised when an operation is not valid in the entity's current state."""

    def __init__(
        self,
        message: str = "Operation not allowed in current state",
        error_code: ErrorCode = ErrorCode.INVALID_ORDER_STATE,
        current_state: Optional[str] = None,
    ):
        details = []
        if current_state is not None:
            details = [{"current_state": current_state}]
        super().__init__(message, error_code, details)


class InsufficientFundsError(FolioAPIError):
    """Raised when cash or units on hand do not cover the request."""

    def __init__(
        self,
        message: str = "Insufficient funds",
        error_code: ErrorCode = ErrorCode.INSUFFICIENT_FUNDS,
        available: Optional[str] = None,
        required: Optional[str] = None,
    ):
        details = []
        if available is not None or required is not None:
            details = [{"available": available, "required": required}]
        super().__init__(message, error_code, details)


class ConflictError(FolioAPIError):
    """Raised when an action conflicts with existing or concurrent state."""

    def __init__(
        self,
        message: str = "Resource conflict",
        error_code: ErrorCode = ErrorCode.RESOURCE_CONFLICT,
    ):
        super().__init__(message, error_code)
