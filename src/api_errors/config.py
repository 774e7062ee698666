"""API Error Configuration.

Defines error codes, severity levels, and configuration for
structured error handling across the Folio API.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict


class ErrorCode(Enum):
    """Standardized error codes for API responses."""

    # Validation errors (400)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    INVALID_QUANTITY = "INVALID_QUANTITY"
    INVALID_SYMBOL = "INVALID_SYMBOL"
    INVALID_ACCOUNT_TYPE = "INVALID_ACCOUNT_TYPE"
    INVALID_ORDER_TYPE = "INVALID_ORDER_TYPE"

    # Business-rule violations (400)
    INVALID_ORDER_STATE = "INVALID_ORDER_STATE"
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"
    INSUFFICIENT_UNITS = "INSUFFICIENT_UNITS"

    # Not found errors (404)
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    ACCOUNT_NOT_FOUND = "ACCOUNT_NOT_FOUND"
    ORDER_NOT_FOUND = "ORDER_NOT_FOUND"
    SYMBOL_NOT_FOUND = "SYMBOL_NOT_FOUND"

    # Conflict errors (409)
    RESOURCE_CONFLICT = "RESOURCE_CONFLICT"
    CONCURRENT_UPDATE = "CONCURRENT_UPDATE"

    # Server errors (500)
    INTERNAL_ERROR = "INTERNAL_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"


class ErrorSeverity(Enum):
    """Severity levels for error logging."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# Map error codes to HTTP status codes
ERROR_STATUS_MAP: Dict[ErrorCode, int] = {
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.MISSING_REQUIRED_FIELD: 400,
    ErrorCode.INVALID_AMOUNT: 400,
    ErrorCode.INVALID_QUANTITY: 400,
    ErrorCode.INVALID_SYMBOL: 400,
    ErrorCode.INVALID_ACCOUNT_TYPE: 400,
    ErrorCode.INVALID_ORDER_TYPE: 400,
    ErrorCode.INVALID_ORDER_STATE: 400,
    ErrorCode.INSUFFICIENT_FUNDS: 400,
    ErrorCode.INSUFFICIENT_UNITS: 400,
    ErrorCode.RESOURCE_NOT_FOUND: 404,
    ErrorCode.ACCOUNT_NOT_FOUND: 404,
    ErrorCode.ORDER_NOT_FOUND: 404,
    ErrorCode.SYMBOL_NOT_FOUND: 404,
    ErrorCode.RESOURCE_CONFLICT: 409,
    ErrorCode.CONCURRENT_UPDATE: 409,
    ErrorCode.INTERNAL_ERROR: 500,
    ErrorCode.DATABASE_ERROR: 500,
}

# Map error codes to severity
ERROR_SEVERITY_MAP: Dict[ErrorCode, ErrorSeverity] = {
    ErrorCode.VALIDATION_ERROR: ErrorSeverity.LOW,
    ErrorCode.MISSING_REQUIRED_FIELD: ErrorSeverity.LOW,
    ErrorCode.INVALID_AMOUNT: ErrorSeverity.LOW,
    ErrorCode.INVALID_QUANTITY: ErrorSeverity.LOW,
    ErrorCode.INVALID_SYMBOL: ErrorSeverity.LOW,
    ErrorCode.INVALID_ACCOUNT_TYPE: ErrorSeverity.LOW,
    ErrorCode.INVALID_ORDER_TYPE: ErrorSeverity.LOW,
    ErrorCode.INVALID_ORDER_STATE: ErrorSeverity.LOW,
    ErrorCode.INSUFFICIENT_FUNDS: ErrorSeverity.LOW,
    ErrorCode.INSUFFICIENT_UNITS: ErrorSeverity.LOW,
    ErrorCode.RESOURCE_NOT_FOUND: ErrorSeverity.LOW,
    ErrorCode.ACCOUNT_NOT_FOUND: ErrorSeverity.LOW,
    ErrorCode.ORDER_NOT_FOUND: ErrorSeverity.MEDIUM,
    ErrorCode.SYMBOL_NOT_FOUND: ErrorSeverity.LOW,
    ErrorCode.RESOURCE_CONFLICT: ErrorSeverity.MEDIUM,
    ErrorCode.CONCURRENT_UPDATE: ErrorSeverity.HIGH,
    ErrorCode.INTERNAL_ERROR: ErrorSeverity.CRITICAL,
    ErrorCode.DATABASE_ERROR: ErrorSeverity.CRITICAL,
}


@dataclass
class ErrorConfig:
    """Configuration for API error handling."""

    include_request_id: bool = True
    log_all_errors: bool = True
    suppress_internal_details: bool = True
    max_error_detail_length: int = 1000
    custom_error_messages: Dict[str, str] = field(default_factory=dict)


DEFAULT_ERROR_CONFIG = ErrorConfig()
