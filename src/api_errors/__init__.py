"""API Error Handling & Validation.

Provides structured error responses, global exception handlers,
and input validation utilities for the Folio FastAPI API layer.
"""

from src.api_errors.config import (
    ErrorCode,
    ErrorConfig,
    ErrorSeverity,
)
from src.api_errors.exceptions import (
    ConflictError,
    FolioAPIError,
    InsufficientFundsError,
    NotFoundError,
    StateError,
    ValidationError,
)
from src.api_errors.handlers import (
    ErrorResponse,
    build_error_response,
    create_error_response,
    register_exception_handlers,
    translate_database_error,
)
from src.api_errors.middleware import ErrorHandlingMiddleware
from src.api_errors.validators import (
    format_money,
    parse_choice,
    parse_id,
    require_fields,
    validate_amount,
    validate_price,
    validate_quantity,
    validate_symbol,
)

__all__ = [
    # Config
    "ErrorCode",
    "ErrorConfig",
    "ErrorSeverity",
    # Exceptions
    "ConflictError",
    "FolioAPIError",
    "InsufficientFundsError",
    "NotFoundError",
    "StateError",
    "ValidationError",
    # Handlers
    "ErrorResponse",
    "build_error_response",
    "create_error_response",
    "register_exception_handlers",
    "translate_database_error",
    # Middleware
    "ErrorHandlingMiddleware",
    # Validators
    "format_money",
    "parse_choice",
    "parse_id",
    "require_fields",
    "validate_amount",
    "validate_price",
    "validate_quantity",
    "validate_symbol",
]
