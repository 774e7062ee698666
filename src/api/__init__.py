"""Folio HTTP API.

FastAPI application exposing the account ledger, order book and
holdings valuation as JSON endpoints.

Example:
    from src.api import create_app
    app = create_app()
"""

from src.api.app import create_app
from src.api.config import DEFAULT_API_CONFIG, APIConfig
from src.api.models import HealthResponse, SuccessResponse

__all__ = [
    "create_app",
    "APIConfig",
    "DEFAULT_API_CONFIG",
    "HealthResponse",
    "SuccessResponse",
]
