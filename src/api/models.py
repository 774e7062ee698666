"""API Request/Response Models.

Pydantic schemas for the request bodies and the success envelope.
JSON keys are camelCase; fields keep snake_case names.

Body fields are deliberately loose (``Any``): the services parse and
validate them so every endpoint reports the same error messages.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase JSON keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ─── Common ──────────────────────────────────────────────────────────────


class SuccessResponse(BaseModel):
    """Standard success envelope."""

    success: bool = True
    data: Any = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = "1.0.0"
    components: dict[str, str] = {}


# ─── Accounts ────────────────────────────────────────────────────────────


class CreateAccountRequest(CamelModel):
    user_id: Optional[Any] = None
    account_name: Optional[Any] = None
    account_type: Optional[Any] = None


class CashMovementRequest(CamelModel):
    """Deposit or withdrawal."""

    account_id: Optional[Any] = None
    amount: Optional[Any] = None
    description: Optional[str] = None


# ─── Orders ──────────────────────────────────────────────────────────────


class PlaceOrderRequest(CamelModel):
    user_id: Optional[Any] = None
    account_id: Optional[Any] = None
    symbol: Optional[Any] = None
    buy_sell: Optional[Any] = None
    order_type: Optional[Any] = None
    qty: Optional[Any] = None
    price: Optional[Any] = None


class UpdateOrderRequest(CamelModel):
    order_id: Optional[Any] = None
    qty: Optional[Any] = None
    order_type: Optional[Any] = None
    limit_price: Optional[Any] = None


class OrderIdRequest(CamelModel):
    """Confirm or reject by order id."""

    order_id: Optional[Any] = None


class CancelOrderRequest(CamelModel):
    user_id: Optional[Any] = None
    order_id: Optional[Any] = None


# ─── Portfolio ───────────────────────────────────────────────────────────


class RefreshPricesRequest(CamelModel):
    user_id: Optional[Any] = None


class AggregationRequest(CamelModel):
    user_id: Optional[Any] = None
    dimension: Optional[Any] = None
    metric: Optional[Any] = None
