"""Order API Routes.

Endpoints for placing, updating, confirming, cancelling and
rejecting orders, and for the order history.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_order_book
from src.api.models import (
    CancelOrderRequest,
    OrderIdRequest,
    PlaceOrderRequest,
    SuccessResponse,
    UpdateOrderRequest,
)
from src.orders import OrderBook

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/orders", tags=["Orders"])


@router.post("/place", response_model=SuccessResponse)
def place_order(
    request: PlaceOrderRequest,
    book: OrderBook = Depends(get_order_book),
) -> SuccessResponse:
    """Place an order; it stays pending until confirmed."""
    placed = book.place_order(
        user_id=request.user_id,
        account_id=request.account_id,
        symbol=request.symbol,
        buy_sell=request.buy_sell,
        order_type=request.order_type,
        qty=request.qty,
        price=request.price,
    )
    return SuccessResponse(data=placed.to_dict())


@router.post("/update", response_model=SuccessResponse)
def update_order(
    request: UpdateOrderRequest,
    book: OrderBook = Depends(get_order_book),
) -> SuccessResponse:
    """Change quantity, type or limit price of an open order."""
    result = book.update_order(
        request.order_id,
        qty=request.qty,
        order_type=request.order_type,
        limit_price=request.limit_price,
    )
    return SuccessResponse(data=result.to_dict())


@router.post("/confirm", response_model=SuccessResponse)
def confirm_order(
    request: OrderIdRequest,
    book: OrderBook = Depends(get_order_book),
) -> SuccessResponse:
    """Execute a pending order."""
    result = book.confirm_order(request.order_id)
    return SuccessResponse(data=result.to_dict())


@router.post("/cancel", response_model=SuccessResponse)
def cancel_order(
    request: CancelOrderRequest,
    book: OrderBook = Depends(get_order_book),
) -> SuccessResponse:
    """Cancel an order that is neither cancelled nor executed."""
    result = book.cancel_order(request.user_id, request.order_id)
    return SuccessResponse(data=result.to_dict())


@router.post("/reject", response_model=SuccessResponse)
def reject_order(
    request: OrderIdRequest,
    book: OrderBook = Depends(get_order_book),
) -> SuccessResponse:
    """Reject an order still pending confirmation."""
    result = book.reject_order(request.order_id)
    return SuccessResponse(data=result.to_dict())


@router.get("/history", response_model=SuccessResponse)
def order_history(
    user_id: Optional[str] = Query(default=None, alias="userId"),
    book: OrderBook = Depends(get_order_book),
) -> SuccessResponse:
    """All of a user's orders, newest first."""
    orders = book.list_order_history(user_id)
    return SuccessResponse(data={"orders": [o.to_dict() for o in orders]})
