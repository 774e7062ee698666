"""Order Book Module.

Order placement, update, confirmation (execution), cancellation,
rejection and history.

Example:
    from src.orders import OrderBook

    book = OrderBook(session)
    placed = book.place_order(user_id=1, account_id=1, symbol="AAPL",
                              buy_sell="Buy", order_type="Market Open", qty=5)
    result = book.confirm_order(placed.order.order_id)
    print(result.message)
"""

from src.orders.config import (
    DEFAULT_ORDER_CONFIG,
    MONEY_QUANTUM,
    TERMINAL_STATUSES,
    OrderConfig,
)
from src.orders.models import (
    ExecutionResult,
    OrderAction,
    OrderPreview,
    OrderView,
    PlacedOrder,
    format_units,
)
from src.orders.service import OrderBook

__all__ = [
    # Config
    "DEFAULT_ORDER_CONFIG",
    "MONEY_QUANTUM",
    "TERMINAL_STATUSES",
    "OrderConfig",
    # Models
    "ExecutionResult",
    "OrderAction",
    "OrderPreview",
    "OrderView",
    "PlacedOrder",
    "format_units",
    # Service
    "OrderBook",
]
