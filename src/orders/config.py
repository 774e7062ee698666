"""Order Book Configuration."""

from dataclasses import dataclass
from decimal import Decimal

from src.db.models import ConfirmationStatus, OrderStatus

# Money columns carry four decimal places.
MONEY_QUANTUM = Decimal("0.0001")

TERMINAL_STATUSES = frozenset({OrderStatus.CANCELLED, OrderStatus.EXECUTED})


@dataclass(frozen=True)
class OrderConfig:
    """Order placement and execution configuration."""
    settlement_days: int = 2
    initial_status: OrderStatus = OrderStatus.PLACED
    initial_confirmation: ConfirmationStatus = ConfirmationStatus.PENDING_CONFIRMATION


DEFAULT_ORDER_CONFIG = OrderConfig()
