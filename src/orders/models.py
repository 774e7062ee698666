"""Order Book Data Models."""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from src.db.models import ConfirmationStatus, Order, OrderSide, OrderStatus, OrderType
from src.ledger.models import as_float, as_iso


def format_units(value: Decimal) -> str:
    """``Decimal("10.000000")`` -> ``10``, ``Decimal("2.500000")`` -> ``2.5``."""
    return f"{Decimal(value).normalize():f}"


@dataclass
class OrderView:
    """An order joined with its asset metadata."""
    order_id: int
    user_id: int
    account_id: Optional[int]
    asset_id: int
    symbol: str
    asset_name: str
    asset_class: str
    description: Optional[str]
    order_type: OrderType
    buy_sell: OrderSide
    unit_price: Decimal
    limit_price: Optional[Decimal]
    qty: Decimal
    amount: Decimal
    settlement_date: Optional[date]
    order_status: OrderStatus
    confirmation_status: ConfirmationStatus
    order_date: Optional[datetime]

    @classmethod
    def from_row(cls, order: Order) -> "OrderView":
        asset = order.asset
        return cls(
            order_id=order.order_id,
            user_id=order.user_id,
            account_id=order.account_id,
            asset_id=order.asset_id,
            symbol=order.symbol,
            asset_name=asset.asset_name if asset else "",
            asset_class=asset.asset_class if asset else "",
            description=order.description,
            order_type=order.order_type,
            buy_sell=order.buy_sell,
            unit_price=order.unit_price,
            limit_price=order.limit_price,
            qty=order.qty,
            amount=order.amount,
            settlement_date=order.settlement_date,
            order_status=order.order_status,
            confirmation_status=order.confirmation_status,
            order_date=order.order_date,
        )

    def to_dict(self) -> dict:
        return {
            "orderId": self.order_id,
            "userId": self.user_id,
            "accountId": self.account_id,
            "assetId": self.asset_id,
            "symbol": self.symbol,
            "assetName": self.asset_name,
            "assetClass": self.asset_class,
            "description": self.description,
            "orderType": self.order_type.value,
            "buySell": self.buy_sell.value,
            "unitPrice": as_float(self.unit_price),
            "limitPrice": as_float(self.limit_price),
            "qty": as_float(self.qty),
            "amount": as_float(self.amount),
            "settlementDate": self.settlement_date.isoformat() if self.settlement_date else None,
            "orderStatus": self.order_status.value,
            "confirmationStatus": self.confirmation_status.value,
            "orderDate": as_iso(self.order_date),
        }


@dataclass
class OrderPreview:
    """What a placed order will do to the account once executed."""
    order_id: int
    symbol: str
    buy_sell: OrderSide
    quantity: Decimal
    estimated_price: Decimal
    estimated_total: Decimal
    account_name: str
    account_balance: Decimal

    @property
    def balance_after_trade(self) -> Decimal:
        if self.buy_sell == OrderSide.BUY:
            return self.account_balance - self.estimated_total
        return self.account_balance + self.estimated_total

    def to_dict(self) -> dict:
        return {
            "orderId": self.order_id,
            "symbol": self.symbol,
            "buySell": self.buy_sell.value,
            "quantity": as_float(self.quantity),
            "estimatedPrice": as_float(self.estimated_price),
            "estimatedTotal": as_float(self.estimated_total),
            "accountName": self.account_name,
            "accountBalance": as_float(self.account_balance),
            "balanceAfterTrade": as_float(self.balance_after_trade),
        }


@dataclass
class PlacedOrder:
    order: OrderView
    preview: OrderPreview
    message: str

    def to_dict(self) -> dict:
        return {
            "order": self.order.to_dict(),
            "message": self.message,
            "orderPreview": self.preview.to_dict(),
        }


@dataclass
class OrderAction:
    """Outcome of a cancel, reject or update."""
    order_id: int
    message: str
    order: Optional[OrderView] = None

    def to_dict(self) -> dict:
        data = {"message": self.message, "orderId": self.order_id}
        if self.order is not None:
            data["order"] = self.order.to_dict()
        return data


@dataclass
class ExecutionResult:
    """Outcome of confirming (executing) an order."""
    order_id: int
    message: str
    new_balance: Decimal
    transaction_id: int

    def to_dict(self) -> dict:
        return {
            "orderId": self.order_id,
            "message": self.message,
            "newBalance": as_float(self.new_balance),
            "transactionId": self.transaction_id,
        }
