"""Order Book Service.

Provides:
- Order placement with an execution preview
- Updates, confirmation (execution) and cancellation/rejection
- Order history

Execution moves cash, units and the audit record in one unit of work.
"""

import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy.orm import Session, joinedload

from src.api_errors import (
    ErrorCode,
    InsufficientFundsError,
    NotFoundError,
    StateError,
    ValidationError,
    format_money,
    parse_choice,
    parse_id,
    require_fields,
    validate_price,
    validate_quantity,
    validate_symbol,
)
from src.db.engine import atomic
from src.db.models import (
    Account,
    Asset,
    ConfirmationStatus,
    Holding,
    Order,
    OrderSide,
    OrderStatus,
    OrderType,
    Transaction,
    TransactionType,
)
from src.ledger import account_unit_of_work, lock_account
from src.logging_config.context import bind_context
from src.orders.config import DEFAULT_ORDER_CONFIG, MONEY_QUANTUM, TERMINAL_STATUSES, OrderConfig
from src.orders.models import (
    ExecutionResult,
    OrderAction,
    OrderPreview,
    OrderView,
    PlacedOrder,
    format_units,
)
from src.valuation.service import latest_close_prices

logger = logging.getLogger(__name__)

ORDER_TYPE_MESSAGE = "Invalid order type. Must be 'Market Open' or 'Limit'"


def _order_not_found(order_id: int) -> NotFoundError:
    return NotFoundError(
        message="Order not found",
        error_code=ErrorCode.ORDER_NOT_FOUND,
        resource_type="order",
        resource_id=str(order_id),
    )


def _account_not_found(account_id: Optional[int]) -> NotFoundError:
    return NotFoundError(
        message="Account not found",
        error_code=ErrorCode.ACCOUNT_NOT_FOUND,
        resource_type="account",
        resource_id=str(account_id),
    )


def _money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(MONEY_QUANTUM)


class OrderBook:
    """Service for the order lifecycle."""

    def __init__(self, session: Session, config: Optional[OrderConfig] = None):
        self.session = session
        self.config = config or DEFAULT_ORDER_CONFIG

    # =========================================================================
    # Placement
    # =========================================================================

    def place_order(
        self,
        user_id: Any,
        account_id: Any,
        symbol: Any,
        buy_sell: Any,
        order_type: Any,
        qty: Any,
        price: Any = None,
    ) -> PlacedOrder:
        """Place an order awaiting confirmation.

        Market orders are priced at the latest close unless an explicit
        price is given; limit orders must carry one.

        Raises:
            ValidationError: Missing or malformed fields.
            NotFoundError: Unknown symbol or account.
            InsufficientFundsError: A buy costs more than the account's cash.
        """
        require_fields({
            "userId": user_id,
            "accountId": account_id,
            "symbol": symbol,
            "buySell": buy_sell,
            "orderType": order_type,
            "qty": qty,
        })
        user_id = parse_id(user_id, "userId")
        account_id = parse_id(account_id, "accountId")
        symbol = validate_symbol(symbol)
        side = parse_choice(
            buy_sell, OrderSide, field="buySell",
            message="buySell must be 'Buy' or 'Sell'", case_insensitive=True,
        )
        kind = parse_choice(
            order_type, OrderType, field="orderType",
            error_code=ErrorCode.INVALID_ORDER_TYPE, message=ORDER_TYPE_MESSAGE,
            case_insensitive=True,
        )
        qty = validate_quantity(qty)

        if kind == OrderType.LIMIT and price in (None, ""):
            raise ValidationError(message="Limit orders require a price", field="price")
        explicit_price = validate_price(price) if price not in (None, "") else None

        asset = self.session.query(Asset).filter(Asset.asset_ticker == symbol).first()
        if asset is None:
            raise NotFoundError(
                message=f"Asset with ticker {symbol} not found",
                error_code=ErrorCode.SYMBOL_NOT_FOUND,
                resource_type="asset",
                resource_id=symbol,
            )

        account = self.session.get(Account, account_id)
        if account is None or account.user_id != user_id:
            raise _account_not_found(account_id)

        unit_price = explicit_price
        if unit_price is None:
            unit_price = latest_close_prices(self.session, [asset.asset_id]).get(asset.asset_id)
            if unit_price is None:
                raise ValidationError(message=f"No price available for {symbol}", field="price")

        amount = _money(qty * unit_price)
        cash = Decimal(account.cash_balance)
        if side == OrderSide.BUY and amount > cash:
            raise InsufficientFundsError(
                message=(
                    f"Insufficient cash balance. Required: ${format_money(amount)}, "
                    f"Available: ${format_money(cash)}"
                ),
                available=str(cash),
                required=str(amount),
            )

        now = datetime.now(timezone.utc)
        with atomic(self.session):
            order = Order(
                user_id=user_id,
                account_id=account.account_id,
                asset_id=asset.asset_id,
                order_type=kind,
                symbol=symbol,
                description=asset.asset_name,
                buy_sell=side,
                unit_price=_money(unit_price),
                limit_price=_money(unit_price) if kind == OrderType.LIMIT else None,
                qty=qty,
                amount=amount,
                settlement_date=(now + timedelta(days=self.config.settlement_days)).date(),
                order_status=self.config.initial_status,
                confirmation_status=self.config.initial_confirmation,
                order_date=now,
            )
            order.asset = asset
            self.session.add(order)

        logger.info(
            f"Placed {side.value} order for {format_units(qty)} {symbol}",
            extra={"order_id": order.order_id, "account_id": account.account_id},
        )
        preview = OrderPreview(
            order_id=order.order_id,
            symbol=symbol,
            buy_sell=side,
            quantity=qty,
            estimated_price=_money(unit_price),
            estimated_total=amount,
            account_name=account.account_name,
            account_balance=cash,
        )
        return PlacedOrder(
            order=OrderView.from_row(order),
            preview=preview,
            message=(
                f"{side.value} order for {format_units(qty)} shares of {symbol} "
                "placed successfully. Please confirm to execute."
            ),
        )

    def update_order(
        self,
        order_id: Any,
        qty: Any = None,
        order_type: Any = None,
        limit_price: Any = None,
    ) -> OrderAction:
        """Change quantity, order type or limit price of an open order.

        Any update sends the order back to pending confirmation.
        """
        require_fields({"orderId": order_id}, message="orderId is required")
        order_id = parse_id(order_id, "orderId")

        order = self.session.get(Order, order_id)
        if order is None:
            raise _order_not_found(order_id)
        if order.order_status == OrderStatus.EXECUTED:
            raise StateError("Cannot update an executed order", current_state=order.order_status.value)
        if order.order_status == OrderStatus.CANCELLED:
            raise StateError("Cannot update a cancelled order", current_state=order.order_status.value)

        if qty is None and order_type is None and limit_price is None:
            raise ValidationError(message="No update fields provided")

        new_qty = Decimal(order.qty)
        if qty is not None:
            new_qty = validate_quantity(qty)

        new_type = order.order_type
        if order_type is not None:
            new_type = parse_choice(
                order_type, OrderType, field="orderType",
                error_code=ErrorCode.INVALID_ORDER_TYPE, message=ORDER_TYPE_MESSAGE,
                case_insensitive=True,
            )

        new_limit = order.limit_price if new_type == OrderType.LIMIT else None
        if limit_price is not None:
            if new_type != OrderType.LIMIT:
                raise ValidationError(
                    message="Limit price can only be set for Limit orders", field="limitPrice"
                )
            new_limit = validate_price(
                limit_price, field="limitPrice", message="Limit price must be greater than 0"
            )
        if new_type == OrderType.LIMIT and new_limit is None:
            raise ValidationError(message="Limit orders require a price", field="limitPrice")

        unit_price = Decimal(new_limit) if new_limit is not None else Decimal(order.unit_price)

        with atomic(self.session):
            order.qty = new_qty
            order.order_type = new_type
            order.limit_price = _money(new_limit) if new_limit is not None else None
            order.unit_price = _money(unit_price)
            order.amount = _money(new_qty * unit_price)
            order.confirmation_status = ConfirmationStatus.PENDING_CONFIRMATION

        logger.info(f"Updated order {order_id}", extra={"order_id": order_id})
        return OrderAction(
            order_id=order_id,
            message=f"Order {order_id} updated successfully",
            order=OrderView.from_row(order),
        )

    # =========================================================================
    # Execution
    # =========================================================================

    def confirm_order(self, order_id: Any) -> ExecutionResult:
        """Execute a pending order against its account and the holdings.

        Raises:
            StateError: The order is not pending confirmation, or a sell
                has no holding to sell from.
            InsufficientFundsError: Not enough cash (buy) or units (sell).
        """
        require_fields({"orderId": order_id}, message="orderId is required")
        order_id = parse_id(order_id, "orderId")
        bind_context(order_id=order_id)

        with account_unit_of_work(self.session):
            order = (
                self.session.query(Order)
                .filter(Order.order_id == order_id)
                .populate_existing()
                .with_for_update()
                .first()
            )
            if order is None:
                raise _order_not_found(order_id)
            if order.confirmation_status != ConfirmationStatus.PENDING_CONFIRMATION:
                raise StateError(
                    f"Order cannot be confirmed. Status: {order.confirmation_status.value}",
                    current_state=order.confirmation_status.value,
                )
            if order.order_status == OrderStatus.CANCELLED:
                raise StateError("Cannot confirm a cancelled order", current_state=order.order_status.value)

            account = lock_account(self.session, order.account_id) if order.account_id else None
            if account is None:
                raise _account_not_found(order.account_id)

            if order.buy_sell == OrderSide.BUY:
                self._execute_buy(order, account)
                trans_type = TransactionType.BUY
            else:
                self._execute_sell(order, account)
                trans_type = TransactionType.SELL

            record = Transaction(
                user_id=order.user_id,
                account_id=account.account_id,
                asset_id=order.asset_id,
                trans_type=trans_type,
                date=datetime.now(timezone.utc),
                units=order.qty,
                price_per_unit=order.unit_price,
                cost=order.amount,
                description=f"{order.buy_sell.value} {format_units(order.qty)} {order.symbol}",
            )
            self.session.add(record)
            order.order_status = OrderStatus.EXECUTED
            order.confirmation_status = ConfirmationStatus.CONFIRMED
            self.session.flush()

        logger.info(
            f"Executed {order.buy_sell.value} order {order_id}",
            extra={"order_id": order_id, "account_id": account.account_id, "symbol": order.symbol},
        )
        return ExecutionResult(
            order_id=order_id,
            message=(
                f"Order executed successfully. {order.buy_sell.value} {format_units(order.qty)} "
                f"shares of {order.symbol} at ${Decimal(order.unit_price):.2f}"
            ),
            new_balance=Decimal(account.cash_balance),
            transaction_id=record.trans_id,
        )

    def _lock_holding(self, user_id: int, asset_id: int) -> Optional[Holding]:
        return (
            self.session.query(Holding)
            .filter(Holding.user_id == user_id, Holding.asset_id == asset_id)
            .populate_existing()
            .with_for_update()
            .first()
        )

    def _execute_buy(self, order: Order, account: Account) -> None:
        amount = Decimal(order.amount)
        cash = Decimal(account.cash_balance)
        if amount > cash:
            raise InsufficientFundsError(
                message=(
                    f"Insufficient funds. Required: ${format_money(amount)}, "
                    f"Available: ${format_money(cash)}"
                ),
                available=str(cash),
                required=str(amount),
            )
        account.cash_balance = cash - amount

        qty = Decimal(order.qty)
        holding = self._lock_holding(order.user_id, order.asset_id)
        if holding is None:
            holding = Holding(
                user_id=order.user_id,
                asset_id=order.asset_id,
                asset_total_units=qty,
                avg_cost_per_unit=_money(amount / qty),
                investment_amount=amount,
            )
            self.session.add(holding)
            return

        units = Decimal(holding.asset_total_units) + qty
        investment = Decimal(holding.investment_amount) + amount
        holding.asset_total_units = units
        holding.investment_amount = investment
        holding.avg_cost_per_unit = _money(investment / units)

    def _execute_sell(self, order: Order, account: Account) -> None:
        qty = Decimal(order.qty)
        holding = self._lock_holding(order.user_id, order.asset_id)
        if holding is None:
            raise StateError(f"No holdings found for {order.symbol}")

        units = Decimal(holding.asset_total_units)
        if units < qty:
            raise InsufficientFundsError(
                message=f"Insufficient shares. Required: {format_units(qty)}, Available: {format_units(units)}",
                error_code=ErrorCode.INSUFFICIENT_UNITS,
                available=str(units),
                required=str(qty),
            )

        account.cash_balance = Decimal(account.cash_balance) + Decimal(order.amount)

        remaining = units - qty
        if remaining == 0:
            self.session.delete(holding)
            return

        investment = Decimal(holding.investment_amount)
        holding.asset_total_units = remaining
        holding.investment_amount = _money(investment * remaining / units)
        holding.avg_cost_per_unit = _money(Decimal(holding.investment_amount) / remaining)

    # =========================================================================
    # Cancellation
    # =========================================================================

    def cancel_order(self, user_id: Any, order_id: Any) -> OrderAction:
        """Cancel one of the user's orders unless it is already final."""
        require_fields({"userId": user_id, "orderId": order_id})
        user_id = parse_id(user_id, "userId")
        order_id = parse_id(order_id, "orderId")

        with atomic(self.session):
            order = (
                self.session.query(Order)
                .filter(Order.order_id == order_id, Order.user_id == user_id)
                .populate_existing()
                .with_for_update()
                .first()
            )
            if order is None:
                raise _order_not_found(order_id)
            if order.order_status in TERMINAL_STATUSES:
                if order.order_status == OrderStatus.CANCELLED:
                    message = "Order is already cancelled"
                else:
                    message = "Cannot cancel executed order"
                raise StateError(message, current_state=order.order_status.value)
            order.order_status = OrderStatus.CANCELLED

        logger.info(f"Cancelled order {order_id}", extra={"order_id": order_id})
        return OrderAction(order_id=order_id, message=f"Order #{order_id} has been cancelled")

    def reject_order(self, order_id: Any) -> OrderAction:
        """Reject an order that is still pending confirmation."""
        require_fields({"orderId": order_id}, message="orderId is required")
        order_id = parse_id(order_id, "orderId")

        with atomic(self.session):
            order = (
                self.session.query(Order)
                .filter(Order.order_id == order_id)
                .populate_existing()
                .with_for_update()
                .first()
            )
            if order is None:
                raise _order_not_found(order_id)
            if order.confirmation_status != ConfirmationStatus.PENDING_CONFIRMATION:
                raise StateError(
                    f"Order cannot be rejected. Status: {order.confirmation_status.value}",
                    current_state=order.confirmation_status.value,
                )
            order.order_status = OrderStatus.CANCELLED
            order.confirmation_status = ConfirmationStatus.REJECTED

        logger.info(f"Rejected order {order_id}", extra={"order_id": order_id})
        return OrderAction(
            order_id=order_id,
            message=(
                f"Order rejected successfully. {order.buy_sell.value} order for "
                f"{format_units(order.qty)} shares of {order.symbol} has been cancelled."
            ),
        )

    # =========================================================================
    # History
    # =========================================================================

    def list_order_history(self, user_id: Any) -> list[OrderView]:
        """All of the user's orders, newest first."""
        require_fields({"userId": user_id}, message="User ID is required")
        user_id = parse_id(user_id, "userId")

        rows = (
            self.session.query(Order)
            .options(joinedload(Order.asset))
            .filter(Order.user_id == user_id)
            .order_by(Order.order_date.desc(), Order.order_id.desc())
            .all()
        )
        return [OrderView.from_row(row) for row in rows]
