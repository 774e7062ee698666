"""Tests for the order book: placement, execution and lifecycle."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from src.api_errors import (
    ErrorCode,
    InsufficientFundsError,
    NotFoundError,
    StateError,
    ValidationError,
)
from src.db.models import (
    Account,
    ConfirmationStatus,
    Holding,
    Order,
    OrderSide,
    OrderStatus,
    OrderType,
    Transaction,
    TransactionType,
)
from src.ledger import AccountLedger
from src.orders import OrderBook, OrderConfig
from src.orders.models import format_units


def _place(session, user, account, side="Buy", qty=10, order_type="Market Open", price=None, symbol="AAPL"):
    return OrderBook(session).place_order(
        user.user_id, account.account_id, symbol, side, order_type, qty, price
    )


def _trades(session, user):
    return (
        session.query(Transaction)
        .filter(
            Transaction.user_id == user.user_id,
            Transaction.trans_type.in_([TransactionType.BUY, TransactionType.SELL]),
        )
        .all()
    )


class TestFormatUnits:
    """Tests for quantity rendering."""

    def test_whole_and_fractional(self):
        assert format_units(Decimal("10.000000")) == "10"
        assert format_units(Decimal("2.500000")) == "2.5"
        assert format_units(Decimal("100")) == "100"


class TestPlaceOrder:
    """Tests for order placement."""

    def test_market_order_uses_latest_close(self, session, user, make_account, aapl):
        account = make_account("5000")
        placed = _place(session, user, account)

        order = placed.order
        assert order.unit_price == Decimal("120")
        assert order.amount == Decimal("1200")
        assert order.order_status == OrderStatus.PLACED
        assert order.confirmation_status == ConfirmationStatus.PENDING_CONFIRMATION
        assert order.limit_price is None
        assert order.asset_name == "Apple Inc."
        assert placed.message == (
            "Buy order for 10 shares of AAPL placed successfully. Please confirm to execute."
        )

    def test_placement_does_not_move_cash(self, session, user, make_account, aapl):
        account = make_account("5000")
        _place(session, user, account)
        session.refresh(account)
        assert account.cash_balance == Decimal("5000")
        assert _trades(session, user) == []

    def test_preview(self, session, user, make_account, aapl):
        account = make_account("5000", name="Brokerage")
        preview = _place(session, user, account, qty="2.5").to_dict()["orderPreview"]
        assert preview["estimatedPrice"] == 120
        assert preview["estimatedTotal"] == 300
        assert preview["accountBalance"] == 5000
        assert preview["balanceAfterTrade"] == 4700
        assert preview["accountName"] == "Brokerage"

    def test_sell_preview_adds_cash(self, session, user, make_account, aapl):
        account = make_account("100")
        placed = _place(session, user, account, side="Sell", qty=5)
        assert placed.preview.balance_after_trade == Decimal("700")

    def test_settlement_date(self, session, user, make_account, aapl):
        account = make_account("5000")
        book = OrderBook(session, OrderConfig(settlement_days=3))
        placed = book.place_order(user.user_id, account.account_id, "AAPL", "Buy", "Market Open", 1)
        expected = (datetime.now(timezone.utc) + timedelta(days=3)).date()
        assert placed.order.settlement_date == expected

    def test_limit_order(self, session, user, make_account, aapl):
        account = make_account("5000")
        placed = _place(session, user, account, order_type="Limit", price="110.5")
        assert placed.order.order_type == OrderType.LIMIT
        assert placed.order.limit_price == Decimal("110.5")
        assert placed.order.amount == Decimal("1105")

    def test_limit_order_requires_price(self, session, user, make_account, aapl):
        account = make_account("5000")
        with pytest.raises(ValidationError, match="Limit orders require a price"):
            _place(session, user, account, order_type="Limit")

    def test_insufficient_cash(self, session, user, make_account, aapl):
        account = make_account("1000")
        with pytest.raises(InsufficientFundsError) as exc_info:
            _place(session, user, account)
        assert exc_info.value.message == (
            "Insufficient cash balance. Required: $1,200, Available: $1,000"
        )
        assert session.query(Order).count() == 0

    def test_sell_not_checked_against_cash(self, session, user, make_account, aapl):
        account = make_account("0")
        placed = _place(session, user, account, side="Sell")
        assert placed.order.buy_sell == OrderSide.SELL

    def test_case_insensitive_side_and_symbol(self, session, user, make_account, aapl):
        account = make_account("5000")
        placed = _place(session, user, account, side="buy", symbol="aapl", order_type="market open")
        assert placed.order.buy_sell == OrderSide.BUY
        assert placed.order.symbol == "AAPL"

    def test_missing_fields(self, session, user):
        with pytest.raises(ValidationError) as exc_info:
            OrderBook(session).place_order(user.user_id, None, "AAPL", "Buy", None, 1)
        assert exc_info.value.message == (
            "userId, accountId, symbol, buySell, orderType, and qty are required"
        )

    def test_invalid_side(self, session, user, make_account, aapl):
        account = make_account("5000")
        with pytest.raises(ValidationError, match="buySell must be 'Buy' or 'Sell'"):
            _place(session, user, account, side="Hold")

    def test_invalid_order_type(self, session, user, make_account, aapl):
        account = make_account("5000")
        with pytest.raises(ValidationError) as exc_info:
            _place(session, user, account, order_type="Stop")
        assert exc_info.value.error_code == ErrorCode.INVALID_ORDER_TYPE
        assert exc_info.value.message == "Invalid order type. Must be 'Market Open' or 'Limit'"

    @pytest.mark.parametrize("qty", [0, -1, "ten"])
    def test_invalid_quantity(self, session, user, make_account, aapl, qty):
        account = make_account("5000")
        with pytest.raises(ValidationError):
            _place(session, user, account, qty=qty)

    def test_unknown_symbol(self, session, user, make_account):
        account = make_account("5000")
        with pytest.raises(NotFoundError) as exc_info:
            _place(session, user, account, symbol="ZZZZ")
        assert exc_info.value.message == "Asset with ticker ZZZZ not found"
        assert exc_info.value.error_code == ErrorCode.SYMBOL_NOT_FOUND

    def test_account_of_another_user(self, session, user, other_user, make_account, aapl):
        account = make_account("5000", owner=other_user)
        with pytest.raises(NotFoundError, match="Account not found"):
            _place(session, user, account)

    def test_no_price_history(self, session, user, make_account, make_asset):
        make_asset("NEWCO")
        account = make_account("5000")
        with pytest.raises(ValidationError, match="No price available for NEWCO"):
            _place(session, user, account, symbol="NEWCO")


class TestUpdateOrder:
    """Tests for order updates."""

    def test_update_quantity_recomputes_amount(self, session, user, make_account, aapl):
        account = make_account("5000")
        order_id = _place(session, user, account).order.order_id

        action = OrderBook(session).update_order(order_id, qty=4)
        assert action.message == f"Order {order_id} updated successfully"
        assert action.order.qty == Decimal("4")
        assert action.order.amount == Decimal("480")

    def test_switch_to_limit(self, session, user, make_account, aapl):
        account = make_account("5000")
        order_id = _place(session, user, account, qty=2).order.order_id

        action = OrderBook(session).update_order(order_id, order_type="Limit", limit_price="100")
        assert action.order.order_type == OrderType.LIMIT
        assert action.order.limit_price == Decimal("100")
        assert action.order.unit_price == Decimal("100")
        assert action.order.amount == Decimal("200")

    def test_limit_price_on_market_order(self, session, user, make_account, aapl):
        account = make_account("5000")
        order_id = _place(session, user, account).order.order_id
        with pytest.raises(ValidationError, match="Limit price can only be set for Limit orders"):
            OrderBook(session).update_order(order_id, limit_price="100")

    def test_non_positive_limit_price(self, session, user, make_account, aapl):
        account = make_account("5000")
        order_id = _place(session, user, account, order_type="Limit", price="100").order.order_id
        with pytest.raises(ValidationError, match="Limit price must be greater than 0"):
            OrderBook(session).update_order(order_id, limit_price="0")

    def test_no_fields(self, session, user, make_account, aapl):
        account = make_account("5000")
        order_id = _place(session, user, account).order.order_id
        with pytest.raises(ValidationError, match="No update fields provided"):
            OrderBook(session).update_order(order_id)

    def test_update_executed_order(self, session, user, make_account, aapl):
        account = make_account("5000")
        book = OrderBook(session)
        order_id = _place(session, user, account, qty=1).order.order_id
        book.confirm_order(order_id)
        with pytest.raises(StateError, match="Cannot update an executed order"):
            book.update_order(order_id, qty=2)

    def test_update_cancelled_order(self, session, user, make_account, aapl):
        account = make_account("5000")
        book = OrderBook(session)
        order_id = _place(session, user, account, qty=1).order.order_id
        book.cancel_order(user.user_id, order_id)
        with pytest.raises(StateError, match="Cannot update a cancelled order"):
            book.update_order(order_id, qty=2)

    def test_unknown_order(self, session):
        with pytest.raises(NotFoundError, match="Order not found"):
            OrderBook(session).update_order(999, qty=1)


class TestConfirmOrder:
    """Tests for order execution."""

    def test_buy_debits_cash_and_creates_holding(self, session, user, make_account, aapl):
        account = make_account("5000")
        book = OrderBook(session)
        order_id = _place(session, user, account).order.order_id

        result = book.confirm_order(order_id)
        assert result.new_balance == Decimal("3800")
        assert result.message == "Order executed successfully. Buy 10 shares of AAPL at $120.00"

        session.refresh(account)
        assert account.cash_balance == Decimal("3800")

        holding = session.query(Holding).filter(Holding.user_id == user.user_id).one()
        assert holding.asset_total_units == Decimal("10")
        assert holding.investment_amount == Decimal("1200")
        assert holding.avg_cost_per_unit == Decimal("120")

        order = session.get(Order, order_id)
        assert order.order_status == OrderStatus.EXECUTED
        assert order.confirmation_status == ConfirmationStatus.CONFIRMED

        trades = _trades(session, user)
        assert len(trades) == 1
        assert trades[0].trans_id == result.transaction_id
        assert trades[0].trans_type == TransactionType.BUY
        assert trades[0].units == Decimal("10")
        assert trades[0].cost == Decimal("1200")

    def test_second_buy_extends_holding(self, session, user, make_account, aapl, make_holding):
        make_holding(aapl, units=10, investment=1000)
        account = make_account("5000")
        book = OrderBook(session)
        book.confirm_order(_place(session, user, account, qty=10).order.order_id)

        holding = session.query(Holding).filter(Holding.user_id == user.user_id).one()
        assert holding.asset_total_units == Decimal("20")
        assert holding.investment_amount == Decimal("2200")
        assert holding.avg_cost_per_unit == Decimal("110")

    def test_partial_sell_reduces_holding(self, session, user, make_account, aapl, make_holding):
        make_holding(aapl, units=10, investment=1000)
        account = make_account("0")
        book = OrderBook(session)
        result = book.confirm_order(_place(session, user, account, side="Sell", qty=4).order.order_id)

        assert result.new_balance == Decimal("480")
        holding = session.query(Holding).filter(Holding.user_id == user.user_id).one()
        assert holding.asset_total_units == Decimal("6")
        assert holding.investment_amount == Decimal("600")
        assert holding.avg_cost_per_unit == Decimal("100")

    def test_sell_all_deletes_holding(self, session, user, make_account, aapl, make_holding):
        make_holding(aapl, units=10, investment=1000)
        account = make_account("0")
        book = OrderBook(session)
        book.confirm_order(_place(session, user, account, side="Sell", qty=10).order.order_id)

        assert session.query(Holding).filter(Holding.user_id == user.user_id).count() == 0
        session.refresh(account)
        assert account.cash_balance == Decimal("1200")
        assert _trades(session, user)[0].trans_type == TransactionType.SELL

    def test_sell_without_holding(self, session, user, make_account, aapl):
        account = make_account("0")
        order_id = _place(session, user, account, side="Sell", qty=1).order.order_id
        with pytest.raises(StateError, match="No holdings found for AAPL"):
            OrderBook(session).confirm_order(order_id)

    def test_sell_more_than_held_changes_nothing(self, session, user, make_account, aapl, make_holding):
        make_holding(aapl, units=3, investment=300)
        account = make_account("50")
        order_id = _place(session, user, account, side="Sell", qty=5).order.order_id

        with pytest.raises(InsufficientFundsError) as exc_info:
            OrderBook(session).confirm_order(order_id)
        assert exc_info.value.error_code == ErrorCode.INSUFFICIENT_UNITS
        assert exc_info.value.message == "Insufficient shares. Required: 5, Available: 3"

        session.expire_all()
        assert session.get(Order, order_id).order_status == OrderStatus.PLACED
        assert session.query(Holding).one().asset_total_units == Decimal("3")
        assert session.get(Account, account.account_id).cash_balance == Decimal("50")
        assert _trades(session, user) == []

    def test_buy_after_cash_withdrawn_changes_nothing(self, session, user, make_account, aapl):
        account = make_account("1500")
        order_id = _place(session, user, account).order.order_id
        AccountLedger(session).withdraw(account.account_id, 1000)

        with pytest.raises(InsufficientFundsError) as exc_info:
            OrderBook(session).confirm_order(order_id)
        assert exc_info.value.message == "Insufficient funds. Required: $1,200, Available: $500"

        session.expire_all()
        order = session.get(Order, order_id)
        assert order.order_status == OrderStatus.PLACED
        assert order.confirmation_status == ConfirmationStatus.PENDING_CONFIRMATION
        assert session.get(Account, account.account_id).cash_balance == Decimal("500")
        assert session.query(Holding).count() == 0
        assert _trades(session, user) == []

    def test_confirm_twice(self, session, user, make_account, aapl):
        account = make_account("5000")
        book = OrderBook(session)
        order_id = _place(session, user, account, qty=1).order.order_id
        book.confirm_order(order_id)
        with pytest.raises(StateError, match="Order cannot be confirmed. Status: confirmed"):
            book.confirm_order(order_id)
        session.refresh(account)
        assert account.cash_balance == Decimal("4880")

    def test_confirm_cancelled(self, session, user, make_account, aapl):
        account = make_account("5000")
        book = OrderBook(session)
        order_id = _place(session, user, account, qty=1).order.order_id
        book.cancel_order(user.user_id, order_id)
        with pytest.raises(StateError, match="Cannot confirm a cancelled order"):
            book.confirm_order(order_id)

    def test_unknown_order(self, session):
        with pytest.raises(NotFoundError):
            OrderBook(session).confirm_order(12345)


class TestCancelOrder:
    """Tests for cancellation."""

    def test_cancel_then_cancel_again(self, session, user, make_account, aapl):
        account = make_account("5000")
        book = OrderBook(session)
        order_id = _place(session, user, account).order.order_id

        action = book.cancel_order(user.user_id, order_id)
        assert action.message == f"Order #{order_id} has been cancelled"
        assert session.get(Order, order_id).order_status == OrderStatus.CANCELLED

        with pytest.raises(StateError, match="Order is already cancelled"):
            book.cancel_order(user.user_id, order_id)

    def test_cancel_executed(self, session, user, make_account, aapl):
        account = make_account("5000")
        book = OrderBook(session)
        order_id = _place(session, user, account, qty=1).order.order_id
        book.confirm_order(order_id)
        with pytest.raises(StateError, match="Cannot cancel executed order"):
            book.cancel_order(user.user_id, order_id)

    def test_cancel_other_users_order(self, session, user, other_user, make_account, aapl):
        account = make_account("5000")
        order_id = _place(session, user, account).order.order_id
        with pytest.raises(NotFoundError):
            OrderBook(session).cancel_order(other_user.user_id, order_id)
        assert session.get(Order, order_id).order_status == OrderStatus.PLACED

    def test_missing_fields(self, session):
        with pytest.raises(ValidationError, match="userId and orderId are required"):
            OrderBook(session).cancel_order(None, None)


class TestRejectOrder:
    """Tests for rejection."""

    def test_reject_pending(self, session, user, make_account, aapl):
        account = make_account("5000")
        order_id = _place(session, user, account, qty=3).order.order_id

        action = OrderBook(session).reject_order(order_id)
        assert action.message == (
            "Order rejected successfully. Buy order for 3 shares of AAPL has been cancelled."
        )
        order = session.get(Order, order_id)
        assert order.order_status == OrderStatus.CANCELLED
        assert order.confirmation_status == ConfirmationStatus.REJECTED

    def test_reject_twice(self, session, user, make_account, aapl):
        account = make_account("5000")
        book = OrderBook(session)
        order_id = _place(session, user, account).order.order_id
        book.reject_order(order_id)
        with pytest.raises(StateError, match="Order cannot be rejected. Status: rejected"):
            book.reject_order(order_id)

        session.expire_all()
        order = session.get(Order, order_id)
        assert order.order_status == OrderStatus.CANCELLED
        assert order.confirmation_status == ConfirmationStatus.REJECTED

    def test_reject_executed(self, session, user, make_account, aapl):
        account = make_account("5000")
        book = OrderBook(session)
        order_id = _place(session, user, account, qty=1).order.order_id
        book.confirm_order(order_id)
        balance = session.get(Account, account.account_id).cash_balance
        with pytest.raises(StateError, match="Status: confirmed"):
            book.reject_order(order_id)

        session.expire_all()
        order = session.get(Order, order_id)
        assert order.order_status == OrderStatus.EXECUTED
        assert order.confirmation_status == ConfirmationStatus.CONFIRMED
        assert session.get(Account, account.account_id).cash_balance == balance

    def test_reject_cancelled_while_pending(self, session, user, make_account, aapl):
        account = make_account("5000")
        book = OrderBook(session)
        order_id = _place(session, user, account, qty=2).order.order_id
        book.cancel_order(user.user_id, order_id)
        assert session.get(Order, order_id).confirmation_status == ConfirmationStatus.PENDING_CONFIRMATION

        book.reject_order(order_id)
        session.expire_all()
        order = session.get(Order, order_id)
        assert order.order_status == OrderStatus.CANCELLED
        assert order.confirmation_status == ConfirmationStatus.REJECTED


class TestOrderHistory:
    """Tests for order history."""

    def test_newest_first(self, session, user, make_account, aapl):
        account = make_account("50000")
        first = _place(session, user, account, qty=1).order.order_id
        second = _place(session, user, account, qty=2).order.order_id
        third = _place(session, user, account, qty=3).order.order_id

        history = OrderBook(session).list_order_history(user.user_id)
        assert [o.order_id for o in history] == [third, second, first]

    def test_same_timestamp_breaks_tie_by_id(self, session, user, make_account, aapl):
        account = make_account("50000")
        ids = [_place(session, user, account, qty=1).order.order_id for _ in range(3)]
        stamp = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        session.query(Order).update({Order.order_date: stamp})
        session.commit()

        history = OrderBook(session).list_order_history(user.user_id)
        assert [o.order_id for o in history] == list(reversed(ids))

    def test_only_own_orders(self, session, user, other_user, make_account, aapl):
        mine = make_account("5000")
        theirs = make_account("5000", owner=other_user)
        _place(session, user, mine, qty=1)
        _place(session, other_user, theirs, qty=1)

        history = OrderBook(session).list_order_history(user.user_id)
        assert len(history) == 1
        d = history[0].to_dict()
        assert d["symbol"] == "AAPL"
        assert d["buySell"] == "Buy"
        assert d["orderType"] == "Market Open"
        assert d["orderStatus"] == "Placed"
        assert d["confirmationStatus"] == "pending_confirmation"
        assert d["assetClass"] == "Stock"

    def test_empty(self, session, user):
        assert OrderBook(session).list_order_history(user.user_id) == []
