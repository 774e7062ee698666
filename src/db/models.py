"""SQLAlchemy ORM models for the Folio service.

Tables:
- users: Account owners (reference only, no credentials)
- asset_type: Tradeable asset reference data
- asset_history: Daily closing prices per asset
- user_accounts: Cash accounts with an optimistic version counter
- user_transactions: Append-only cash and trade audit records
- order_book: Buy/sell orders and their confirmation lifecycle
- user_portfolio: Holdings (units and cost basis per asset)
"""

import enum
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from src.db.base import Base


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _enum_values(enum_cls) -> list[str]:
    return [member.value for member in enum_cls]


def _enum_column(enum_cls, length: int) -> Enum:
    return Enum(
        enum_cls,
        values_callable=_enum_values,
        native_enum=False,
        length=length,
        validate_strings=True,
    )


MONEY = Numeric(18, 4)
UNITS = Numeric(18, 6)


class AccountType(str, enum.Enum):
    """Cash account types."""
    CHECKING = "checking"
    SAVINGS = "savings"
    BROKERAGE = "brokerage"


class TransactionType(str, enum.Enum):
    """Audit record types."""
    DEPOSIT = "DEPOSIT"
    WITHDRAW = "WITHDRAW"
    BUY = "BUY"
    SELL = "SELL"


class OrderSide(str, enum.Enum):
    """Order side."""
    BUY = "Buy"
    SELL = "Sell"


class OrderType(str, enum.Enum):
    """Order type."""
    MARKET_OPEN = "Market Open"
    LIMIT = "Limit"


class OrderStatus(str, enum.Enum):
    """Order lifecycle status."""
    PLACED = "Placed"
    UNDER_REVIEW = "Under Review"
    CANCELLED = "Cancelled"
    EXECUTED = "Executed"


class ConfirmationStatus(str, enum.Enum):
    """Pre-execution confirmation status."""
    PENDING_CONFIRMATION = "pending_confirmation"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"


class User(Base):
    """Account owner."""

    __tablename__ = "users"

    user_id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(150), nullable=False)
    username = Column(String(150), unique=True, nullable=False)
    email = Column(String(150), unique=True, nullable=False)


class Asset(Base):
    """Tradeable asset reference data."""

    __tablename__ = "asset_type"

    asset_id = Column(Integer, primary_key=True, autoincrement=True)
    asset_ticker = Column(String(10), unique=True, nullable=False, index=True)
    asset_name = Column(String(200), nullable=False)
    asset_class = Column(String(100), nullable=False)  # Stock, ETF, Bond, Cash
    category = Column(String(200))

    prices = relationship("AssetPrice", back_populates="asset", cascade="all, delete-orphan")

    @property
    def is_cash(self) -> bool:
        return (self.asset_class or "").lower() == "cash"


class AssetPrice(Base):
    """Daily closing price for an asset."""

    __tablename__ = "asset_history"

    asset_hist_id = Column(Integer, primary_key=True, autoincrement=True)
    asset_id = Column(Integer, ForeignKey("asset_type.asset_id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)
    close_price = Column(MONEY, nullable=False)

    asset = relationship("Asset", back_populates="prices")

    __table_args__ = (
        UniqueConstraint("asset_id", "date", name="uq_asset_history_asset_date"),
        Index("ix_asset_history_asset_date", "asset_id", "date"),
    )


class Account(Base):
    """Cash account. ``version`` is bumped on every update (compare-and-swap)."""

    __tablename__ = "user_accounts"

    account_id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    account_name = Column(String(100), nullable=False)
    account_type = Column(_enum_column(AccountType, 20), nullable=False)
    cash_balance = Column(MONEY, nullable=False, default=0)
    is_default = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utc_now)
    version = Column(Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version}


class Transaction(Base):
    """Append-only audit record for cash movements and executed trades."""

    __tablename__ = "user_transactions"

    trans_id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    account_id = Column(Integer, ForeignKey("user_accounts.account_id"), index=True)
    asset_id = Column(Integer, ForeignKey("asset_type.asset_id"), nullable=True)
    trans_type = Column(_enum_column(TransactionType, 10), nullable=False)
    date = Column(DateTime(timezone=True), nullable=False, default=_utc_now)
    units = Column(UNITS, nullable=True)
    price_per_unit = Column(MONEY, nullable=True)
    cost = Column(MONEY, nullable=False)
    description = Column(Text)

    account = relationship("Account")
    asset = relationship("Asset")


class Order(Base):
    """Buy/sell order with its confirmation lifecycle."""

    __tablename__ = "order_book"

    order_id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    account_id = Column(Integer, ForeignKey("user_accounts.account_id"), nullable=True)
    asset_id = Column(Integer, ForeignKey("asset_type.asset_id"), nullable=False)
    order_type = Column(_enum_column(OrderType, 15), nullable=False)
    symbol = Column(String(10), nullable=False)
    description = Column(String(200))
    buy_sell = Column(_enum_column(OrderSide, 4), nullable=False)
    unit_price = Column(MONEY, nullable=False)
    limit_price = Column(MONEY, nullable=True)
    qty = Column(UNITS, nullable=False)
    amount = Column(MONEY, nullable=False)
    settlement_date = Column(Date, nullable=False)
    order_status = Column(_enum_column(OrderStatus, 20), nullable=False, default=OrderStatus.PLACED)
    confirmation_status = Column(
        _enum_column(ConfirmationStatus, 30),
        nullable=False,
        default=ConfirmationStatus.PENDING_CONFIRMATION,
    )
    order_date = Column(DateTime(timezone=True), nullable=False, default=_utc_now)

    asset = relationship("Asset")

    __table_args__ = (
        Index("ix_order_book_user_date", "user_id", "order_date"),
    )


class Holding(Base):
    """A user's position in one asset."""

    __tablename__ = "user_portfolio"

    user_port_id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    asset_id = Column(Integer, ForeignKey("asset_type.asset_id", ondelete="CASCADE"), nullable=False)
    asset_total_units = Column(UNITS, nullable=False)
    avg_cost_per_unit = Column(MONEY, nullable=False)
    investment_amount = Column(MONEY, nullable=False)

    asset = relationship("Asset")

    __table_args__ = (
        UniqueConstraint("user_id", "asset_id", name="uq_user_portfolio_user_asset"),
    )
