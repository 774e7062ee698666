"""Account Ledger Data Models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from src.db.models import Account, AccountType, TransactionType
from src.ledger.config import INFLOW_TYPES, OUTFLOW_TYPES


def as_float(value: Optional[Decimal]) -> Optional[float]:
    """Render a stored decimal for JSON output."""
    if value is None:
        return None
    return float(value)


def as_iso(value: Optional[datetime]) -> Optional[str]:
    """ISO-8601 timestamp; naive values read back from SQLite are UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


@dataclass
class AccountSummary:
    """A cash account as returned to callers."""
    account_id: int
    account_name: str
    account_type: AccountType
    cash_balance: Decimal = Decimal("0")
    is_default: bool = False
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, account: Account) -> "AccountSummary":
        return cls(
            account_id=account.account_id,
            account_name=account.account_name,
            account_type=account.account_type,
            cash_balance=Decimal(account.cash_balance),
            is_default=bool(account.is_default),
            created_at=account.created_at,
        )

    def to_dict(self) -> dict:
        return {
            "accountId": self.account_id,
            "accountName": self.account_name,
            "accountType": self.account_type.value,
            "cashBalance": as_float(self.cash_balance),
            "isDefault": self.is_default,
            "createdAt": as_iso(self.created_at),
        }


@dataclass
class AccountList:
    """All of a user's accounts plus their combined cash."""
    accounts: list[AccountSummary] = field(default_factory=list)

    @property
    def total_cash(self) -> Decimal:
        return sum((a.cash_balance for a in self.accounts), Decimal("0"))

    def to_dict(self) -> dict:
        return {
            "accounts": [a.to_dict() for a in self.accounts],
            "totalCash": as_float(self.total_cash),
        }


@dataclass
class AccountBalance:
    """Current balance of a single account."""
    account_id: int
    account_name: str
    account_type: AccountType
    cash_balance: Decimal

    def to_dict(self) -> dict:
        return {
            "accountId": self.account_id,
            "accountName": self.account_name,
            "accountType": self.account_type.value,
            "cashBalance": as_float(self.cash_balance),
        }


@dataclass
class CashMovement:
    """Result of a deposit or withdrawal."""
    kind: TransactionType
    account_id: int
    account_name: str
    amount: Decimal
    previous_balance: Decimal
    new_balance: Decimal
    transaction_id: int
    timestamp: datetime

    def to_dict(self) -> dict:
        amount_key = "depositAmount" if self.kind == TransactionType.DEPOSIT else "withdrawAmount"
        return {
            "accountId": self.account_id,
            "accountName": self.account_name,
            amount_key: as_float(self.amount),
            "previousBalance": as_float(self.previous_balance),
            "newBalance": as_float(self.new_balance),
            "transactionId": self.transaction_id,
            "timestamp": as_iso(self.timestamp),
        }


@dataclass
class TransactionEntry:
    """One audit record joined with its account and asset."""
    transaction_id: int
    user_id: int
    account_id: Optional[int]
    account_name: str
    account_type: str
    trans_type: TransactionType
    date: Optional[datetime]
    symbol: str
    asset_name: str
    quantity: Optional[Decimal]
    price_per_unit: Optional[Decimal]
    amount: Decimal
    description: Optional[str] = None

    @property
    def is_positive(self) -> bool:
        return self.trans_type in INFLOW_TYPES

    @property
    def is_negative(self) -> bool:
        return self.trans_type in OUTFLOW_TYPES

    def to_dict(self) -> dict:
        return {
            "transactionId": self.transaction_id,
            "userId": self.user_id,
            "accountId": self.account_id,
            "accountName": self.account_name,
            "accountType": self.account_type,
            "type": self.trans_type.value,
            "date": as_iso(self.date),
            "symbol": self.symbol,
            "assetName": self.asset_name,
            "quantity": as_float(self.quantity),
            "pricePerShare": as_float(self.price_per_unit),
            "amount": as_float(self.amount),
            "description": self.description,
            "isPositive": self.is_positive,
            "isNegative": self.is_negative,
        }


@dataclass
class TransactionHistory:
    """Filtered transaction list with per-type totals."""
    transactions: list[TransactionEntry] = field(default_factory=list)

    def total_for(self, trans_type: TransactionType) -> Decimal:
        return sum(
            (t.amount for t in self.transactions if t.trans_type == trans_type),
            Decimal("0"),
        )

    def to_dict(self) -> dict:
        return {
            "transactions": [t.to_dict() for t in self.transactions],
            "totalTransactions": len(self.transactions),
            "summary": {
                "totalDeposits": as_float(self.total_for(TransactionType.DEPOSIT)),
                "totalWithdrawals": as_float(self.total_for(TransactionType.WITHDRAW)),
                "totalBuys": as_float(self.total_for(TransactionType.BUY)),
                "totalSells": as_float(self.total_for(TransactionType.SELL)),
            },
        }
