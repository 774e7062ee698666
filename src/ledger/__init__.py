"""Account Ledger Module.

Cash accounts, deposits and withdrawals applied as single units of
work, and the transaction history view.

Example:
    from src.ledger import AccountLedger

    ledger = AccountLedger(session)
    movement = ledger.deposit(account_id=1, amount="250.00")
    print(f"New balance: {movement.new_balance}")
"""

from src.ledger.config import (
    ALL_TRANSACTION_TYPES,
    DEFAULT_LEDGER_CONFIG,
    INFLOW_TYPES,
    OUTFLOW_TYPES,
    LedgerConfig,
)
from src.ledger.history import TransactionHistoryService
from src.ledger.models import (
    AccountBalance,
    AccountList,
    AccountSummary,
    CashMovement,
    TransactionEntry,
    TransactionHistory,
)
from src.ledger.service import AccountLedger, account_unit_of_work, lock_account

__all__ = [
    # Config
    "ALL_TRANSACTION_TYPES",
    "DEFAULT_LEDGER_CONFIG",
    "INFLOW_TYPES",
    "OUTFLOW_TYPES",
    "LedgerConfig",
    # Models
    "AccountBalance",
    "AccountList",
    "AccountSummary",
    "CashMovement",
    "TransactionEntry",
    "TransactionHistory",
    # Services
    "AccountLedger",
    "TransactionHistoryService",
    "account_unit_of_work",
    "lock_account",
]
