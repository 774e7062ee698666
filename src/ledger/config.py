"""Account Ledger Configuration."""

from dataclasses import dataclass

from src.db.models import TransactionType

# Transaction types that add cash to an account vs. take it out.
INFLOW_TYPES = frozenset({TransactionType.DEPOSIT, TransactionType.SELL})
OUTFLOW_TYPES = frozenset({TransactionType.WITHDRAW, TransactionType.BUY})

ALL_TRANSACTION_TYPES = "all"


@dataclass(frozen=True)
class LedgerConfig:
    """Cash ledger configuration."""
    deposit_description: str = "Cash deposit"
    withdraw_description: str = "Cash withdrawal"
    max_account_name_length: int = 100
    max_description_length: int = 500


DEFAULT_LEDGER_CONFIG = LedgerConfig()
