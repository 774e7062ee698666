"""Transaction history view over the append-only audit table."""

import logging
from typing import Any, Optional

from sqlalchemy.orm import Session, joinedload

from src.api_errors import parse_choice, parse_id, require_fields
from src.db.models import Transaction, TransactionType
from src.ledger.config import ALL_TRANSACTION_TYPES
from src.ledger.models import TransactionEntry, TransactionHistory

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "N/A"


class TransactionHistoryService:
    """Read-only queries over a user's transactions."""

    def __init__(self, session: Session):
        self.session = session

    def list_transactions(
        self,
        user_id: Any,
        account_id: Any = None,
        trans_type: Optional[str] = None,
    ) -> TransactionHistory:
        """List a user's transactions, newest first.

        Args:
            user_id: Owner of the transactions.
            account_id: Restrict to one account.
            trans_type: DEPOSIT, WITHDRAW, BUY, SELL or ``all``.

        Returns:
            TransactionHistory with per-type totals.
        """
        require_fields({"userId": user_id}, message="User ID is required")
        user_id = parse_id(user_id, "userId")

        query = (
            self.session.query(Transaction)
            .options(joinedload(Transaction.account), joinedload(Transaction.asset))
            .filter(Transaction.user_id == user_id)
        )
        if account_id not in (None, ""):
            query = query.filter(Transaction.account_id == parse_id(account_id, "accountId"))
        if trans_type and trans_type.strip().lower() != ALL_TRANSACTION_TYPES:
            kind = parse_choice(trans_type, TransactionType, field="type", case_insensitive=True)
            query = query.filter(Transaction.trans_type == kind)

        rows = query.order_by(Transaction.date.desc(), Transaction.trans_id.desc()).all()
        return TransactionHistory(transactions=[self._entry(row) for row in rows])

    @staticmethod
    def _entry(row: Transaction) -> TransactionEntry:
        account = row.account
        asset = row.asset
        return TransactionEntry(
            transaction_id=row.trans_id,
            user_id=row.user_id,
            account_id=row.account_id,
            account_name=account.account_name if account else NOT_AVAILABLE,
            account_type=account.account_type.value if account else NOT_AVAILABLE,
            trans_type=row.trans_type,
            date=row.date,
            symbol=asset.asset_ticker if asset else NOT_AVAILABLE,
            asset_name=asset.asset_name if asset else NOT_AVAILABLE,
            quantity=row.units,
            price_per_unit=row.price_per_unit,
            amount=row.cost,
            description=row.description,
        )
