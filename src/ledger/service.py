"""Account Ledger Service.

Provides:
- Account creation and listing
- Single-account balance lookup
- Deposits and withdrawals, each applied as one unit of work that
  updates the balance and appends the audit record together
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Iterator, Optional

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from src.api_errors import (
    ConflictError,
    ErrorCode,
    InsufficientFundsError,
    NotFoundError,
    ValidationError,
    format_money,
    parse_choice,
    parse_id,
    require_fields,
    validate_amount,
)
from src.db.engine import atomic
from src.db.models import Account, AccountType, Transaction, TransactionType, User
from src.ledger.config import DEFAULT_LEDGER_CONFIG, LedgerConfig
from src.ledger.models import AccountBalance, AccountList, AccountSummary, CashMovement

logger = logging.getLogger(__name__)


@contextmanager
def account_unit_of_work(session: Session) -> Iterator[Session]:
    """``atomic`` that reports a lost account update as a 409 conflict."""
    try:
        with atomic(session):
            yield session
    except StaleDataError as exc:
        logger.warning(f"Concurrent account update rejected: {exc}")
        raise ConflictError(
            message="Account was modified by another request, please retry",
            error_code=ErrorCode.CONCURRENT_UPDATE,
        ) from exc


def lock_account(session: Session, account_id: int) -> Optional[Account]:
    """Load an account row for update, refreshing any cached copy."""
    return (
        session.query(Account)
        .filter(Account.account_id == account_id)
        .populate_existing()
        .with_for_update()
        .first()
    )


class AccountLedger:
    """Service for cash accounts and the deposit/withdraw ledger."""

    def __init__(self, session: Session, config: Optional[LedgerConfig] = None):
        self.session = session
        self.config = config or DEFAULT_LEDGER_CONFIG

    # =========================================================================
    # Accounts
    # =========================================================================

    def create_account(self, user_id: Any, account_name: Any, account_type: Any) -> AccountSummary:
        """Open a new account with a zero balance.

        Raises:
            ValidationError: Missing fields or an unknown account type.
            NotFoundError: The user does not exist.
        """
        require_fields(
            {"userId": user_id, "accountName": account_name, "accountType": account_type}
        )
        user_id = parse_id(user_id, "userId")
        account_name = str(account_name).strip()
        if len(account_name) > self.config.max_account_name_length:
            raise ValidationError(
                message=f"Account name must be at most {self.config.max_account_name_length} characters",
                field="accountName",
            )
        kind = parse_choice(
            account_type,
            AccountType,
            field="accountType",
            error_code=ErrorCode.INVALID_ACCOUNT_TYPE,
            message="Account type must be one of: checking, savings, brokerage",
        )

        if self.session.get(User, user_id) is None:
            raise NotFoundError(message="User not found", resource_type="user", resource_id=str(user_id))

        with atomic(self.session):
            account = Account(
                user_id=user_id,
                account_name=account_name,
                account_type=kind,
                cash_balance=Decimal("0"),
                is_default=False,
                created_at=datetime.now(timezone.utc),
            )
            self.session.add(account)

        logger.info(
            f"Created {kind.value} account '{account_name}' for user {user_id}",
            extra={"account_id": account.account_id},
        )
        return AccountSummary.from_row(account)

    def list_accounts(self, user_id: Any) -> AccountList:
        """List a user's accounts, default account first then by name."""
        require_fields({"userId": user_id}, message="User ID is required")
        user_id = parse_id(user_id, "userId")

        rows = (
            self.session.query(Account)
            .filter(Account.user_id == user_id)
            .order_by(Account.is_default.desc(), Account.account_name.asc())
            .all()
        )
        return AccountList(accounts=[AccountSummary.from_row(a) for a in rows])

    def get_account_balance(self, account_id: Any) -> AccountBalance:
        """Current cash balance of one account."""
        account = self._get_account(parse_id(account_id, "accountId"))
        return AccountBalance(
            account_id=account.account_id,
            account_name=account.account_name,
            account_type=account.account_type,
            cash_balance=Decimal(account.cash_balance),
        )

    # =========================================================================
    # Cash movements
    # =========================================================================

    def deposit(self, account_id: Any, amount: Any, description: Optional[str] = None) -> CashMovement:
        """Add cash to an account and record a DEPOSIT transaction."""
        require_fields({"accountId": account_id, "amount": amount})
        account_id = parse_id(account_id, "accountId")
        amount = validate_amount(amount)

        with account_unit_of_work(self.session):
            account = self._lock_account(account_id)
            previous = Decimal(account.cash_balance)
            account.cash_balance = previous + amount
            record = self._append(
                account,
                TransactionType.DEPOSIT,
                amount,
                description or self.config.deposit_description,
            )

        logger.info(
            f"Deposited {format_money(amount)} into account {account_id}",
            extra={"account_id": account_id},
        )
        return CashMovement(
            kind=TransactionType.DEPOSIT,
            account_id=account.account_id,
            account_name=account.account_name,
            amount=amount,
            previous_balance=previous,
            new_balance=previous + amount,
            transaction_id=record.trans_id,
            timestamp=record.date,
        )

    def withdraw(self, account_id: Any, amount: Any, description: Optional[str] = None) -> CashMovement:
        """Take cash out of an account and record a WITHDRAW transaction.

        Raises:
            InsufficientFundsError: ``amount`` exceeds the current balance.
        """
        require_fields({"accountId": account_id, "amount": amount})
        account_id = parse_id(account_id, "accountId")
        amount = validate_amount(amount)

        with account_unit_of_work(self.session):
            account = self._lock_account(account_id)
            previous = Decimal(account.cash_balance)
            if amount > previous:
                raise InsufficientFundsError(
                    message=f"Insufficient funds. Available balance: ${format_money(previous)}",
                    available=str(previous),
                    required=str(amount),
                )
            account.cash_balance = previous - amount
            record = self._append(
                account,
                TransactionType.WITHDRAW,
                amount,
                description or self.config.withdraw_description,
            )

        logger.info(
            f"Withdrew {format_money(amount)} from account {account_id}",
            extra={"account_id": account_id},
        )
        return CashMovement(
            kind=TransactionType.WITHDRAW,
            account_id=account.account_id,
            account_name=account.account_name,
            amount=amount,
            previous_balance=previous,
            new_balance=previous - amount,
            transaction_id=record.trans_id,
            timestamp=record.date,
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _get_account(self, account_id: int) -> Account:
        account = self.session.get(Account, account_id)
        if account is None:
            raise NotFoundError(
                message="Account not found",
                error_code=ErrorCode.ACCOUNT_NOT_FOUND,
                resource_type="account",
                resource_id=str(account_id),
            )
        return account

    def _lock_account(self, account_id: int) -> Account:
        account = lock_account(self.session, account_id)
        if account is None:
            raise NotFoundError(
                message="Account not found",
                error_code=ErrorCode.ACCOUNT_NOT_FOUND,
                resource_type="account",
                resource_id=str(account_id),
            )
        return account

    def _append(
        self,
        account: Account,
        trans_type: TransactionType,
        amount: Decimal,
        description: str,
    ) -> Transaction:
        record = Transaction(
            user_id=account.user_id,
            account_id=account.account_id,
            trans_type=trans_type,
            date=datetime.now(timezone.utc),
            cost=amount,
            description=description[: self.config.max_description_length],
        )
        self.session.add(record)
        # Flush so the audit row id is assigned before commit.
        self.session.flush()
        return record
