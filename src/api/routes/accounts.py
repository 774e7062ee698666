"""Account API Routes.

Endpoints for creating and listing cash accounts, balance lookups,
and deposits/withdrawals.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_account_ledger
from src.api.models import CashMovementRequest, CreateAccountRequest, SuccessResponse
from src.ledger import AccountLedger

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/accounts", tags=["Accounts"])


@router.post("/create", response_model=SuccessResponse)
def create_account(
    request: CreateAccountRequest,
    ledger: AccountLedger = Depends(get_account_ledger),
) -> SuccessResponse:
    """Open a new account with a zero balance."""
    account = ledger.create_account(request.user_id, request.account_name, request.account_type)
    return SuccessResponse(data=account.to_dict())


@router.post("/deposit", response_model=SuccessResponse)
def deposit(
    request: CashMovementRequest,
    ledger: AccountLedger = Depends(get_account_ledger),
) -> SuccessResponse:
    """Add cash to an account."""
    movement = ledger.deposit(request.account_id, request.amount, request.description)
    return SuccessResponse(data=movement.to_dict())


@router.post("/withdraw", response_model=SuccessResponse)
def withdraw(
    request: CashMovementRequest,
    ledger: AccountLedger = Depends(get_account_ledger),
) -> SuccessResponse:
    """Take cash out of an account."""
    movement = ledger.withdraw(request.account_id, request.amount, request.description)
    return SuccessResponse(data=movement.to_dict())


@router.get("/list", response_model=SuccessResponse)
def list_accounts(
    user_id: Optional[str] = Query(default=None, alias="userId"),
    ledger: AccountLedger = Depends(get_account_ledger),
) -> SuccessResponse:
    """List a user's accounts and their combined cash."""
    accounts = ledger.list_accounts(user_id)
    return SuccessResponse(data=accounts.to_dict())


@router.get("/{account_id}/balance", response_model=SuccessResponse)
def get_account_balance(
    account_id: str,
    ledger: AccountLedger = Depends(get_account_ledger),
) -> SuccessResponse:
    """Current balance of a single account."""
    balance = ledger.get_account_balance(account_id)
    return SuccessResponse(data=balance.to_dict())
