"""Transaction API Routes."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_transaction_history
from src.api.models import SuccessResponse
from src.ledger import TransactionHistoryService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/transactions", tags=["Transactions"])


@router.get("/history", response_model=SuccessResponse)
def transaction_history(
    user_id: Optional[str] = Query(default=None, alias="userId"),
    account_id: Optional[str] = Query(default=None, alias="accountId"),
    trans_type: Optional[str] = Query(default=None, alias="type"),
    history: TransactionHistoryService = Depends(get_transaction_history),
) -> SuccessResponse:
    """A user's transactions, optionally filtered by account and type."""
    result = history.list_transactions(user_id, account_id=account_id, trans_type=trans_type)
    return SuccessResponse(data=result.to_dict())
