"""User API Routes."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_holdings_valuator
from src.api.models import SuccessResponse
from src.valuation import HoldingsValuator

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/user", tags=["User"])


@router.get("/cash-balance", response_model=SuccessResponse)
def get_cash_balance(
    user_id: Optional[str] = Query(default=None, alias="userId"),
    valuator: HoldingsValuator = Depends(get_holdings_valuator),
) -> SuccessResponse:
    """Account cash, total portfolio value and amount invested."""
    summary = valuator.get_cash_balance(user_id)
    return SuccessResponse(data=summary.to_dict())
