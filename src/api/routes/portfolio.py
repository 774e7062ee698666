"""Portfolio API Routes.

Endpoints for holdings valuation, portfolio analytics and the price
refresh.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_holdings_valuator, get_price_refresher
from src.api.models import AggregationRequest, RefreshPricesRequest, SuccessResponse
from src.valuation import HoldingsValuator, PriceRefresher

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/portfolio", tags=["Portfolio"])


@router.get("/holdings", response_model=SuccessResponse)
def get_holdings(
    user_id: Optional[str] = Query(default=None, alias="userId"),
    valuator: HoldingsValuator = Depends(get_holdings_valuator),
) -> SuccessResponse:
    """Holdings valued at their latest close, with totals."""
    portfolio = valuator.get_holdings(user_id)
    return SuccessResponse(data=portfolio.to_dict())


@router.post("/aggregation", response_model=SuccessResponse)
def aggregate_portfolio(
    request: AggregationRequest,
    valuator: HoldingsValuator = Depends(get_holdings_valuator),
) -> SuccessResponse:
    """Holdings value grouped by asset class, category or ticker."""
    aggregation = valuator.aggregate(request.user_id, request.dimension, request.metric)
    return SuccessResponse(data=aggregation.to_dict())


@router.get("/price-trend", response_model=SuccessResponse)
def price_trend(
    user_id: Optional[str] = Query(default=None, alias="userId"),
    tickers: Optional[str] = Query(default=None),
    time_history: Optional[str] = Query(default=None, alias="timeHistory"),
    valuator: HoldingsValuator = Depends(get_holdings_valuator),
) -> SuccessResponse:
    """Close history of held assets; ``tickers`` is comma-separated."""
    report = valuator.price_trend(user_id, tickers=tickers, years=time_history)
    return SuccessResponse(data=report.to_dict())


@router.post("/refresh-prices", response_model=SuccessResponse)
def refresh_prices(
    request: RefreshPricesRequest,
    refresher: PriceRefresher = Depends(get_price_refresher),
) -> SuccessResponse:
    """Pull the latest closes for everything the user holds."""
    result = refresher.refresh_prices(request.user_id)
    return SuccessResponse(data=result.to_dict())
