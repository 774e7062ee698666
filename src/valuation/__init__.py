"""Holdings Valuation Module.

Portfolio valuation against the latest known closes, the cash balance
summary, and the price refresh that keeps the price history current.

Example:
    from src.valuation import HoldingsValuator

    portfolio = HoldingsValuator(session).get_holdings(user_id=1)
    print(f"Value: {portfolio.total_value}, P&L: {portfolio.total_gain_loss_percent:.2f}%")
"""

from src.valuation.config import (
    DEFAULT_VALUATION_CONFIG,
    AggregationDimension,
    AggregationMetric,
    ValuationConfig,
)
from src.valuation.models import (
    AggregationGroup,
    CashBalanceSummary,
    HoldingValuation,
    PortfolioAggregation,
    PortfolioValuation,
    PriceTrend,
    PriceTrendReport,
    RefreshResult,
)
from src.valuation.pricing import PriceRefresher
from src.valuation.service import HoldingsValuator, latest_close_prices, value_holding

__all__ = [
    "DEFAULT_VALUATION_CONFIG",
    "AggregationDimension",
    "AggregationMetric",
    "ValuationConfig",
    "AggregationGroup",
    "CashBalanceSummary",
    "HoldingValuation",
    "PortfolioAggregation",
    "PortfolioValuation",
    "PriceTrend",
    "PriceTrendReport",
    "RefreshResult",
    "HoldingsValuator",
    "PriceRefresher",
    "latest_close_prices",
    "value_holding",
]
