"""Holdings Valuation Data Models."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional

from src.ledger.models import as_float
from src.valuation.config import AggregationDimension, AggregationMetric

ZERO = Decimal("0")


@dataclass
class HoldingValuation:
    """One holding enriched with its latest price."""
    user_port_id: int
    asset_id: int
    symbol: str = ""
    asset_name: str = ""
    asset_class: str = ""
    category: Optional[str] = None
    units: Decimal = ZERO
    avg_cost_per_unit: Decimal = ZERO
    investment_amount: Decimal = ZERO
    latest_close_price: Decimal = ZERO
    current_amount: Decimal = ZERO
    gain_loss: Decimal = ZERO
    gain_loss_percent: Decimal = ZERO
    has_metadata: bool = True

    def to_dict(self) -> dict:
        return {
            "userPortId": self.user_port_id,
            "assetId": self.asset_id,
            "symbol": self.symbol,
            "assetName": self.asset_name,
            "assetClass": self.asset_class,
            "category": self.category,
            "units": as_float(self.units),
            "avgCostPerUnit": as_float(self.avg_cost_per_unit),
            "investmentAmount": as_float(self.investment_amount),
            "latestClosePrice": as_float(self.latest_close_price),
            "currentAmount": as_float(self.current_amount),
            "gainLoss": as_float(self.gain_loss),
            "gainLossPercent": round(float(self.gain_loss_percent), 4),
        }


@dataclass
class PortfolioValuation:
    """All holdings of a user with aggregate totals."""
    holdings: list[HoldingValuation] = field(default_factory=list)

    @property
    def total_value(self) -> Decimal:
        return sum((h.current_amount for h in self.holdings), ZERO)

    @property
    def total_invested(self) -> Decimal:
        return sum((h.investment_amount for h in self.holdings), ZERO)

    @property
    def total_gain_loss(self) -> Decimal:
        return self.total_value - self.total_invested

    @property
    def total_gain_loss_percent(self) -> Decimal:
        invested = self.total_invested
        if not invested:
            return ZERO
        return self.total_gain_loss / invested * 100

    def to_dict(self) -> dict:
        return {
            "holdings": [h.to_dict() for h in self.holdings],
            "totalValue": as_float(self.total_value),
            "totalInvested": as_float(self.total_invested),
            "totalGainLoss": as_float(self.total_gain_loss),
            "totalGainLossPercent": round(float(self.total_gain_loss_percent), 4),
        }


@dataclass
class CashBalanceSummary:
    """Account cash plus the market value of non-cash holdings."""
    user_id: int
    cash_balance: Decimal = ZERO
    holdings_value: Decimal = ZERO
    total_invested: Decimal = ZERO

    @property
    def total_portfolio_value(self) -> Decimal:
        return self.cash_balance + self.holdings_value

    def to_dict(self) -> dict:
        return {
            "userId": self.user_id,
            "cashBalance": as_float(self.cash_balance),
            "totalPortfolioValue": as_float(self.total_portfolio_value),
            "totalInvested": as_float(self.total_invested),
        }


@dataclass
class RefreshResult:
    """Outcome of a price refresh; failures are reported, not raised."""
    updated_count: int = 0
    failed_symbols: list[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        return f"Successfully updated {self.updated_count} prices"

    def to_dict(self) -> dict:
        return {
            "message": self.message,
            "updatedCount": self.updated_count,
            "failedSymbols": list(self.failed_symbols),
        }


def _percent(part: Decimal, whole: Decimal) -> Decimal:
    return part / whole * 100 if whole else ZERO


@dataclass
class AggregationGroup:
    """Holdings sharing one value of the aggregation dimension."""
    label: str
    total_value: Decimal = ZERO
    invested: Decimal = ZERO
    count: int = 0

    @property
    def percentage_return(self) -> Decimal:
        return _percent(self.total_value - self.invested, self.invested)

    def add(self, value: Decimal, invested: Decimal) -> None:
        self.total_value += value
        self.invested += invested
        self.count += 1


@dataclass
class PortfolioAggregation:
    """Portfolio value grouped by asset class, category or ticker.

    Groups are ordered by value, largest first; ``weight`` is each
    group's share of the aggregated value in percent.
    """
    dimension: AggregationDimension
    metric: AggregationMetric
    groups: list[AggregationGroup] = field(default_factory=list)

    @property
    def total_value(self) -> Decimal:
        return sum((g.total_value for g in self.groups), ZERO)

    def weight(self, group: AggregationGroup) -> Decimal:
        return _percent(group.total_value, self.total_value)

    def to_dict(self) -> dict:
        rows = [
            {
                "dimension": self.dimension.value,
                "label": g.label,
                "totalValue": as_float(g.total_value),
                "totalInvested": as_float(g.invested),
                "percentageReturn": round(float(g.percentage_return), 4),
                "weight": round(float(self.weight(g)), 4),
                "count": g.count,
            }
            for g in self.groups
        ]
        key = "totalValue" if self.metric == AggregationMetric.TOTAL_VALUE else "percentageReturn"
        return {
            "dimension": self.dimension.value,
            "metric": self.metric.value,
            "totalValue": as_float(self.total_value),
            "aggregation": rows,
            "chartData": {
                "labels": [r["label"] for r in rows],
                "series": [r[key] for r in rows],
            },
        }


@dataclass
class PriceTrend:
    """Close history of one held asset since the window start."""
    symbol: str
    asset_name: str
    points: list[tuple[date, Decimal]] = field(default_factory=list)

    @property
    def start_price(self) -> Decimal:
        return self.points[0][1]

    @property
    def current_price(self) -> Decimal:
        return self.points[-1][1]

    @property
    def total_return(self) -> Decimal:
        return self.current_price - self.start_price

    @property
    def total_return_percent(self) -> Decimal:
        return _percent(self.total_return, self.start_price)

    def to_dict(self) -> dict:
        start = self.start_price
        return {
            "ticker": self.symbol,
            "assetName": self.asset_name,
            "priceHistory": [
                {
                    "date": day.isoformat(),
                    "price": as_float(close),
                    "percentChange": round(float(_percent(close - start, start)), 4),
                }
                for day, close in self.points
            ],
            "startPrice": as_float(start),
            "currentPrice": as_float(self.current_price),
            "totalReturn": round(float(self.total_return), 2),
            "totalReturnPercent": round(float(self.total_return_percent), 2),
        }


@dataclass
class PriceTrendReport:
    """Price trends of a user's holdings over a trailing window."""
    start_date: date
    trends: list[PriceTrend] = field(default_factory=list)

    def to_dict(self) -> dict:
        trends = [t.to_dict() for t in self.trends]
        # The first trend's dates form the shared axis.
        categories = [p["date"] for p in trends[0]["priceHistory"]] if trends else []
        return {
            "startDate": self.start_date.isoformat(),
            "trends": trends,
            "chartData": {
                "categories": categories,
                "series": [
                    {"name": t["assetName"], "data": [p["percentChange"] for p in t["priceHistory"]]}
                    for t in trends
                ],
            },
        }
