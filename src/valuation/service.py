"""Holdings valuation.

Joins a user's holdings to asset metadata and the latest close in
the price history, and derives per-holding and aggregate gain/loss.
"""

import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Optional, Union

from sqlalchemy import and_, func
from sqlalchemy.orm import Session, joinedload

from src.api_errors import ValidationError, parse_choice, parse_id, require_fields
from src.db.models import Account, Asset, AssetPrice, Holding
from src.logging_config import log_performance
from src.valuation.config import (
    DEFAULT_VALUATION_CONFIG,
    AggregationDimension,
    AggregationMetric,
    ValuationConfig,
)
from src.valuation.models import (
    ZERO,
    AggregationGroup,
    CashBalanceSummary,
    HoldingValuation,
    PortfolioAggregation,
    PortfolioValuation,
    PriceTrend,
    PriceTrendReport,
)

logger = logging.getLogger(__name__)


def latest_close_prices(session: Session, asset_ids: Iterable[int]) -> dict[int, Decimal]:
    """Map asset id -> close on the most recent date in the price history."""
    ids = sorted(set(asset_ids))
    if not ids:
        return {}

    latest = (
        session.query(
            AssetPrice.asset_id.label("asset_id"),
            func.max(AssetPrice.date).label("max_date"),
        )
        .filter(AssetPrice.asset_id.in_(ids))
        .group_by(AssetPrice.asset_id)
        .subquery()
    )
    rows = (
        session.query(AssetPrice.asset_id, AssetPrice.close_price)
        .join(
            latest,
            and_(
                AssetPrice.asset_id == latest.c.asset_id,
                AssetPrice.date == latest.c.max_date,
            ),
        )
        .all()
    )
    return {asset_id: Decimal(close) for asset_id, close in rows}


def value_holding(
    holding: Holding,
    asset: Optional[Asset],
    latest_close: Optional[Decimal],
    config: ValuationConfig = DEFAULT_VALUATION_CONFIG,
) -> HoldingValuation:
    """Value one holding.

    A holding whose asset metadata is missing comes back zero-valued
    instead of failing the whole portfolio.
    """
    units = Decimal(holding.asset_total_units or 0)
    investment = Decimal(holding.investment_amount or 0)
    avg_cost = Decimal(holding.avg_cost_per_unit or 0)

    if asset is None:
        logger.warning(f"Holding {holding.user_port_id} references unknown asset {holding.asset_id}")
        return HoldingValuation(
            user_port_id=holding.user_port_id,
            asset_id=holding.asset_id,
            units=units,
            avg_cost_per_unit=avg_cost,
            investment_amount=investment,
            has_metadata=False,
        )

    if asset.is_cash:
        price = config.cash_unit_price
    else:
        price = latest_close if latest_close is not None else ZERO

    current = units * price
    gain_loss = current - investment
    gain_loss_percent = gain_loss / investment * 100 if investment else ZERO

    return HoldingValuation(
        user_port_id=holding.user_port_id,
        asset_id=holding.asset_id,
        symbol=asset.asset_ticker,
        asset_name=asset.asset_name,
        asset_class=asset.asset_class,
        category=asset.category,
        units=units,
        avg_cost_per_unit=avg_cost,
        investment_amount=investment,
        latest_close_price=price,
        current_amount=current,
        gain_loss=gain_loss,
        gain_loss_percent=gain_loss_percent,
    )


class HoldingsValuator:
    """Read-only portfolio valuation for one user at a time."""

    def __init__(self, session: Session, config: Optional[ValuationConfig] = None):
        self.session = session
        self.config = config or DEFAULT_VALUATION_CONFIG

    def _holdings(self, user_id: int) -> list[Holding]:
        return (
            self.session.query(Holding)
            .options(joinedload(Holding.asset))
            .filter(Holding.user_id == user_id)
            .order_by(Holding.user_port_id)
            .all()
        )

    def _value_all(self, user_id: int) -> list[HoldingValuation]:
        holdings = self._holdings(user_id)
        prices = latest_close_prices(self.session, (h.asset_id for h in holdings))
        return [value_holding(h, h.asset, prices.get(h.asset_id), self.config) for h in holdings]

    @log_performance(threshold_ms=DEFAULT_VALUATION_CONFIG.slow_valuation_ms)
    def get_holdings(self, user_id: Any) -> PortfolioValuation:
        """Value every holding of ``user_id`` against its latest close."""
        require_fields({"userId": user_id}, message="User ID is required")
        user_id = parse_id(user_id, "userId")
        return PortfolioValuation(holdings=self._value_all(user_id))

    @log_performance(threshold_ms=DEFAULT_VALUATION_CONFIG.slow_valuation_ms)
    def get_cash_balance(self, user_id: Any) -> CashBalanceSummary:
        """Account cash plus the market value of non-cash holdings.

        Cash is taken from the accounts only; cash-class holdings are
        not counted again.
        """
        require_fields({"userId": user_id}, message="User ID is required")
        user_id = parse_id(user_id, "userId")

        accounts = self.session.query(Account).filter(Account.user_id == user_id).all()
        cash = sum((Decimal(a.cash_balance) for a in accounts), ZERO)

        holdings = [h for h in self._holdings(user_id) if h.asset is not None and not h.asset.is_cash]
        prices = latest_close_prices(self.session, (h.asset_id for h in holdings))

        holdings_value = ZERO
        invested = ZERO
        for h in holdings:
            holdings_value += Decimal(h.asset_total_units) * prices.get(h.asset_id, ZERO)
            invested += Decimal(h.investment_amount)

        return CashBalanceSummary(
            user_id=user_id,
            cash_balance=cash,
            holdings_value=holdings_value,
            total_invested=invested,
        )

    # =========================================================================
    # Analytics
    # =========================================================================

    def _group_label(self, valued: HoldingValuation, dimension: AggregationDimension) -> str:
        if dimension == AggregationDimension.ASSET_CLASS:
            label = valued.asset_class
        elif dimension == AggregationDimension.CATEGORY:
            label = valued.category
        else:
            label = valued.symbol
        return label or self.config.unknown_label

    @log_performance(threshold_ms=DEFAULT_VALUATION_CONFIG.slow_valuation_ms)
    def aggregate(self, user_id: Any, dimension: Any, metric: Any) -> PortfolioAggregation:
        """Group valued holdings by ``dimension``.

        Holdings without asset metadata are left out. When grouping by
        asset class, account cash is reported as its own group unless a
        cash-class holding already supplies one.
        """
        require_fields({"userId": user_id, "dimension": dimension, "metric": metric})
        user_id = parse_id(user_id, "userId")
        dimension = parse_choice(dimension, AggregationDimension, field="dimension")
        metric = parse_choice(metric, AggregationMetric, field="metric")

        groups: dict[str, AggregationGroup] = {}
        for valued in self._value_all(user_id):
            if not valued.has_metadata:
                continue
            label = self._group_label(valued, dimension)
            groups.setdefault(label, AggregationGroup(label)).add(
                valued.current_amount, valued.investment_amount
            )

        if dimension == AggregationDimension.ASSET_CLASS and self.config.cash_label not in groups:
            accounts = self.session.query(Account).filter(Account.user_id == user_id).all()
            cash = sum((Decimal(a.cash_balance) for a in accounts), ZERO)
            if cash > 0:
                groups[self.config.cash_label] = AggregationGroup(
                    self.config.cash_label, total_value=cash, invested=cash, count=len(accounts)
                )

        ordered = sorted(groups.values(), key=lambda g: (-g.total_value, g.label))
        return PortfolioAggregation(dimension=dimension, metric=metric, groups=ordered)

    def _trend_years(self, years: Any) -> int:
        if years is None or years == "":
            return self.config.default_trend_years
        parsed = parse_id(years, "timeHistory")
        if parsed > self.config.max_trend_years:
            raise ValidationError(
                f"timeHistory cannot exceed {self.config.max_trend_years} years",
                field="timeHistory",
            )
        return parsed

    @log_performance(threshold_ms=DEFAULT_VALUATION_CONFIG.slow_valuation_ms)
    def price_trend(
        self,
        user_id: Any,
        tickers: Union[None, str, list[str]] = None,
        years: Any = None,
        as_of: Optional[date] = None,
    ) -> PriceTrendReport:
        """Close history of held assets over the trailing ``years``.

        Args:
            user_id: Owner of the holdings.
            tickers: Restrict to these symbols (list or comma-separated).
            years: Window length in whole years, default 2.
            as_of: Window end, default today.

        Assets with no closes in the window are omitted.
        """
        require_fields({"userId": user_id})
        user_id = parse_id(user_id, "userId")
        start = _years_before(as_of or date.today(), self._trend_years(years))

        if isinstance(tickers, str):
            tickers = tickers.split(",")
        wanted = {t.strip().upper() for t in tickers or [] if t and t.strip()}

        assets = {}
        for holding in self._holdings(user_id):
            asset = holding.asset
            if asset is not None and (not wanted or asset.asset_ticker in wanted):
                assets.setdefault(asset.asset_id, asset)
        if not assets:
            return PriceTrendReport(start_date=start)

        rows = (
            self.session.query(AssetPrice.asset_id, AssetPrice.date, AssetPrice.close_price)
            .filter(AssetPrice.asset_id.in_(list(assets)), AssetPrice.date >= start)
            .order_by(AssetPrice.asset_id, AssetPrice.date)
            .all()
        )
        points = defaultdict(list)
        for asset_id, day, close in rows:
            points[asset_id].append((day, Decimal(close)))

        trends = [
            PriceTrend(symbol=asset.asset_ticker, asset_name=asset.asset_name, points=points[asset_id])
            for asset_id, asset in assets.items()
            if points.get(asset_id)
        ]
        return PriceTrendReport(start_date=start, trends=trends)


def _years_before(day: date, years: int) -> date:
    try:
        return day.replace(year=day.year - years)
    except ValueError:
        # Feb 29 in a non-leap target year.
        return day.replace(year=day.year - years, day=28)
