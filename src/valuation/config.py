"""Holdings Valuation Configuration."""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class AggregationDimension(str, Enum):
    """Asset attribute that holdings are grouped by."""
    ASSET_CLASS = "asset_class"
    CATEGORY = "category"
    TICKER = "ticker"


class AggregationMetric(str, Enum):
    """Group figure reported as the chart series."""
    TOTAL_VALUE = "total_value"
    PERCENTAGE_RETURN = "percentage_return"


@dataclass(frozen=True)
class ValuationConfig:
    """Valuation and price refresh configuration."""
    # Cash-class holdings are valued at face.
    cash_unit_price: Decimal = Decimal("1")
    refresh_workers: int = 4
    fetch_timeout_seconds: float = 10.0
    slow_valuation_ms: float = 500.0
    # Group label for holdings whose asset has no value for the dimension.
    unknown_label: str = "Unknown"
    cash_label: str = "Cash"
    default_trend_years: int = 2
    max_trend_years: int = 30


DEFAULT_VALUATION_CONFIG = ValuationConfig()
