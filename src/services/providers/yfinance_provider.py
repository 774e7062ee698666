"""YFinance price provider.

Supplies the most recent daily close for a ticker. Calls are
synchronous; callers fan them out over their own worker pool.
"""

import logging
import math
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional, Protocol

import pandas as pd
import yfinance as yf

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PriceQuote:
    """Latest daily close for one symbol."""
    symbol: str
    date: date
    close: Decimal


class PriceProvider(Protocol):
    """Anything that can look up the latest close for a ticker."""

    def get_latest_close(self, ticker: str) -> Optional[PriceQuote]:
        ...


class YFinanceProvider:
    """Latest-close lookups against Yahoo Finance."""

    def __init__(self, period: str = "5d"):
        # A few days of history covers weekends and market holidays.
        self.period = period

    def get_latest_close(self, ticker: str) -> Optional[PriceQuote]:
        """Return the most recent close for ``ticker``, or None if unavailable."""
        try:
            history = yf.Ticker(ticker).history(period=self.period, auto_adjust=False)
        except Exception as e:
            logger.warning("YFinance history failed for %s: %s", ticker, e)
            return None
        return self._last_close(ticker, history)

    @staticmethod
    def _last_close(ticker: str, history: pd.DataFrame) -> Optional[PriceQuote]:
        if history is None or history.empty or "Close" not in history.columns:
            logger.info("YFinance returned no history for %s", ticker)
            return None

        closes = history["Close"].dropna()
        if closes.empty:
            return None

        stamp = pd.Timestamp(closes.index[-1])
        close = float(closes.iloc[-1])
        if not math.isfinite(close) or close <= 0:
            return None

        return PriceQuote(
            symbol=ticker,
            date=stamp.date(),
            close=Decimal(str(round(close, 4))),
        )
