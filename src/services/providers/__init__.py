"""Market data providers."""

from src.services.providers.yfinance_provider import PriceProvider, PriceQuote, YFinanceProvider

__all__ = ["PriceProvider", "PriceQuote", "YFinanceProvider"]
