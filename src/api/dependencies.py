"""FastAPI Dependencies.

Request-scoped services built on the per-request database session.
The price provider is a process-wide singleton and can be replaced
through ``app.dependency_overrides``.
"""

import logging
from typing import Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from src.db.engine import get_session
from src.ledger import AccountLedger, TransactionHistoryService
from src.orders import OrderBook, OrderConfig
from src.services.providers import PriceProvider, YFinanceProvider
from src.settings import Settings, get_settings
from src.valuation import HoldingsValuator, PriceRefresher, ValuationConfig

logger = logging.getLogger(__name__)

# ── Singleton instances (shared per process) ──────────────────────────

_price_provider: Optional[PriceProvider] = None


def get_price_provider() -> PriceProvider:
    """Return (or create) the global price provider."""
    global _price_provider
    if _price_provider is None:
        _price_provider = YFinanceProvider()
    return _price_provider


def _valuation_config(settings: Settings) -> ValuationConfig:
    return ValuationConfig(
        refresh_workers=settings.price_refresh_workers,
        fetch_timeout_seconds=settings.price_fetch_timeout_seconds,
    )


# ── Service Dependencies ──────────────────────────────────────────────


def get_account_ledger(session: Session = Depends(get_session)) -> AccountLedger:
    return AccountLedger(session)


def get_transaction_history(session: Session = Depends(get_session)) -> TransactionHistoryService:
    return TransactionHistoryService(session)


def get_order_book(
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> OrderBook:
    return OrderBook(session, OrderConfig(settlement_days=settings.settlement_days))


def get_holdings_valuator(
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> HoldingsValuator:
    return HoldingsValuator(session, _valuation_config(settings))


def get_price_refresher(
    session: Session = Depends(get_session),
    provider: PriceProvider = Depends(get_price_provider),
    settings: Settings = Depends(get_settings),
) -> PriceRefresher:
    return PriceRefresher(session, provider, _valuation_config(settings))
