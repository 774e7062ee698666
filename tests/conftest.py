"""Pytest configuration and shared fixtures."""

import sys
import threading
from datetime import date, timedelta
from decimal import Decimal
from pathlib import Path
from typing import Optional

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.db.base import Base  # noqa: E402
from src.db.engine import configure_engine, create_db_engine, get_session_factory  # noqa: E402
from src.db.models import Account, AccountType, Asset, AssetPrice, Holding, User  # noqa: E402
from src.services.providers import PriceQuote  # noqa: E402

TODAY = date(2026, 10, 16)


class StubPriceProvider:
    """In-memory price provider.

    ``closes`` maps ticker -> close; tickers in ``failing`` raise,
    tickers in ``blocking`` wait on ``release`` (for timeout tests).
    """

    def __init__(self, closes=None, failing=(), blocking=(), quote_date: date = TODAY):
        self.closes = dict(closes or {})
        self.failing = set(failing)
        self.blocking = set(blocking)
        self.quote_date = quote_date
        self.release = threading.Event()
        self.calls: list[str] = []

    def get_latest_close(self, ticker: str) -> Optional[PriceQuote]:
        self.calls.append(ticker)
        if ticker in self.failing:
            raise ConnectionError(f"upstream unavailable for {ticker}")
        if ticker in self.blocking:
            self.release.wait(timeout=5)
        close = self.closes.get(ticker)
        if close is None:
            return None
        return PriceQuote(symbol=ticker, date=self.quote_date, close=Decimal(str(close)))


@pytest.fixture
def engine():
    """Fresh in-memory database per test, installed as the process engine."""
    eng = create_db_engine("sqlite://")
    Base.metadata.create_all(bind=eng)
    configure_engine(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session(engine):
    sess = get_session_factory()()
    yield sess
    sess.close()


@pytest.fixture
def user(session):
    u = User(name="Test Investor", username="tester", email="tester@example.com")
    session.add(u)
    session.commit()
    return u


@pytest.fixture
def other_user(session):
    u = User(name="Someone Else", username="other", email="other@example.com")
    session.add(u)
    session.commit()
    return u


@pytest.fixture
def make_account(session, user):
    """Factory: make_account(balance, name=..., account_type=..., owner=...)."""

    def _make(balance="0", name="Brokerage", account_type=AccountType.BROKERAGE, owner=None, is_default=False):
        account = Account(
            user_id=(owner or user).user_id,
            account_name=name,
            account_type=account_type,
            cash_balance=Decimal(str(balance)),
            is_default=is_default,
        )
        session.add(account)
        session.commit()
        return account

    return _make


@pytest.fixture
def make_asset(session):
    """Factory: make_asset(ticker, closes={date: price}, asset_class=...)."""

    def _make(ticker, closes=None, asset_class="Stock", name=None):
        asset = Asset(
            asset_ticker=ticker,
            asset_name=name or f"{ticker} Corp",
            asset_class=asset_class,
            category="Test",
        )
        for day, close in (closes or {}).items():
            asset.prices.append(AssetPrice(date=day, close_price=Decimal(str(close))))
        session.add(asset)
        session.commit()
        return asset

    return _make


@pytest.fixture
def make_holding(session, user):
    """Factory: make_holding(asset, units, investment)."""

    def _make(asset, units, investment, owner=None):
        units = Decimal(str(units))
        investment = Decimal(str(investment))
        holding = Holding(
            user_id=(owner or user).user_id,
            asset_id=asset.asset_id,
            asset_total_units=units,
            avg_cost_per_unit=(investment / units).quantize(Decimal("0.0001")),
            investment_amount=investment,
        )
        session.add(holding)
        session.commit()
        return holding

    return _make


@pytest.fixture
def aapl(make_asset):
    return make_asset(
        "AAPL",
        closes={TODAY - timedelta(days=1): "118", TODAY: "120"},
        name="Apple Inc.",
    )


@pytest.fixture
def price_provider():
    return StubPriceProvider(closes={"AAPL": "125.50", "MSFT": "410"})


@pytest.fixture
def app(engine, price_provider):
    from src.api.app import create_app
    from src.api.dependencies import get_price_provider
    from src.settings import Settings

    settings = Settings(database_url="sqlite://", price_fetch_timeout_seconds=2.0)
    application = create_app(settings=settings)
    application.dependency_overrides[get_price_provider] = lambda: price_provider
    return application


@pytest.fixture
def client(app):
    from fastapi.testclient import TestClient
    return TestClient(app)
