"""Demo reference data for local development."""

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from src.db.engine import atomic
from src.db.models import Account, AccountType, Asset, AssetPrice, User

logger = logging.getLogger(__name__)

DEMO_USER = {"name": "Demo Investor", "username": "demo", "email": "demo@example.com"}

# ticker, name, class, category, last close
DEMO_ASSETS = [
    ("AAPL", "Apple Inc.", "Stock", "Technology", "228.50"),
    ("MSFT", "Microsoft Corporation", "Stock", "Technology", "431.20"),
    ("VOO", "Vanguard S&P 500 ETF", "ETF", "US Large Cap", "545.10"),
    ("BND", "Vanguard Total Bond Market ETF", "Bond", "US Aggregate Bond", "73.40"),
    ("CASH", "Cash", "Cash", "Cash", "1"),
]

DEMO_ACCOUNTS = [
    ("Everyday Checking", AccountType.CHECKING, "2500", True),
    ("Rainy Day Savings", AccountType.SAVINGS, "10000", False),
    ("Brokerage", AccountType.BROKERAGE, "25000", False),
]


def seed_demo_data(session: Session, as_of: Optional[date] = None) -> User:
    """Insert the demo user, assets, prices and accounts if missing."""
    as_of = as_of or date.today()

    user = session.query(User).filter(User.username == DEMO_USER["username"]).first()
    if user is not None:
        logger.info("Demo data already present")
        return user

    with atomic(session):
        user = User(**DEMO_USER)
        session.add(user)

        for ticker, name, asset_class, category, close in DEMO_ASSETS:
            asset = Asset(
                asset_ticker=ticker,
                asset_name=name,
                asset_class=asset_class,
                category=category,
            )
            session.add(asset)
            if asset_class != "Cash":
                # Two days of history so "latest" has something to choose from.
                asset.prices.append(
                    AssetPrice(date=as_of - timedelta(days=1), close_price=Decimal(close) * Decimal("0.99"))
                )
                asset.prices.append(AssetPrice(date=as_of, close_price=Decimal(close)))

        session.flush()
        for name, kind, balance, is_default in DEMO_ACCOUNTS:
            session.add(
                Account(
                    user_id=user.user_id,
                    account_name=name,
                    account_type=kind,
                    cash_balance=Decimal(balance),
                    is_default=is_default,
                )
            )

    logger.info(f"Seeded demo user {user.user_id} with {len(DEMO_ASSETS)} assets")
    return user
