"""Tests for src/db/ -- engine helpers, ORM models and demo seed data."""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError, StatementError

from src.db.base import Base
from src.db.engine import atomic, create_db_engine, get_sync_engine, init_db
from src.db.models import (
    Account,
    AccountType,
    Asset,
    AssetPrice,
    Holding,
    Transaction,
    TransactionType,
    User,
)
from src.db.seed import DEMO_ACCOUNTS, DEMO_ASSETS, seed_demo_data


class TestSchema:
    """Tests for table registration and init_db."""

    def test_metadata_has_tables(self):
        tables = set(Base.metadata.tables)
        assert {
            "users",
            "asset_type",
            "asset_history",
            "user_accounts",
            "user_transactions",
            "order_book",
            "user_portfolio",
        } <= tables

    def test_init_db_creates_tables(self):
        engine = create_db_engine("sqlite://")
        init_db(engine)
        assert "user_accounts" in inspect(engine).get_table_names()
        engine.dispose()

    def test_configured_engine_is_process_engine(self, engine):
        assert get_sync_engine() is engine

    def test_file_database_creates_parent_dir(self, tmp_path):
        path = tmp_path / "nested" / "folio.sqlite3"
        engine = create_db_engine(f"sqlite:///{path}")
        init_db(engine)
        assert path.exists()
        engine.dispose()


class TestAtomic:
    """Tests for the unit-of-work helper."""

    def test_commits_on_success(self, session, user):
        with atomic(session):
            session.add(Asset(asset_ticker="VOO", asset_name="Vanguard S&P 500", asset_class="ETF"))
        session.rollback()
        assert session.query(Asset).filter(Asset.asset_ticker == "VOO").count() == 1

    def test_rolls_back_every_write_on_error(self, session, make_account):
        account = make_account("100")
        with pytest.raises(RuntimeError):
            with atomic(session):
                account.cash_balance = Decimal("0")
                session.add(
                    Transaction(
                        user_id=account.user_id,
                        account_id=account.account_id,
                        trans_type=TransactionType.WITHDRAW,
                        cost=Decimal("100"),
                    )
                )
                session.flush()
                raise RuntimeError("fail mid-way")

        session.expire_all()
        assert session.get(Account, account.account_id).cash_balance == Decimal("100")
        assert session.query(Transaction).count() == 0


class TestModels:
    """Tests for model constraints."""

    def test_account_version_starts_at_one(self, make_account):
        assert make_account("0").version == 1

    def test_account_type_stored_as_value(self, session, make_account):
        make_account("0", account_type=AccountType.SAVINGS)
        raw = session.connection().exec_driver_sql("SELECT account_type FROM user_accounts").scalar()
        assert raw == "savings"

    def test_unknown_enum_value_rejected(self, session, user):
        session.add(
            Account(user_id=user.user_id, account_name="Bad", account_type="ira", cash_balance=0)
        )
        with pytest.raises(StatementError):
            session.flush()
        session.rollback()

    def test_one_price_per_asset_per_day(self, session, aapl):
        session.add(AssetPrice(asset_id=aapl.asset_id, date=date(2026, 10, 16), close_price=Decimal("1")))
        with pytest.raises(IntegrityError):
            session.commit()
        session.rollback()

    def test_one_holding_per_user_and_asset(self, session, aapl, make_holding):
        make_holding(aapl, units=1, investment=100)
        with pytest.raises(IntegrityError):
            make_holding(aapl, units=2, investment=200)
        session.rollback()

    def test_cash_asset_flag(self):
        assert Asset(asset_class="Cash").is_cash is True
        assert Asset(asset_class="cash").is_cash is True
        assert Asset(asset_class="Stock").is_cash is False


class TestSeed:
    """Tests for the demo data seed."""

    def test_seed_creates_reference_data(self, session):
        user = seed_demo_data(session, as_of=date(2026, 10, 16))
        assert user.username == "demo"
        assert session.query(Asset).count() == len(DEMO_ASSETS)
        assert session.query(Account).filter(Account.user_id == user.user_id).count() == len(DEMO_ACCOUNTS)

        defaults = session.query(Account).filter(Account.is_default.is_(True)).all()
        assert [a.account_type for a in defaults] == [AccountType.CHECKING]

    def test_cash_asset_has_no_price_history(self, session):
        seed_demo_data(session, as_of=date(2026, 10, 16))
        cash = session.query(Asset).filter(Asset.asset_ticker == "CASH").one()
        assert session.query(AssetPrice).filter(AssetPrice.asset_id == cash.asset_id).count() == 0

    def test_latest_demo_close(self, session):
        from src.valuation import latest_close_prices

        seed_demo_data(session, as_of=date(2026, 10, 16))
        aapl = session.query(Asset).filter(Asset.asset_ticker == "AAPL").one()
        assert latest_close_prices(session, [aapl.asset_id]) == {aapl.asset_id: Decimal("228.50")}

    def test_seed_is_idempotent(self, session):
        first = seed_demo_data(session)
        second = seed_demo_data(session)
        assert first.user_id == second.user_id
        assert session.query(User).count() == 1
        assert session.query(Holding).count() == 0
