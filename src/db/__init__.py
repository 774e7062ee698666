"""Database package for the Folio service."""

from src.db.base import Base
from src.db.engine import (
    SyncSessionLocal,
    atomic,
    configure_engine,
    create_db_engine,
    get_session,
    get_sync_engine,
    init_db,
)
from src.db.models import (
    Account,
    AccountType,
    Asset,
    AssetPrice,
    ConfirmationStatus,
    Holding,
    Order,
    OrderSide,
    OrderStatus,
    OrderType,
    Transaction,
    TransactionType,
    User,
)

__all__ = [
    "Base",
    "SyncSessionLocal",
    "atomic",
    "configure_engine",
    "create_db_engine",
    "get_session",
    "get_sync_engine",
    "init_db",
    "Account",
    "AccountType",
    "Asset",
    "AssetPrice",
    "ConfirmationStatus",
    "Holding",
    "Order",
    "OrderSide",
    "OrderStatus",
    "OrderType",
    "Transaction",
    "TransactionType",
    "User",
]
