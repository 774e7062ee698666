"""Database engine, session factory and unit-of-work helpers."""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from src.db.base import Base
from src.settings import get_settings

logger = logging.getLogger(__name__)

_sync_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


def create_db_engine(url: str, echo: bool = False) -> Engine:
    """Create an engine for ``url``.

    SQLite connections are shared across FastAPI's worker threads, so the
    same-thread check is disabled; in-memory databases use a single static
    connection so every session sees the same tables.
    """
    kwargs: dict = {"echo": echo, "pool_pre_ping": True}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in url or url in ("sqlite://", "sqlite+pysqlite://"):
            kwargs["poolclass"] = StaticPool
        else:
            db_path = url.split("///", 1)[-1]
            if db_path:
                Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(url, **kwargs)

    if url.startswith("sqlite"):
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_conn, _record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def get_sync_engine() -> Engine:
    """Get or create the process-wide database engine."""
    global _sync_engine
    if _sync_engine is None:
        settings = get_settings()
        _sync_engine = create_db_engine(settings.database_url, echo=settings.db_echo)
    return _sync_engine


def get_session_factory() -> sessionmaker:
    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(bind=get_sync_engine(), expire_on_commit=False)
    return _session_factory


def configure_engine(engine: Engine) -> None:
    """Replace the process-wide engine (used by tests and the CLI)."""
    global _sync_engine, _session_factory
    _sync_engine = engine
    _session_factory = sessionmaker(bind=engine, expire_on_commit=False)


def init_db(engine: Optional[Engine] = None) -> None:
    """Create all tables that do not exist yet."""
    engine = engine or get_sync_engine()
    # Models must be imported so their tables are registered on the metadata.
    import src.db.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info(f"Database schema ensured at {engine.url.render_as_string(hide_password=True)}")


def get_session() -> Iterator[Session]:
    """FastAPI dependency yielding one session per request."""
    session = get_session_factory()()
    try:
        yield session
    finally:
        session.close()


@contextmanager
def atomic(session: Session) -> Iterator[Session]:
    """Run a block of writes as one unit of work.

    Commits when the block exits normally and rolls back every pending write
    when it raises, then re-raises.
    """
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise


# Convenience alias
SyncSessionLocal = get_session_factory
