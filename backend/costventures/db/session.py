"""
Database handle and session management.

The engine is owned by an explicitly constructed ``Database`` object which
the application stores on ``app.state``; request handlers receive a
``LedgerStore`` through the ``get_store`` dependency.
"""
from typing import Iterator, Optional

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from costventures.core.config import Settings
from costventures.db.base import Base
from costventures.db.store import LedgerStore


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def mysql_session_timeouts(timeout_ms: int):
    """
    Connect hook setting per-connection timeouts on MySQL.

    ``max_execution_time`` only bounds SELECT statements, so row-lock waits
    are bounded separately through ``innodb_lock_wait_timeout`` (seconds).
    """
    def _apply(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute(f"SET SESSION max_execution_time = {int(timeout_ms)}")
        cursor.execute(f"SET SESSION innodb_lock_wait_timeout = {max(1, int(timeout_ms) // 1000)}")
        cursor.close()
    return _apply


def build_engine(settings: Settings) -> Engine:
    """Create the engine with a bounded connection pool."""
    url = settings.DATABASE_URL
    if url.startswith("sqlite"):
        # In-memory SQLite needs one shared connection
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        engine = create_engine(url, echo=settings.DB_ECHO, **kwargs)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    engine = create_engine(
        url,
        echo=settings.DB_ECHO,
        pool_pre_ping=True,
        pool_recycle=3600,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
    )
    if settings.DB_STATEMENT_TIMEOUT_MS and engine.dialect.name in ("mysql", "mariadb"):
        event.listen(engine, "connect", mysql_session_timeouts(settings.DB_STATEMENT_TIMEOUT_MS))
    return engine


class Database:
    """Engine plus session factory for one configured database."""

    def __init__(self, settings: Settings, engine: Optional[Engine] = None):
        self.settings = settings
        self.engine = engine if engine is not None else build_engine(settings)
        self.session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def session(self) -> Session:
        return self.session_factory()

    def store(self) -> LedgerStore:
        return LedgerStore(self.session(), statement_timeout_ms=self.settings.DB_STATEMENT_TIMEOUT_MS)

    def create_all(self):
        """Initialize database tables."""
        # Import all models so SQLAlchemy can register them
        import costventures.models  # noqa: F401
        Base.metadata.create_all(bind=self.engine)

    def drop_all(self):
        import costventures.models  # noqa: F401
        Base.metadata.drop_all(bind=self.engine)

    def dispose(self):
        self.engine.dispose()


def get_store(request: Request) -> Iterator[LedgerStore]:
    """Dependency for getting a request-scoped ledger store."""
    store = request.app.state.database.store()
    try:
        yield store
    finally:
        store.close()
