"""
Ledger store: one SQLAlchemy session plus transaction scoping and
driver-error translation.

Raw SQLAlchemy/DBAPI exceptions never leave this module; callers only see
``ServiceError`` subclasses.
"""
import logging
from contextlib import contextmanager
from typing import Iterator, Optional, Type

from sqlalchemy import text
from sqlalchemy.exc import (
    IntegrityError,
    OperationalError,
    SQLAlchemyError,
    TimeoutError as PoolTimeoutError,
)
from sqlalchemy.orm import Query, Session

from costventures.core.errors import (
    ConflictError,
    ForeignKeyMissingError,
    InternalError,
    NotFoundError,
    ServiceError,
)

logger = logging.getLogger(__name__)

# SQLSTATE (PostgreSQL) and errno (MySQL) values for the two violations we classify
UNIQUE_VIOLATION_CODES = {"23505", 1062, 1586}
FOREIGN_KEY_VIOLATION_CODES = {"23503", 1451, 1452, 1216, 1217}


def _violation_code(orig):
    # psycopg2 exposes pgcode, psycopg 3 sqlstate, pymysql the errno as args[0]
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code:
        return code
    args = getattr(orig, "args", ())
    if args and isinstance(args[0], int):
        return args[0]
    return None


def translate_integrity_error(exc: IntegrityError) -> ServiceError:
    """Map a constraint violation onto the closed store outcome set."""
    orig = exc.orig
    code = _violation_code(orig)
    message = str(orig).lower()

    if code in UNIQUE_VIOLATION_CODES or "unique constraint" in message or "duplicate entry" in message:
        return ConflictError("Resource already exists")
    if code in FOREIGN_KEY_VIOLATION_CODES or "foreign key constraint" in message:
        return ForeignKeyMissingError()

    logger.error("Unclassified integrity error: %s", orig)
    return InternalError()


class LedgerStore:
    """Request-scoped access to persisted entities."""

    def __init__(self, session: Session, statement_timeout_ms: Optional[int] = None):
        self.session = session
        self.statement_timeout_ms = statement_timeout_ms

    @property
    def dialect(self) -> str:
        return self.session.get_bind().dialect.name

    @contextmanager
    def _translated(self) -> Iterator[None]:
        try:
            yield
        except ServiceError:
            raise
        except IntegrityError as exc:
            raise translate_integrity_error(exc) from exc
        except PoolTimeoutError as exc:
            logger.error("Connection pool exhausted: %s", exc)
            raise InternalError("Database is busy, retry later", retryable=True) from exc
        except OperationalError as exc:
            logger.error("Database operational error: %s", exc)
            raise InternalError("Database is unavailable, retry later", retryable=True) from exc
        except SQLAlchemyError as exc:
            logger.error("Database error: %s", exc, exc_info=True)
            raise InternalError() from exc

    def _apply_statement_timeout(self):
        # MySQL connections get their timeouts once, when the pool opens them
        if self.statement_timeout_ms and self.dialect == "postgresql":
            self.session.execute(text(f"SET LOCAL statement_timeout = {int(self.statement_timeout_ms)}"))

    def _rollback(self):
        try:
            self.session.rollback()
        except SQLAlchemyError as exc:
            logger.error("Error while rolling back transaction: %s", exc)

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Scope a unit of work.

        Commits when the block finishes; any exception (including a failed
        commit) rolls back everything written inside the block and propagates.
        """
        try:
            with self._translated():
                self._apply_statement_timeout()
                yield self.session
                self.session.commit()
        except BaseException:
            self._rollback()
            raise

    @contextmanager
    def reading(self) -> Iterator[Session]:
        """Scope read-only access with the same error translation."""
        with self._translated():
            yield self.session

    def get(self, model, ident, error: Type[NotFoundError] = NotFoundError):
        """Fetch an entity by primary key or raise `error`."""
        with self._translated():
            obj = self.session.get(model, ident)
        if obj is None:
            raise error()
        return obj

    def lock(self, model, ident, error: Type[ServiceError] = NotFoundError, *options):
        """
        Re-read an entity under a row lock inside a write scope, or raise `error`.

        Attributes already loaded in this session are overwritten with the
        locked row, so checks made afterwards see what concurrent writers
        committed.
        """
        with self._translated():
            obj = (
                self.session.query(model)
                .options(*options)
                .filter(model.id == ident)
                .with_for_update()
                .populate_existing()
                .one_or_none()
            )
        if obj is None:
            raise error()
        return obj

    def exists(self, query: Query) -> bool:
        with self._translated():
            return bool(self.session.query(query.exists()).scalar())

    def close(self):
        self.session.close()
