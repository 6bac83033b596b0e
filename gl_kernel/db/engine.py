"""
Module: gl_kernel.db.engine
Responsibility: SQLAlchemy engine initialization, session factory management
    and transactional scope utilities.  Single point of database connection
    configuration for the ledger.
Architecture position: Kernel > DB.  May import from db/base.py.  MUST NOT
    import from services/, selectors/ or outer layers (create_tables imports
    the kernel models to register their tables).

Invariants enforced:
    - PostgreSQL runs at READ COMMITTED with explicit row locks
      (SELECT ... FOR UPDATE) on account balances and sequence counters.
    - SQLite (tests, local use) runs with foreign keys enforced and with
      driver-level transaction handling switched off so SAVEPOINT works.
    - Services only flush; commit/rollback belongs to session_scope() or
      run_in_transaction().

Failure modes:
    - RuntimeError if get_engine/get_session/get_session_factory is called
      before init_engine_from_url().
    - OperationalError re-raised by run_in_transaction() once its retry
      budget is spent.
"""

import atexit
import time
from contextlib import contextmanager
from typing import Callable, Generator, TypeVar

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from gl_kernel.logging_config import configure_logging, get_logger

logger = get_logger("db.engine")

T = TypeVar("T")

_engine: Engine | None = None
_SessionFactory: sessionmaker[Session] | None = None


def _install_sqlite_hooks(engine: Engine) -> None:
    """Enable foreign keys and hand transaction control to SQLAlchemy."""

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def build_engine(
    database_url: str,
    echo: bool = False,
    pool_size: int = 20,
    max_overflow: int = 10,
    pool_pre_ping: bool = True,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
) -> Engine:
    """
    Create an engine for the given URL without touching module state.

    PostgreSQL gets a QueuePool at READ COMMITTED.  SQLite gets the hooks
    from _install_sqlite_hooks(); in-memory databases share one connection
    through StaticPool.
    """
    url = make_url(database_url)

    if url.get_backend_name() == "sqlite":
        kwargs: dict = {"echo": echo, "connect_args": {"check_same_thread": False}}
        if url.database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool
        engine = create_engine(url, **kwargs)
        _install_sqlite_hooks(engine)
        return engine

    return create_engine(
        url,
        echo=echo,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_pre_ping=pool_pre_ping,
        pool_timeout=pool_timeout,
        pool_recycle=pool_recycle,
        isolation_level="READ COMMITTED",
    )


def init_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool_size: int = 20,
    max_overflow: int = 10,
    pool_pre_ping: bool = True,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
) -> Engine:
    """
    Initialize the module-level engine and session factory.

    A second call replaces the first.

    Args:
        database_url: SQLAlchemy URL (postgresql://... or sqlite://...).
        echo: If True, log all SQL statements.
        pool_size: Connections kept in the pool (PostgreSQL).
        max_overflow: Connections allowed beyond pool_size (PostgreSQL).
        pool_pre_ping: Test connections before use.
        pool_timeout: Seconds to wait for a pooled connection.
        pool_recycle: Seconds after which a connection is recycled.

    Returns:
        SQLAlchemy Engine instance.
    """
    global _engine, _SessionFactory

    _engine = build_engine(
        database_url,
        echo=echo,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_pre_ping=pool_pre_ping,
        pool_timeout=pool_timeout,
        pool_recycle=pool_recycle,
    )
    _SessionFactory = sessionmaker(bind=_engine, expire_on_commit=False)

    configure_logging()
    logger.info(
        "engine_initialized",
        extra={
            "dialect": _engine.dialect.name,
            "pool_size": pool_size,
            "max_overflow": max_overflow,
            "echo": echo,
        },
    )

    return _engine


def get_engine() -> Engine:
    """
    Get the current engine instance.

    Raises:
        RuntimeError: If engine has not been initialized.
    """
    if _engine is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _engine


def get_session() -> Session:
    """
    Get a new session instance.

    Raises:
        RuntimeError: If engine has not been initialized.
    """
    if _SessionFactory is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _SessionFactory()


def get_session_factory() -> sessionmaker[Session]:
    """
    Get the session factory for creating sessions.

    Raises:
        RuntimeError: If engine has not been initialized.
    """
    if _SessionFactory is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _SessionFactory


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """
    Provide a transactional scope around a series of operations.

    On normal exit the session is committed and closed.  On exception it
    is rolled back and closed, and the exception is re-raised.

    Usage:
        with session_scope() as session:
            JournalService(session).post(entry_id, actor_id)
    """
    session = get_session()
    logger.debug("transaction_started")
    try:
        yield session
        session.commit()
        logger.debug("transaction_committed")
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def run_in_transaction(
    work: Callable[[Session], T],
    *,
    attempts: int = 3,
    backoff_seconds: float = 0.1,
    session_factory: sessionmaker[Session] | None = None,
) -> T:
    """
    Run ``work`` in a fresh session and commit, retrying the whole unit on
    transient database failures.

    Deadlocks, serialization failures and dropped connections surface as
    OperationalError; the unit of work is rolled back and replayed from
    scratch in a new session, up to ``attempts`` times in total.  Domain
    errors are never retried.

    Args:
        work: Callable receiving the session.  Must not commit.
        attempts: Total number of tries.
        backoff_seconds: Linear backoff base between tries.
        session_factory: Defaults to the module-level factory.

    Returns:
        Whatever ``work`` returns.
    """
    factory = session_factory or get_session_factory()

    for attempt in range(1, attempts + 1):
        session = factory()
        try:
            result = work(session)
            session.commit()
            return result
        except OperationalError as exc:
            session.rollback()
            if attempt >= attempts:
                logger.error(
                    "transaction_retries_exhausted",
                    extra={"attempts": attempts},
                    exc_info=True,
                )
                raise
            logger.warning(
                "transaction_retry",
                extra={
                    "attempt": attempt,
                    "max_attempts": attempts,
                    "error": str(exc.orig),
                },
            )
            time.sleep(backoff_seconds * attempt)
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    raise RuntimeError("run_in_transaction requires attempts >= 1")


def create_tables() -> None:
    """
    Create all kernel tables.

    Module tables (budgets, variances) register themselves on import; use
    gl_modules._orm_registry.create_all_tables() for the complete schema.
    """
    from gl_kernel.db.base import Base
    import gl_kernel.models  # noqa: F401

    engine = get_engine()
    Base.metadata.create_all(engine)
    logger.info("tables_created", extra={"table_count": len(Base.metadata.tables)})


def drop_tables() -> None:
    """Drop all tables. Use with caution - primarily for testing."""
    from gl_kernel.db.base import Base

    Base.metadata.drop_all(get_engine())


def reset_engine() -> None:
    """Reset the engine and session factory (test cleanup)."""
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()
        _engine = None

    _SessionFactory = None


def _atexit_dispose():
    if _engine is not None:
        _engine.dispose()


atexit.register(_atexit_dispose)
