"""
Engine and session lifecycle.

One process-wide engine is installed with ``init_engine_from_url`` (the
schema script does this); tests build private engines with ``build_engine``
and hand sessions to services directly.

PostgreSQL through psycopg2 is the production backend: a pre-pinged
``QueuePool`` at READ COMMITTED, with approval relying on row locks and a
compare-and-set update rather than stronger isolation.  SQLite runs on a
single shared connection so ``sqlite://`` survives across sessions, with
pysqlite's implicit transaction handling switched off so savepoints work.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from timesheet_kernel.logging_config import get_logger

logger = get_logger("db.engine")


@dataclass(frozen=True)
class PoolSettings:
    """Connection pool sizing; ignored for SQLite."""

    size: int = 20
    max_overflow: int = 10
    timeout: int = 30
    recycle: int = 1800


def build_engine(
    database_url: str,
    *,
    echo: bool = False,
    pool: PoolSettings = PoolSettings(),
) -> Engine:
    """Create an engine for ``database_url`` without installing it."""
    url = make_url(database_url)

    if url.get_backend_name() == "sqlite":
        engine = create_engine(
            url,
            echo=echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
        event.listen(engine, "connect", _sqlite_manual_transactions)
        event.listen(engine, "begin", _sqlite_begin)
        return engine

    return create_engine(
        url,
        echo=echo,
        poolclass=QueuePool,
        pool_size=pool.size,
        max_overflow=pool.max_overflow,
        pool_timeout=pool.timeout,
        pool_recycle=pool.recycle,
        pool_pre_ping=True,
        isolation_level="READ COMMITTED",
    )


def _sqlite_manual_transactions(dbapi_connection, connection_record) -> None:
    dbapi_connection.isolation_level = None


def _sqlite_begin(conn) -> None:
    conn.exec_driver_sql("BEGIN")


_engine: Engine | None = None
_sessions: sessionmaker[Session] | None = None


def init_engine_from_url(
    database_url: str,
    *,
    echo: bool = False,
    pool: PoolSettings = PoolSettings(),
) -> Engine:
    """Build the process-wide engine, replacing any previous one."""
    global _engine, _sessions

    reset_engine()
    _engine = build_engine(database_url, echo=echo, pool=pool)
    _sessions = sessionmaker(bind=_engine, expire_on_commit=False)

    logger.info(
        "engine_initialized",
        extra={"dialect": _engine.dialect.name, "pool_size": pool.size, "echo": echo},
    )
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError("No engine installed; call init_engine_from_url() first")
    return _engine


def get_session() -> Session:
    if _sessions is None:
        raise RuntimeError("No engine installed; call init_engine_from_url() first")
    return _sessions()


@contextmanager
def session_scope() -> Iterator[Session]:
    """
    A session that commits when the block exits cleanly.

    Any exception rolls the session back and propagates.  The session is
    closed either way.

        with session_scope() as session:
            TimesheetService(session).save_draft(...)
    """
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        logger.warning("session_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def _metadata():
    from timesheet_kernel.db.base import Base
    import timesheet_kernel.models  # noqa: F401  registers every table

    return Base.metadata


def create_tables(engine: Engine | None = None) -> None:
    _metadata().create_all(engine or get_engine())


def drop_tables(engine: Engine | None = None) -> None:
    _metadata().drop_all(engine or get_engine())


def reset_engine() -> None:
    """Dispose the process-wide engine, if any."""
    global _engine, _sessions

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _sessions = None
