"""Engine and unit-of-work handling for the token tables.

The engine is built on first use from ``settings.database_url``. Repositories
write inside savepoints of the session they are given; the caller owns the
outer transaction through :func:`get_db_session`.
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import QueuePool

from reepay_tokens.config import settings

Base = declarative_base()

SessionLocal = sessionmaker(autocommit=False, autoflush=False)

_engine: Engine | None = None

# Per-connection settings for PostgreSQL sessions
_POSTGRES_SESSION_SETTINGS = (
    "SET timezone='UTC'",
    "SET statement_timeout='30000'",
)


def _enable_sqlite_savepoints(engine: Engine) -> None:
    """Let SQLAlchemy emit BEGIN itself so SAVEPOINT works with pysqlite.

    Also switches on foreign keys, which the association cascade relies on.
    """

    @event.listens_for(engine, "connect")
    def on_connect(dbapi_conn, connection_record):  # type: ignore
        dbapi_conn.isolation_level = None
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def on_begin(conn):  # type: ignore
        conn.exec_driver_sql("BEGIN")


def _apply_postgres_session_settings(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def on_connect(dbapi_conn, connection_record):  # type: ignore
        cursor = dbapi_conn.cursor()
        for statement in _POSTGRES_SESSION_SETTINGS:
            cursor.execute(statement)
        cursor.close()


def create_db_engine(database_url: str | None = None) -> Engine:
    """
    Build an engine for the token tables.

    Args:
        database_url: Connection URL. Defaults to settings.database_url

    Returns:
        Engine with dialect-specific connection setup applied
    """
    url = database_url or settings.database_url

    if url.startswith("sqlite"):
        engine = create_engine(url, echo=settings.debug)
        _enable_sqlite_savepoints(engine)
        return engine

    engine = create_engine(
        url,
        poolclass=QueuePool,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,
        pool_recycle=3600,
        echo=settings.debug,
    )
    _apply_postgres_session_settings(engine)
    return engine


def get_engine() -> Engine:
    """Process-wide engine; binds SessionLocal the first time it is built."""
    global _engine
    if _engine is None:
        _engine = create_db_engine()
        SessionLocal.configure(bind=_engine)
    return _engine


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """
    One unit of work: commit when the block succeeds, roll back when it raises.

    Usage:
        with get_db_session() as session:
            service = build_token_service(session)
            service.reepay_save_token(order, "ca_1234")
    """
    get_engine()
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(engine: Engine | None = None) -> None:
    """Create the token tables directly (tests only; deployments run alembic)."""
    from reepay_tokens.infrastructure import models  # noqa: F401

    Base.metadata.create_all(bind=engine or get_engine())


def drop_all_tables(engine: Engine | None = None) -> None:
    """Drop the token tables (tests only)."""
    Base.metadata.drop_all(bind=engine or get_engine())
