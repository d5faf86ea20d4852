"""Engine, session factory and transaction helpers.

The workflow services use a sync SQLAlchemy Session and own their commits
through ``unit_of_work``. Each atomic operation is one short transaction.
"""
from collections.abc import Generator, Iterator
from contextlib import contextmanager
from functools import lru_cache

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from par_tracker.core.config import settings


def make_engine(url: str, **kwargs) -> Engine:
    """Create an engine for ``url``.

    SQLite gets driver-level transaction control so every transaction opens
    with BEGIN IMMEDIATE. Writers then queue on the database lock instead of
    failing on lock upgrade, which gives the same serialization the counter
    row lock gives on PostgreSQL.
    """
    if url.startswith("sqlite"):
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False, "timeout": 30},
            **kwargs,
        )
        _configure_sqlite(engine)
        return engine

    return create_engine(
        url,
        pool_pre_ping=True,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        **kwargs,
    )


def _configure_sqlite(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # Hand transaction control to the begin hook below
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


@lru_cache
def get_engine() -> Engine:
    return make_engine(settings.DATABASE_URL, echo=settings.DB_ECHO)


def make_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(
        bind=engine,
        expire_on_commit=False,
        autoflush=False,
    )


@lru_cache
def get_session_factory() -> sessionmaker[Session]:
    return make_session_factory(get_engine())


def get_session() -> Generator[Session, None, None]:
    """FastAPI dependency yielding a session that is rolled back on error."""
    session = get_session_factory()()
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@contextmanager
def unit_of_work(db: Session) -> Iterator[Session]:
    """Commit everything done inside the block, or roll all of it back.

    No retry happens here: a conflicting concurrent transaction surfaces
    to the caller as the storage error it is.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
