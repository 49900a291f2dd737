# swimdesk/database.py
"""
Database engine, session factory, and metadata shared by the SQL backend.

Nothing here is created at import time: the application factory builds the
engine from its Settings and owns it for the lifetime of the process.
"""

from contextlib import contextmanager
from datetime import datetime
import logging
from typing import Any, Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeMeta, Session, declarative_base, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

logger = logging.getLogger(__name__)

Base: DeclarativeMeta = declarative_base()

_DEFAULT_POOL_KWARGS: dict[str, Any] = {
    "pool_size": 5,
    "max_overflow": 10,
    "pool_timeout": 10,
    "pool_recycle": 1800,
    "pool_pre_ping": True,
    "pool_use_lifo": True,
}

# Session.info key tracking how many units of work are open on a session
_UOW_DEPTH_KEY = "swimdesk_uow_depth"


_MEMORY_SQLITE_URLS = {"sqlite://", "sqlite:///:memory:"}


def _is_file_sqlite(db_url: str) -> bool:
    return db_url.startswith("sqlite") and db_url not in _MEMORY_SQLITE_URLS


def _build_engine_kwargs(db_url: str) -> dict[str, Any]:
    if db_url.startswith("sqlite"):
        kwargs: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if db_url in _MEMORY_SQLITE_URLS:
            # One shared connection, otherwise every checkout sees an empty database
            kwargs["poolclass"] = StaticPool
        else:
            # Seconds a writer waits for another's write lock
            kwargs["connect_args"]["timeout"] = 15
        return kwargs
    return {"poolclass": QueuePool, **_DEFAULT_POOL_KWARGS}


def build_engine(db_url: str) -> Engine:
    """
    Create the engine and attach pool logging listeners.

    SQLite has no row locks and ignores ``SELECT ... FOR UPDATE``, so on a
    database file every transaction starts with ``BEGIN IMMEDIATE`` and holds
    the write lock from its first read. Read-validate-write sequences
    (capacity checks, locked re-reads) then serialise across sessions the way
    row locks make them serialise on PostgreSQL.
    """
    engine = create_engine(db_url, **_build_engine_kwargs(db_url))
    serialize_writers = _is_file_sqlite(db_url)

    @event.listens_for(engine, "connect")
    def receive_connect(dbapi_connection: Any, connection_record: Any) -> None:
        connection_record.info["connect_time"] = datetime.now()
        if db_url.startswith("sqlite"):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()
        if serialize_writers:
            # Let the begin listener below issue BEGIN instead of the driver
            dbapi_connection.isolation_level = None
        logger.debug("Database connection established")

    @event.listens_for(engine, "checkout")
    def receive_checkout(dbapi_connection: Any, connection_record: Any, connection_proxy: Any) -> None:
        logger.debug("Connection checked out from pool")

    if serialize_writers:

        @event.listens_for(engine, "begin")
        def receive_begin(conn: Any) -> None:
            conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)


def create_tables(engine: Engine) -> None:
    # Register every table on Base.metadata before creating
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=engine)


@contextmanager
def unit_of_work(db: Session) -> Iterator[Session]:
    """
    Open a unit of work on ``db``.

    Units nest: only the outermost one commits, and any exception rolls the
    whole session back before propagating.
    """
    depth = db.info.get(_UOW_DEPTH_KEY, 0)
    db.info[_UOW_DEPTH_KEY] = depth + 1
    try:
        yield db
        if depth == 0:
            db.commit()
            logger.debug("Unit of work committed")
    except SQLAlchemyError as exc:
        logger.error("Unit of work failed: %s", exc)
        db.rollback()
        raise
    except Exception:
        if depth == 0:
            db.rollback()
        raise
    finally:
        db.info[_UOW_DEPTH_KEY] = depth


__all__ = [
    "Base",
    "build_engine",
    "build_session_factory",
    "create_tables",
    "unit_of_work",
]
