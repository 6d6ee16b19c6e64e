"""Engine, sessions and the declarative base shared by every model."""

import logging
from contextlib import contextmanager
from datetime import datetime, UTC
from typing import Any, Callable, Dict, Generator

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.exc import SQLAlchemyError

from .config import DATABASE_URL, SQL_DEBUG

logger = logging.getLogger(__name__)

POOL_SIZE = 10
POOL_RECYCLE_SECONDS = 3600


def enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """SQLite only honours ON DELETE rules once foreign keys are switched on."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(url: str) -> Engine:
    options: Dict[str, Any] = {"pool_pre_ping": True, "echo": SQL_DEBUG}
    in_memory = url == "sqlite://" or ":memory:" in url
    if not in_memory:
        options.update(pool_size=POOL_SIZE, max_overflow=20, pool_recycle=POOL_RECYCLE_SECONDS)

    built = create_engine(url, **options)
    if built.dialect.name == "sqlite":
        event.listen(built, "connect", enable_sqlite_foreign_keys)
    if SQL_DEBUG:
        event.listen(built, "checkout", lambda *args: logger.debug("Connection checked out from pool"))
        event.listen(built, "checkin", lambda *args: logger.debug("Connection checked in to pool"))
    return built


engine = build_engine(DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def utcnow() -> datetime:
    """Current time as naive UTC, the form every datetime column stores."""
    return datetime.now(UTC).replace(tzinfo=None)


def _session(commit: bool) -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
        if commit:
            db.commit()
    except SQLAlchemyError as e:
        logger.error(f"Rolling back after database error: {e}")
        db.rollback()
        raise
    finally:
        db.close()


def get_db() -> Generator[Session, None, None]:
    """Request-scoped session; services commit their own work."""
    yield from _session(commit=False)


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """Session for scripts and maintenance tasks, committed on success."""
    yield from _session(commit=True)


def _apply_schema(operation: Callable, done: str):
    try:
        operation(bind=engine)
    except SQLAlchemyError as e:
        logger.error(f"Schema update failed: {e}")
        raise
    logger.info(f"Tables {done}: {', '.join(sorted(Base.metadata.tables))}")


def create_tables():
    """Create every model table that does not exist yet."""
    _apply_schema(Base.metadata.create_all, "created")


def drop_tables():
    _apply_schema(Base.metadata.drop_all, "dropped")


def check_database_connection() -> bool:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Database connection failed: {e}")
        return False
    return True
