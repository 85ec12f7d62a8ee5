"""Database engine, session factory and declarative base."""

import logging
import time
from typing import Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

from ..config import get_config

query_logger = logging.getLogger("cardlink.database.queries")


def _is_sqlite_url(url: str) -> bool:
    return url.startswith("sqlite:")


def _setup_sqlite_pragma(dbapi_connection, connection_record):
    """Set SQLite pragmas for concurrent writers and referential integrity."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    # Concurrent trackers wait for the write lock instead of failing
    cursor.execute("PRAGMA busy_timeout=5000")
    cursor.execute("PRAGMA temp_store=MEMORY")
    # Cascades and SET NULL on profile/user deletion depend on this
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _setup_query_logging(engine: Engine, slow_query_ms: int) -> None:
    """Log every statement at DEBUG and statements slower than the threshold at WARNING."""

    @event.listens_for(engine, "before_cursor_execute")
    def receive_before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        context._query_start_time = time.perf_counter()

    @event.listens_for(engine, "after_cursor_execute")
    def receive_after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        elapsed_ms = (time.perf_counter() - context._query_start_time) * 1000
        if elapsed_ms > slow_query_ms:
            query_logger.warning(f"Slow query ({elapsed_ms:.1f}ms): {statement[:200]}")
        else:
            query_logger.debug(f"Query ({elapsed_ms:.1f}ms): {statement[:100]}")


def create_database_engine(
    database_url: Optional[str] = None,
    enable_query_logging: bool = False,
    echo: bool = False,
    slow_query_ms: int = 100,
) -> Engine:
    """Create an engine; SQLite connections get the pragmas above."""
    if database_url is None:
        database_url = get_config().database.url

    if _is_sqlite_url(database_url):
        # Sessions are handed between threads by the ASGI server
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            echo=echo,
        )
        event.listen(engine, "connect", _setup_sqlite_pragma)
    else:
        engine = create_engine(database_url, echo=echo, pool_pre_ping=True)

    if enable_query_logging:
        _setup_query_logging(engine, slow_query_ms)

    return engine


_database_config = get_config().database
engine = create_database_engine(
    _database_config.url,
    enable_query_logging=_database_config.log_queries,
    echo=_database_config.echo,
    slow_query_ms=_database_config.slow_query_ms,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """FastAPI dependency yielding one session per request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def check_database() -> Optional[str]:
    """Run a trivial query; returns an error description or None when reachable."""
    try:
        with SessionLocal() as db:
            db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        return f"Database check failed: {e}"
    return None
