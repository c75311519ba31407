"""Database configuration and setup for the reference document server."""

import logging
import time
from typing import Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from ..config import get_config
from ..utils.logging_config import get_module_logger

logger = get_module_logger(__name__)

# Query performance logger
query_logger = logging.getLogger("sqlalchemy.query_performance")


def _is_sqlite_url(url: str) -> bool:
    """Check if database URL is for SQLite."""
    return url.startswith("sqlite:")


def _setup_sqlite_pragma(dbapi_connection, connection_record):
    """Set SQLite pragmas for concurrent readers while a document is written."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.execute("PRAGMA busy_timeout=5000")
    cursor.close()


def _setup_query_logging(engine: Engine) -> None:
    @event.listens_for(engine, "before_cursor_execute")
    def receive_before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        context._query_start_time = time.time()

    @event.listens_for(engine, "after_cursor_execute")
    def receive_after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        total = time.time() - context._query_start_time
        # Slow queries (>100ms) as warnings
        if total > 0.1:
            query_logger.warning(f"Slow query ({total:.3f}s): {statement[:200]}")
        else:
            query_logger.debug(f"Query ({total:.3f}s): {statement[:100]}")


def create_database_engine(database_url: Optional[str] = None, echo: Optional[bool] = None) -> Engine:
    """Create database engine with appropriate configuration."""
    config = get_config()
    database_url = database_url or config.database.url
    echo = config.database.echo if echo is None else echo

    if _is_sqlite_url(database_url):
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            echo=echo,
        )
        event.listen(engine, "connect", _setup_sqlite_pragma)
    else:
        engine = create_engine(database_url, echo=echo)

    if config.app.is_development:
        _setup_query_logging(engine)

    return engine


engine = create_database_engine()

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for models
Base = declarative_base()


def init_db(bind: Optional[Engine] = None) -> None:
    """Create the document tables if they do not exist."""
    # Register models on Base.metadata
    from . import models  # noqa: F401

    target = bind or engine
    Base.metadata.create_all(bind=target)
    logger.info(f"Database ready at {target.url}")


def get_db():
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
