"""
Database initialization and session management.

Record persistence is optional; the coordinator writes through only when
``database_url`` is configured.
"""

from contextlib import contextmanager
from typing import Generator, Optional
import logging

from sqlalchemy import create_engine, pool
from sqlalchemy.orm import Session, sessionmaker

from sentinel.db.models import Base

logger = logging.getLogger(__name__)


# Global engine and session factory
_engine = None
_SessionLocal = None


def init_database(
    database_url: str,
    echo: bool = False,
    pool_size: int = 5,
    max_overflow: int = 10,
    enable_slow_query_logging: bool = True,
    slow_query_threshold_ms: float = 100.0
):
    """
    Initialize database engine and create tables.

    Args:
        database_url: SQLAlchemy database URL
        echo: Whether to echo SQL statements
        pool_size: Connections kept in the pool (ignored for SQLite)
        max_overflow: Overflow connections beyond pool_size (ignored for SQLite)
        enable_slow_query_logging: Log queries slower than the threshold
        slow_query_threshold_ms: Threshold in ms for slow query logging

    Example:
        ```python
        from sentinel.db import init_database

        init_database("sqlite:///sentinel.db")
        ```
    """
    global _engine, _SessionLocal

    logger.info(f"Initializing database: {database_url}")

    if database_url.startswith("sqlite"):
        # In-memory SQLite needs a single shared connection
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url or database_url.rstrip("/") == "sqlite:":
            kwargs["poolclass"] = pool.StaticPool
        _engine = create_engine(database_url, echo=echo, **kwargs)
    else:
        _engine = create_engine(
            database_url,
            echo=echo,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_pre_ping=True,
            poolclass=pool.QueuePool
        )

    _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_engine)

    if enable_slow_query_logging:
        from sentinel.db.operations import log_slow_queries
        log_slow_queries(_engine, threshold_ms=slow_query_threshold_ms)

    Base.metadata.create_all(bind=_engine)
    logger.info("Database initialized successfully")


def is_initialized() -> bool:
    return _SessionLocal is not None


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """
    Get database session (context manager).

    Commits on success and rolls back on error.

    Example:
        ```python
        from sentinel.db import get_session
        from sentinel.db.operations import list_records

        with get_session() as session:
            for row in list_records(session, limit=10):
                print(row.id, row.status)
        ```
    """
    if _SessionLocal is None:
        try:
            init_from_config()
        except Exception as e:
            raise RuntimeError(
                f"Database not initialized and auto-initialization failed: {e}. "
                "Call init_database() or init_from_config() explicitly."
            )

    session = _SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_from_config(database_url: Optional[str] = None):
    """Initialize database from Sentinel configuration."""
    from sentinel.config import get_config

    url = database_url or get_config().database_url
    if not url:
        raise RuntimeError("database_url is not configured")
    init_database(database_url=url)


def reset_database():
    """Dispose the engine and forget the session factory (used by tests)."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None
