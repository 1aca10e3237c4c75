"""
Database connection management for AutoJournal.

Provides database session management, connection handling, and transaction support.
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import JSON, create_engine, event, text
from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import NullPool

from autojournal.config import settings
from autojournal.models.db import Base


def use_json_for_sqlite(metadata) -> None:
    """Replace JSONB columns with JSON before tables are created on SQLite."""

    @event.listens_for(metadata, "before_create")
    def _set_json_type(target, connection, **kw):  # pragma: no cover - compat hook
        if connection.dialect.name != "sqlite":
            return
        for table in target.tables.values():
            for column in table.columns:
                if isinstance(column.type, postgresql.JSONB):
                    column.type = JSON()


def configure_sqlite_engine(engine) -> None:
    """
    Make pysqlite honour BEGIN and SAVEPOINT.

    The driver's own transaction handling defers BEGIN until the first DML
    statement, which breaks ``Session.begin_nested()``.
    """

    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


if settings.database_url.startswith("sqlite"):
    engine = create_engine(
        settings.database_url,
        echo=False,
        connect_args={"check_same_thread": False},
        pool_pre_ping=True,
    )
    configure_sqlite_engine(engine)
    use_json_for_sqlite(Base.metadata)
    # SQLite doesn't need a separate engine for background work
    background_engine = engine
else:
    engine = create_engine(
        settings.database_url,
        echo=False,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_pool_max_overflow,
        pool_pre_ping=True,
        pool_timeout=settings.db_pool_timeout,
        pool_recycle=settings.db_pool_recycle,
    )
    # The scheduler is infrequent and latency-tolerant, so it opens a fresh
    # connection per session instead of holding pooled ones.
    background_engine = create_engine(
        settings.database_url,
        echo=False,
        poolclass=NullPool,
    )

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

BackgroundSessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=background_engine,
)


@contextmanager
def db_session() -> Generator[Session, None, None]:
    """
    Context manager for database sessions with automatic cleanup.

    Yields:
        Session: A SQLAlchemy session

    Example:
        >>> with db_session() as db:
        >>>     workspace = db.query(Workspace).first()
    """
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@contextmanager
def background_session() -> Generator[Session, None, None]:
    """
    Context manager for scheduler database sessions.

    Uses the NullPool engine - creates a fresh connection each time.

    Yields:
        Session: A SQLAlchemy session
    """
    session = BackgroundSessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db() -> None:
    """Create all tables that do not exist yet."""
    Base.metadata.create_all(bind=engine)


def check_connection() -> bool:
    """
    Check if database connection is working.

    Returns:
        bool: True if connection successful, False otherwise
    """
    try:
        with db_session() as db:
            db.execute(text("SELECT 1"))
        return True
    except Exception:
        return False
