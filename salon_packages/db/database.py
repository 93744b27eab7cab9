"""
==============================================================================
Database Connection Management Module
==============================================================================

SQLAlchemy engine and session management for the package engine.

This module implements:
- DatabaseManager: Singleton class owning the engine and session factory
- session_scope(): transactional scope used by the expiry sweeper and scripts
- get_db(): FastAPI dependency yielding a request-scoped session

    ┌─────────────────┐
    │ DatabaseManager │ (Singleton)
    └────────┬────────┘
             │
    ┌────────▼────────┐
    │     Engine      │ (Connection pool)
    └────────┬────────┘
             │
    ┌────────▼────────┐
    │  SessionLocal   │ (Session factory)
    └────────┬────────┘
             │
    ┌────────▼────────┐
    │    Session      │ (Request / job scoped)
    └─────────────────┘

SQLite Note:
-----------
Bookings are written from worker threads, so SQLite connections are opened
with check_same_thread disabled and a busy timeout of
DATABASE_LOCK_TIMEOUT_SECONDS: a booking that finds the write lock taken
waits for it instead of failing. Foreign keys are switched on so the
same-salon composite keys on package entries hold as they do on PostgreSQL.

==============================================================================
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from salon_packages.config import Settings, get_settings


# Module logger
logger = logging.getLogger(__name__)

# SQLAlchemy declarative base for all models
Base = declarative_base()


def enable_sqlite_foreign_keys(engine: Engine) -> None:
    """Turn on foreign key enforcement for every new SQLite connection."""

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def build_engine(settings: Settings) -> Engine:
    """
    Create the engine for the configured database.

    - SQLite: shared across threads, busy timeout, foreign keys on
    - PostgreSQL/MySQL: pooled connections with pre-ping, sized by
      DATABASE_POOL_SIZE
    """
    database_url = settings.database_url

    if database_url.startswith("sqlite"):
        engine = create_engine(
            database_url,
            connect_args={
                "check_same_thread": False,
                "timeout": settings.database_lock_timeout_seconds,
            },
            echo=settings.debug,
        )
        enable_sqlite_foreign_keys(engine)
        logger.info(f"Created SQLite engine: {database_url}")
        return engine

    engine = create_engine(
        database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_pool_size * 2,
        pool_timeout=30,
        pool_recycle=1800,
        pool_pre_ping=True,
        echo=settings.debug,
    )
    logger.info(
        f"Created pooled database engine ({settings.database_pool_size} connections): "
        f"{database_url}"
    )
    return engine


class DatabaseManager:
    """
    Centralized database connection manager.

    The engine is created lazily on first access so tests and scripts can
    adjust configuration before anything connects.

    Example:
        >>> db_manager = DatabaseManager()
        >>> with db_manager.session_scope() as session:
        ...     session.query(ServicePackage).count()
    """

    _instance: Optional[DatabaseManager] = None

    def __new__(cls) -> DatabaseManager:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self) -> None:
        if getattr(self, '_initialized', False):
            return

        self._settings = get_settings()
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None
        self._initialized = True

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            self._engine = build_engine(self._settings)
        return self._engine

    @property
    def session_factory(self) -> sessionmaker:
        if self._session_factory is None:
            self._session_factory = sessionmaker(
                bind=self.engine,
                autocommit=False,
                autoflush=False,
                expire_on_commit=False,
            )
        return self._session_factory

    def get_session(self) -> Session:
        """New session; the caller closes it."""
        return self.session_factory()

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """
        Provide a transactional scope around a series of operations.

        Commits on success, rolls back on any exception, always closes.
        """
        session = self.get_session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def create_tables(self) -> None:
        """Create all tables that don't already exist."""
        Base.metadata.create_all(bind=self.engine)
        logger.info("Database tables created/verified")

    def verify_connection(self) -> bool:
        """Return True when a trivial query succeeds."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error(f"Database connection failed: {e}")
            return False

    def dispose(self) -> None:
        """Dispose of the connection pool."""
        if self._engine is not None:
            self._engine.dispose()
            logger.info("Database connection pool disposed")

    def __repr__(self) -> str:
        return f"DatabaseManager(url={self._settings.database_url!r})"


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency that yields a database session.

    The session is closed after the request.

    Usage:
        @router.get("/packages/{package_id}")
        async def get_package(package_id: str, db: Session = Depends(get_db)):
            ...
    """
    session = DatabaseManager().get_session()
    try:
        yield session
    finally:
        session.close()
