"""
Database configuration and session management for the storefront store.

Any SQLAlchemy URL is accepted; SQLite is the default so the service runs
without external infrastructure. Sessions commit on success and roll back
on error, so a request's store mutation is a single transaction.
"""

import os
import logging
from typing import Optional, Dict, Any
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from sqlalchemy.exc import SQLAlchemyError
from contextlib import contextmanager

from .models import create_all_tables, drop_all_tables

logger = logging.getLogger(__name__)


class DatabaseConfig:
    """
    Engine and session factory for the document store.

    Supports SQLite (default, including ``sqlite://`` in-memory databases),
    MySQL and PostgreSQL URLs with connection pooling.
    """

    def __init__(self, database_url: str, echo: bool = False):
        """
        Args:
            database_url: SQLAlchemy database URL
            echo: Enable SQL query logging for debugging
        """
        self.database_url = database_url
        self.echo = echo
        self.engine: Optional[Engine] = None
        self.SessionLocal: Optional[sessionmaker] = None
        self._is_initialized = False

        self.db_type = self._detect_database_type()
        self.engine_kwargs = self._get_engine_kwargs()

        logger.info(f"Database configuration initialized for {self.db_type}")

    def _detect_database_type(self) -> str:
        if self.database_url.startswith("sqlite"):
            return "sqlite"
        elif self.database_url.startswith("mysql"):
            return "mysql"
        elif self.database_url.startswith("postgresql"):
            return "postgresql"
        return "unknown"

    @property
    def is_in_memory(self) -> bool:
        return self.db_type == "sqlite" and (
            self.database_url in ("sqlite://", "sqlite:///") or ":memory:" in self.database_url
        )

    def _get_engine_kwargs(self) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {"echo": self.echo}

        if self.db_type == "sqlite":
            kwargs["connect_args"] = {"check_same_thread": False, "timeout": 30}
            if self.is_in_memory:
                # Every session must see the same in-memory database
                kwargs["poolclass"] = StaticPool
        else:
            kwargs.update({
                "pool_size": int(os.getenv("DB_POOL_SIZE", "10")),
                "max_overflow": int(os.getenv("DB_MAX_OVERFLOW", "20")),
                "pool_timeout": int(os.getenv("DB_POOL_TIMEOUT", "30")),
                "pool_recycle": int(os.getenv("DB_POOL_RECYCLE", "3600")),
                "pool_pre_ping": True,
            })

        return kwargs

    def initialize(self) -> None:
        """
        Create the engine and session factory.

        Raises:
            SQLAlchemyError: If the database cannot be reached
        """
        if self._is_initialized:
            return

        try:
            self.engine = create_engine(self.database_url, **self.engine_kwargs)
            self._setup_event_listeners()

            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))

            self.SessionLocal = sessionmaker(
                autocommit=False,
                autoflush=False,
                bind=self.engine,
                expire_on_commit=False,  # Keep objects readable after commit
            )
            self._is_initialized = True
            logger.info(f"Database engine initialized ({self.db_type})")

        except SQLAlchemyError as e:
            logger.error(f"Failed to initialize database: {e}")
            raise

    def _setup_event_listeners(self) -> None:

        @event.listens_for(self.engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            """Enforce foreign keys on SQLite."""
            if self.db_type == "sqlite":
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

    def create_tables(self) -> None:
        if not self._is_initialized:
            self.initialize()
        create_all_tables(self.engine)
        logger.info("Database tables created")

    def drop_tables(self) -> None:
        if not self._is_initialized:
            self.initialize()
        drop_all_tables(self.engine)
        logger.warning("Database tables dropped")

    def get_session(self) -> Session:
        if not self._is_initialized:
            self.initialize()
        return self.SessionLocal()

    @contextmanager
    def get_session_context(self):
        """
        Session scope with automatic commit/rollback.

        Usage:
            with db.get_session_context() as session:
                session.add(product)
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

    def test_connection(self) -> bool:
        try:
            if not self._is_initialized:
                self.initialize()
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error(f"Database connection test failed: {e}")
            return False

    def close(self) -> None:
        if self.engine:
            self.engine.dispose()
            logger.info("Database connections closed")


def initialize_database(database_url: str, echo: bool = False, create_tables: bool = True) -> DatabaseConfig:
    """
    Build and initialize a DatabaseConfig.

    Args:
        database_url: SQLAlchemy database URL
        echo: Enable SQL query logging
        create_tables: Whether to create tables automatically
    """
    db = DatabaseConfig(database_url=database_url, echo=echo)
    db.initialize()
    if create_tables:
        db.create_tables()
    return db
