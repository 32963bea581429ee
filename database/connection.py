"""
============================================================================
DEPLOYMENT MONITOR - DATABASE CONNECTION
============================================================================
Owns the single async engine and session factory of the application,
with connection pooling, transactional sessions and schema creation.

Author: Professional Development Team
Version: 1.0.0
License: MIT
============================================================================
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine
)
from sqlalchemy.pool import NullPool, QueuePool
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from config.settings import DatabaseSettings
from database.models import Base
from exceptions import (
    DatabaseConnectionError,
    DatabaseIntegrityError,
    DatabaseQueryError,
    InitializationError
)
from utils.logger import get_logger


logger = get_logger("Database")


# ============================================================================
# DATABASE MANAGER CLASS
# ============================================================================

class DatabaseManager:
    """
    Database Manager Class

    Manages the engine, the session factory and the schema. One instance
    is created at startup and handed to every repository.

    Attributes:
        engine: SQLAlchemy async engine
        session_factory: Async session maker
        is_connected: Connection status flag
    """

    def __init__(self, settings: DatabaseSettings) -> None:
        """
        Initialize database manager.

        Args:
            settings: Database section of the application settings
        """
        self.settings = settings
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker[AsyncSession]] = None
        self.is_connected: bool = False
        self._lock = asyncio.Lock()

        self.database_url = settings.url

        logger.info(f"DatabaseManager created for {self._mask_password(self.database_url)}")

    @property
    def dialect_name(self) -> str:
        """Name of the active SQL dialect (sqlite, postgresql, mysql)."""
        if self.engine is None:
            return self.settings.type.value
        return self.engine.dialect.name

    @staticmethod
    def _mask_password(url: str) -> str:
        """
        Mask password in database URL for logging.

        Args:
            url: Database URL

        Returns:
            Masked URL
        """
        if "://" not in url:
            return url

        protocol, rest = url.split("://", 1)
        if "@" not in rest:
            return url

        credentials, host_part = rest.split("@", 1)
        if ":" in credentials:
            user, _ = credentials.split(":", 1)
            return f"{protocol}://{user}:****@{host_part}"

        return url

    async def initialize(self) -> None:
        """
        Create the engine and session factory, verify connectivity and
        create missing tables when enabled.

        Raises:
            DatabaseConnectionError: If the database cannot be reached
            InitializationError: If the schema cannot be created
        """
        async with self._lock:
            if self.is_connected:
                logger.warning("Database already initialized")
                return

            if self.settings.is_sqlite:
                self.settings.sqlite_path.parent.mkdir(parents=True, exist_ok=True)

            self.engine = create_async_engine(
                self.database_url,
                **self._get_engine_kwargs()
            )
            self._register_event_listeners()

            self.session_factory = async_sessionmaker(
                self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False
            )

            try:
                await self.ping()
            except DatabaseConnectionError:
                await self.engine.dispose()
                self.engine = None
                self.session_factory = None
                raise

            if self.settings.auto_create_tables:
                await self.create_tables()

            self.is_connected = True
            logger.info("Database initialized successfully")

    def _get_engine_kwargs(self) -> Dict[str, Any]:
        """
        Get engine configuration kwargs based on settings.

        Returns:
            Dictionary of engine configuration options
        """
        kwargs: Dict[str, Any] = {"echo": self.settings.echo}

        # Use NullPool for SQLite, QueuePool for others
        if self.settings.is_sqlite:
            kwargs["poolclass"] = NullPool
        else:
            kwargs["poolclass"] = QueuePool
            kwargs["pool_size"] = self.settings.pool_size
            kwargs["max_overflow"] = self.settings.max_overflow
            kwargs["pool_timeout"] = self.settings.pool_timeout
            kwargs["pool_recycle"] = self.settings.pool_recycle
            kwargs["pool_pre_ping"] = self.settings.pool_pre_ping

        return kwargs

    def _register_event_listeners(self) -> None:
        """Register SQLAlchemy event listeners for connection management."""
        sync_engine = self.engine.sync_engine

        if self.settings.is_sqlite:

            @event.listens_for(sync_engine, "connect")
            def receive_connect(dbapi_conn, connection_record):
                """Enable FK enforcement and take over transaction control."""
                cursor = dbapi_conn.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()
                dbapi_conn.isolation_level = None
                logger.debug("New SQLite connection established")

            @event.listens_for(sync_engine, "begin")
            def receive_begin(conn):
                """Take the write lock up front so concurrent writers queue."""
                conn.exec_driver_sql("BEGIN IMMEDIATE")

        else:

            @event.listens_for(sync_engine, "connect")
            def receive_connect(dbapi_conn, connection_record):
                """Handle new database connections."""
                logger.debug("New database connection established")

            @event.listens_for(sync_engine, "checkout")
            def receive_checkout(dbapi_conn, connection_record, connection_proxy):
                """Handle connection checkout from pool."""
                logger.trace("Connection checked out from pool")

    async def create_tables(self) -> None:
        """
        Create all database tables.

        Raises:
            InitializationError: If table creation fails
        """
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("Database tables ready")
        except SQLAlchemyError as e:
            logger.error(f"Failed to create tables: {e}")
            raise InitializationError(
                "Failed to create database tables",
                component="database",
                cause=e
            )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Provide a transactional scope for database operations.

        The session is committed when the block exits normally and
        rolled back on any exception. SQLAlchemy errors are re-raised
        as application exceptions.

        Yields:
            AsyncSession instance

        Raises:
            DatabaseConnectionError: If not initialized
            DatabaseIntegrityError: If a constraint is violated
            DatabaseQueryError: If a statement fails

        Example:
            async with db_manager.session() as session:
                deployment = await session.get(Deployment, deployment_id)
        """
        if self.session_factory is None:
            raise DatabaseConnectionError("Database not initialized")

        session = self.session_factory()
        try:
            yield session
            await session.commit()
        except IntegrityError as e:
            await session.rollback()
            logger.error(f"Integrity error: {e.orig}")
            raise DatabaseIntegrityError(str(e.orig), cause=e)
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"Session error: {e}")
            raise DatabaseQueryError(str(e), cause=e)
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def ping(self) -> None:
        """
        Run a trivial query against the database.

        Raises:
            DatabaseConnectionError: If the database is unreachable
        """
        if self.engine is None:
            raise DatabaseConnectionError("Database not initialized")

        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as e:
            raise DatabaseConnectionError(
                f"Connection test failed: {e}",
                host=None if self.settings.is_sqlite else self.settings.host,
                port=None if self.settings.is_sqlite else self.settings.port,
                database=self.settings.name,
                cause=e
            )

    async def check_connection(self) -> bool:
        """
        Check if database connection is alive.

        Returns:
            True if connection is alive, False otherwise
        """
        try:
            await self.ping()
            return True
        except DatabaseConnectionError as e:
            logger.error(f"Database connection check failed: {e.message}")
            return False

    async def close(self) -> None:
        """
        Close database connections and cleanup resources.
        """
        async with self._lock:
            if self.engine is not None:
                await self.engine.dispose()
                logger.info("Database connections closed")

            self.engine = None
            self.session_factory = None
            self.is_connected = False


# ============================================================================
# END OF CONNECTION MODULE
# ============================================================================
