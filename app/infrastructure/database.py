"""Database configuration and session management.

Provides the ``Database`` handle that owns the async SQLAlchemy engine and
session factory. The handle is opened once at process start and disposed at
shutdown; nothing here is created lazily on import.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from app.domain.exceptions import DatabaseUnavailableError, InfrastructureError

logger = structlog.get_logger()

# Base class for models
Base = declarative_base()


class Database:
    """Explicit database handle.

    Example usage:
        db = Database(settings.database_url)
        await db.connect()
        await db.create_schema()

        async with db.session() as session:
            repo = ProductRepository(session)
            products = await repo.get_all()

        await db.dispose()
    """

    def __init__(
        self,
        url: str,
        echo: bool = False,
        connect_attempts: int = 3,
        backoff_seconds: float = 0.5,
        backoff_max_seconds: float = 3.0,
    ) -> None:
        """Initialize handle without opening any connection.

        Args:
            url: Async SQLAlchemy database URL.
            echo: Echo SQL statements.
            connect_attempts: Attempts made by connect() before giving up.
            backoff_seconds: Delay after the first failed attempt.
            backoff_max_seconds: Upper bound on the delay between attempts.
        """
        self.url = url
        self.echo = echo
        self.connect_attempts = max(1, connect_attempts)
        self.backoff_seconds = backoff_seconds
        self.backoff_max_seconds = backoff_max_seconds
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def engine(self) -> AsyncEngine:
        """Get the engine, failing if the handle is not open."""
        if self._engine is None:
            raise InfrastructureError("Database handle is not connected")
        return self._engine

    async def connect(self) -> None:
        """Open the engine and verify it answers, with bounded retry.

        Raises:
            DatabaseUnavailableError: If every attempt failed.
        """
        if self._engine is None:
            self._engine = create_async_engine(
                self.url,
                echo=self.echo,
                pool_pre_ping=True,
            )
            self._session_factory = async_sessionmaker(
                self._engine,
                class_=AsyncSession,
                expire_on_commit=False,
            )

        delay = self.backoff_seconds
        last_error = ""
        for attempt in range(1, self.connect_attempts + 1):
            try:
                async with self._engine.connect() as conn:
                    await conn.execute(text("SELECT 1"))
                logger.info("Database connection established", attempt=attempt)
                return
            except (SQLAlchemyError, OSError) as e:
                last_error = str(e)
                logger.warning(
                    "Database connection attempt failed",
                    attempt=attempt,
                    max_attempts=self.connect_attempts,
                    error=last_error,
                )
                if attempt < self.connect_attempts:
                    await asyncio.sleep(delay)
                    delay = min(delay * 2, self.backoff_max_seconds)

        await self.dispose()
        raise DatabaseUnavailableError(self.connect_attempts, last_error)

    async def create_schema(self) -> None:
        """Create tables and indexes that do not exist yet."""
        # Register models on Base.metadata
        import app.catalog.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema initialized")

    async def ping(self) -> bool:
        """Check connectivity.

        Returns:
            True if the database answered a trivial query.
        """
        if self._engine is None:
            return False
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except (SQLAlchemyError, OSError) as e:
            logger.warning("Database ping failed", error=str(e))
            return False

    async def dispose(self) -> None:
        """Close all pooled connections."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("Database connection closed")

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Open a session that rolls back if the block raises.

        Yields:
            AsyncSession for database operations.
        """
        if self._session_factory is None:
            raise InfrastructureError("Database handle is not connected")
        async with self._session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise
