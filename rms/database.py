"""
Database Connection Module

Owns the async SQLAlchemy engine and session factory. A ``Database`` is
constructed by the application factory, connected in the lifespan handler
and disposed on shutdown; request handlers get a session through the
``get_db`` dependency.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)


# Base class for all our models
class Base(DeclarativeBase):
    pass


class Database:
    """
    Connection lifecycle for one database URL.

    Example:
        >>> database = Database("sqlite+aiosqlite:///./rms.db")
        >>> await database.connect()
        >>> async with database.session() as session:
        ...     ...
        >>> await database.disconnect()
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.echo = echo
        self._engine: Optional[AsyncEngine] = None
        self._session_maker: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database is not connected")
        return self._engine

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    async def connect(self) -> None:
        """Create the engine and session factory."""
        if self._engine is not None:
            return

        engine_kwargs = {"echo": self.echo}
        if not self.url.startswith("sqlite"):
            engine_kwargs.update(
                pool_size=5,  # Connection pool size
                max_overflow=10,  # Extra connections when pool is full
                pool_pre_ping=True,
            )

        self._engine = create_async_engine(self.url, **engine_kwargs)
        self._session_maker = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,  # Objects remain accessible after commit
        )
        logger.info(f"Database engine created ({self._engine.url.render_as_string(hide_password=True)})")

    async def create_all(self) -> None:
        """
        Create all tables in database.
        Called once at application startup.
        """
        # Register the mapped classes on Base.metadata
        from rms import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created")

    async def ping(self) -> bool:
        """Return True when a trivial query succeeds."""
        if not self.is_connected:
            return False
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"Database ping failed: {e}")
            return False

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Yield a session that is always closed afterwards."""
        if self._session_maker is None:
            raise RuntimeError("Database is not connected")
        async with self._session_maker() as session:
            try:
                yield session
            finally:
                await session.close()

    async def disconnect(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_maker = None
            logger.info("Database engine disposed")


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """
    Dependency injection for FastAPI routes.
    Yields a database session from the application's Database and ensures cleanup.
    """
    database: Database = request.app.state.database
    async with database.session() as session:
        yield session
