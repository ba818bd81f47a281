"""
Database Configuration

Async SQLAlchemy engine and session management.

The engine is owned by an explicit ``Database`` handle that is created when
the application starts, stored on ``app.state`` and disposed on shutdown.
Request handlers obtain a session through the ``get_db`` dependency.
"""

import logging
from collections.abc import AsyncIterator

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


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


class Database:
    """Connection pool and session factory for one database."""

    def __init__(self, url: str, *, echo: bool = False):
        self.url = url
        self.echo = echo
        self._engine: AsyncEngine | None = None
        self._session_maker: async_sessionmaker[AsyncSession] | None = None

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    async def connect(self) -> None:
        """
        Create the engine and verify connectivity.

        pool_pre_ping checks a connection is alive before use;
        pool_recycle discards connections older than five minutes.
        """
        if self._engine is not None:
            return

        self._engine = create_async_engine(
            self.url,
            echo=self.echo,
            pool_pre_ping=True,
            pool_recycle=300,
        )
        self._session_maker = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception:
            await self.disconnect()
            raise

        logger.info("Database engine created")

    async def disconnect(self) -> None:
        """Dispose of the engine and all pooled connections."""
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._session_maker = None
        logger.info("Database engine disposed")

    def session(self) -> AsyncSession:
        """Open a new session. Use as an async context manager."""
        if self._session_maker is None:
            raise RuntimeError("Database is not connected. Call connect() first.")
        return self._session_maker()


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """
    FastAPI dependency yielding a session bound to the application's database.

    Usage:
        @router.get("/items")
        async def list_items(db: AsyncSession = Depends(get_db)):
            ...
    """
    database: Database = request.app.state.database
    async with database.session() as session:
        yield session
