"""Async SQLAlchemy engine and session factory.

Learn: SQLAlchemy 2.0 async mode — create_async_engine for connection pooling,
AsyncSession for per-request database access, dependency injection via FastAPI.

The engine is not a module global. The app lifespan opens a Database at
startup, stores it on app.state, and disposes it at shutdown. Handlers get a
session through the get_db dependency.
"""

from typing import AsyncIterator

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)


class Database:
    """Owns the engine (connection pool) and the session factory."""

    def __init__(self, url: str, echo: bool = False):
        kwargs = {"echo": echo}
        if not url.startswith("sqlite"):
            # Connection pool: min 5, max 20 connections.
            kwargs.update(pool_size=5, max_overflow=15)
        self.engine: AsyncEngine = create_async_engine(url, **kwargs)
        # Session factory — each request gets its own session.
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def dispose(self) -> None:
        await self.engine.dispose()


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """FastAPI dependency — yields a session per request, auto-closes."""
    database: Database = request.app.state.db
    async with database.session_factory() as session:
        try:
            yield session
        finally:
            await session.close()
