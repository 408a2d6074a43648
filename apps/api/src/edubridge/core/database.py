"""
Database Configuration

Async SQLAlchemy engine and session management.

The engine is created once during application startup and stored on
``app.state``; request handlers receive sessions through the ``get_db``
dependency. Nothing here holds a module-level connection.
"""

import logging
from collections.abc import AsyncGenerator

from fastapi import FastAPI, Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from edubridge.core.config import settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


def create_engine(database_url: str | None = None) -> AsyncEngine:
    """Create the async engine with connection health checks enabled."""
    return create_async_engine(
        database_url or settings.database_url,
        echo=settings.database_echo,
        pool_pre_ping=True,
    )


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create a session factory bound to the given engine."""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db(app: FastAPI) -> None:
    """
    Initialize the database engine and verify connectivity.

    Call this on application startup. The engine and session factory are
    attached to ``app.state`` so every handler shares the same pool.
    """
    engine = create_engine()
    app.state.db_engine = engine
    app.state.session_maker = create_session_maker(engine)

    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def close_db(app: FastAPI) -> None:
    """Dispose of the engine and its connection pool."""
    engine: AsyncEngine | None = getattr(app.state, "db_engine", None)
    if engine is not None:
        await engine.dispose()
        app.state.db_engine = None
        app.state.session_maker = None


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that yields a database session.

    Services commit explicitly at the end of each unit of work. Anything left
    uncommitted when the handler raises is rolled back here.
    """
    session_maker: async_sessionmaker[AsyncSession] = request.app.state.session_maker
    async with session_maker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
