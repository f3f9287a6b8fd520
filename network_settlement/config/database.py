"""
Database configuration.

Async SQLAlchemy engine and session factory.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from network_settlement.config.settings import settings


def get_async_database_url(url: str) -> str:
    """
    Ensure the URL names an async driver.

    Args:
        url: Database URL from settings

    Returns:
        URL usable by create_async_engine
    """
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


def _begin_immediate(engine: AsyncEngine) -> None:
    """
    Make every SQLite transaction take the database write lock at BEGIN.

    SQLite ignores FOR UPDATE; with BEGIN IMMEDIATE a second writer waits
    for the first to commit instead of reading state it is about to
    change.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_engine(url: str | None = None, **kwargs) -> AsyncEngine:
    """
    Create an async engine.

    Args:
        url: Database URL (settings when omitted)
        **kwargs: Extra create_async_engine arguments

    Returns:
        AsyncEngine
    """
    url = get_async_database_url(url or settings.database_url)
    kwargs.setdefault("echo", settings.database_echo)
    if url.startswith("sqlite"):
        engine = create_async_engine(url, **kwargs)
        _begin_immediate(engine)
        return engine

    kwargs.setdefault("pool_pre_ping", True)
    return create_async_engine(url, **kwargs)


def create_session_maker(
    engine: AsyncEngine,
) -> async_sessionmaker[AsyncSession]:
    """Session factory; objects stay usable after commit."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=True,
    )


async_engine = create_engine()
async_session_maker = create_session_maker(async_engine)


@asynccontextmanager
async def get_session() -> AsyncIterator[AsyncSession]:
    """
    Session context for entry points.

    Usage:
        async with get_session() as session:
            await CommissionEngine(session).settle_order(...)
    """
    async with async_session_maker() as session:
        yield session
