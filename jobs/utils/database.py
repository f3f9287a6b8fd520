"""
Database access for dramatiq actors.

Actors run on worker threads with one event loop each, so task engines
never pool connections across loops.
"""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from network_settlement.config.database import create_engine, create_session_maker


def create_task_engine() -> AsyncEngine:
    return create_engine(echo=False, poolclass=NullPool)


def create_task_session_maker(
    engine: AsyncEngine | None = None,
) -> async_sessionmaker[AsyncSession]:
    """Session maker bound to ``engine`` (a fresh NullPool engine if None)."""
    return create_session_maker(engine or create_task_engine())


task_engine = create_task_engine()
task_session_maker = create_task_session_maker(task_engine)
