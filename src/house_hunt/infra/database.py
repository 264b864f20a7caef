"""Async database engine and session management.

The engine and session factory are created by ``init_db`` and torn down by
``close_db``; the hosting process (the FastAPI lifespan) owns both calls.
"""

import logging

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
    """SQLAlchemy declarative base for all models."""
    pass


engine: AsyncEngine | None = None
async_session: async_sessionmaker[AsyncSession] | None = None


def _engine_kwargs(database_url: str) -> dict:
    is_sqlite = "sqlite" in database_url
    connect_args = {}
    if is_sqlite:
        connect_args["check_same_thread"] = False
        connect_args["timeout"] = 30  # Wait up to 30s for write lock (default 5s)

    kwargs = {
        "echo": False,
        "connect_args": connect_args,
    }
    if not is_sqlite:
        kwargs["pool_size"] = 5
        kwargs["max_overflow"] = 10
    return kwargs


async def init_db(database_url: str) -> AsyncEngine:
    """Create the engine, session factory and all tables."""
    global engine, async_session

    # Ensure models are registered with Base.metadata
    import house_hunt.domain.models  # noqa: F401

    engine = create_async_engine(database_url, **_engine_kwargs(database_url))
    async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # WAL lets readers proceed while a single writer holds the lock
    if "sqlite" in database_url:
        async with engine.begin() as conn:
            await conn.execute(text("PRAGMA journal_mode=WAL"))
            await conn.execute(text("PRAGMA busy_timeout=30000"))

    logger.info("Database initialised (%s)", engine.url.get_backend_name())
    return engine


async def close_db() -> None:
    """Dispose the engine created by ``init_db``."""
    global engine, async_session

    if engine is not None:
        await engine.dispose()
    engine = None
    async_session = None


async def get_db():
    """FastAPI dependency: yield an async database session."""
    if async_session is None:
        raise RuntimeError("Database not initialised; call init_db() first")
    async with async_session() as session:
        try:
            yield session
        finally:
            await session.close()
