"""Async SQLAlchemy engine, session factory, and FastAPI dependency."""

import logging
from collections.abc import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from recent_repos.config import settings

logger = logging.getLogger(__name__)

engine = create_async_engine(
    settings.DATABASE_URL,
    echo=False,
)

async_session_factory = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Declarative base class shared by all ORM models."""

    pass


async def init_db(bind: AsyncEngine | None = None) -> None:
    """Create any missing tables and indexes.

    Existing tables are left untouched, so this is safe to call on every
    startup alongside Alembic-managed databases.
    """
    # Register every model on Base.metadata
    import recent_repos.models  # noqa: F401

    target = bind or engine
    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def check_connection(session: AsyncSession) -> bool:
    """Return True if a trivial query succeeds on ``session``."""
    try:
        await session.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning("Database connectivity check failed: %s", e)
        return False
    return True


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency that yields an async database session.

    The session is automatically closed when the request finishes.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
