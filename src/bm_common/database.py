"""Async engine, session factory and the per-request session dependency.

Every connection sets ``lock_timeout`` so a transaction queued behind a
listing's ``FOR UPDATE`` row lock fails instead of waiting forever; the error
surfaces through the SQLAlchemyError handler as a generic 500.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from config.settings import settings


class Base(DeclarativeBase):
    """Declarative base for the few ORM-mapped tables (users)."""

    pass


engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_size=settings.DB_POOL_SIZE,
    max_overflow=settings.DB_MAX_OVERFLOW,
    pool_pre_ping=True,
    connect_args={
        "server_settings": {
            "application_name": settings.APP_NAME,
            "lock_timeout": str(settings.DB_LOCK_TIMEOUT_MS),
        }
    },
)

# Shared by request handlers and the auction sweeper
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one AsyncSession per request, closed afterwards.

    Services own their transactions (commit/rollback); the session is only
    opened and closed here.
    """
    async with async_session_factory() as session:
        yield session
