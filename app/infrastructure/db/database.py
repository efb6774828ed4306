"""
Database Configuration
Async SQLAlchemy engine and sessions for the statistics tables

PostgreSQL (asyncpg) in deployment; any async URL works, e.g.
sqlite+aiosqlite for local runs and tests.
"""

import os
from typing import Any, AsyncGenerator, Dict

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from app.config import settings


class Base(DeclarativeBase):
    """Base class for all database models"""
    pass


def normalize_async_url(url: str) -> str:
    """postgres:// and postgresql:// become postgresql+asyncpg://; other URLs pass through"""
    if url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://"):]
    if url.startswith("postgresql://"):
        url = "postgresql+asyncpg://" + url[len("postgresql://"):]
    return url


def engine_options(url: str) -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": settings.DEBUG}
    if url.startswith("postgresql"):
        options.update(pool_size=10, max_overflow=20, pool_timeout=30, pool_recycle=3600)
    return options


DATABASE_URL = normalize_async_url(settings.DATABASE_URL)

# Alembic imports the models without needing a live engine
ALEMBIC_MODE = os.getenv("ALEMBIC_MODE") == "1"

if not ALEMBIC_MODE:
    engine = create_async_engine(DATABASE_URL, **engine_options(DATABASE_URL))
    async_session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False
    )
else:
    engine = None
    async_session_factory = None


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session dependency

    StatisticsService commits its own units of work; the commit here only
    closes out read-only transactions.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def ping(session: AsyncSession) -> bool:
    try:
        await session.execute(text("SELECT 1"))
    except Exception:
        return False
    return True


async def init_db():
    """Create tables when AUTO_CREATE_TABLES is on; otherwise Alembic owns the schema"""
    if not settings.AUTO_CREATE_TABLES:
        return
    async with engine.begin() as conn:
        from app.infrastructure.db import models  # noqa: F401  registers tables

        await conn.run_sync(Base.metadata.create_all)


async def close_db():
    await engine.dispose()
