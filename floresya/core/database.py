"""
Database engine, sessions and schema helpers

The engine's pool is sized per environment. Request handlers get a session
from get_db(); scripts and startup hooks use session_scope(). Both commit
on success and roll back on error.
"""
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base

from floresya.core.config import settings

Base = declarative_base()


def pool_options(database_url: str, environment: str) -> Dict[str, Any]:
    """Pool arguments for create_async_engine."""
    if database_url.startswith("sqlite"):
        # SQLite picks its own pool class; sizing arguments are not accepted
        return {}
    if environment == "production":
        return {
            "pool_size": settings.DB_POOL_SIZE,
            "max_overflow": settings.DB_MAX_OVERFLOW,
            "pool_recycle": settings.DB_POOL_RECYCLE,
            "pool_pre_ping": True,
        }
    return {"pool_size": 2, "max_overflow": 5, "pool_pre_ping": True}


engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    **pool_options(settings.DATABASE_URL, settings.ENVIRONMENT),
)

AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@asynccontextmanager
async def session_scope(factory: async_sessionmaker = AsyncSessionLocal) -> AsyncIterator[AsyncSession]:
    """
    One unit of work outside a request:

        async with session_scope() as db:
            await seed_payment_methods(db)
    """
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_db() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency: one session per request."""
    async with session_scope() as session:
        yield session


async def create_tables(bind: AsyncEngine = engine) -> None:
    """Create any missing tables for the registered models."""
    # Models register themselves on Base when imported
    from floresya import models  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def ping(factory: async_sessionmaker = AsyncSessionLocal) -> None:
    """Round-trip a trivial query; raises if the database is unreachable."""
    async with factory() as session:
        await session.execute(text("SELECT 1"))
