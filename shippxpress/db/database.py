"""Async SQLAlchemy engine, session factory and declarative base."""

from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from shippxpress.config import settings

engine = create_async_engine(settings.DATABASE_URL, echo=settings.DB_ECHO, pool_pre_ping=True)

SessionLocal = async_sessionmaker(engine, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncIterator[AsyncSession]:
    """One session per request; callers commit through the unit of work."""
    async with SessionLocal() as session:
        yield session


async def create_all() -> None:
    """Create tables for local runs and tests (no migration tooling)."""
    import shippxpress.models  # noqa: F401  registers mappers

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
