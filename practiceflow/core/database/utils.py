"""
Database utility functions for engine and session management.

Functions:
- create_engine: Creates async SQLAlchemy engine with URL normalization
- create_sessionmaker: Creates async session factory with safe defaults
- create_all: Creates all tables from ORM metadata (for tests/dev)
"""

from __future__ import annotations

import re

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel.ext.asyncio.session import AsyncSession

from .base import Base


def create_engine(db_url: str) -> AsyncEngine:
    """Create an async SQLAlchemy engine.

    Postgres URLs are normalized to the ``asyncpg`` driver, e.g. ``postgresql://``
    and ``postgres+psycopg2://`` both become ``postgresql+asyncpg://``. Other
    URLs (``sqlite+aiosqlite://``) are passed through.

    Args:
        db_url: Database connection URL

    Returns:
        Configured AsyncEngine instance
    """
    url = re.sub(r"^postgres(?:ql)?(?:\+[a-z0-9_]+)?://", "postgresql+asyncpg://", db_url, count=1)
    if url.startswith("postgresql+asyncpg://"):
        return create_async_engine(url, pool_pre_ping=True)
    return create_async_engine(url)


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create an ``async_sessionmaker`` producing SQLModel async sessions.

    Args:
        engine: Async SQLAlchemy engine

    Returns:
        Configured async session factory
    """
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def create_all(engine: AsyncEngine) -> None:
    """Create all tables for the current ORM metadata.

    Intended for tests and local development; production uses Alembic.

    Args:
        engine: Async SQLAlchemy engine
    """
    from . import entities  # noqa: F401  registers every table on the metadata

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
