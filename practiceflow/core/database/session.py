"""
Global database session and engine management.

This module manages the global AsyncEngine and async_sessionmaker instances
that are used throughout the application for database access.
"""

from __future__ import annotations

from typing import AsyncGenerator

from sqlmodel.ext.asyncio.session import AsyncSession

from practiceflow.server.core.config import settings

from .utils import create_all, create_engine, create_sessionmaker

engine = create_engine(settings.database_url)
async_session_maker = create_sessionmaker(engine)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency generator for database sessions.

    Yields:
        AsyncSession: An asynchronous SQLModel session.
    """
    async with async_session_maker() as session:
        yield session


async def init_db() -> None:
    """
    Create missing tables and insert the built-in approval routes.

    In production the schema comes from Alembic; this keeps local and test
    databases usable without running migrations.
    """
    from practiceflow.core.database.repositories import build_repositories
    from practiceflow.services.approvals import ApprovalService

    await create_all(engine)
    async with async_session_maker() as session:
        await ApprovalService(build_repositories(session)).seed_default_routes()
