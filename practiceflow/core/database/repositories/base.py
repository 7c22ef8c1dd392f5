"""
Base repository interfaces and utilities.

This module provides the foundational repository patterns used across all
repository implementations: an abstract CRUD interface, a SQLModel-backed
default implementation and query helpers for filtering and pagination.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, List, Optional, Sequence, Type, TypeVar

from sqlalchemy import func, or_
from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession

EntityType = TypeVar("EntityType", bound=SQLModel)


class AsyncBaseRepository(ABC, Generic[EntityType]):
    """Base async repository interface with common CRUD operations using SQLModel."""

    def __init__(self, session: AsyncSession, model: Type[EntityType]) -> None:
        """Initialize repository with async database session and SQLModel entity class.

        Args:
            session: Async SQLModel session for database operations
            model: SQLModel entity class for this repository
        """
        self.session = session
        self.model = model

    @abstractmethod
    async def create(self, entity: EntityType) -> EntityType:
        """Create a new entity record and commit."""

    @abstractmethod
    async def get_by_id(self, entity_id: str | int) -> Optional[EntityType]:
        """Get entity by its primary identifier."""

    @abstractmethod
    async def update(self, entity: EntityType) -> EntityType:
        """Persist changes to an existing entity and commit."""

    @abstractmethod
    async def delete(self, entity_id: str | int) -> bool:
        """Delete entity by its primary identifier.

        Returns:
            True if deleted, False if not found
        """

    @abstractmethod
    async def list(
        self, limit: Optional[int] = None, offset: Optional[int] = None, filters: Optional[Dict[str, Any]] = None
    ) -> List[EntityType]:
        """List entities with optional pagination and equality filters."""


class SQLModelRepository(AsyncBaseRepository[EntityType]):
    """Default SQLModel implementation of the CRUD interface.

    ``create``/``update``/``delete`` commit immediately. ``stage`` adds and
    flushes without committing so services can group several writes into one
    transaction and commit once.
    """

    async def create(self, entity: EntityType) -> EntityType:
        self.session.add(entity)
        await self.session.commit()
        await self.session.refresh(entity)
        return entity

    async def stage(self, entity: EntityType) -> EntityType:
        self.session.add(entity)
        await self.session.flush()
        return entity

    async def get_by_id(self, entity_id: str | int) -> Optional[EntityType]:
        return await self.session.get(self.model, entity_id)

    async def update(self, entity: EntityType) -> EntityType:
        self.session.add(entity)
        await self.session.commit()
        await self.session.refresh(entity)
        return entity

    async def delete(self, entity_id: str | int) -> bool:
        entity = await self.get_by_id(entity_id)
        if entity is None:
            return False
        await self.session.delete(entity)
        await self.session.commit()
        return True

    async def list(
        self, limit: Optional[int] = None, offset: Optional[int] = None, filters: Optional[Dict[str, Any]] = None
    ) -> List[EntityType]:
        stmt = select(self.model)
        if filters:
            stmt = QueryBuilder.apply_filters(stmt, self.model, filters)
        stmt = QueryBuilder.apply_pagination(stmt, limit, offset)
        result = await self.session.exec(stmt)
        return list(result.all())

    async def count(self, stmt) -> int:
        """Count the rows a select statement would return."""
        count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
        result = await self.session.exec(count_stmt)
        return int(result.one())

    async def paginate(self, stmt, page: int, limit: int) -> tuple[Sequence[EntityType], int]:
        """Run ``stmt`` for one 1-based page.

        Returns:
            The page's rows and the total row count
        """
        total = await self.count(stmt)
        result = await self.session.exec(QueryBuilder.apply_pagination(stmt, limit, (page - 1) * limit))
        return result.all(), total


class QueryBuilder:
    """Utility class for building SQLModel-based database queries."""

    @staticmethod
    def apply_filters(stmt, model: Type[EntityType], filters: Dict[str, Any]):
        """Apply equality filters, skipping ``None`` values and unknown fields."""
        for key, value in filters.items():
            if value is not None and hasattr(model, key):
                stmt = stmt.where(getattr(model, key) == value)
        return stmt

    @staticmethod
    def apply_pagination(stmt, limit: Optional[int], offset: Optional[int]):
        """Apply limit/offset pagination."""
        if limit is not None:
            stmt = stmt.limit(limit)
        if offset is not None:
            stmt = stmt.offset(offset)
        return stmt

    @staticmethod
    def apply_search(stmt, columns: Sequence[Any], search: Optional[str]):
        """Case-insensitive substring match across ``columns``."""
        if not search:
            return stmt
        pattern = f"%{search.strip().lower()}%"
        return stmt.where(or_(*[func.lower(column).like(pattern) for column in columns]))
