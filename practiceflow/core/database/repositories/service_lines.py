"""
Service line repositories.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..entities.service_lines import ServiceLine, ServiceLineUser
from .base import SQLModelRepository


class ServiceLineRepository(SQLModelRepository[ServiceLine]):
    """Repository for the external service-line code mapping."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, ServiceLine)

    async def list_all(self) -> List[ServiceLine]:
        result = await self.session.exec(select(ServiceLine).order_by(ServiceLine.master_code, ServiceLine.sub_group))
        return list(result.all())

    async def get_by_code(self, serv_line_code: str) -> Optional[ServiceLine]:
        result = await self.session.exec(select(ServiceLine).where(ServiceLine.serv_line_code == serv_line_code))
        return result.first()

    async def codes_for(
        self, master_code: Optional[str] = None, sub_groups: Optional[Sequence[str]] = None
    ) -> List[str]:
        """External codes for a master service line and/or sub-groups."""
        stmt = select(ServiceLine.serv_line_code)
        if master_code:
            stmt = stmt.where(ServiceLine.master_code == master_code)
        if sub_groups is not None:
            stmt = stmt.where(col(ServiceLine.sub_group).in_(list(sub_groups)))
        result = await self.session.exec(stmt)
        return list(result.all())

    async def get_sub_group(self, sub_group: str) -> Optional[ServiceLine]:
        """Any mapping row of the sub-group (carries its description and master line)."""
        result = await self.session.exec(select(ServiceLine).where(ServiceLine.sub_group == sub_group))
        return result.first()


class ServiceLineUserRepository(SQLModelRepository[ServiceLineUser]):
    """Repository for sub-group role grants."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, ServiceLineUser)

    async def list_for_user(self, user_id: str) -> List[ServiceLineUser]:
        stmt = select(ServiceLineUser).where(ServiceLineUser.user_id == user_id)
        result = await self.session.exec(stmt)
        return list(result.all())

    async def get_grant(self, user_id: str, sub_group: str) -> Optional[ServiceLineUser]:
        stmt = select(ServiceLineUser).where(
            ServiceLineUser.user_id == user_id, ServiceLineUser.sub_group == sub_group
        )
        result = await self.session.exec(stmt)
        return result.first()

    async def list_for_sub_groups(self, sub_groups: Sequence[str]) -> List[ServiceLineUser]:
        if not sub_groups:
            return []
        stmt = (
            select(ServiceLineUser)
            .where(col(ServiceLineUser.sub_group).in_(list(sub_groups)))
            .order_by(ServiceLineUser.sub_group, ServiceLineUser.user_id)
        )
        result = await self.session.exec(stmt)
        return list(result.all())
