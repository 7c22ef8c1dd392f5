"""
Compliance checklist and SARS response repositories.
"""

from __future__ import annotations

from typing import List, Optional

from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..entities.compliance import ComplianceChecklistItem, SarsResponse
from .base import SQLModelRepository


class ComplianceChecklistRepository(SQLModelRepository[ComplianceChecklistItem]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, ComplianceChecklistItem)

    async def list_for_task(self, task_id: int) -> List[ComplianceChecklistItem]:
        stmt = (
            select(ComplianceChecklistItem)
            .where(ComplianceChecklistItem.task_id == task_id)
            .order_by(
                col(ComplianceChecklistItem.due_date).is_(None),
                col(ComplianceChecklistItem.due_date),
                col(ComplianceChecklistItem.id),
            )
        )
        result = await self.session.exec(stmt)
        return list(result.all())

    async def get_for_task(self, task_id: int, item_id: int) -> Optional[ComplianceChecklistItem]:
        stmt = select(ComplianceChecklistItem).where(
            ComplianceChecklistItem.id == item_id, ComplianceChecklistItem.task_id == task_id
        )
        result = await self.session.exec(stmt)
        return result.first()


class SarsResponseRepository(SQLModelRepository[SarsResponse]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, SarsResponse)

    async def list_for_task(self, task_id: int, status: Optional[str] = None) -> List[SarsResponse]:
        """Responses sorted by deadline, undated ones last."""
        stmt = select(SarsResponse).where(SarsResponse.task_id == task_id)
        if status:
            stmt = stmt.where(SarsResponse.status == status)
        stmt = stmt.order_by(col(SarsResponse.deadline).is_(None), col(SarsResponse.deadline), col(SarsResponse.id))
        result = await self.session.exec(stmt)
        return list(result.all())

    async def get_for_task(self, task_id: int, response_id: int) -> Optional[SarsResponse]:
        stmt = select(SarsResponse).where(SarsResponse.id == response_id, SarsResponse.task_id == task_id)
        result = await self.session.exec(stmt)
        return result.first()
