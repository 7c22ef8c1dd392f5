"""
Opinion drafting repositories.
"""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import func
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..entities.opinions import OpinionChatMessage, OpinionDocument, OpinionDraft, OpinionSection
from .base import SQLModelRepository


class OpinionDraftRepository(SQLModelRepository[OpinionDraft]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, OpinionDraft)

    async def list_for_task(self, task_id: int) -> List[OpinionDraft]:
        stmt = select(OpinionDraft).where(OpinionDraft.task_id == task_id).order_by(col(OpinionDraft.updated_at).desc())
        result = await self.session.exec(stmt)
        return list(result.all())

    async def get_for_task(self, task_id: int, draft_id: int) -> Optional[OpinionDraft]:
        stmt = select(OpinionDraft).where(OpinionDraft.id == draft_id, OpinionDraft.task_id == task_id)
        result = await self.session.exec(stmt)
        return result.first()


class OpinionSectionRepository(SQLModelRepository[OpinionSection]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, OpinionSection)

    async def list_for_draft(self, draft_id: int) -> List[OpinionSection]:
        stmt = (
            select(OpinionSection)
            .where(OpinionSection.draft_id == draft_id)
            .order_by(col(OpinionSection.order), col(OpinionSection.id))
        )
        result = await self.session.exec(stmt)
        return list(result.all())

    async def max_order(self, draft_id: int) -> int:
        stmt = select(func.max(OpinionSection.order)).where(OpinionSection.draft_id == draft_id)
        result = await self.session.exec(stmt)
        return result.one() or 0

    async def get_for_draft(self, draft_id: int, section_id: int) -> Optional[OpinionSection]:
        stmt = select(OpinionSection).where(OpinionSection.id == section_id, OpinionSection.draft_id == draft_id)
        result = await self.session.exec(stmt)
        return result.first()


class OpinionDocumentRepository(SQLModelRepository[OpinionDocument]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, OpinionDocument)

    async def list_for_draft(self, draft_id: int) -> List[OpinionDocument]:
        stmt = select(OpinionDocument).where(OpinionDocument.draft_id == draft_id).order_by(col(OpinionDocument.id))
        result = await self.session.exec(stmt)
        return list(result.all())


class OpinionChatRepository(SQLModelRepository[OpinionChatMessage]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, OpinionChatMessage)

    async def history(self, draft_id: int, limit: Optional[int] = None) -> List[OpinionChatMessage]:
        """Messages oldest first; with ``limit`` only the most recent ones."""
        stmt = select(OpinionChatMessage).where(OpinionChatMessage.draft_id == draft_id)
        if limit is None:
            result = await self.session.exec(stmt.order_by(col(OpinionChatMessage.id)))
            return list(result.all())
        result = await self.session.exec(stmt.order_by(col(OpinionChatMessage.id).desc()).limit(limit))
        return list(reversed(result.all()))
