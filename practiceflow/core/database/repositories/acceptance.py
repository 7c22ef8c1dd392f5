"""
Client acceptance repositories.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..entities.acceptance import AcceptanceQuestion, ClientAcceptance, ClientAcceptanceAnswer
from .base import SQLModelRepository


class AcceptanceQuestionRepository(SQLModelRepository[AcceptanceQuestion]):
    """Repository for persisted questionnaire questions."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, AcceptanceQuestion)

    async def by_key(self, questionnaire_type: str) -> Dict[str, AcceptanceQuestion]:
        stmt = select(AcceptanceQuestion).where(AcceptanceQuestion.questionnaire_type == questionnaire_type)
        result = await self.session.exec(stmt)
        return {question.question_key: question for question in result.all()}


class ClientAcceptanceRepository(SQLModelRepository[ClientAcceptance]):
    """Repository for client acceptances (one per client)."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, ClientAcceptance)

    async def get_for_client(self, client_id: int) -> Optional[ClientAcceptance]:
        result = await self.session.exec(select(ClientAcceptance).where(ClientAcceptance.client_id == client_id))
        return result.first()

    async def list_pending_for_partner(self, partner_codes: List[str]) -> List[ClientAcceptance]:
        """Unapproved acceptances whose pending partner is one of ``partner_codes``."""
        if not partner_codes:
            return []
        stmt = select(ClientAcceptance).where(
            col(ClientAcceptance.pending_partner_code).in_(partner_codes),
            col(ClientAcceptance.approved_at).is_(None),
        )
        result = await self.session.exec(stmt)
        return list(result.all())


class ClientAcceptanceAnswerRepository(SQLModelRepository[ClientAcceptanceAnswer]):
    """Repository for acceptance answers."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, ClientAcceptanceAnswer)

    async def list_for_acceptance(self, acceptance_id: int) -> List[ClientAcceptanceAnswer]:
        stmt = select(ClientAcceptanceAnswer).where(ClientAcceptanceAnswer.acceptance_id == acceptance_id)
        result = await self.session.exec(stmt)
        return list(result.all())
