"""
Approval repositories.

Data access for approval routes, approvals, their steps and delegations.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Sequence

from sqlalchemy import or_
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from practiceflow.core.models.domain.enums import ApprovalStatus, StepStatus

from ..entities.approvals import Approval, ApprovalDelegation, ApprovalRoute, ApprovalStep
from .base import SQLModelRepository


class ApprovalRouteRepository(SQLModelRepository[ApprovalRoute]):
    """Repository for configured approval routes."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, ApprovalRoute)

    async def get_active_by_name(self, workflow_type: str, route_name: str) -> Optional[ApprovalRoute]:
        stmt = select(ApprovalRoute).where(
            ApprovalRoute.workflow_type == workflow_type,
            ApprovalRoute.route_name == route_name,
            ApprovalRoute.is_active == True,  # noqa: E712
        )
        result = await self.session.exec(stmt)
        return result.first()

    async def get_by_name(self, workflow_type: str, route_name: str) -> Optional[ApprovalRoute]:
        stmt = select(ApprovalRoute).where(
            ApprovalRoute.workflow_type == workflow_type, ApprovalRoute.route_name == route_name
        )
        result = await self.session.exec(stmt)
        return result.first()

    async def get_default(self, workflow_type: str) -> Optional[ApprovalRoute]:
        stmt = select(ApprovalRoute).where(
            ApprovalRoute.workflow_type == workflow_type,
            ApprovalRoute.is_default == True,  # noqa: E712
            ApprovalRoute.is_active == True,  # noqa: E712
        )
        result = await self.session.exec(stmt)
        return result.first()

    async def list_routes(self, workflow_type: Optional[str] = None) -> List[ApprovalRoute]:
        stmt = select(ApprovalRoute)
        if workflow_type:
            stmt = stmt.where(ApprovalRoute.workflow_type == workflow_type)
        result = await self.session.exec(stmt.order_by(ApprovalRoute.workflow_type, ApprovalRoute.route_name))
        return list(result.all())


class ApprovalRepository(SQLModelRepository[Approval]):
    """Repository for approvals."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Approval)

    async def list_pending(self, approval_ids: Sequence[int]) -> List[Approval]:
        if not approval_ids:
            return []
        stmt = select(Approval).where(
            col(Approval.id).in_(set(approval_ids)), Approval.status == ApprovalStatus.PENDING.value
        )
        result = await self.session.exec(stmt)
        return list(result.all())

    async def list_for_workflow(self, workflow_type: str, workflow_id: int) -> List[Approval]:
        stmt = (
            select(Approval)
            .where(Approval.workflow_type == workflow_type, Approval.workflow_id == workflow_id)
            .order_by(col(Approval.id).desc())
        )
        result = await self.session.exec(stmt)
        return list(result.all())


class ApprovalStepRepository(SQLModelRepository[ApprovalStep]):
    """Repository for approval steps."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, ApprovalStep)

    async def list_for_approval(self, approval_id: int) -> List[ApprovalStep]:
        stmt = select(ApprovalStep).where(ApprovalStep.approval_id == approval_id).order_by(
            col(ApprovalStep.step_order), col(ApprovalStep.id)
        )
        result = await self.session.exec(stmt)
        return list(result.all())

    async def list_pending_assigned(self, user_ids: Sequence[str]) -> List[ApprovalStep]:
        """Pending steps assigned to, or recorded as delegated to, one of ``user_ids``."""
        if not user_ids:
            return []
        ids = list(user_ids)
        stmt = select(ApprovalStep).where(
            ApprovalStep.status == StepStatus.PENDING.value,
            or_(col(ApprovalStep.assigned_to_user_id).in_(ids), col(ApprovalStep.delegated_to_user_id).in_(ids)),
        )
        result = await self.session.exec(stmt)
        return list(result.all())

    async def list_pending_unassigned(self, approval_ids: Optional[Sequence[int]] = None) -> List[ApprovalStep]:
        stmt = select(ApprovalStep).where(
            ApprovalStep.status == StepStatus.PENDING.value, col(ApprovalStep.assigned_to_user_id).is_(None)
        )
        if approval_ids is not None:
            stmt = stmt.where(col(ApprovalStep.approval_id).in_(list(approval_ids)))
        result = await self.session.exec(stmt)
        return list(result.all())


class ApprovalDelegationRepository(SQLModelRepository[ApprovalDelegation]):
    """Repository for approval delegations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, ApprovalDelegation)

    async def list_active_to(self, to_user_id: str, at: datetime) -> List[ApprovalDelegation]:
        """Delegations currently in force that hand approvals to ``to_user_id``."""
        stmt = select(ApprovalDelegation).where(
            ApprovalDelegation.to_user_id == to_user_id,
            ApprovalDelegation.is_active == True,  # noqa: E712
            ApprovalDelegation.start_date <= at,
            ApprovalDelegation.end_date >= at,
        )
        result = await self.session.exec(stmt)
        return list(result.all())

    async def list_for_user(self, user_id: str) -> List[ApprovalDelegation]:
        stmt = (
            select(ApprovalDelegation)
            .where(or_(ApprovalDelegation.from_user_id == user_id, ApprovalDelegation.to_user_id == user_id))
            .order_by(col(ApprovalDelegation.start_date).desc())
        )
        result = await self.session.exec(stmt)
        return list(result.all())
