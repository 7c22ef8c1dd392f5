"""
Task repositories.

Covers tasks, their stage history, team memberships with allocations and
non-client allocations. Stage history is append-only, so the row with the
highest id is a task's current stage.
"""

from __future__ import annotations

from datetime import date
from typing import Dict, List, Optional, Sequence

from sqlalchemy import func, or_
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from practiceflow.core.models.domain.enums import ServiceLineRole, TaskStage

from ..entities.tasks import NonClientAllocation, Task, TaskStageHistory, TaskTeam
from .base import QueryBuilder, SQLModelRepository

TASK_SORT_COLUMNS = {
    "updated_at": Task.updated_at,
    "task_code": Task.task_code,
    "task_desc": Task.task_desc,
}


class TaskRepository(SQLModelRepository[Task]):
    """Repository for tasks."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Task)

    async def get_by_code(self, task_code: str) -> Optional[Task]:
        result = await self.session.exec(select(Task).where(Task.task_code == task_code))
        return result.first()

    def build_query(
        self,
        *,
        search: Optional[str] = None,
        client_ids: Optional[Sequence[int]] = None,
        task_names: Optional[Sequence[str]] = None,
        serv_line_codes: Optional[Sequence[str]] = None,
        partner_codes: Optional[Sequence[str]] = None,
        manager_codes: Optional[Sequence[str]] = None,
        member_user_id: Optional[str] = None,
        stage: Optional[str] = None,
        include_archived: bool = False,
    ):
        """Select statement for tasks matching the filters.

        ``serv_line_codes`` of ``None`` leaves the query unscoped; an empty
        list matches nothing.
        """
        stmt = select(Task)
        stmt = QueryBuilder.apply_search(stmt, [Task.task_code, Task.task_desc], search)
        if client_ids:
            stmt = stmt.where(col(Task.client_id).in_(list(client_ids)))
        if task_names:
            stmt = stmt.where(col(Task.task_desc).in_(list(task_names)))
        if serv_line_codes is not None:
            stmt = stmt.where(col(Task.serv_line_code).in_(list(serv_line_codes)))
        if partner_codes:
            stmt = stmt.where(col(Task.partner_code).in_(list(partner_codes)))
        if manager_codes:
            stmt = stmt.where(col(Task.manager_code).in_(list(manager_codes)))
        if member_user_id:
            members = select(TaskTeam.task_id).where(TaskTeam.user_id == member_user_id)
            stmt = stmt.where(col(Task.id).in_(members))
        if not include_archived:
            stmt = stmt.where(Task.active == True)  # noqa: E712
        if stage:
            stmt = stmt.where(self._stage_clause(stage))
        return stmt

    @staticmethod
    def _stage_clause(stage: str):
        latest = (
            select(TaskStageHistory.task_id, func.max(TaskStageHistory.id).label("max_id"))
            .group_by(TaskStageHistory.task_id)
            .subquery()
        )
        in_stage = (
            select(TaskStageHistory.task_id)
            .join(latest, col(TaskStageHistory.id) == latest.c.max_id)
            .where(TaskStageHistory.stage == stage)
        )
        clause = col(Task.id).in_(in_stage)
        if stage == TaskStage.ENGAGE.value:
            any_history = select(TaskStageHistory.task_id)
            clause = or_(clause, col(Task.id).not_in(any_history))
        return clause

    async def search(
        self,
        *,
        page: int,
        limit: int,
        sort_by: str = "updated_at",
        sort_order: str = "desc",
        **filters,
    ) -> tuple[Sequence[Task], int]:
        stmt = self.build_query(**filters)
        column = TASK_SORT_COLUMNS.get(sort_by, Task.updated_at)
        stmt = stmt.order_by(column.asc() if sort_order == "asc" else column.desc(), col(Task.id))
        return await self.paginate(stmt, page, limit)

    async def find_all(self, stmt) -> List[Task]:
        result = await self.session.exec(stmt)
        return list(result.all())

    async def count_for_client(self, client_id: int) -> int:
        return await self.count(select(Task).where(Task.client_id == client_id))

    async def get_many(self, task_ids: Sequence[int]) -> Dict[int, Task]:
        if not task_ids:
            return {}
        result = await self.session.exec(select(Task).where(col(Task.id).in_(set(task_ids))))
        return {task.id: task for task in result.all()}


class TaskStageRepository(SQLModelRepository[TaskStageHistory]):
    """Repository for task stage history."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, TaskStageHistory)

    async def latest_for(self, task_ids: Sequence[int]) -> Dict[int, str]:
        """Current stage per task id; tasks without history are absent."""
        if not task_ids:
            return {}
        stmt = (
            select(TaskStageHistory.task_id, TaskStageHistory.stage)
            .where(col(TaskStageHistory.task_id).in_(list(task_ids)))
            .order_by(col(TaskStageHistory.id))
        )
        result = await self.session.exec(stmt)
        stages: Dict[int, str] = {}
        for task_id, stage in result.all():
            stages[task_id] = stage
        return stages

    async def current_stage(self, task_id: int) -> str:
        stages = await self.latest_for([task_id])
        return stages.get(task_id, TaskStage.ENGAGE.value)

    async def history(self, task_id: int) -> List[TaskStageHistory]:
        stmt = select(TaskStageHistory).where(TaskStageHistory.task_id == task_id).order_by(col(TaskStageHistory.id))
        result = await self.session.exec(stmt)
        return list(result.all())


class TaskTeamRepository(SQLModelRepository[TaskTeam]):
    """Repository for task team memberships and their allocations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, TaskTeam)

    async def list_for_task(self, task_id: int) -> List[TaskTeam]:
        stmt = select(TaskTeam).where(TaskTeam.task_id == task_id).order_by(col(TaskTeam.id))
        result = await self.session.exec(stmt)
        return list(result.all())

    async def get_member(self, task_id: int, user_id: str) -> Optional[TaskTeam]:
        stmt = select(TaskTeam).where(TaskTeam.task_id == task_id, TaskTeam.user_id == user_id)
        result = await self.session.exec(stmt)
        return result.first()

    async def count_administrators(self, task_id: int) -> int:
        stmt = select(TaskTeam).where(
            TaskTeam.task_id == task_id, TaskTeam.role == ServiceLineRole.ADMINISTRATOR.value
        )
        return await self.count(stmt)

    async def list_dated(
        self,
        *,
        user_ids: Optional[Sequence[str]] = None,
        task_ids: Optional[Sequence[int]] = None,
        window_start: Optional[date] = None,
        window_end: Optional[date] = None,
    ) -> List[TaskTeam]:
        """Memberships carrying allocation dates, optionally overlapping a window."""
        stmt = select(TaskTeam).where(col(TaskTeam.start_date).is_not(None), col(TaskTeam.end_date).is_not(None))
        if user_ids is not None:
            stmt = stmt.where(col(TaskTeam.user_id).in_(list(user_ids)))
        if task_ids is not None:
            stmt = stmt.where(col(TaskTeam.task_id).in_(list(task_ids)))
        if window_end is not None:
            stmt = stmt.where(col(TaskTeam.start_date) <= window_end)
        if window_start is not None:
            stmt = stmt.where(col(TaskTeam.end_date) >= window_start)
        result = await self.session.exec(stmt.order_by(col(TaskTeam.start_date)))
        return list(result.all())

    async def task_ids_for_user(self, user_id: str) -> List[int]:
        result = await self.session.exec(select(TaskTeam.task_id).where(TaskTeam.user_id == user_id))
        return list(result.all())


class NonClientAllocationRepository(SQLModelRepository[NonClientAllocation]):
    """Repository for leave, training and administrative allocations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, NonClientAllocation)

    async def list_for_users(
        self,
        user_ids: Sequence[str],
        window_start: Optional[date] = None,
        window_end: Optional[date] = None,
    ) -> List[NonClientAllocation]:
        if not user_ids:
            return []
        stmt = select(NonClientAllocation).where(col(NonClientAllocation.user_id).in_(list(user_ids)))
        if window_end is not None:
            stmt = stmt.where(NonClientAllocation.start_date <= window_end)
        if window_start is not None:
            stmt = stmt.where(NonClientAllocation.end_date >= window_start)
        result = await self.session.exec(stmt.order_by(col(NonClientAllocation.start_date)))
        return list(result.all())
