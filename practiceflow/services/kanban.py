"""
Kanban board.

Tasks are grouped by their latest stage. Without filters each column only
loads the most recently updated tasks; the column's ``total_count`` still
counts all of them.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from sqlmodel import col

from practiceflow.core.database.entities.tasks import Task
from practiceflow.core.database.entities.users import User
from practiceflow.core.database.repositories.bundle import RepositoryBundle
from practiceflow.core.logging_config import get_logger
from practiceflow.core.models.domain.enums import WORKFLOW_STAGES, TaskStage
from practiceflow.core.models.io.tasks import KanbanBoard, KanbanColumn, KanbanTask
from practiceflow.server.core.config import settings
from practiceflow.services.access import AccessService

logger = get_logger(__name__)


def column_name(stage: str) -> str:
    return stage.replace("_", " ")


class KanbanService:
    def __init__(self, repos: RepositoryBundle, column_limit: Optional[int] = None) -> None:
        self.repos = repos
        self.access = AccessService(repos)
        self.column_limit = column_limit if column_limit is not None else settings.workflow.kanban_column_limit

    async def get_board(
        self,
        user: User,
        *,
        search: Optional[str] = None,
        client_ids: Optional[Sequence[int]] = None,
        task_names: Optional[Sequence[str]] = None,
        partner_codes: Optional[Sequence[str]] = None,
        manager_codes: Optional[Sequence[str]] = None,
        service_line: Optional[str] = None,
        sub_group: Optional[str] = None,
        my_tasks_only: bool = False,
        include_archived: bool = False,
    ) -> KanbanBoard:
        codes = await self.access.scoped_service_line_codes(user, service_line, sub_group)
        filters = dict(
            search=search,
            client_ids=client_ids,
            task_names=task_names,
            serv_line_codes=codes,
            partner_codes=partner_codes,
            manager_codes=manager_codes,
            member_user_id=user.id if my_tasks_only else None,
        )
        has_filters = bool(search or client_ids or task_names or partner_codes or manager_codes or my_tasks_only)
        limit = None if has_filters else self.column_limit

        columns: List[KanbanColumn] = []
        for stage in (workflow_stage.value for workflow_stage in WORKFLOW_STAGES):
            stmt = self.repos.tasks.build_query(**filters, stage=stage)
            columns.append(await self._column(stage, stmt, limit))

        if include_archived:
            stmt = self.repos.tasks.build_query(**filters, include_archived=True).where(
                Task.active == False  # noqa: E712
            )
            columns.append(await self._column(TaskStage.ARCHIVED.value, stmt, limit, archived=True))

        total = sum(column.total_count for column in columns)
        loaded = sum(column.task_count for column in columns)
        logger.debug(f"Kanban board for {user.id}: {loaded}/{total} tasks loaded")
        return KanbanBoard(columns=columns, total_tasks=total, loaded_tasks=loaded)

    async def _column(
        self, stage: str, stmt, limit: Optional[int], archived: bool = False
    ) -> KanbanColumn:
        total = await self.repos.tasks.count(stmt)
        stmt = stmt.order_by(col(Task.updated_at).desc(), col(Task.id))
        if limit is not None:
            stmt = stmt.limit(limit)
        tasks = await self.repos.tasks.find_all(stmt)

        # Archived cards keep showing the stage they were archived in
        stage_by_id: Dict[int, str] = {}
        if archived:
            stage_by_id = await self.repos.task_stages.latest_for([task.id for task in tasks])

        items = [
            KanbanTask(
                id=task.id,
                task_code=task.task_code,
                task_desc=task.task_desc,
                client_id=task.client_id,
                serv_line_code=task.serv_line_code,
                partner_code=task.partner_code,
                manager_code=task.manager_code,
                active=task.active,
                stage=stage_by_id.get(task.id, TaskStage.ENGAGE.value) if archived else stage,
                updated_at=task.updated_at,
            )
            for task in tasks
        ]
        return KanbanColumn(
            stage=stage, name=column_name(stage), tasks=items, task_count=len(items), total_count=total
        )
