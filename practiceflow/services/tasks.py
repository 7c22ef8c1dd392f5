"""
Task management.

Tasks are created inside a service line the creator belongs to, start in the
ENGAGE stage with the creator as team ADMINISTRATOR, and cannot move past
ENGAGE until their client has a valid acceptance. Archiving is a soft delete.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from practiceflow.core import monitoring
from practiceflow.core.database.entities.tasks import Task, TaskStageHistory, TaskTeam
from practiceflow.core.database.entities.users import User
from practiceflow.core.database.repositories.bundle import RepositoryBundle
from practiceflow.core.errors import ConflictError, NotFoundError, ValidationError
from practiceflow.core.logging_config import get_logger
from practiceflow.core.models.domain.enums import NotificationType, ServiceLineRole, TaskStage
from practiceflow.core.models.io.common import Page
from practiceflow.core.models.io.tasks import (
    StageHistoryRead,
    TaskCreate,
    TaskDetail,
    TaskRead,
    TaskUpdate,
    TeamMemberCreate,
    TeamMemberRead,
    TeamMemberUpdate,
)
from practiceflow.services.acceptance.service import AcceptanceService
from practiceflow.services.access import AccessService
from practiceflow.services.notifications import NotificationService

logger = get_logger(__name__)


def check_date_range(start_date, end_date) -> None:
    if start_date is not None and end_date is not None and end_date < start_date:
        raise ValidationError("End date cannot be before start date")


class TaskService:
    def __init__(self, repos: RepositoryBundle) -> None:
        self.repos = repos
        self.access = AccessService(repos)
        self.acceptance = AcceptanceService(repos)
        self.notifications = NotificationService(repos)

    # ------------------------------------------------------------------
    # Listing and detail
    # ------------------------------------------------------------------

    async def list_tasks(
        self,
        user: User,
        *,
        page: int = 1,
        limit: int = 20,
        search: Optional[str] = None,
        client_id: Optional[int] = None,
        service_line: Optional[str] = None,
        sub_group: Optional[str] = None,
        partner_codes: Optional[Sequence[str]] = None,
        manager_codes: Optional[Sequence[str]] = None,
        stage: Optional[str] = None,
        my_tasks_only: bool = False,
        include_archived: bool = False,
        sort_by: str = "updated_at",
        sort_order: str = "desc",
    ) -> Page[TaskRead]:
        codes = await self.access.scoped_service_line_codes(user, service_line, sub_group)
        tasks, total = await self.repos.tasks.search(
            page=page,
            limit=limit,
            sort_by=sort_by,
            sort_order=sort_order,
            search=search,
            client_ids=[client_id] if client_id else None,
            serv_line_codes=codes,
            partner_codes=partner_codes,
            manager_codes=manager_codes,
            member_user_id=user.id if my_tasks_only else None,
            stage=stage,
            include_archived=include_archived,
        )
        return Page.build([TaskRead.model_validate(task) for task in tasks], total, page, limit)

    async def list_team(self, user: User, task_id: int) -> List[TeamMemberRead]:
        await self.access.require_task_access(user, task_id, ServiceLineRole.VIEWER.value)
        return await self._team_read(task_id)

    async def _team_read(self, task_id: int) -> List[TeamMemberRead]:
        members = await self.repos.task_team.list_for_task(task_id)
        users = await self.repos.users.get_many([member.user_id for member in members])
        team = []
        for member in members:
            account = users.get(member.user_id)
            item = TeamMemberRead.model_validate(member)
            item.name = account.name if account else None
            item.email = account.email if account else None
            team.append(item)
        return team

    async def get_detail(self, user: User, task_id: int) -> TaskDetail:
        task = await self.access.require_task_access(user, task_id)
        access = await self.access.check_task_access(user, task_id)
        stage = await self.repos.task_stages.current_stage(task_id)
        history = await self.repos.task_stages.history(task_id)
        acceptance_required = task.client_id is not None
        acceptance_valid = await self.acceptance.is_valid(task.client_id) if acceptance_required else True
        return TaskDetail(
            **TaskRead.model_validate(task).model_dump(),
            stage=stage,
            team=await self._team_read(task_id),
            stage_history=[StageHistoryRead.model_validate(row) for row in history],
            acceptance_required=acceptance_required,
            acceptance_valid=acceptance_valid,
            access_type=access.access_type.value,
            task_role=access.task_role,
        )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def create(self, user: User, payload: TaskCreate) -> Task:
        mapping = await self.repos.service_lines.get_by_code(payload.serv_line_code)
        if mapping is None:
            raise ValidationError(f"Unknown service line code: {payload.serv_line_code}")
        await self.access.require_service_line_role(user, mapping.sub_group, ServiceLineRole.USER.value)
        check_date_range(payload.start_date, payload.end_date)
        if await self.repos.tasks.get_by_code(payload.task_code):
            raise ConflictError(f"Task code {payload.task_code} already exists")
        if payload.client_id is not None and await self.repos.clients.get_by_id(payload.client_id) is None:
            raise NotFoundError("Client not found", details={"client_id": payload.client_id})

        task = await self.repos.tasks.stage(Task(**payload.model_dump(), created_by=user.id))
        await self.repos.task_team.stage(
            TaskTeam(task_id=task.id, user_id=user.id, role=ServiceLineRole.ADMINISTRATOR.value)
        )
        await self.repos.task_stages.stage(
            TaskStageHistory(task_id=task.id, stage=TaskStage.ENGAGE.value, notes="Task created", moved_by=user.id)
        )
        await self.repos.commit()
        logger.info(f"Task created: id={task.id} code={task.task_code} by={user.id}")
        return task

    async def update(self, user: User, task_id: int, payload: TaskUpdate) -> Task:
        task = await self.access.require_task_manager(user, task_id)
        changes = payload.model_dump(exclude_unset=True)
        check_date_range(changes.get("start_date", task.start_date), changes.get("end_date", task.end_date))
        for field, value in changes.items():
            setattr(task, field, value)
        return await self.repos.tasks.update(task)

    async def archive(self, user: User, task_id: int) -> Task:
        task = await self.access.require_task_manager(user, task_id)
        task.active = False
        logger.info(f"Task {task_id} archived by {user.id}")
        return await self.repos.tasks.update(task)

    async def restore(self, user: User, task_id: int) -> Task:
        task = await self.access.require_task_manager(user, task_id)
        task.active = True
        logger.info(f"Task {task_id} restored by {user.id}")
        return await self.repos.tasks.update(task)

    async def change_stage(self, user: User, task_id: int, stage: str, notes: Optional[str] = None) -> TaskDetail:
        """Move a task to a workflow stage.

        Raises:
            ConflictError: If the task is archived
            ValidationError: If the stage needs a valid client acceptance and there is none
        """
        task = await self.access.require_task_access(user, task_id, ServiceLineRole.USER.value)
        if not task.active:
            raise ConflictError("Archived tasks cannot change stage")
        current = await self.repos.task_stages.current_stage(task_id)
        if current == stage:
            return await self.get_detail(user, task_id)

        if stage != TaskStage.ENGAGE.value and task.client_id is not None:
            if not await self.acceptance.is_valid(task.client_id):
                raise ValidationError(
                    "Client acceptance must be approved before work on this task can proceed",
                    details={"client_id": task.client_id, "acceptance_required": True},
                )

        await self.repos.task_stages.stage(TaskStageHistory(task_id=task_id, stage=stage, notes=notes, moved_by=user.id))
        for member in await self.repos.task_team.list_for_task(task_id):
            if member.user_id == user.id:
                continue
            await self.notifications.notify(
                member.user_id,
                NotificationType.TASK_STAGE_CHANGED.value,
                f"{task.task_code} moved to {stage.replace('_', ' ')}",
                notes or f"{task.task_desc} moved from {current.replace('_', ' ')}.",
                task_id=task_id,
                action_url=f"/tasks/{task_id}",
                from_user_id=user.id,
            )
        await self.repos.commit()
        logger.info(f"Task {task_id} moved {current} -> {stage} by {user.id}")
        monitoring.log_workflow_event("task_stage_changed", task_id=task_id, from_stage=current, to_stage=stage)
        return await self.get_detail(user, task_id)

    # ------------------------------------------------------------------
    # Team
    # ------------------------------------------------------------------

    async def add_member(self, user: User, task_id: int, payload: TeamMemberCreate) -> TeamMemberRead:
        task = await self.access.require_task_manager(user, task_id)
        account = await self.repos.users.get_by_id(payload.user_id)
        if account is None:
            raise NotFoundError("User not found", details={"user_id": payload.user_id})
        if await self.repos.task_team.get_member(task_id, payload.user_id):
            raise ConflictError("User is already on the task team")

        member = await self.repos.task_team.stage(
            TaskTeam(task_id=task_id, user_id=payload.user_id, role=payload.role.value)
        )
        if payload.user_id != user.id:
            await self.notifications.notify(
                payload.user_id,
                NotificationType.TASK_ASSIGNED.value,
                f"Added to {task.task_code}",
                f"You were added to {task.task_desc} as {payload.role.value}.",
                task_id=task_id,
                action_url=f"/tasks/{task_id}",
                from_user_id=user.id,
            )
        await self.repos.commit()
        read = TeamMemberRead.model_validate(member)
        read.name, read.email = account.name, account.email
        return read

    async def _require_member(self, task_id: int, user_id: str) -> TaskTeam:
        member = await self.repos.task_team.get_member(task_id, user_id)
        if member is None:
            raise NotFoundError("Team member not found", details={"task_id": task_id, "user_id": user_id})
        return member

    async def _ensure_not_last_administrator(self, member: TaskTeam) -> None:
        if member.role != ServiceLineRole.ADMINISTRATOR.value:
            return
        if await self.repos.task_team.count_administrators(member.task_id) <= 1:
            raise ValidationError("A task must keep at least one ADMINISTRATOR")

    async def update_member(self, user: User, task_id: int, user_id: str, payload: TeamMemberUpdate) -> TeamMemberRead:
        await self.access.require_task_manager(user, task_id)
        member = await self._require_member(task_id, user_id)
        if payload.role.value != member.role:
            await self._ensure_not_last_administrator(member)
            member.role = payload.role.value
            member = await self.repos.task_team.update(member)
        read = TeamMemberRead.model_validate(member)
        account = await self.repos.users.get_by_id(user_id)
        if account is not None:
            read.name, read.email = account.name, account.email
        return read

    async def remove_member(self, user: User, task_id: int, user_id: str) -> None:
        await self.access.require_task_manager(user, task_id)
        member = await self._require_member(task_id, user_id)
        await self._ensure_not_last_administrator(member)
        await self.repos.task_team.delete(member.id)
        logger.info(f"User {user_id} removed from task {task_id} by {user.id}")
