"""
Per-user landing summary.
"""

from __future__ import annotations

from typing import Dict

from practiceflow.core.database.entities.users import User
from practiceflow.core.database.repositories.bundle import RepositoryBundle
from practiceflow.core.models.domain.enums import WORKFLOW_STAGES, TaskStage
from practiceflow.core.models.io.dashboard import DashboardSummary
from practiceflow.core.models.io.service_lines import UserServiceLineRead
from practiceflow.services.access import AccessService
from practiceflow.services.approvals import ApprovalService
from practiceflow.services.notifications import NotificationService


class DashboardService:
    def __init__(self, repos: RepositoryBundle) -> None:
        self.repos = repos
        self.access = AccessService(repos)
        self.approvals = ApprovalService(repos)
        self.notifications = NotificationService(repos)

    async def tasks_by_stage(self, user: User) -> Dict[str, int]:
        """Active tasks the user is on, counted by their current stage."""
        codes = await self.access.scoped_service_line_codes(user)
        stmt = self.repos.tasks.build_query(serv_line_codes=codes, member_user_id=user.id)
        tasks = await self.repos.tasks.find_all(stmt)
        stages = await self.repos.task_stages.latest_for([task.id for task in tasks])

        counts = {stage.value: 0 for stage in WORKFLOW_STAGES}
        for task in tasks:
            stage = stages.get(task.id, TaskStage.ENGAGE.value)
            counts[stage] = counts.get(stage, 0) + 1
        return counts

    async def summary(self, user: User) -> DashboardSummary:
        service_lines = await self.access.get_user_service_lines(user)
        counts = await self.tasks_by_stage(user)
        return DashboardSummary(
            service_lines=[UserServiceLineRead.model_validate(entry) for entry in service_lines],
            tasks_by_stage=counts,
            active_task_count=sum(counts.values()),
            pending_approvals=await self.approvals.count_pending_for_user(user),
            unread_notifications=await self.notifications.unread_count(user.id),
        )
