"""
Compliance checklist and SARS correspondence tracking.

Both are plain per-task lists. Reading needs VIEWER access to the task,
changing anything needs USER.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable, List, Optional

from practiceflow.core.database.base import utc_now
from practiceflow.core.database.entities.compliance import ComplianceChecklistItem, SarsResponse
from practiceflow.core.database.entities.users import User
from practiceflow.core.database.repositories.bundle import RepositoryBundle
from practiceflow.core.errors import NotFoundError, ValidationError
from practiceflow.core.logging_config import get_logger
from practiceflow.core.models.domain.enums import ChecklistStatus, SarsStatus, ServiceLineRole
from practiceflow.core.models.io.compliance import (
    ChecklistItemCreate,
    ChecklistItemRead,
    ChecklistItemUpdate,
    ChecklistProgress,
    ChecklistResponse,
    SarsResponseCreate,
    SarsResponseRead,
    SarsResponseUpdate,
)
from practiceflow.services.access import AccessService

logger = get_logger(__name__)

CLOSED_SARS_STATUSES = {SarsStatus.SUBMITTED.value, SarsStatus.RESOLVED.value}


def checklist_progress(items: Iterable[ComplianceChecklistItem], today: date) -> ChecklistProgress:
    items = list(items)
    completed = sum(1 for item in items if item.status == ChecklistStatus.COMPLETED.value)
    overdue = sum(
        1
        for item in items
        if item.status != ChecklistStatus.COMPLETED.value and item.due_date is not None and item.due_date < today
    )
    percentage = round(completed / len(items) * 100) if items else 0
    return ChecklistProgress(total=len(items), completed=completed, percentage=percentage, overdue=overdue)


def sars_read(response: SarsResponse, today: date) -> SarsResponseRead:
    read = SarsResponseRead.model_validate(response)
    if response.deadline is not None:
        read.days_until_deadline = (response.deadline - today).days
        read.is_overdue = response.deadline < today and response.status not in CLOSED_SARS_STATUSES
    return read


class ComplianceService:
    def __init__(self, repos: RepositoryBundle) -> None:
        self.repos = repos
        self.access = AccessService(repos)

    async def _check_assignee(self, user_id: Optional[str]) -> None:
        if user_id and await self.repos.users.get_by_id(user_id) is None:
            raise ValidationError("Assigned user not found", details={"assigned_to": user_id})

    # ------------------------------------------------------------------
    # Checklist
    # ------------------------------------------------------------------

    async def get_checklist(self, user: User, task_id: int) -> ChecklistResponse:
        await self.access.require_task_access(user, task_id, ServiceLineRole.VIEWER.value)
        items = await self.repos.checklist.list_for_task(task_id)
        return ChecklistResponse(
            items=[ChecklistItemRead.model_validate(item) for item in items],
            progress=checklist_progress(items, utc_now().date()),
        )

    async def create_item(self, user: User, task_id: int, payload: ChecklistItemCreate) -> ChecklistItemRead:
        await self.access.require_task_access(user, task_id, ServiceLineRole.USER.value)
        await self._check_assignee(payload.assigned_to)
        item = await self.repos.checklist.create(
            ComplianceChecklistItem(
                task_id=task_id,
                title=payload.title.strip(),
                description=payload.description,
                due_date=payload.due_date,
                priority=payload.priority.value,
                assigned_to=payload.assigned_to,
                created_by=user.id,
            )
        )
        return ChecklistItemRead.model_validate(item)

    async def _require_item(self, task_id: int, item_id: int) -> ComplianceChecklistItem:
        item = await self.repos.checklist.get_for_task(task_id, item_id)
        if item is None:
            raise NotFoundError("Checklist item not found", details={"item_id": item_id})
        return item

    async def update_item(
        self, user: User, task_id: int, item_id: int, payload: ChecklistItemUpdate
    ) -> ChecklistItemRead:
        """Apply the given fields; completing stamps who and when, reopening clears it."""
        await self.access.require_task_access(user, task_id, ServiceLineRole.USER.value)
        item = await self._require_item(task_id, item_id)
        fields = payload.model_fields_set

        if "assigned_to" in fields:
            await self._check_assignee(payload.assigned_to)
            item.assigned_to = payload.assigned_to
        if payload.title is not None:
            item.title = payload.title.strip()
        if "description" in fields:
            item.description = payload.description
        if "due_date" in fields:
            item.due_date = payload.due_date
        if payload.priority is not None:
            item.priority = payload.priority.value
        if payload.status is not None and payload.status.value != item.status:
            item.status = payload.status.value
            if payload.status == ChecklistStatus.COMPLETED:
                item.completed_at = utc_now()
                item.completed_by = user.id
            else:
                item.completed_at = None
                item.completed_by = None

        item = await self.repos.checklist.update(item)
        return ChecklistItemRead.model_validate(item)

    async def delete_item(self, user: User, task_id: int, item_id: int) -> None:
        await self.access.require_task_access(user, task_id, ServiceLineRole.USER.value)
        item = await self._require_item(task_id, item_id)
        await self.repos.checklist.delete(item.id)

    # ------------------------------------------------------------------
    # SARS responses
    # ------------------------------------------------------------------

    async def list_sars(self, user: User, task_id: int, status: Optional[str] = None) -> List[SarsResponseRead]:
        await self.access.require_task_access(user, task_id, ServiceLineRole.VIEWER.value)
        today = utc_now().date()
        return [sars_read(response, today) for response in await self.repos.sars.list_for_task(task_id, status)]

    async def create_sars(self, user: User, task_id: int, payload: SarsResponseCreate) -> SarsResponseRead:
        await self.access.require_task_access(user, task_id, ServiceLineRole.USER.value)
        response = await self.repos.sars.create(
            SarsResponse(
                task_id=task_id,
                reference_number=payload.reference_number.strip(),
                subject=payload.subject.strip(),
                response_type=payload.response_type.strip(),
                deadline=payload.deadline,
                notes=payload.notes,
                created_by=user.id,
            )
        )
        logger.info(f"SARS response {response.reference_number} logged on task {task_id}")
        return sars_read(response, utc_now().date())

    async def _require_sars(self, task_id: int, response_id: int) -> SarsResponse:
        response = await self.repos.sars.get_for_task(task_id, response_id)
        if response is None:
            raise NotFoundError("SARS response not found", details={"response_id": response_id})
        return response

    async def update_sars(
        self, user: User, task_id: int, response_id: int, payload: SarsResponseUpdate
    ) -> SarsResponseRead:
        await self.access.require_task_access(user, task_id, ServiceLineRole.USER.value)
        response = await self._require_sars(task_id, response_id)
        fields = payload.model_fields_set

        for name in ("reference_number", "subject", "response_type"):
            value = getattr(payload, name)
            if value is not None:
                setattr(response, name, value.strip())
        if "deadline" in fields:
            response.deadline = payload.deadline
        if "notes" in fields:
            response.notes = payload.notes
        if payload.status is not None and payload.status.value != response.status:
            response.status = payload.status.value
            if payload.status == SarsStatus.SUBMITTED and response.submitted_at is None:
                response.submitted_at = utc_now()

        response = await self.repos.sars.update(response)
        return sars_read(response, utc_now().date())

    async def delete_sars(self, user: User, task_id: int, response_id: int) -> None:
        await self.access.require_task_access(user, task_id, ServiceLineRole.USER.value)
        response = await self._require_sars(task_id, response_id)
        await self.repos.sars.delete(response.id)
