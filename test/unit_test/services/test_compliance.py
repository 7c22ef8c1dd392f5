"""Tests for the compliance checklist and SARS response tracking."""

from datetime import date, timedelta

import pytest

from practiceflow.core.database.base import utc_now
from practiceflow.core.database.entities.compliance import ComplianceChecklistItem, SarsResponse
from practiceflow.core.errors import ForbiddenError, NotFoundError, ValidationError
from practiceflow.core.models.domain.enums import ChecklistStatus, SarsStatus, ServiceLineRole
from practiceflow.core.models.io.compliance import (
    ChecklistItemCreate,
    ChecklistItemUpdate,
    SarsResponseCreate,
    SarsResponseUpdate,
)
from practiceflow.core.models.io.tasks import TeamMemberCreate
from practiceflow.services.compliance import ComplianceService, checklist_progress, sars_read
from practiceflow.services.tasks import TaskService

TODAY = date(2026, 10, 19)


class TestChecklistProgress:
    def test_counts(self):
        items = [
            ComplianceChecklistItem(task_id=1, title="a", created_by="u", status="COMPLETED", due_date=date(2026, 1, 1)),
            ComplianceChecklistItem(task_id=1, title="b", created_by="u", status="PENDING", due_date=TODAY - timedelta(days=1)),
            ComplianceChecklistItem(task_id=1, title="c", created_by="u", status="IN_PROGRESS", due_date=TODAY),
        ]

        progress = checklist_progress(items, TODAY)

        assert (progress.total, progress.completed, progress.percentage, progress.overdue) == (3, 1, 33, 1)

    def test_empty(self):
        progress = checklist_progress([], TODAY)
        assert (progress.total, progress.percentage, progress.overdue) == (0, 0, 0)

    def test_rounds_to_nearest(self):
        items = [
            ComplianceChecklistItem(task_id=1, title=str(i), created_by="u", status="COMPLETED" if i < 2 else "PENDING")
            for i in range(3)
        ]
        assert checklist_progress(items, TODAY).percentage == 67


class TestSarsRead:
    def _response(self, status, deadline):
        return SarsResponse(
            id=1,
            task_id=1,
            reference_number="REF-1",
            subject="Verification",
            response_type="VERIFICATION",
            status=status,
            deadline=deadline,
            created_by="u",
        )

    def test_open_past_deadline_is_overdue(self):
        read = sars_read(self._response(SarsStatus.PENDING.value, TODAY - timedelta(days=3)), TODAY)

        assert read.is_overdue is True
        assert read.days_until_deadline == -3

    @pytest.mark.parametrize("status", [SarsStatus.SUBMITTED.value, SarsStatus.RESOLVED.value])
    def test_closed_is_never_overdue(self, status):
        assert sars_read(self._response(status, TODAY - timedelta(days=3)), TODAY).is_overdue is False

    def test_no_deadline(self):
        read = sars_read(self._response(SarsStatus.PENDING.value, None), TODAY)
        assert (read.is_overdue, read.days_until_deadline) == (False, None)


@pytest.fixture
def service(repos) -> ComplianceService:
    return ComplianceService(repos)


@pytest.fixture
async def team_task(repos, world, task):
    tasks = TaskService(repos)
    await tasks.add_member(world.manager, task.id, TeamMemberCreate(user_id="staff"))
    await tasks.add_member(world.manager, task.id, TeamMemberCreate(user_id="viewer", role=ServiceLineRole.VIEWER))
    return task


class TestChecklistService:
    async def test_create_and_read(self, service, world, team_task):
        await service.create_item(
            world.staff, team_task.id, ChecklistItemCreate(title="  File IT14  ", assigned_to="staff")
        )

        checklist = await service.get_checklist(world.viewer, team_task.id)

        assert [item.title for item in checklist.items] == ["File IT14"]
        assert checklist.items[0].status == ChecklistStatus.PENDING.value
        assert checklist.progress.total == 1

    async def test_viewer_cannot_write(self, service, world, team_task):
        with pytest.raises(ForbiddenError):
            await service.create_item(world.viewer, team_task.id, ChecklistItemCreate(title="File"))

    async def test_non_member_cannot_read(self, service, world, task):
        with pytest.raises(ForbiddenError):
            await service.get_checklist(world.staff, task.id)

    async def test_unknown_assignee(self, service, world, team_task):
        with pytest.raises(ValidationError):
            await service.create_item(world.staff, team_task.id, ChecklistItemCreate(title="File", assigned_to="ghost"))

    async def test_complete_and_reopen(self, service, world, team_task):
        item = await service.create_item(world.staff, team_task.id, ChecklistItemCreate(title="File"))

        completed = await service.update_item(
            world.staff, team_task.id, item.id, ChecklistItemUpdate(status=ChecklistStatus.COMPLETED)
        )
        assert completed.completed_by == "staff"
        assert completed.completed_at is not None

        reopened = await service.update_item(
            world.staff, team_task.id, item.id, ChecklistItemUpdate(status=ChecklistStatus.IN_PROGRESS)
        )
        assert reopened.completed_by is None
        assert reopened.completed_at is None

    async def test_clear_due_date(self, service, world, team_task):
        item = await service.create_item(world.staff, team_task.id, ChecklistItemCreate(title="File", due_date=TODAY))

        updated = await service.update_item(world.staff, team_task.id, item.id, ChecklistItemUpdate(due_date=None))

        assert updated.due_date is None
        assert updated.title == "File"

    async def test_item_of_another_task(self, service, world, team_task, make_task):
        other = await make_task(task_code="OTHER")
        item = await service.create_item(world.manager, other.id, ChecklistItemCreate(title="File"))

        with pytest.raises(NotFoundError):
            await service.delete_item(world.manager, team_task.id, item.id)

    async def test_delete(self, service, world, team_task):
        item = await service.create_item(world.staff, team_task.id, ChecklistItemCreate(title="File"))

        await service.delete_item(world.staff, team_task.id, item.id)

        assert (await service.get_checklist(world.staff, team_task.id)).items == []


class TestSarsService:
    async def test_create_and_filter(self, service, world, team_task):
        await service.create_sars(
            world.staff,
            team_task.id,
            SarsResponseCreate(reference_number="REF-1", subject="Audit query", response_type="AUDIT_QUERY"),
        )
        second = await service.create_sars(
            world.staff,
            team_task.id,
            SarsResponseCreate(reference_number="REF-2", subject="Verification", response_type="VERIFICATION"),
        )
        await service.update_sars(
            world.staff, team_task.id, second.id, SarsResponseUpdate(status=SarsStatus.IN_PROGRESS)
        )

        everything = await service.list_sars(world.viewer, team_task.id)
        in_progress = await service.list_sars(world.viewer, team_task.id, SarsStatus.IN_PROGRESS.value)

        assert len(everything) == 2
        assert [item.reference_number for item in in_progress] == ["REF-2"]

    async def test_submitted_at_stamped_once(self, service, world, team_task):
        response = await service.create_sars(
            world.staff,
            team_task.id,
            SarsResponseCreate(
                reference_number="REF-1",
                subject="Audit query",
                response_type="AUDIT_QUERY",
                deadline=utc_now().date() + timedelta(days=5),
            ),
        )
        assert response.days_until_deadline == 5

        submitted = await service.update_sars(
            world.staff, team_task.id, response.id, SarsResponseUpdate(status=SarsStatus.SUBMITTED)
        )
        await service.update_sars(world.staff, team_task.id, response.id, SarsResponseUpdate(status=SarsStatus.IN_PROGRESS))
        resubmitted = await service.update_sars(
            world.staff, team_task.id, response.id, SarsResponseUpdate(status=SarsStatus.SUBMITTED)
        )

        assert submitted.submitted_at is not None
        assert resubmitted.submitted_at == submitted.submitted_at

    async def test_viewer_cannot_write(self, service, world, team_task):
        with pytest.raises(ForbiddenError):
            await service.create_sars(
                world.viewer,
                team_task.id,
                SarsResponseCreate(reference_number="REF-1", subject="Audit", response_type="AUDIT_QUERY"),
            )

    async def test_delete_missing(self, service, world, team_task):
        with pytest.raises(NotFoundError):
            await service.delete_sars(world.staff, team_task.id, 9999)
