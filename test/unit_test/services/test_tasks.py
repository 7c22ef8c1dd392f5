"""Tests for task lifecycle, stage gating and team membership."""

import pytest

from practiceflow.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from practiceflow.core.models.domain.enums import NotificationType, ServiceLineRole, TaskStage
from practiceflow.core.models.io.acceptance import AcceptanceSubmit, AnswerInput
from practiceflow.core.models.io.tasks import TaskCreate, TaskUpdate, TeamMemberCreate, TeamMemberUpdate
from practiceflow.services.acceptance.service import AcceptanceService
from practiceflow.services.tasks import TaskService


@pytest.fixture
def service(repos) -> TaskService:
    return TaskService(repos)


async def _approve_acceptance(repos, world, safe_answers):
    acceptance = AcceptanceService(repos)
    await acceptance.submit(
        world.client.id,
        world.staff,
        AcceptanceSubmit(answers={key: AnswerInput(answer=value) for key, value in safe_answers.items()}),
    )
    await acceptance.approve(world.client.id, world.partner)


class TestCreate:
    async def test_creator_becomes_administrator_in_engage(self, service, world, task):
        detail = await service.get_detail(world.manager, task.id)

        assert detail.stage == TaskStage.ENGAGE.value
        assert [(member.user_id, member.role) for member in detail.team] == [("manager", "ADMINISTRATOR")]
        assert detail.stage_history[0].notes == "Task created"
        assert detail.acceptance_required is True
        assert detail.acceptance_valid is False
        assert detail.task_role == ServiceLineRole.ADMINISTRATOR.value

    async def test_unknown_service_line(self, service, world):
        with pytest.raises(ValidationError):
            await service.create(world.manager, TaskCreate(task_code="T1", task_desc="Return", serv_line_code="NOPE"))

    async def test_requires_membership_of_the_group(self, service, world):
        with pytest.raises(ForbiddenError):
            await service.create(world.outsider, TaskCreate(task_code="T1", task_desc="Return", serv_line_code="TAX01"))

    async def test_viewer_cannot_create(self, service, world):
        with pytest.raises(ForbiddenError):
            await service.create(world.viewer, TaskCreate(task_code="T1", task_desc="Return", serv_line_code="TAX01"))

    async def test_duplicate_code(self, service, world, make_task):
        await make_task(task_code="DUP")
        with pytest.raises(ConflictError):
            await make_task(task_code="DUP")

    async def test_end_before_start(self, service, world):
        from datetime import date

        payload = TaskCreate(
            task_code="T1",
            task_desc="Return",
            serv_line_code="TAX01",
            start_date=date(2026, 11, 1),
            end_date=date(2026, 10, 1),
        )
        with pytest.raises(ValidationError):
            await service.create(world.manager, payload)

    async def test_unknown_client(self, make_task):
        with pytest.raises(NotFoundError):
            await make_task(client_id=9999)


class TestListing:
    async def test_scoped_to_the_users_groups(self, service, world, make_task):
        await make_task(task_code="TAXA")
        await make_task(world.outsider, task_code="AUDA", serv_line_code="AUD01")

        staff_page = await service.list_tasks(world.staff)
        admin_page = await service.list_tasks(world.admin)

        assert [task.task_code for task in staff_page.items] == ["TAXA"]
        assert {task.task_code for task in admin_page.items} == {"TAXA", "AUDA"}

    async def test_archived_hidden_by_default(self, service, world, task):
        await service.archive(world.manager, task.id)

        assert (await service.list_tasks(world.manager)).total == 0
        assert (await service.list_tasks(world.manager, include_archived=True)).total == 1

    async def test_my_tasks_only(self, service, world, make_task):
        await make_task(task_code="MINE")
        await make_task(world.partner, task_code="THEIRS")

        page = await service.list_tasks(world.manager, my_tasks_only=True)

        assert [task.task_code for task in page.items] == ["MINE"]


class TestStageChange:
    async def test_acceptance_required_past_engage(self, service, world, task):
        with pytest.raises(ValidationError) as exc_info:
            await service.change_stage(world.manager, task.id, TaskStage.IN_PROGRESS.value)

        assert exc_info.value.details["acceptance_required"] is True

    async def test_task_without_client_moves_freely(self, service, world, make_task):
        task = await make_task(client_id=None)

        detail = await service.change_stage(world.manager, task.id, TaskStage.IN_PROGRESS.value, "Kick-off")

        assert detail.stage == TaskStage.IN_PROGRESS.value
        assert detail.acceptance_required is False
        assert [row.stage for row in detail.stage_history][-1] == TaskStage.IN_PROGRESS.value

    async def test_moves_after_acceptance_and_notifies_team(
        self, service, repos, world, task, safe_answers, seeded_routes
    ):
        await service.add_member(world.manager, task.id, TeamMemberCreate(user_id="staff"))
        await _approve_acceptance(repos, world, safe_answers)

        detail = await service.change_stage(world.manager, task.id, TaskStage.IN_PROGRESS.value)

        assert detail.stage == TaskStage.IN_PROGRESS.value
        assert detail.acceptance_valid is True
        inbox = await repos.notifications.search("staff", page=1, limit=20)
        assert NotificationType.TASK_STAGE_CHANGED.value in [item.type for item in inbox[0]]

    async def test_same_stage_is_a_no_op(self, service, world, task):
        detail = await service.change_stage(world.manager, task.id, TaskStage.ENGAGE.value)
        assert len(detail.stage_history) == 1

    async def test_archived_task_cannot_move(self, service, world, make_task):
        task = await make_task(client_id=None)
        await service.archive(world.manager, task.id)

        with pytest.raises(ConflictError):
            await service.change_stage(world.manager, task.id, TaskStage.IN_PROGRESS.value)

    async def test_non_member_cannot_move(self, service, world, task):
        with pytest.raises(ForbiddenError):
            await service.change_stage(world.staff, task.id, TaskStage.IN_PROGRESS.value)

    async def test_viewer_member_cannot_move(self, service, world, make_task):
        task = await make_task(client_id=None)
        await service.add_member(world.manager, task.id, TeamMemberCreate(user_id="viewer", role=ServiceLineRole.VIEWER))

        with pytest.raises(ForbiddenError):
            await service.change_stage(world.viewer, task.id, TaskStage.IN_PROGRESS.value)


class TestUpdateAndArchive:
    async def test_update_only_given_fields(self, service, world, task):
        updated = await service.update(world.manager, task.id, TaskUpdate(task_desc="Provisional tax"))

        assert updated.task_desc == "Provisional tax"
        assert updated.budget_hours == 120

    async def test_plain_user_cannot_update(self, service, world, task):
        await service.add_member(world.manager, task.id, TeamMemberCreate(user_id="staff"))
        with pytest.raises(ForbiddenError):
            await service.update(world.staff, task.id, TaskUpdate(task_desc="Nope"))

    async def test_archive_and_restore(self, service, world, task):
        assert (await service.archive(world.manager, task.id)).active is False
        assert (await service.restore(world.manager, task.id)).active is True


class TestTeam:
    async def test_add_member_notifies(self, service, repos, world, task):
        member = await service.add_member(
            world.manager, task.id, TeamMemberCreate(user_id="staff", role=ServiceLineRole.SUPERVISOR)
        )

        assert member.role == "SUPERVISOR"
        assert member.name == "Sam Staff"
        assert await repos.notifications.unread_count("staff") == 1

    async def test_add_existing_member(self, service, world, task):
        with pytest.raises(ConflictError):
            await service.add_member(world.manager, task.id, TeamMemberCreate(user_id="manager"))

    async def test_add_unknown_user(self, service, world, task):
        with pytest.raises(NotFoundError):
            await service.add_member(world.manager, task.id, TeamMemberCreate(user_id="ghost"))

    async def test_last_administrator_cannot_be_removed(self, service, world, task):
        with pytest.raises(ValidationError):
            await service.remove_member(world.manager, task.id, "manager")

    async def test_last_administrator_cannot_be_demoted(self, service, world, task):
        with pytest.raises(ValidationError):
            await service.update_member(
                world.manager, task.id, "manager", TeamMemberUpdate(role=ServiceLineRole.USER)
            )

    async def test_remove_after_second_administrator(self, service, world, task):
        await service.add_member(
            world.manager, task.id, TeamMemberCreate(user_id="staff", role=ServiceLineRole.ADMINISTRATOR)
        )

        await service.remove_member(world.manager, task.id, "manager")

        team = await service.list_team(world.staff, task.id)
        assert [member.user_id for member in team] == ["staff"]

    async def test_remove_unknown_member(self, service, world, task):
        with pytest.raises(NotFoundError):
            await service.remove_member(world.manager, task.id, "staff")
