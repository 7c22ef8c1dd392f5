"""Tests for role ranking, task access and client visibility."""

import pytest

from practiceflow.core.errors import ForbiddenError, NotFoundError
from practiceflow.core.models.domain.enums import ServiceLineRole, TaskAccessType
from practiceflow.core.models.io.tasks import TeamMemberCreate
from practiceflow.services.access import AccessService, has_role, highest_role, rank
from practiceflow.services.tasks import TaskService


@pytest.fixture
def access(repos) -> AccessService:
    return AccessService(repos)


class TestRoleLadder:
    def test_rank(self):
        assert rank("ADMINISTRATOR") == 6
        assert rank("viewer") == 1
        assert rank(None) == 0
        assert rank("INTERN") == 0

    def test_has_role(self):
        assert has_role("PARTNER", "MANAGER")
        assert has_role("MANAGER", "MANAGER")
        assert not has_role("SUPERVISOR", "MANAGER")
        assert not has_role(None, "VIEWER")
        assert has_role("VIEWER", None)

    def test_highest_role(self):
        assert highest_role(["USER", None, "PARTNER", "MANAGER"]) == "PARTNER"
        assert highest_role([]) is None


class TestServiceLines:
    async def test_grants_grouped_by_master_line(self, access, world):
        lines = await access.get_user_service_lines(world.partner)

        assert len(lines) == 1
        assert lines[0]["service_line"] == "TAX"
        assert lines[0]["role"] == "PARTNER"
        assert lines[0]["sub_groups"] == [{"code": "TAXCOMP", "description": "Tax Compliance", "role": "PARTNER"}]

    async def test_system_admin_sees_everything(self, access, world):
        lines = await access.get_user_service_lines(world.admin)

        assert [line["service_line"] for line in lines] == ["AUDIT", "TAX"]
        assert {line["role"] for line in lines} == {"ADMINISTRATOR"}

    async def test_scoped_codes(self, access, world):
        assert await access.scoped_service_line_codes(world.admin) is None
        assert await access.scoped_service_line_codes(world.staff) == ["TAX01"]
        assert await access.scoped_service_line_codes(world.staff, master_code="AUDIT") == []
        assert await access.scoped_service_line_codes(world.admin, master_code="AUDIT") == ["AUD01"]

    async def test_require_service_line_role(self, access, world):
        assert await access.require_service_line_role(world.manager, "TAXCOMP", "USER") == "MANAGER"
        with pytest.raises(ForbiddenError):
            await access.require_service_line_role(world.staff, "TAXCOMP", "MANAGER")


class TestTaskAccess:
    async def test_system_admin(self, access, world, task):
        result = await access.check_task_access(world.admin, task.id, ServiceLineRole.ADMINISTRATOR.value)
        assert result.can_access
        assert result.access_type == TaskAccessType.SYSTEM_ADMIN

    async def test_partner_grant_gives_full_access(self, access, world, task):
        result = await access.check_task_access(world.partner, task.id, ServiceLineRole.ADMINISTRATOR.value)
        assert result.can_access
        assert result.access_type == TaskAccessType.SERVICE_LINE_ADMIN
        assert result.service_line == "TAX"

    async def test_team_member_role_is_checked(self, access, repos, world, task):
        await TaskService(repos).add_member(world.manager, task.id, TeamMemberCreate(user_id="staff"))

        as_user = await access.check_task_access(world.staff, task.id, ServiceLineRole.USER.value)
        as_manager = await access.check_task_access(world.staff, task.id, ServiceLineRole.MANAGER.value)

        assert as_user.can_access and as_user.access_type == TaskAccessType.TASK_MEMBER
        assert as_user.task_role == "USER"
        assert not as_manager.can_access

    async def test_group_member_outside_team_has_no_access(self, access, world, task):
        result = await access.check_task_access(world.viewer, task.id)
        assert not result.can_access
        assert result.access_type == TaskAccessType.NO_ACCESS

    async def test_require_task_access_errors(self, access, world, task):
        with pytest.raises(NotFoundError):
            await access.require_task_access(world.admin, 9999)
        with pytest.raises(ForbiddenError):
            await access.require_task_access(world.outsider, task.id)

    async def test_can_manage_task(self, access, repos, world, task):
        tasks = TaskService(repos)
        await tasks.add_member(world.manager, task.id, TeamMemberCreate(user_id="staff"))
        await tasks.add_member(world.manager, task.id, TeamMemberCreate(user_id="viewer", role=ServiceLineRole.MANAGER))

        assert await access.can_manage_task(world.admin, task.id)
        assert await access.can_manage_task(world.manager, task.id)
        assert await access.can_manage_task(world.partner, task.id)
        assert await access.can_manage_task(world.viewer, task.id)
        assert not await access.can_manage_task(world.staff, task.id)
        assert not await access.can_manage_task(world.outsider, task.id)


class TestClientAccess:
    async def test_visible_through_task_service_lines(self, access, world, task):
        client = await access.require_client_access(world.staff, world.client.id)
        assert client.client_code == "CL001"

    async def test_required_role(self, access, world, task):
        await access.require_client_access(world.manager, world.client.id, ServiceLineRole.MANAGER.value)
        with pytest.raises(ForbiddenError):
            await access.require_client_access(world.staff, world.client.id, ServiceLineRole.MANAGER.value)

    async def test_other_groups_cannot_see_the_client(self, access, world, task):
        with pytest.raises(ForbiddenError):
            await access.require_client_access(world.outsider, world.client.id)

    async def test_client_without_tasks(self, access, world):
        with pytest.raises(ForbiddenError):
            await access.require_client_access(world.partner, world.client.id)
        assert (await access.require_client_access(world.admin, world.client.id)).id == world.client.id

    async def test_missing_client(self, access, world):
        with pytest.raises(NotFoundError):
            await access.require_client_access(world.admin, 9999)


class TestEmployees:
    async def test_employee_code_to_user(self, access, world):
        assert (await access.find_user_for_employee_code("P001")).id == "partner"
        assert await access.find_user_for_employee_code("X001") is None
        assert await access.find_user_for_employee_code("NOPE") is None

    async def test_codes_for_user(self, access, world):
        assert await access.find_employee_codes_for_user(world.manager) == ["M001"]
