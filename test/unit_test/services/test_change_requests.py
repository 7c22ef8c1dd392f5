"""Tests for client partner and manager change requests."""

import pytest

from practiceflow.core.errors import ConflictError, NotFoundError, ValidationError
from practiceflow.core.models.domain.enums import ChangeRequestStatus, ChangeType, NotificationType
from practiceflow.core.models.io.acceptance import AcceptanceSubmit, AnswerInput
from practiceflow.core.models.io.clients import ChangeRequestCreate
from practiceflow.services.acceptance.service import AcceptanceService
from practiceflow.services.approvals import ApprovalService
from practiceflow.services.change_requests import ChangeRequestService


@pytest.fixture
def service(repos) -> ChangeRequestService:
    return ChangeRequestService(repos)


def _partner_change(code="M001", reason="Partner retiring"):
    return ChangeRequestCreate(change_type=ChangeType.PARTNER, proposed_employee_code=code, reason=reason)


async def _steps(repos, request):
    return await repos.approval_steps.list_for_approval(request.approval_id)


class TestCreate:
    async def test_current_and_proposed_both_approve(self, service, repos, world, seeded_routes):
        request = await service.create(world.client, world.staff, _partner_change())

        assert request.status == ChangeRequestStatus.PENDING.value
        assert request.current_employee_code == "P001"
        assert request.proposed_employee_name == "Max Manager"
        assert request.requires_dual_approval is True
        steps = await _steps(repos, request)
        assert [step.assigned_to_user_id for step in steps] == ["partner", "manager"]

    async def test_inactive_current_employee_is_skipped(self, service, repos, world, seeded_routes):
        employee = await repos.employees.get_by_code("P001")
        employee.active = False
        await repos.employees.update(employee)

        request = await service.create(world.client, world.staff, _partner_change())

        assert request.requires_dual_approval is False
        steps = await _steps(repos, request)
        assert [step.assigned_to_user_id for step in steps] == ["manager"]

    @pytest.mark.parametrize(
        "code, message",
        [
            ("p001", "Proposed employee is already the current client partner"),
            ("Z999", "Proposed employee is not active or does not exist"),
            ("X001", "Proposed employee does not have a user account"),
        ],
    )
    async def test_invalid_proposed_employee(self, service, world, seeded_routes, code, message):
        with pytest.raises(ValidationError) as exc:
            await service.create(world.client, world.staff, _partner_change(code))

        assert exc.value.message == message

    async def test_one_pending_request_per_role(self, service, world, seeded_routes):
        first = await service.create(world.client, world.staff, _partner_change())

        with pytest.raises(ConflictError) as exc:
            await service.create(world.client, world.staff, _partner_change("S001"))

        assert exc.value.details == {"change_request_id": first.id}
        manager_change = ChangeRequestCreate(change_type=ChangeType.MANAGER, proposed_employee_code="S001")
        assert (await service.create(world.client, world.staff, manager_change)).id != first.id


class TestDecisions:
    async def test_completed_approval_applies_the_change(
        self, service, repos, world, seeded_routes, safe_answers
    ):
        acceptances = AcceptanceService(repos)
        approvals = ApprovalService(repos)
        submitted = await acceptances.submit(
            world.client.id,
            world.staff,
            AcceptanceSubmit(answers={key: AnswerInput(answer=value) for key, value in safe_answers.items()}),
        )
        acceptance_step = (await repos.approval_steps.list_for_approval(submitted.status.approval_id))[0]
        await approvals.approve_step(acceptance_step.id, world.partner)
        assert await acceptances.is_valid(world.client.id) is True

        request = await service.create(world.client, world.staff, _partner_change())
        current_step, proposed_step = await _steps(repos, request)
        first = await approvals.approve_step(current_step.id, world.partner)
        second = await approvals.approve_step(proposed_step.id, world.manager, "Glad to take it")

        assert first.is_complete is False
        assert second.is_complete is True
        client = await repos.clients.get_by_id(world.client.id)
        assert client.partner_code == "M001"
        stored = await service.get(world.client.id, request.id)
        assert stored.status == ChangeRequestStatus.APPROVED.value
        assert stored.resolved_by == "manager"
        assert await acceptances.is_valid(world.client.id) is False
        inbox, _ = await repos.notifications.search("partner", page=1, limit=20)
        assert NotificationType.CLIENT_TEAM_CHANGED.value in [item.type for item in inbox]

    async def test_rejection_leaves_the_client_unchanged(self, service, repos, world, seeded_routes):
        request = await service.create(world.client, world.staff, _partner_change())
        current_step, _ = await _steps(repos, request)

        result = await ApprovalService(repos).reject_step(current_step.id, world.partner, "Staying on")

        assert result.is_complete is True
        stored = await service.get(world.client.id, request.id)
        assert stored.status == ChangeRequestStatus.REJECTED.value
        assert stored.resolution_comment == "Staying on"
        assert (await repos.clients.get_by_id(world.client.id)).partner_code == "P001"
        again = await service.create(world.client, world.staff, _partner_change())
        assert again.id != request.id


class TestQueries:
    async def test_list_and_get(self, service, world, seeded_routes):
        request = await service.create(world.client, world.staff, _partner_change())

        items, total = await service.list_for_client(world.client.id, page=1, limit=10)
        approved, approved_total = await service.list_for_client(
            world.client.id, page=1, limit=10, status=ChangeRequestStatus.APPROVED
        )

        assert [item.id for item in items] == [request.id]
        assert total == 1
        assert (list(approved), approved_total) == ([], 0)
        with pytest.raises(NotFoundError):
            await service.get(world.client.id + 1, request.id)
