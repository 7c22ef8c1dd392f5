"""
Unit tests for Approvals API endpoints.

Tests cover:
- Requesting an approval and resolving its route
- Listing the caller's pending approvals
- Step decisions through a two-step route
- Delegations and route configuration
"""

from datetime import timedelta

import pytest
from httpx import AsyncClient

from practiceflow.core.database.base import utc_now

pytestmark = pytest.mark.asyncio

APPROVALS = "/api/v1/approvals"


async def _request(client: AsyncClient, headers, risk="LOW", **fields):
    payload = {
        "workflow_type": "ENGAGEMENT_LETTER",
        "workflow_id": 5,
        "title": "Engagement letter for T100",
        "context": {"risk_rating": risk},
    }
    payload.update(fields)
    response = await client.post(APPROVALS, json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestRequestApproval:
    async def test_low_risk_has_one_step(self, client: AsyncClient, world, auth):
        approval = await _request(client, auth(world.manager))

        assert approval["status"] == "PENDING"
        assert approval["requested_by"] == "manager"
        assert approval["requested_by_name"] == "Max Manager"
        assert [step["assigned_to_role"] for step in approval["steps"]] == ["PARTNER"]
        assert approval["current_step_id"] == approval["steps"][0]["id"]

    async def test_high_risk_adds_administrator_step(self, client: AsyncClient, world, auth):
        approval = await _request(client, auth(world.manager), risk="HIGH", priority="HIGH")

        assert [step["assigned_to_role"] for step in approval["steps"]] == ["PARTNER", "ADMINISTRATOR"]
        assert approval["priority"] == "HIGH"

    async def test_unknown_route(self, client: AsyncClient, world, auth):
        response = await client.post(
            APPROVALS,
            json={"workflow_type": "DPA", "workflow_id": 1, "route_name": "nope"},
            headers=auth(world.manager),
        )

        assert response.status_code == 404

    async def test_unknown_workflow_type(self, client: AsyncClient, world, auth):
        response = await client.post(
            APPROVALS, json={"workflow_type": "PAYROLL", "workflow_id": 1}, headers=auth(world.manager)
        )

        assert response.status_code == 422

    @pytest.mark.parametrize("workflow_type", ["CLIENT_ACCEPTANCE", "CHANGE_REQUEST"])
    async def test_workflows_with_their_own_entry_point_are_refused(
        self, client: AsyncClient, world, auth, workflow_type
    ):
        response = await client.post(
            APPROVALS,
            json={"workflow_type": workflow_type, "workflow_id": 1, "context": {"client_partner_code": "staff"}},
            headers=auth(world.staff),
        )

        assert response.status_code == 400
        assert response.json()["details"] == {"workflow_type": workflow_type}

    async def test_second_pending_request_conflicts(self, client: AsyncClient, world, auth):
        first = await _request(client, auth(world.manager))

        response = await client.post(
            APPROVALS, json={"workflow_type": "ENGAGEMENT_LETTER", "workflow_id": 5}, headers=auth(world.staff)
        )

        assert response.status_code == 409
        assert response.json()["details"] == {"approval_id": first["id"]}


class TestMyApprovals:
    async def test_grouped_by_workflow(self, client: AsyncClient, world, auth):
        await _request(client, auth(world.manager))

        partner = await client.get(APPROVALS, headers=auth(world.partner))
        staff = await client.get(APPROVALS, headers=auth(world.staff))

        assert partner.json()["total_count"] == 1
        assert list(partner.json()["grouped_by_workflow"]) == ["ENGAGEMENT_LETTER"]
        assert staff.json()["total_count"] == 0

    async def test_get_approval_visibility(self, client: AsyncClient, world, auth):
        approval = await _request(client, auth(world.manager))
        url = f"{APPROVALS}/{approval['id']}"

        assert (await client.get(url, headers=auth(world.manager))).status_code == 200
        assert (await client.get(url, headers=auth(world.partner))).status_code == 200
        assert (await client.get(url, headers=auth(world.staff))).status_code == 403
        assert (await client.get(f"{APPROVALS}/9999", headers=auth(world.admin))).status_code == 404


class TestDecisions:
    async def test_two_step_route(self, client: AsyncClient, world, auth):
        approval = await _request(client, auth(world.manager), risk="HIGH")
        first, second = (step["id"] for step in approval["steps"])

        early = await client.post(f"{APPROVALS}/steps/{second}/approve", json={}, headers=auth(world.partner))
        step_one = await client.post(
            f"{APPROVALS}/steps/{first}/approve", json={"comment": "Fine"}, headers=auth(world.partner)
        )
        step_two = await client.post(f"{APPROVALS}/steps/{second}/approve", json={}, headers=auth(world.admin))

        assert early.status_code == 403
        assert step_one.json()["is_complete"] is False
        assert step_one.json()["next_step"]["id"] == second
        assert step_two.json()["is_complete"] is True
        assert step_two.json()["approval"]["status"] == "APPROVED"
        assert step_two.json()["approval"]["completed_by"] == "admin"

    async def test_reject_needs_comment(self, client: AsyncClient, world, auth):
        approval = await _request(client, auth(world.manager))
        step_id = approval["steps"][0]["id"]

        missing = await client.post(f"{APPROVALS}/steps/{step_id}/reject", json={}, headers=auth(world.partner))
        rejected = await client.post(
            f"{APPROVALS}/steps/{step_id}/reject", json={"comment": "Scope unclear"}, headers=auth(world.partner)
        )
        again = await client.post(f"{APPROVALS}/steps/{step_id}/approve", json={}, headers=auth(world.partner))

        assert missing.status_code == 400
        assert rejected.json()["approval"]["status"] == "REJECTED"
        assert again.status_code == 409

    async def test_requester_is_notified(self, client: AsyncClient, world, auth):
        approval = await _request(client, auth(world.manager))
        await client.post(f"{APPROVALS}/steps/{approval['steps'][0]['id']}/approve", json={}, headers=auth(world.partner))

        response = await client.get("/api/v1/notifications", headers=auth(world.manager))

        assert [item["type"] for item in response.json()["items"]] == ["APPROVAL_COMPLETED"]


class TestDelegations:
    async def test_create_list_revoke(self, client: AsyncClient, world, auth):
        now = utc_now()
        created = await client.post(
            f"{APPROVALS}/delegations",
            json={
                "to_user_id": "manager",
                "start_date": (now - timedelta(hours=1)).isoformat(),
                "end_date": (now + timedelta(days=7)).isoformat(),
                "reason": "Leave",
            },
            headers=auth(world.partner),
        )
        listed = await client.get(f"{APPROVALS}/delegations", headers=auth(world.partner))
        revoked = await client.delete(f"{APPROVALS}/delegations/{created.json()['id']}", headers=auth(world.partner))

        assert created.status_code == 201
        assert [item["to_user_id"] for item in listed.json()] == ["manager"]
        assert revoked.json()["is_active"] is False

    async def test_cannot_delegate_to_self(self, client: AsyncClient, world, auth):
        now = utc_now()
        response = await client.post(
            f"{APPROVALS}/delegations",
            json={"to_user_id": "partner", "start_date": now.isoformat(), "end_date": (now + timedelta(days=1)).isoformat()},
            headers=auth(world.partner),
        )

        assert response.status_code == 400


class TestRoutes:
    async def test_list_default_routes(self, client: AsyncClient, world, auth):
        response = await client.get(f"{APPROVALS}/routes", headers=auth(world.staff))

        assert len(response.json()) == 6

    async def test_filter_by_workflow(self, client: AsyncClient, world, auth):
        response = await client.get(
            f"{APPROVALS}/routes", params={"workflow_type": "CHANGE_REQUEST"}, headers=auth(world.staff)
        )

        assert [route["route_name"] for route in response.json()] == ["dual-approval"]

    async def test_create_route_admin_only(self, client: AsyncClient, world, auth):
        payload = {
            "workflow_type": "DPA",
            "route_name": "manager-approval",
            "config": {"steps": [{"step_order": 1, "step_type": "ROLE", "assigned_to_role": "MANAGER"}]},
        }

        forbidden = await client.post(f"{APPROVALS}/routes", json=payload, headers=auth(world.partner))
        created = await client.post(f"{APPROVALS}/routes", json=payload, headers=auth(world.admin))
        duplicate = await client.post(f"{APPROVALS}/routes", json=payload, headers=auth(world.admin))

        assert forbidden.status_code == 403
        assert created.status_code == 201
        assert created.json()["is_default"] is False
        assert duplicate.status_code == 409
