"""
Unit tests for the compliance checklist and SARS response tracker endpoints.
"""

import pytest
import pytest_asyncio
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio

API = "/api/v1"


@pytest_asyncio.fixture
async def team_task(client: AsyncClient, world, auth):
    """A task with staff as USER and viewer as VIEWER on the team."""
    created = await client.post(
        f"{API}/tasks",
        json={"task_code": "T100", "task_desc": "Annual tax return", "serv_line_code": "TAX01"},
        headers=auth(world.manager),
    )
    task = created.json()
    for user_id, role in (("staff", "USER"), ("viewer", "VIEWER")):
        await client.post(
            f"{API}/tasks/{task['id']}/users", json={"user_id": user_id, "role": role}, headers=auth(world.manager)
        )
    return task


class TestChecklist:
    async def test_create_complete_and_progress(self, client: AsyncClient, world, auth, team_task):
        url = f"{API}/tasks/{team_task['id']}/compliance-checklist"

        created = await client.post(
            url,
            json={"title": "File ITR14", "due_date": "2026-11-30", "assigned_to": "staff", "priority": "HIGH"},
            headers=auth(world.staff),
        )
        await client.post(url, json={"title": "Collect trial balance"}, headers=auth(world.staff))
        completed = await client.patch(
            f"{url}/{created.json()['id']}", json={"status": "COMPLETED"}, headers=auth(world.staff)
        )
        checklist = await client.get(url, headers=auth(world.viewer))

        assert created.status_code == 201
        assert completed.json()["completed_by"] == "staff"
        assert completed.json()["completed_at"] is not None
        assert checklist.json()["progress"] == {"total": 2, "completed": 1, "percentage": 50, "overdue": 0}
        assert checklist.json()["items"][0]["title"] == "File ITR14"

    async def test_viewer_cannot_write(self, client: AsyncClient, world, auth, team_task):
        response = await client.post(
            f"{API}/tasks/{team_task['id']}/compliance-checklist", json={"title": "x"}, headers=auth(world.viewer)
        )

        assert response.status_code == 403

    async def test_non_member_cannot_read(self, client: AsyncClient, world, auth, team_task):
        response = await client.get(f"{API}/tasks/{team_task['id']}/compliance-checklist", headers=auth(world.outsider))

        assert response.status_code == 403

    async def test_delete(self, client: AsyncClient, world, auth, team_task):
        url = f"{API}/tasks/{team_task['id']}/compliance-checklist"
        created = await client.post(url, json={"title": "File ITR14"}, headers=auth(world.staff))

        deleted = await client.delete(f"{url}/{created.json()['id']}", headers=auth(world.staff))
        missing = await client.delete(f"{url}/{created.json()['id']}", headers=auth(world.staff))

        assert deleted.json() == {"message": "Checklist item deleted"}
        assert missing.status_code == 404


class TestSarsResponses:
    async def test_log_filter_and_submit(self, client: AsyncClient, world, auth, team_task):
        url = f"{API}/tasks/{team_task['id']}/sars-responses"
        created = await client.post(
            url,
            json={
                "reference_number": "SARS-2026-001",
                "subject": "Verification of expenses",
                "response_type": "VERIFICATION",
                "deadline": "2026-11-15",
            },
            headers=auth(world.staff),
        )

        pending = await client.get(url, params={"status": "PENDING"}, headers=auth(world.viewer))
        submitted = await client.patch(
            f"{url}/{created.json()['id']}", json={"status": "SUBMITTED"}, headers=auth(world.staff)
        )
        resolved = await client.get(url, params={"status": "RESOLVED"}, headers=auth(world.viewer))

        assert created.status_code == 201
        assert created.json()["status"] == "PENDING"
        assert [item["reference_number"] for item in pending.json()] == ["SARS-2026-001"]
        assert submitted.json()["submitted_at"] is not None
        assert resolved.json() == []

    async def test_invalid_status_filter(self, client: AsyncClient, world, auth, team_task):
        response = await client.get(
            f"{API}/tasks/{team_task['id']}/sars-responses", params={"status": "LOST"}, headers=auth(world.staff)
        )

        assert response.status_code == 422

    async def test_missing_fields(self, client: AsyncClient, world, auth, team_task):
        response = await client.post(
            f"{API}/tasks/{team_task['id']}/sars-responses", json={"subject": "x"}, headers=auth(world.staff)
        )

        assert response.status_code == 422
