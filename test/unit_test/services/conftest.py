from datetime import date
from typing import Awaitable, Callable, Optional

import pytest
import pytest_asyncio

from practiceflow.core.database.entities.tasks import Task
from practiceflow.core.database.entities.users import User
from practiceflow.core.models.io.tasks import TaskCreate
from practiceflow.services.tasks import TaskService

MakeTask = Callable[..., Awaitable[Task]]


@pytest.fixture
def make_task(repos, world) -> MakeTask:
    """Create a task through the service so the team and stage history exist."""
    counter = {"n": 0}

    async def _make(
        creator: Optional[User] = None,
        *,
        serv_line_code: str = "TAX01",
        client_id: Optional[int] = -1,
        **fields,
    ) -> Task:
        counter["n"] += 1
        payload = TaskCreate(
            task_code=fields.pop("task_code", f"T{counter['n']:03d}"),
            task_desc=fields.pop("task_desc", f"Tax return {counter['n']}"),
            serv_line_code=serv_line_code,
            client_id=world.client.id if client_id == -1 else client_id,
            **fields,
        )
        return await TaskService(repos).create(creator or world.manager, payload)

    return _make


@pytest_asyncio.fixture
async def task(make_task) -> Task:
    return await make_task(start_date=date(2026, 10, 1), end_date=date(2026, 12, 31), budget_hours=120)
