"""
Task Endpoints.

Task listing, the Kanban board, task detail and lifecycle, stage changes and
team membership.
"""

from typing import List, Literal, Optional

from fastapi import APIRouter, Query, status

from practiceflow.core.models.domain.enums import TaskStage
from practiceflow.core.models.io.common import MessageResponse, Page
from practiceflow.core.models.io.tasks import (
    KanbanBoard,
    StageChange,
    TaskCreate,
    TaskDetail,
    TaskRead,
    TaskUpdate,
    TeamMemberCreate,
    TeamMemberRead,
    TeamMemberUpdate,
)
from practiceflow.server.services.deps import CurrentUser, KanbanDep, TaskServiceDep

router = APIRouter()


@router.get("", response_model=Page[TaskRead], summary="List Tasks")
async def list_tasks(
    user: CurrentUser,
    tasks: TaskServiceDep,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    search: Optional[str] = None,
    client_id: Optional[int] = None,
    service_line: Optional[str] = None,
    sub_group: Optional[str] = None,
    partner_codes: Optional[List[str]] = Query(default=None),
    manager_codes: Optional[List[str]] = Query(default=None),
    stage: Optional[TaskStage] = None,
    my_tasks_only: bool = False,
    include_archived: bool = False,
    sort_by: Literal["updated_at", "task_code", "task_desc"] = "updated_at",
    sort_order: Literal["asc", "desc"] = "desc",
):
    return await tasks.list_tasks(
        user,
        page=page,
        limit=limit,
        search=search,
        client_id=client_id,
        service_line=service_line,
        sub_group=sub_group,
        partner_codes=partner_codes,
        manager_codes=manager_codes,
        stage=stage.value if stage else None,
        my_tasks_only=my_tasks_only,
        include_archived=include_archived,
        sort_by=sort_by,
        sort_order=sort_order,
    )


@router.post("", response_model=TaskDetail, status_code=status.HTTP_201_CREATED, summary="Create Task")
async def create_task(payload: TaskCreate, user: CurrentUser, tasks: TaskServiceDep):
    """
    Create a task.

    The caller needs USER or higher in the task's sub-group and joins the
    team as ADMINISTRATOR. The task starts in ENGAGE.
    """
    task = await tasks.create(user, payload)
    return await tasks.get_detail(user, task.id)


# Registered before "/{task_id}" so "kanban" is not parsed as an id
@router.get("/kanban", response_model=KanbanBoard, summary="Kanban Board")
async def kanban_board(
    user: CurrentUser,
    kanban: KanbanDep,
    search: Optional[str] = None,
    client_ids: Optional[List[int]] = Query(default=None),
    task_names: Optional[List[str]] = Query(default=None),
    partner_codes: Optional[List[str]] = Query(default=None),
    manager_codes: Optional[List[str]] = Query(default=None),
    service_line: Optional[str] = None,
    sub_group: Optional[str] = None,
    my_tasks_only: bool = False,
    include_archived: bool = False,
):
    return await kanban.get_board(
        user,
        search=search,
        client_ids=client_ids,
        task_names=task_names,
        partner_codes=partner_codes,
        manager_codes=manager_codes,
        service_line=service_line,
        sub_group=sub_group,
        my_tasks_only=my_tasks_only,
        include_archived=include_archived,
    )


@router.get("/{task_id}", response_model=TaskDetail, summary="Get Task")
async def get_task(task_id: int, user: CurrentUser, tasks: TaskServiceDep):
    return await tasks.get_detail(user, task_id)


@router.patch("/{task_id}", response_model=TaskRead, summary="Update Task")
async def update_task(task_id: int, payload: TaskUpdate, user: CurrentUser, tasks: TaskServiceDep):
    return TaskRead.model_validate(await tasks.update(user, task_id, payload))


@router.delete("/{task_id}", response_model=TaskRead, summary="Archive Task")
async def archive_task(task_id: int, user: CurrentUser, tasks: TaskServiceDep):
    return TaskRead.model_validate(await tasks.archive(user, task_id))


@router.post("/{task_id}/restore", response_model=TaskRead, summary="Restore Task")
async def restore_task(task_id: int, user: CurrentUser, tasks: TaskServiceDep):
    return TaskRead.model_validate(await tasks.restore(user, task_id))


@router.post(
    "/{task_id}/stage",
    response_model=TaskDetail,
    summary="Change Task Stage",
    responses={400: {"description": "Client acceptance required"}, 409: {"description": "Task is archived"}},
)
async def change_stage(task_id: int, payload: StageChange, user: CurrentUser, tasks: TaskServiceDep):
    return await tasks.change_stage(user, task_id, payload.stage.value, payload.notes)


@router.get("/{task_id}/users", response_model=List[TeamMemberRead], summary="List Task Team")
async def list_team(task_id: int, user: CurrentUser, tasks: TaskServiceDep):
    return await tasks.list_team(user, task_id)


@router.post(
    "/{task_id}/users", response_model=TeamMemberRead, status_code=status.HTTP_201_CREATED, summary="Add Team Member"
)
async def add_member(task_id: int, payload: TeamMemberCreate, user: CurrentUser, tasks: TaskServiceDep):
    return await tasks.add_member(user, task_id, payload)


@router.put("/{task_id}/users/{user_id}", response_model=TeamMemberRead, summary="Change Team Role")
async def update_member(task_id: int, user_id: str, payload: TeamMemberUpdate, user: CurrentUser, tasks: TaskServiceDep):
    return await tasks.update_member(user, task_id, user_id, payload)


@router.delete("/{task_id}/users/{user_id}", response_model=MessageResponse, summary="Remove Team Member")
async def remove_member(task_id: int, user_id: str, user: CurrentUser, tasks: TaskServiceDep):
    await tasks.remove_member(user, task_id, user_id)
    return MessageResponse(message="Team member removed")
