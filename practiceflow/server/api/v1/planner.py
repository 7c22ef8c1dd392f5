"""
Planner Endpoints.

Team allocations on a task, the client and employee planners, and
non-client time (leave, training, administration).
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Query, status

from practiceflow.core.models.io.common import MessageResponse, Page
from practiceflow.core.models.io.planner import (
    AllocationPeriod,
    AllocationUpdate,
    ClientPlannerRow,
    EmployeePlannerRow,
    NonClientAllocationCreate,
    NonClientAllocationUpdate,
    TeamAllocationRead,
)
from practiceflow.server.services.deps import CurrentUser, PlannerDep

router = APIRouter()
task_router = APIRouter()


@task_router.get("/{task_id}/team/allocations", response_model=List[TeamAllocationRead], summary="Team Allocations")
async def team_allocations(task_id: int, user: CurrentUser, planner: PlannerDep):
    """Each member's allocation on the task next to their other dated bookings."""
    return await planner.get_team_allocations(user, task_id)


@task_router.put(
    "/{task_id}/team/{member_id}/allocation",
    response_model=AllocationPeriod,
    summary="Update Allocation",
    responses={400: {"description": "Invalid or overlapping dates"}},
)
async def update_allocation(
    task_id: int, member_id: int, payload: AllocationUpdate, user: CurrentUser, planner: PlannerDep
):
    return await planner.update_allocation(user, task_id, member_id, payload)


@task_router.delete(
    "/{task_id}/team/{member_id}/allocation", response_model=TeamAllocationRead, summary="Clear Allocation"
)
async def clear_allocation(task_id: int, member_id: int, user: CurrentUser, planner: PlannerDep):
    return await planner.clear_allocation(user, task_id, member_id)


@router.get("/clients", response_model=Page[ClientPlannerRow], summary="Client Planner")
async def client_planner(
    user: CurrentUser,
    planner: PlannerDep,
    service_line: Optional[str] = None,
    sub_group: Optional[str] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    search: Optional[str] = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
):
    return await planner.client_planner(
        user,
        service_line=service_line,
        sub_group=sub_group,
        start=start,
        end=end,
        search=search,
        page=page,
        limit=limit,
    )


@router.get("/employees", response_model=Page[EmployeePlannerRow], summary="Employee Planner")
async def employee_planner(
    user: CurrentUser,
    planner: PlannerDep,
    service_line: Optional[str] = None,
    sub_group: Optional[str] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    search: Optional[str] = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
):
    return await planner.employee_planner(
        user,
        service_line=service_line,
        sub_group=sub_group,
        start=start,
        end=end,
        search=search,
        page=page,
        limit=limit,
    )


@router.post(
    "/non-client-allocations",
    response_model=AllocationPeriod,
    status_code=status.HTTP_201_CREATED,
    summary="Book Non-client Time",
)
async def create_non_client(payload: NonClientAllocationCreate, user: CurrentUser, planner: PlannerDep):
    return await planner.create_non_client(user, payload)


@router.put("/non-client-allocations/{allocation_id}", response_model=AllocationPeriod, summary="Update Non-client Time")
async def update_non_client(
    allocation_id: int, payload: NonClientAllocationUpdate, user: CurrentUser, planner: PlannerDep
):
    return await planner.update_non_client(user, allocation_id, payload)


@router.delete("/non-client-allocations/{allocation_id}", response_model=MessageResponse, summary="Delete Non-client Time")
async def delete_non_client(allocation_id: int, user: CurrentUser, planner: PlannerDep):
    await planner.delete_non_client(user, allocation_id)
    return MessageResponse(message="Allocation deleted")
