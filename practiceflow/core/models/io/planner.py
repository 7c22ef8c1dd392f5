"""Planner and allocation I/O models."""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, Field

from practiceflow.core.models.domain.enums import NonClientEventType


class AllocationUpdate(BaseModel):
    """Allocation change for a team member; the end date is inclusive."""

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    allocated_hours: Optional[float] = Field(default=None, ge=0)
    allocated_percentage: Optional[int] = Field(default=None, ge=0, le=100)
    actual_hours: Optional[float] = Field(default=None, ge=0)


class AllocationPeriod(BaseModel):
    """A dated block of booked time, on a task or a non-client event."""

    kind: str = Field(description="TASK or NON_CLIENT")
    id: int
    task_id: Optional[int] = None
    task_code: Optional[str] = None
    task_desc: Optional[str] = None
    client_id: Optional[int] = None
    event_type: Optional[str] = None
    role: Optional[str] = None
    start_date: date
    end_date: date
    allocated_hours: Optional[float] = None
    allocated_percentage: Optional[int] = None
    actual_hours: Optional[float] = None


class TeamAllocationRead(BaseModel):
    member_id: int
    user_id: str
    name: Optional[str] = None
    role: str
    allocation: Optional[AllocationPeriod] = None
    other_allocations: List[AllocationPeriod]


class ClientPlannerTask(BaseModel):
    task_id: int
    task_code: str
    task_desc: str
    allocations: List[AllocationPeriod]


class ClientPlannerRow(BaseModel):
    client_id: Optional[int] = None
    client_code: Optional[str] = None
    client_name: Optional[str] = None
    tasks: List[ClientPlannerTask]


class EmployeePlannerRow(BaseModel):
    user_id: str
    name: str
    email: str
    allocations: List[AllocationPeriod]
    total_allocated_hours: float
    available_hours: float
    utilisation: float = Field(description="Allocated hours over available business hours, as a percentage")


class NonClientAllocationCreate(BaseModel):
    user_id: str
    event_type: NonClientEventType
    start_date: date
    end_date: date
    allocated_hours: Optional[float] = Field(default=None, ge=0)
    notes: Optional[str] = None


class NonClientAllocationUpdate(BaseModel):
    event_type: Optional[NonClientEventType] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    allocated_hours: Optional[float] = Field(default=None, ge=0)
    notes: Optional[str] = None
