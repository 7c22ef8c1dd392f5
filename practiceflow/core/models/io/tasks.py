"""Task, team, stage and Kanban I/O models."""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from practiceflow.core.models.domain.enums import ServiceLineRole, TaskStage


class TaskRead(BaseModel):
    """Schema for reading a task."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    task_code: str
    task_desc: str
    client_id: Optional[int] = None
    serv_line_code: str
    partner_code: Optional[str] = None
    manager_code: Optional[str] = None
    budget_hours: Optional[float] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    active: bool
    created_at: datetime
    updated_at: datetime


class TaskCreate(BaseModel):
    """Schema for creating a task."""

    task_code: str = Field(min_length=1, max_length=32)
    task_desc: str = Field(min_length=1, max_length=255)
    client_id: Optional[int] = None
    serv_line_code: str = Field(description="External service line code")
    partner_code: Optional[str] = None
    manager_code: Optional[str] = None
    budget_hours: Optional[float] = Field(default=None, ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class TaskUpdate(BaseModel):
    """Schema for updating a task; only provided fields change."""

    task_desc: Optional[str] = Field(default=None, min_length=1, max_length=255)
    partner_code: Optional[str] = None
    manager_code: Optional[str] = None
    budget_hours: Optional[float] = Field(default=None, ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class StageChange(BaseModel):
    stage: TaskStage
    notes: Optional[str] = None


class StageHistoryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    stage: str
    notes: Optional[str] = None
    moved_by: Optional[str] = None
    created_at: datetime


class TeamMemberRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    task_id: int
    user_id: str
    role: str
    name: Optional[str] = None
    email: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    allocated_hours: Optional[float] = None
    allocated_percentage: Optional[int] = None
    actual_hours: Optional[float] = None


class TeamMemberCreate(BaseModel):
    user_id: str
    role: ServiceLineRole = ServiceLineRole.USER


class TeamMemberUpdate(BaseModel):
    role: ServiceLineRole


class TaskDetail(TaskRead):
    stage: str
    team: List[TeamMemberRead]
    stage_history: List[StageHistoryRead]
    acceptance_required: bool
    acceptance_valid: bool
    access_type: str
    task_role: Optional[str] = None


class KanbanTask(BaseModel):
    id: int
    task_code: str
    task_desc: str
    client_id: Optional[int] = None
    serv_line_code: str
    partner_code: Optional[str] = None
    manager_code: Optional[str] = None
    active: bool
    stage: str
    updated_at: datetime


class KanbanColumn(BaseModel):
    stage: str
    name: str
    tasks: List[KanbanTask]
    task_count: int = Field(description="Tasks loaded into this column")
    total_count: int = Field(description="All tasks in this stage")


class KanbanBoard(BaseModel):
    columns: List[KanbanColumn]
    total_tasks: int
    loaded_tasks: int
