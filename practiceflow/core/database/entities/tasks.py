"""
Task entity models.

A task is the unit of engagement work. Its workflow stage is the most recent
``TaskStageHistory`` row; its team and allocations live in ``TaskTeam``.
Time booked against an employee outside of client work is kept in
``NonClientAllocation``.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, Text

from ..base import Base, utc_now


class Task(Base, table=True):
    """Engagement task.

    ``active`` is the soft-delete flag; archived tasks have ``active = False``.

    Table: tasks
    """

    __tablename__ = "tasks"

    id: Optional[int] = Field(default=None, primary_key=True)
    task_code: str = Field(max_length=32, unique=True, index=True)
    task_desc: str = Field(max_length=255)
    client_id: Optional[int] = Field(default=None, foreign_key="clients.id", index=True)
    serv_line_code: str = Field(max_length=32, index=True)
    partner_code: Optional[str] = Field(default=None, max_length=32, index=True)
    manager_code: Optional[str] = Field(default=None, max_length=32, index=True)
    budget_hours: Optional[float] = Field(default=None)
    start_date: Optional[date] = Field(default=None)
    end_date: Optional[date] = Field(default=None)
    active: bool = Field(default=True, index=True)
    created_by: Optional[str] = Field(default=None, max_length=64)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now}, index=True)

    def __repr__(self) -> str:
        return f"Task(id={self.id}, task_code={self.task_code}, active={self.active})"


class TaskStageHistory(Base, table=True):
    """Append-only stage transition.

    Table: task_stage_history
    """

    __tablename__ = "task_stage_history"

    id: Optional[int] = Field(default=None, primary_key=True)
    task_id: int = Field(foreign_key="tasks.id", index=True)
    stage: str = Field(max_length=32)
    notes: Optional[str] = Field(default=None, sa_type=Text)
    moved_by: Optional[str] = Field(default=None, max_length=64)
    created_at: datetime = Field(default_factory=utc_now, index=True)


class TaskTeam(Base, table=True):
    """Task team membership with allocation.

    Allocation dates are inclusive on both ends.

    Table: task_team
    """

    __tablename__ = "task_team"
    __table_args__ = (UniqueConstraint("task_id", "user_id", name="uq_task_team_member"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    task_id: int = Field(foreign_key="tasks.id", index=True)
    user_id: str = Field(foreign_key="users.id", max_length=64, index=True)
    role: str = Field(max_length=32)

    start_date: Optional[date] = Field(default=None)
    end_date: Optional[date] = Field(default=None)
    allocated_hours: Optional[float] = Field(default=None)
    allocated_percentage: Optional[int] = Field(default=None)
    actual_hours: Optional[float] = Field(default=None)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    @property
    def has_allocation(self) -> bool:
        return self.start_date is not None and self.end_date is not None


class NonClientAllocation(Base, table=True):
    """Leave, training or administrative time booked against a user.

    Table: non_client_allocations
    """

    __tablename__ = "non_client_allocations"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(foreign_key="users.id", max_length=64, index=True)
    event_type: str = Field(max_length=32)
    start_date: date
    end_date: date
    allocated_hours: float = Field(default=0)
    allocated_percentage: int = Field(default=100)
    notes: Optional[str] = Field(default=None, sa_type=Text)
    created_by: Optional[str] = Field(default=None, max_length=64)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})
