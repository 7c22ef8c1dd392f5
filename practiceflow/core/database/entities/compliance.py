"""
Compliance entity models.

Per-task compliance checklist items and the tracker of correspondence with
the revenue authority (SARS).
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from sqlmodel import Field, Text

from ..base import Base, utc_now


class ComplianceChecklistItem(Base, table=True):
    """Table: compliance_checklist_items"""

    __tablename__ = "compliance_checklist_items"

    id: Optional[int] = Field(default=None, primary_key=True)
    task_id: int = Field(foreign_key="tasks.id", index=True)
    title: str = Field(max_length=255)
    description: Optional[str] = Field(default=None, sa_type=Text)
    due_date: Optional[date] = Field(default=None)
    priority: str = Field(default="MEDIUM", max_length=16)
    status: str = Field(default="PENDING", max_length=16)
    assigned_to: Optional[str] = Field(default=None, max_length=64)
    completed_at: Optional[datetime] = Field(default=None)
    completed_by: Optional[str] = Field(default=None, max_length=64)
    created_by: str = Field(max_length=64)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})


class SarsResponse(Base, table=True):
    """Table: sars_responses"""

    __tablename__ = "sars_responses"

    id: Optional[int] = Field(default=None, primary_key=True)
    task_id: int = Field(foreign_key="tasks.id", index=True)
    reference_number: str = Field(max_length=64)
    subject: str = Field(max_length=255)
    response_type: str = Field(max_length=64)
    status: str = Field(default="PENDING", max_length=16)
    deadline: Optional[date] = Field(default=None)
    submitted_at: Optional[datetime] = Field(default=None)
    notes: Optional[str] = Field(default=None, sa_type=Text)
    created_by: str = Field(max_length=64)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})
