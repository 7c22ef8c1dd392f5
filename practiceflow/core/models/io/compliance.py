"""Compliance checklist and SARS response I/O models."""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from practiceflow.core.models.domain.enums import ApprovalPriority, ChecklistStatus, SarsStatus


class ChecklistItemCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    due_date: Optional[date] = None
    priority: ApprovalPriority = ApprovalPriority.MEDIUM
    assigned_to: Optional[str] = None


class ChecklistItemUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    due_date: Optional[date] = None
    priority: Optional[ApprovalPriority] = None
    status: Optional[ChecklistStatus] = None
    assigned_to: Optional[str] = None


class ChecklistItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    task_id: int
    title: str
    description: Optional[str] = None
    due_date: Optional[date] = None
    priority: str
    status: str
    assigned_to: Optional[str] = None
    completed_at: Optional[datetime] = None
    completed_by: Optional[str] = None
    created_by: str
    created_at: datetime
    updated_at: datetime


class ChecklistProgress(BaseModel):
    total: int
    completed: int
    percentage: int
    overdue: int


class ChecklistResponse(BaseModel):
    items: List[ChecklistItemRead]
    progress: ChecklistProgress


class SarsResponseCreate(BaseModel):
    reference_number: str = Field(min_length=1, max_length=64)
    subject: str = Field(min_length=1, max_length=255)
    response_type: str = Field(min_length=1, max_length=64, examples=["AUDIT_QUERY", "VERIFICATION"])
    deadline: Optional[date] = None
    notes: Optional[str] = None


class SarsResponseUpdate(BaseModel):
    reference_number: Optional[str] = Field(default=None, min_length=1, max_length=64)
    subject: Optional[str] = Field(default=None, min_length=1, max_length=255)
    response_type: Optional[str] = Field(default=None, min_length=1, max_length=64)
    status: Optional[SarsStatus] = None
    deadline: Optional[date] = None
    notes: Optional[str] = None


class SarsResponseRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    task_id: int
    reference_number: str
    subject: str
    response_type: str
    status: str
    deadline: Optional[date] = None
    submitted_at: Optional[datetime] = None
    notes: Optional[str] = None
    created_by: str
    created_at: datetime
    updated_at: datetime
    is_overdue: bool = False
    days_until_deadline: Optional[int] = None
