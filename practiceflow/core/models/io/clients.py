"""Client and client group I/O models."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from practiceflow.core.models.domain.enums import ChangeType

from .common import Page
from .tasks import TaskRead


class ClientRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    client_code: str
    client_name: str
    group_code: Optional[str] = None
    group_desc: Optional[str] = None
    partner_code: Optional[str] = None
    manager_code: Optional[str] = None
    incharge_code: Optional[str] = None
    industry: Optional[str] = None
    active: bool
    created_at: datetime
    updated_at: datetime


class ClientUpdate(BaseModel):
    client_name: Optional[str] = Field(default=None, min_length=1)
    industry: Optional[str] = None
    partner_code: Optional[str] = None
    manager_code: Optional[str] = None
    incharge_code: Optional[str] = None


class AcceptanceSummary(BaseModel):
    exists: bool
    completed: bool
    approved: bool
    is_valid: bool
    risk_rating: Optional[str] = None
    valid_until: Optional[datetime] = None


class ClientDetail(ClientRead):
    task_count: int
    tasks: Page[TaskRead]
    acceptance: AcceptanceSummary


class ClientGroupRead(BaseModel):
    group_code: str
    group_desc: Optional[str] = None
    client_count: int


class ClientGroupDetail(BaseModel):
    group_code: str
    group_desc: Optional[str] = None
    clients: Page[ClientRead]


class ChangeRequestCreate(BaseModel):
    change_type: ChangeType
    proposed_employee_code: str = Field(min_length=1, max_length=32)
    reason: Optional[str] = Field(default=None, max_length=2000)


class ChangeRequestRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    client_id: int
    change_type: str
    current_employee_code: Optional[str] = None
    current_employee_name: Optional[str] = None
    proposed_employee_code: str
    proposed_employee_name: Optional[str] = None
    reason: Optional[str] = None
    status: str
    requires_dual_approval: bool
    requested_by: str
    approval_id: Optional[int] = None
    resolved_by: Optional[str] = None
    resolved_at: Optional[datetime] = None
    resolution_comment: Optional[str] = None
    created_at: datetime
