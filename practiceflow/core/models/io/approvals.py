"""Approval, route and delegation I/O models."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from practiceflow.core.models.domain.enums import ApprovalPriority, ServiceLineRole, StepType, WorkflowType


class ApprovalStepRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    approval_id: int
    step_order: int
    step_type: str
    is_required: bool
    assigned_to_user_id: Optional[str] = None
    assigned_to_role: Optional[str] = None
    status: str
    approved_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    comment: Optional[str] = None
    is_delegated: bool = False
    delegated_to_user_id: Optional[str] = None


class ApprovalRead(BaseModel):
    """Schema for reading an approval with its steps."""

    id: int
    workflow_type: str
    workflow_id: int
    status: str
    priority: str
    title: str
    description: Optional[str] = None
    requested_by: str
    requested_by_name: Optional[str] = None
    route_id: Optional[int] = None
    current_step_id: Optional[int] = None
    requires_all_steps: bool
    context: Dict[str, Any] = Field(default_factory=dict)
    completed_at: Optional[datetime] = None
    completed_by: Optional[str] = None
    created_at: datetime
    steps: List[ApprovalStepRead] = Field(default_factory=list)


class UserApprovalsResponse(BaseModel):
    approvals: List[ApprovalRead]
    grouped_by_workflow: Dict[str, List[ApprovalRead]]
    total_count: int


class StepDecision(BaseModel):
    comment: Optional[str] = Field(default=None, description="Required when rejecting")


class ApprovalActionResult(BaseModel):
    success: bool = True
    approval: ApprovalRead
    workflow_type: str
    workflow_id: int
    next_step: Optional[ApprovalStepRead] = None
    is_complete: bool


class RouteStepConfig(BaseModel):
    """One step of a route configuration."""

    step_order: int = Field(ge=1)
    step_type: StepType
    is_required: bool = True
    assigned_to_role: Optional[ServiceLineRole] = None
    assigned_to_user_id_path: Optional[str] = Field(
        default=None, description="Dotted path into the approval context holding a user id or employee code"
    )
    condition: Optional[str] = Field(default=None, description="Boolean expression over `context`")


class RouteConfig(BaseModel):
    requires_all_steps: bool = True
    steps: List[RouteStepConfig] = Field(min_length=1)


class RouteCreate(BaseModel):
    workflow_type: WorkflowType
    route_name: str = Field(min_length=1, max_length=64)
    description: Optional[str] = None
    config: RouteConfig
    is_default: bool = False


class RouteRead(BaseModel):
    id: int
    workflow_type: str
    route_name: str
    description: Optional[str] = None
    config: Dict[str, Any]
    is_default: bool
    is_active: bool


class DelegationCreate(BaseModel):
    to_user_id: str
    workflow_type: Optional[WorkflowType] = Field(default=None, description="Null delegates every workflow type")
    start_date: datetime
    end_date: datetime
    reason: Optional[str] = None


class DelegationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    from_user_id: str
    to_user_id: str
    workflow_type: Optional[str] = None
    start_date: datetime
    end_date: datetime
    reason: Optional[str] = None
    is_active: bool
    created_at: datetime


class ApprovalCreate(BaseModel):
    """Used by workflows opening an approval."""

    workflow_type: WorkflowType
    workflow_id: int
    title: Optional[str] = None
    description: Optional[str] = None
    priority: ApprovalPriority = ApprovalPriority.MEDIUM
    context: Dict[str, Any] = Field(default_factory=dict)
    route_name: Optional[str] = None
