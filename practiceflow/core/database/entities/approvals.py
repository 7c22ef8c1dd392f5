"""
Approval entity models.

Generic approval routing: an ``ApprovalRoute`` holds a JSON step
configuration for a workflow type; an ``Approval`` instantiates the route for
one workflow record with ordered ``ApprovalStep`` rows. ``ApprovalDelegation``
lets a user hand their approvals to someone else for a period.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, Text

from ..base import Base, utc_now


class ApprovalRoute(Base, table=True):
    """Configured approval route.

    ``route_config`` is a JSON document::

        {"requires_all_steps": bool,
         "steps": [{"step_order", "step_type", "is_required",
                    "assigned_to_role", "assigned_to_user_id_path", "condition"}]}

    Table: approval_routes
    """

    __tablename__ = "approval_routes"
    __table_args__ = (UniqueConstraint("workflow_type", "route_name", name="uq_approval_route_name"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    workflow_type: str = Field(max_length=32, index=True)
    route_name: str = Field(max_length=64, index=True)
    description: Optional[str] = Field(default=None, sa_type=Text)
    route_config: str = Field(default='{"requires_all_steps": true, "steps": []}', sa_type=Text)
    is_default: bool = Field(default=False)
    is_active: bool = Field(default=True)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def get_config(self) -> Dict[str, Any]:
        return json.loads(self.route_config) if self.route_config else {"requires_all_steps": True, "steps": []}

    def set_config(self, config: Dict[str, Any]) -> None:
        self.route_config = json.dumps(config)


class Approval(Base, table=True):
    """Approval request for one workflow record.

    ``current_step_id`` points at the lowest-ordered pending step, or is null.

    Table: approvals
    """

    __tablename__ = "approvals"

    id: Optional[int] = Field(default=None, primary_key=True)
    workflow_type: str = Field(max_length=32, index=True)
    workflow_id: int = Field(index=True)
    status: str = Field(default="PENDING", max_length=16, index=True)
    priority: str = Field(default="MEDIUM", max_length=16)
    title: str = Field(max_length=255)
    description: Optional[str] = Field(default=None, sa_type=Text)
    requested_by: str = Field(foreign_key="users.id", max_length=64)
    route_id: Optional[int] = Field(default=None, foreign_key="approval_routes.id")
    current_step_id: Optional[int] = Field(default=None)
    requires_all_steps: bool = Field(default=True)
    context: str = Field(default="{}", sa_type=Text)

    completed_at: Optional[datetime] = Field(default=None)
    completed_by: Optional[str] = Field(default=None, max_length=64)

    created_at: datetime = Field(default_factory=utc_now, index=True)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def get_context(self) -> Dict[str, Any]:
        return json.loads(self.context) if self.context else {}

    def set_context(self, context: Dict[str, Any]) -> None:
        self.context = json.dumps(context, default=str)

    def __repr__(self) -> str:
        return f"Approval(id={self.id}, workflow_type={self.workflow_type}, status={self.status})"


class ApprovalStep(Base, table=True):
    """One step of an approval.

    Table: approval_steps
    """

    __tablename__ = "approval_steps"

    id: Optional[int] = Field(default=None, primary_key=True)
    approval_id: int = Field(foreign_key="approvals.id", index=True)
    step_order: int
    step_type: str = Field(max_length=16)
    is_required: bool = Field(default=True)
    assigned_to_user_id: Optional[str] = Field(default=None, max_length=64, index=True)
    assigned_to_role: Optional[str] = Field(default=None, max_length=32)
    status: str = Field(default="PENDING", max_length=16, index=True)

    approved_at: Optional[datetime] = Field(default=None)
    approved_by: Optional[str] = Field(default=None, max_length=64)
    comment: Optional[str] = Field(default=None, sa_type=Text)
    is_delegated: bool = Field(default=False)
    delegated_to_user_id: Optional[str] = Field(default=None, max_length=64)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})


class ApprovalDelegation(Base, table=True):
    """Period during which one user's approvals may be acted on by another.

    A null ``workflow_type`` delegates every workflow type.

    Table: approval_delegations
    """

    __tablename__ = "approval_delegations"

    id: Optional[int] = Field(default=None, primary_key=True)
    from_user_id: str = Field(foreign_key="users.id", max_length=64, index=True)
    to_user_id: str = Field(foreign_key="users.id", max_length=64, index=True)
    workflow_type: Optional[str] = Field(default=None, max_length=32)
    start_date: datetime
    end_date: datetime
    reason: Optional[str] = Field(default=None, sa_type=Text)
    is_active: bool = Field(default=True)

    created_at: datetime = Field(default_factory=utc_now)
