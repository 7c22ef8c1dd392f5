"""
Client entity model.

Clients belong to a client group and carry the employee codes of their
partner, manager and in-charge. Partner and manager changes can be requested
through an approval instead of edited directly.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field, Text

from ..base import Base, utc_now


class Client(Base, table=True):
    """Client record.

    Table: clients
    """

    __tablename__ = "clients"

    id: Optional[int] = Field(default=None, primary_key=True)
    client_code: str = Field(max_length=32, unique=True, index=True)
    client_name: str = Field(max_length=255, index=True)
    group_code: Optional[str] = Field(default=None, max_length=32, index=True)
    group_desc: Optional[str] = Field(default=None, max_length=255)
    partner_code: Optional[str] = Field(default=None, max_length=32, index=True)
    manager_code: Optional[str] = Field(default=None, max_length=32, index=True)
    incharge_code: Optional[str] = Field(default=None, max_length=32)
    industry: Optional[str] = Field(default=None, max_length=128)
    active: bool = Field(default=True)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"Client(id={self.id}, client_code={self.client_code})"


class ClientChangeRequest(Base, table=True):
    """Requested change of a client's partner or manager.

    The change is applied to the client when its approval completes.

    Table: client_change_requests
    """

    __tablename__ = "client_change_requests"

    id: Optional[int] = Field(default=None, primary_key=True)
    client_id: int = Field(foreign_key="clients.id", index=True)
    change_type: str = Field(max_length=16)
    current_employee_code: Optional[str] = Field(default=None, max_length=32)
    current_employee_name: Optional[str] = Field(default=None, max_length=255)
    proposed_employee_code: str = Field(max_length=32)
    proposed_employee_name: Optional[str] = Field(default=None, max_length=255)
    reason: Optional[str] = Field(default=None, sa_type=Text)
    status: str = Field(default="PENDING", max_length=16, index=True)
    requires_dual_approval: bool = Field(default=True)
    requested_by: str = Field(max_length=64)
    approval_id: Optional[int] = Field(default=None)
    resolved_by: Optional[str] = Field(default=None, max_length=64)
    resolved_at: Optional[datetime] = Field(default=None)
    resolution_comment: Optional[str] = Field(default=None, sa_type=Text)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"ClientChangeRequest(id={self.id}, client_id={self.client_id}, change_type={self.change_type})"
