"""
Service line entity models.

``ServiceLine`` maps an external service-line code (as used on tasks) to its
sub-service-line group and master service line. ``ServiceLineUser`` grants a
user a role inside one sub-service-line group.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from ..base import Base, utc_now


class ServiceLine(Base, table=True):
    """External service-line code mapping.

    Table: service_lines
    """

    __tablename__ = "service_lines"

    id: Optional[int] = Field(default=None, primary_key=True)
    serv_line_code: str = Field(max_length=32, unique=True, index=True)
    serv_line_desc: str = Field(max_length=255)
    sub_group: str = Field(max_length=32, index=True)
    sub_group_desc: str = Field(max_length=255)
    master_code: str = Field(max_length=32, index=True)
    master_desc: Optional[str] = Field(default=None, max_length=255)


class ServiceLineUser(Base, table=True):
    """Role grant for a user in a sub-service-line group.

    Table: service_line_users
    """

    __tablename__ = "service_line_users"
    __table_args__ = (UniqueConstraint("user_id", "sub_group", name="uq_service_line_user"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(foreign_key="users.id", max_length=64, index=True)
    sub_group: str = Field(max_length=32, index=True)
    master_code: str = Field(max_length=32)
    role: str = Field(max_length=32)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"ServiceLineUser(user_id={self.user_id}, sub_group={self.sub_group}, role={self.role})"
