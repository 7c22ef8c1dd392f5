"""Service line I/O models."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field

from practiceflow.core.models.domain.enums import ServiceLineRole


class SubGroupRead(BaseModel):
    code: str
    description: str
    role: str


class UserServiceLineRead(BaseModel):
    service_line: str = Field(description="Master service line code (TAX, AUDIT, ...)")
    description: str
    role: str = Field(description="Highest role across the sub-groups")
    sub_groups: List[SubGroupRead]


class ServiceLineMemberRead(BaseModel):
    user_id: str
    name: str
    email: str
    sub_group: str
    role: str


class ServiceLineGrant(BaseModel):
    role: ServiceLineRole
