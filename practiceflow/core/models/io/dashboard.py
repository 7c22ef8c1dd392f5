"""Dashboard I/O models."""

from __future__ import annotations

from typing import Dict, List

from pydantic import BaseModel

from .service_lines import UserServiceLineRead


class DashboardSummary(BaseModel):
    service_lines: List[UserServiceLineRead]
    tasks_by_stage: Dict[str, int]
    active_task_count: int
    pending_approvals: int
    unread_notifications: int
