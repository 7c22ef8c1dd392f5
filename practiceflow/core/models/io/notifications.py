"""Notification I/O models."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from practiceflow.core.models.domain.enums import NotificationType


class NotificationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: str
    title: str
    message: str
    task_id: Optional[int] = None
    action_url: Optional[str] = None
    from_user_id: Optional[str] = None
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: datetime


class UnreadCount(BaseModel):
    unread_count: int


class MarkAllReadResult(BaseModel):
    updated: int


class PreferenceItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    notification_type: NotificationType
    task_id: Optional[int] = None
    in_app_enabled: bool


class PreferencesUpdate(BaseModel):
    preferences: List[PreferenceItem]
