"""
Notification entity models.

In-app notifications and per-type opt-outs. A preference with a ``task_id``
applies to that task only; a null ``task_id`` applies to every task.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field, Text

from ..base import Base, utc_now


class Notification(Base, table=True):
    """Table: notifications"""

    __tablename__ = "notifications"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(foreign_key="users.id", max_length=64, index=True)
    type: str = Field(max_length=32)
    title: str = Field(max_length=255)
    message: str = Field(sa_type=Text)
    task_id: Optional[int] = Field(default=None)
    action_url: Optional[str] = Field(default=None, max_length=512)
    from_user_id: Optional[str] = Field(default=None, max_length=64)
    is_read: bool = Field(default=False, index=True)
    read_at: Optional[datetime] = Field(default=None)

    created_at: datetime = Field(default_factory=utc_now, index=True)


class NotificationPreference(Base, table=True):
    """Table: notification_preferences"""

    __tablename__ = "notification_preferences"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(foreign_key="users.id", max_length=64, index=True)
    notification_type: str = Field(max_length=32)
    task_id: Optional[int] = Field(default=None)
    in_app_enabled: bool = Field(default=True)

    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})
