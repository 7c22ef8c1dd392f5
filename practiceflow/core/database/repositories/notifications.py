"""
Notification repositories.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from sqlalchemy import or_
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..base import utc_now

from ..entities.notifications import Notification, NotificationPreference
from .base import SQLModelRepository


class NotificationRepository(SQLModelRepository[Notification]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Notification)

    async def search(
        self, user_id: str, *, page: int, limit: int, unread_only: bool = False
    ) -> tuple[Sequence[Notification], int]:
        stmt = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            stmt = stmt.where(Notification.is_read == False)  # noqa: E712
        stmt = stmt.order_by(col(Notification.created_at).desc(), col(Notification.id).desc())
        return await self.paginate(stmt, page, limit)

    async def unread_count(self, user_id: str) -> int:
        stmt = select(Notification).where(Notification.user_id == user_id, Notification.is_read == False)  # noqa: E712
        return await self.count(stmt)

    async def get_for_user(self, user_id: str, notification_id: int) -> Optional[Notification]:
        stmt = select(Notification).where(Notification.id == notification_id, Notification.user_id == user_id)
        result = await self.session.exec(stmt)
        return result.first()

    async def mark_all_read(self, user_id: str) -> int:
        stmt = select(Notification).where(Notification.user_id == user_id, Notification.is_read == False)  # noqa: E712
        result = await self.session.exec(stmt)
        unread = result.all()
        now = utc_now()
        for notification in unread:
            notification.is_read = True
            notification.read_at = now
            self.session.add(notification)
        await self.session.commit()
        return len(unread)


class NotificationPreferenceRepository(SQLModelRepository[NotificationPreference]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, NotificationPreference)

    async def list_for_user(self, user_id: str) -> List[NotificationPreference]:
        stmt = select(NotificationPreference).where(NotificationPreference.user_id == user_id)
        result = await self.session.exec(stmt)
        return list(result.all())

    async def matching(
        self, user_id: str, notification_type: str, task_id: Optional[int]
    ) -> List[NotificationPreference]:
        """Preferences for the type that apply globally or to ``task_id``."""
        scope = col(NotificationPreference.task_id).is_(None)
        if task_id is not None:
            scope = or_(scope, NotificationPreference.task_id == task_id)
        stmt = select(NotificationPreference).where(
            NotificationPreference.user_id == user_id,
            NotificationPreference.notification_type == notification_type,
            scope,
        )
        result = await self.session.exec(stmt)
        return list(result.all())

    async def get_preference(
        self, user_id: str, notification_type: str, task_id: Optional[int]
    ) -> Optional[NotificationPreference]:
        stmt = select(NotificationPreference).where(
            NotificationPreference.user_id == user_id,
            NotificationPreference.notification_type == notification_type,
        )
        if task_id is None:
            stmt = stmt.where(col(NotificationPreference.task_id).is_(None))
        else:
            stmt = stmt.where(NotificationPreference.task_id == task_id)
        result = await self.session.exec(stmt)
        return result.first()
