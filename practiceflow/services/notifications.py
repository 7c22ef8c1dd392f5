"""
In-app notifications.

``notify`` honours the recipient's preferences: a disabled preference for the
notification type, either global or for the task, suppresses creation.
"""

from __future__ import annotations

from typing import List, Optional

from practiceflow.core.database.base import utc_now
from practiceflow.core.database.entities.notifications import Notification, NotificationPreference
from practiceflow.core.database.repositories.bundle import RepositoryBundle
from practiceflow.core.errors import NotFoundError
from practiceflow.core.logging_config import get_logger
from practiceflow.core.models.io.common import Page
from practiceflow.core.models.io.notifications import NotificationRead, PreferenceItem

logger = get_logger(__name__)


class NotificationService:
    def __init__(self, repos: RepositoryBundle) -> None:
        self.repos = repos

    async def is_enabled(self, user_id: str, notification_type: str, task_id: Optional[int] = None) -> bool:
        preferences = await self.repos.notification_preferences.matching(user_id, notification_type, task_id)
        return all(preference.in_app_enabled for preference in preferences)

    async def notify(
        self,
        user_id: str,
        notification_type: str,
        title: str,
        message: str,
        task_id: Optional[int] = None,
        action_url: Optional[str] = None,
        from_user_id: Optional[str] = None,
        commit: bool = False,
    ) -> Optional[Notification]:
        """Create a notification unless the user has opted out.

        The notification is staged on the shared session; pass ``commit=True``
        when the caller does not commit itself.
        """
        if not await self.is_enabled(user_id, notification_type, task_id):
            logger.debug(f"Notification {notification_type} suppressed for user {user_id}")
            return None

        notification = Notification(
            user_id=user_id,
            type=notification_type,
            title=title,
            message=message,
            task_id=task_id,
            action_url=action_url,
            from_user_id=from_user_id,
        )
        await self.repos.notifications.stage(notification)
        if commit:
            await self.repos.commit()
        return notification

    # ------------------------------------------------------------------
    # Inbox
    # ------------------------------------------------------------------

    async def list_for_user(
        self, user_id: str, *, page: int = 1, limit: int = 20, unread_only: bool = False
    ) -> Page[NotificationRead]:
        notifications, total = await self.repos.notifications.search(
            user_id, page=page, limit=limit, unread_only=unread_only
        )
        return Page.build([NotificationRead.model_validate(item) for item in notifications], total, page, limit)

    async def unread_count(self, user_id: str) -> int:
        return await self.repos.notifications.unread_count(user_id)

    async def _require_notification(self, user_id: str, notification_id: int) -> Notification:
        notification = await self.repos.notifications.get_for_user(user_id, notification_id)
        if notification is None:
            raise NotFoundError("Notification not found", details={"notification_id": notification_id})
        return notification

    async def mark_read(self, user_id: str, notification_id: int) -> NotificationRead:
        notification = await self._require_notification(user_id, notification_id)
        if not notification.is_read:
            notification.is_read = True
            notification.read_at = utc_now()
            notification = await self.repos.notifications.update(notification)
        return NotificationRead.model_validate(notification)

    async def mark_all_read(self, user_id: str) -> int:
        updated = await self.repos.notifications.mark_all_read(user_id)
        logger.debug(f"Marked {updated} notifications read for user {user_id}")
        return updated

    async def delete(self, user_id: str, notification_id: int) -> None:
        notification = await self._require_notification(user_id, notification_id)
        await self.repos.notifications.delete(notification.id)

    # ------------------------------------------------------------------
    # Preferences
    # ------------------------------------------------------------------

    async def get_preferences(self, user_id: str) -> List[PreferenceItem]:
        return [
            PreferenceItem.model_validate(preference)
            for preference in await self.repos.notification_preferences.list_for_user(user_id)
        ]

    async def update_preferences(self, user_id: str, items: List[PreferenceItem]) -> List[PreferenceItem]:
        """Upsert one preference per (type, task) pair and commit once."""
        for item in items:
            notification_type = item.notification_type.value
            preference = await self.repos.notification_preferences.get_preference(
                user_id, notification_type, item.task_id
            )
            if preference is None:
                preference = NotificationPreference(
                    user_id=user_id, notification_type=notification_type, task_id=item.task_id
                )
            preference.in_app_enabled = item.in_app_enabled
            await self.repos.notification_preferences.stage(preference)
        await self.repos.commit()
        return await self.get_preferences(user_id)
