"""
Notification Endpoints.

The caller's in-app notifications and their delivery preferences.
"""

from typing import List

from fastapi import APIRouter, Query

from practiceflow.core.models.io.common import MessageResponse, Page
from practiceflow.core.models.io.notifications import (
    MarkAllReadResult,
    NotificationRead,
    PreferenceItem,
    PreferencesUpdate,
    UnreadCount,
)
from practiceflow.server.services.deps import CurrentUser, NotificationDep

router = APIRouter()


@router.get("", response_model=Page[NotificationRead], summary="List Notifications")
async def list_notifications(
    user: CurrentUser,
    notifications: NotificationDep,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    unread_only: bool = False,
):
    return await notifications.list_for_user(user.id, page=page, limit=limit, unread_only=unread_only)


@router.get("/unread-count", response_model=UnreadCount, summary="Unread Count")
async def unread_count(user: CurrentUser, notifications: NotificationDep):
    return UnreadCount(unread_count=await notifications.unread_count(user.id))


@router.post("/read-all", response_model=MarkAllReadResult, summary="Mark All Read")
async def mark_all_read(user: CurrentUser, notifications: NotificationDep):
    return MarkAllReadResult(updated=await notifications.mark_all_read(user.id))


@router.get("/preferences", response_model=List[PreferenceItem], summary="Get Notification Preferences")
async def get_preferences(user: CurrentUser, notifications: NotificationDep):
    return await notifications.get_preferences(user.id)


@router.put(
    "/preferences",
    response_model=List[PreferenceItem],
    summary="Update Notification Preferences",
    description="Upsert preferences per notification type, globally or for one task.",
)
async def update_preferences(payload: PreferencesUpdate, user: CurrentUser, notifications: NotificationDep):
    return await notifications.update_preferences(user.id, payload.preferences)


@router.post("/{notification_id}/read", response_model=NotificationRead, summary="Mark Read")
async def mark_read(notification_id: int, user: CurrentUser, notifications: NotificationDep):
    return await notifications.mark_read(user.id, notification_id)


@router.delete("/{notification_id}", response_model=MessageResponse, summary="Delete Notification")
async def delete_notification(notification_id: int, user: CurrentUser, notifications: NotificationDep):
    await notifications.delete(user.id, notification_id)
    return MessageResponse(message="Notification deleted")
