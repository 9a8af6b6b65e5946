"""
Notifications and the activity feed.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from promptatrium.core.database.entities import Activity, Notification
from promptatrium.core.database.repositories import ActivityRepository, NotificationRepository
from promptatrium.core.errors import NotFoundError
from promptatrium.core.models.domain import NotificationType


async def record_activity(
    session: AsyncSession,
    user_id: str,
    action_type: str,
    target_type: Optional[str] = None,
    target_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    commit: bool = True,
) -> Activity:
    activity = Activity(
        user_id=user_id,
        action_type=action_type,
        target_type=target_type,
        target_id=target_id,
        details=details or {},
    )
    return await ActivityRepository(session).create(activity, commit=commit)


class NotificationService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.notifications = NotificationRepository(session)

    async def notify(
        self,
        user_id: str,
        notification_type: NotificationType,
        message: str,
        related_user_id: Optional[str] = None,
        related_prompt_id: Optional[str] = None,
        related_list_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        commit: bool = True,
    ) -> Notification:
        notification = Notification(
            user_id=user_id,
            type=notification_type.value,
            message=message,
            related_user_id=related_user_id,
            related_prompt_id=related_prompt_id,
            related_list_id=related_list_id,
            details=details or {},
        )
        return await self.notifications.create(notification, commit=commit)

    async def list_for_user(self, user_id: str, unread_only: bool = False) -> List[Notification]:
        return await self.notifications.list_for_user(user_id, unread_only=unread_only)

    async def unread_count(self, user_id: str) -> int:
        return await self.notifications.unread_count(user_id)

    async def _get_owned(self, user_id: str, notification_id: str) -> Notification:
        notification = await self.notifications.get_by_id(notification_id)
        # Another user's notification is reported as missing.
        if notification is None or notification.user_id != user_id:
            raise NotFoundError("Notification")
        return notification

    async def mark_read(self, user_id: str, notification_id: str) -> Notification:
        notification = await self._get_owned(user_id, notification_id)
        notification.is_read = True
        return await self.notifications.update(notification)

    async def mark_all_read(self, user_id: str) -> None:
        await self.notifications.mark_all_read(user_id)

    async def delete(self, user_id: str, notification_id: str) -> None:
        notification = await self._get_owned(user_id, notification_id)
        await self.notifications.delete(notification.id)
