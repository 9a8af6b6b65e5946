"""
Notification Endpoints.

Notifications are private to their recipient; another user's notification is
reported as not found.
"""

from typing import Annotated, List

from fastapi import APIRouter, Depends, Query, Response, status

from promptatrium.core.database.entities import Notification
from promptatrium.core.models.io.users import NotificationRead, UnreadCount
from promptatrium.server.services.deps import CurrentUserId, SessionDep
from promptatrium.server.services.notifications import NotificationService

router = APIRouter()


def get_notification_service(session: SessionDep) -> NotificationService:
    return NotificationService(session)


NotificationServiceDep = Annotated[NotificationService, Depends(get_notification_service)]


@router.get("/notifications", response_model=List[NotificationRead], summary="List Notifications")
async def list_notifications(
    user_id: CurrentUserId,
    service: NotificationServiceDep,
    unread_only: bool = Query(default=False, alias="unreadOnly"),
) -> List[Notification]:
    """
    List the caller's notifications, newest first.

    Pass ``unreadOnly=true`` to skip notifications already read.
    """
    return await service.list_for_user(user_id, unread_only=unread_only)


@router.get("/notifications/unread-count", response_model=UnreadCount, summary="Unread Count")
async def unread_count(user_id: CurrentUserId, service: NotificationServiceDep) -> UnreadCount:
    return UnreadCount(count=await service.unread_count(user_id))


@router.patch("/notifications/read-all", summary="Mark All Read")
async def mark_all_read(user_id: CurrentUserId, service: NotificationServiceDep):
    await service.mark_all_read(user_id)
    return {"success": True}


@router.patch("/notifications/{notification_id}/read", response_model=NotificationRead, summary="Mark Read")
async def mark_read(notification_id: str, user_id: CurrentUserId, service: NotificationServiceDep) -> Notification:
    return await service.mark_read(user_id, notification_id)


@router.delete("/notifications/{notification_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete Notification")
async def delete_notification(notification_id: str, user_id: CurrentUserId, service: NotificationServiceDep):
    await service.delete(user_id, notification_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
