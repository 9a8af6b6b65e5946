"""
Activity feed and notification repositories.
"""

from __future__ import annotations

from typing import List

from sqlalchemy import func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.activity import Activity, Notification
from .base import SQLModelRepository


class ActivityRepository(SQLModelRepository[Activity]):
    """Repository for the activity feed."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Activity)

    async def recent(self, limit: int = 20, user_id: str | None = None) -> List[Activity]:
        stmt = select(Activity)
        if user_id:
            stmt = stmt.where(Activity.user_id == user_id)
        stmt = stmt.order_by(Activity.created_at.desc()).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class NotificationRepository(SQLModelRepository[Notification]):
    """Repository for per-user notifications."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Notification)

    async def list_for_user(self, user_id: str, unread_only: bool = False, limit: int = 50) -> List[Notification]:
        stmt = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            stmt = stmt.where(Notification.is_read == False)  # noqa: E712
        stmt = stmt.order_by(Notification.created_at.desc()).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def unread_count(self, user_id: str) -> int:
        stmt = (
            select(func.count())
            .select_from(Notification)
            .where(Notification.user_id == user_id, Notification.is_read == False)  # noqa: E712
        )
        return int((await self.session.execute(stmt)).scalar_one())

    async def mark_all_read(self, user_id: str) -> None:
        stmt = update(Notification).where(Notification.user_id == user_id).values(is_read=True)
        await self.session.execute(stmt)
        await self.session.commit()
