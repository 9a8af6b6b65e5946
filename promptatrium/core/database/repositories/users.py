"""
User and follow repositories.
"""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.users import Follow, User
from .base import SQLModelRepository


class UserRepository(SQLModelRepository[User]):
    """Repository for user profiles."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, User)

    async def get_by_username(self, username: str) -> Optional[User]:
        stmt = select(User).where(User.username == username)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_by_ids(self, user_ids: List[str]) -> List[User]:
        if not user_ids:
            return []
        stmt = select(User).where(User.id.in_(user_ids))
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class FollowRepository(SQLModelRepository[Follow]):
    """Repository for follow edges between users."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Follow)

    async def get_edge(self, follower_id: str, following_id: str) -> Optional[Follow]:
        stmt = select(Follow).where(Follow.follower_id == follower_id, Follow.following_id == following_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def follower_ids(self, user_id: str) -> List[str]:
        stmt = select(Follow.follower_id).where(Follow.following_id == user_id).order_by(Follow.created_at.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def following_ids(self, user_id: str) -> List[str]:
        stmt = select(Follow.following_id).where(Follow.follower_id == user_id).order_by(Follow.created_at.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_followers(self, user_id: str) -> int:
        stmt = select(func.count()).select_from(Follow).where(Follow.following_id == user_id)
        return int((await self.session.execute(stmt)).scalar_one())

    async def count_following(self, user_id: str) -> int:
        stmt = select(func.count()).select_from(Follow).where(Follow.follower_id == user_id)
        return int((await self.session.execute(stmt)).scalar_one())
