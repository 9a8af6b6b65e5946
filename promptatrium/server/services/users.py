"""
User profiles and the social graph (follows, stats, activity feed).
"""

from __future__ import annotations

from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from promptatrium.core.database.entities import Activity, Follow, User
from promptatrium.core.database.repositories import (
    ActivityRepository,
    CollectionRepository,
    FollowRepository,
    PromptRepository,
    UserRepository,
)
from promptatrium.core.errors import ConflictError, NotFoundError, ValidationError
from promptatrium.core.logging_config import get_logger
from promptatrium.core.models.domain import NotificationType, UserRole
from promptatrium.core.models.io.users import UserStats, UserUpdate

from .notifications import NotificationService, record_activity

logger = get_logger(__name__)


class UserService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.users = UserRepository(session)
        self.follows = FollowRepository(session)

    async def get_user(self, user_id: str) -> User:
        user = await self.users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User")
        return user

    async def update_profile(self, user: User, payload: UserUpdate) -> User:
        changes = payload.model_dump(exclude_unset=True)
        username = changes.get("username")
        if username and username != user.username:
            existing = await self.users.get_by_username(username)
            if existing is not None and existing.id != user.id:
                raise ConflictError("Username already taken")
        for key, value in changes.items():
            setattr(user, key, value)
        return await self.users.update(user)

    async def set_role(self, user_id: str, role: UserRole) -> User:
        user = await self.get_user(user_id)
        user.role = role.value
        logger.info(f"Role of user {user_id} set to {role.value}")
        return await self.users.update(user)

    async def stats(self, user_id: str) -> UserStats:
        await self.get_user(user_id)
        prompts = PromptRepository(self.session)
        return UserStats(
            total_prompts=await prompts.count_by_user(user_id),
            total_likes=await prompts.total_likes_for_user(user_id),
            collections=len(await CollectionRepository(self.session).list_for_user(user_id)),
            forks_created=await prompts.count_forks_by_user(user_id),
            followers=await self.follows.count_followers(user_id),
            following=await self.follows.count_following(user_id),
        )

    async def toggle_follow(self, follower: User, target_id: str) -> bool:
        """Follow or unfollow ``target_id``.

        Returns:
            True when the caller now follows the target.
        """
        if follower.id == target_id:
            raise ValidationError("You cannot follow yourself")
        target = await self.get_user(target_id)

        edge = await self.follows.get_edge(follower.id, target.id)
        if edge is not None:
            await self.follows.delete(edge.id)
            return False

        await self.follows.create(Follow(follower_id=follower.id, following_id=target.id), commit=False)
        await NotificationService(self.session).notify(
            target.id,
            NotificationType.follow,
            f"{follower.display_name} started following you",
            related_user_id=follower.id,
            commit=False,
        )
        await record_activity(
            self.session, follower.id, "followed_user", target_type="user", target_id=target.id, commit=False
        )
        await self.session.commit()
        return True

    async def followers(self, user_id: str) -> List[User]:
        await self.get_user(user_id)
        return await self.users.list_by_ids(await self.follows.follower_ids(user_id))

    async def following(self, user_id: str) -> List[User]:
        await self.get_user(user_id)
        return await self.users.list_by_ids(await self.follows.following_ids(user_id))

    async def recent_activities(self, limit: int = 20) -> List[Activity]:
        return await ActivityRepository(self.session).recent(limit=limit)
