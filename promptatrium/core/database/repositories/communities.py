"""
Community, membership, admin and invite repositories.
"""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.communities import (
    Community,
    CommunityAdmin,
    CommunityInvite,
    SubCommunityAdmin,
    UserCommunity,
)
from .base import SQLModelRepository


class CommunityRepository(SQLModelRepository[Community]):
    """Repository for communities and sub-communities."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Community)

    async def get_by_slug(self, slug: str) -> Optional[Community]:
        stmt = select(Community).where(Community.slug == slug)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_active(self, parent_id: Optional[str] = None) -> List[Community]:
        """List active communities.

        Args:
            parent_id: When given, list the direct children of this community;
                otherwise list root communities.
        """
        stmt = select(Community).where(Community.is_active == True)  # noqa: E712
        if parent_id is None:
            stmt = stmt.where(Community.parent_community_id.is_(None))
        else:
            stmt = stmt.where(Community.parent_community_id == parent_id)
        stmt = stmt.order_by(Community.name)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class MembershipRepository(SQLModelRepository[UserCommunity]):
    """Repository for user/community memberships."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, UserCommunity)

    async def get_membership(self, user_id: str, community_id: str) -> Optional[UserCommunity]:
        stmt = select(UserCommunity).where(
            UserCommunity.user_id == user_id, UserCommunity.community_id == community_id
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def is_member(self, user_id: str, community_id: str) -> bool:
        membership = await self.get_membership(user_id, community_id)
        return membership is not None and membership.status == "active"

    async def list_for_user(self, user_id: str) -> List[UserCommunity]:
        stmt = select(UserCommunity).where(UserCommunity.user_id == user_id).order_by(UserCommunity.joined_at)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_members(self, community_id: str) -> List[UserCommunity]:
        stmt = (
            select(UserCommunity)
            .where(UserCommunity.community_id == community_id)
            .order_by(UserCommunity.joined_at)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class CommunityAdminRepository(SQLModelRepository[CommunityAdmin]):
    """Repository for community admin assignments."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, CommunityAdmin)

    async def get_assignment(self, user_id: str, community_id: str) -> Optional[CommunityAdmin]:
        stmt = select(CommunityAdmin).where(
            CommunityAdmin.user_id == user_id, CommunityAdmin.community_id == community_id
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def is_admin(self, user_id: str, community_id: str) -> bool:
        return await self.get_assignment(user_id, community_id) is not None

    async def list_for_community(self, community_id: str) -> List[CommunityAdmin]:
        stmt = select(CommunityAdmin).where(CommunityAdmin.community_id == community_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class SubCommunityAdminRepository(SQLModelRepository[SubCommunityAdmin]):
    """Repository for sub-community admin assignments."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, SubCommunityAdmin)

    async def get_assignment(self, user_id: str, sub_community_id: str) -> Optional[SubCommunityAdmin]:
        stmt = select(SubCommunityAdmin).where(
            SubCommunityAdmin.user_id == user_id, SubCommunityAdmin.sub_community_id == sub_community_id
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()


class InviteRepository(SQLModelRepository[CommunityInvite]):
    """Repository for community invite codes."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, CommunityInvite)

    async def get_by_code(self, code: str) -> Optional[CommunityInvite]:
        stmt = select(CommunityInvite).where(CommunityInvite.code == code)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for_community(self, community_id: str) -> List[CommunityInvite]:
        stmt = (
            select(CommunityInvite)
            .where(CommunityInvite.community_id == community_id)
            .order_by(CommunityInvite.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
