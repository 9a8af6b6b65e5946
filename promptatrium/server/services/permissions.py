"""
Role-based access control.

Two layers of roles exist: the platform-wide ``User.role`` and the per-
community role recorded by admin assignments and memberships. A
``super_admin`` passes every check.

The ``require_*`` factories return FastAPI dependencies; the ``ensure_*``
coroutines perform the same checks from inside services.
"""

from __future__ import annotations

from typing import Callable, Optional

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from promptatrium.core.database import get_session
from promptatrium.core.database.entities import Collection, User
from promptatrium.core.database.repositories import CommunityAdminRepository, MembershipRepository
from promptatrium.core.errors import AuthorizationError, ValidationError
from promptatrium.core.models.domain import CollectionType, CommunityRole, UserRole

from .deps import get_current_user


def is_super_admin(user: Optional[User]) -> bool:
    return user is not None and user.role == UserRole.super_admin.value


def require_role(role: UserRole) -> Callable:
    """Dependency factory: the caller must hold ``role`` (or be super admin)."""

    async def _dependency(user: User = Depends(get_current_user)) -> User:
        if is_super_admin(user) or user.role == role.value:
            return user
        raise AuthorizationError()

    return _dependency


require_super_admin = require_role(UserRole.super_admin)
require_developer = require_role(UserRole.developer)


async def require_community_admin(user: User = Depends(get_current_user)) -> User:
    if user.role in (UserRole.super_admin.value, UserRole.community_admin.value):
        return user
    raise AuthorizationError()


async def is_community_admin(session: AsyncSession, user_id: str, community_id: str) -> bool:
    if await CommunityAdminRepository(session).is_admin(user_id, community_id):
        return True
    membership = await MembershipRepository(session).get_membership(user_id, community_id)
    return membership is not None and membership.role == CommunityRole.admin.value


async def ensure_community_admin(session: AsyncSession, user: User, community_id: Optional[str]) -> None:
    if is_super_admin(user):
        return
    if not community_id:
        raise ValidationError("Community ID required")
    if not await is_community_admin(session, user.id, community_id):
        raise AuthorizationError("Not authorized for this community")


async def ensure_community_member(session: AsyncSession, user: User, community_id: Optional[str]) -> None:
    if is_super_admin(user):
        return
    if not community_id:
        raise ValidationError("Community ID required")
    if not await MembershipRepository(session).is_member(user.id, community_id):
        raise AuthorizationError("Not a member of this community")


async def require_community_admin_role(
    community_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> User:
    """Dependency for routes with a ``{community_id}`` path parameter."""
    await ensure_community_admin(session, user, community_id)
    return user


async def require_community_member(
    community_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> User:
    await ensure_community_member(session, user, community_id)
    return user


async def can_access_collection(session: AsyncSession, user: Optional[User], collection: Collection) -> bool:
    if collection.is_public:
        return True
    if user is None:
        return False
    if is_super_admin(user) or collection.user_id == user.id:
        return True
    if collection.type == CollectionType.community.value and collection.community_id:
        return await MembershipRepository(session).is_member(user.id, collection.community_id)
    if collection.type == CollectionType.global_.value:
        return user.role == UserRole.community_admin.value
    return False
