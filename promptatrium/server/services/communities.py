"""
Communities, sub-communities, admin assignments and invite codes.

Communities form a tree. Root communities have level 0 and path ``/<id>``;
a sub-community extends its parent's path with its own id. The tree is at
most three levels deep (levels 0 to 2).
"""

from __future__ import annotations

import re
import secrets
import string
from typing import Dict, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from promptatrium.core.database import as_naive_utc, new_uuid, utc_now
from promptatrium.core.database.entities import (
    Community,
    CommunityAdmin,
    CommunityInvite,
    Prompt,
    SubCommunityAdmin,
    User,
    UserCommunity,
)
from promptatrium.core.database.repositories import (
    CommunityAdminRepository,
    CommunityRepository,
    InviteRepository,
    MembershipRepository,
    PromptRepository,
    SubCommunityAdminRepository,
    UserRepository,
)
from promptatrium.core.errors import AppError, ConflictError, NotFoundError, ValidationError
from promptatrium.core.logging_config import get_logger
from promptatrium.core.models.domain import CommunityRole, SubCommunityVisibility, UserRole
from promptatrium.core.models.io.communities import (
    CommunityCreate,
    CommunityUpdate,
    InviteCreate,
    InviteStats,
    SubCommunityAdminAssign,
)

from .permissions import ensure_community_admin, is_super_admin

logger = get_logger(__name__)

MAX_COMMUNITY_LEVEL = 2
INVITE_CODE_LENGTH = 8
INVITE_CODE_ALPHABET = string.ascii_uppercase + string.digits

INVALID_INVITE = "Invalid invite code"
INACTIVE_INVITE = "Invite is no longer active"
EXPIRED_INVITE = "Invite has expired"
USED_UP_INVITE = "Invite has reached maximum uses"


def slugify(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


def generate_invite_code() -> str:
    return "".join(secrets.choice(INVITE_CODE_ALPHABET) for _ in range(INVITE_CODE_LENGTH))


def invite_problem(invite: CommunityInvite, now) -> Optional[str]:
    """Why an invite can no longer be used, or None when it is usable."""
    if not invite.is_active:
        return INACTIVE_INVITE
    if invite.is_expired(now):
        return EXPIRED_INVITE
    if invite.is_used_up:
        return USED_UP_INVITE
    return None


class CommunityService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.communities = CommunityRepository(session)
        self.memberships = MembershipRepository(session)
        self.admins = CommunityAdminRepository(session)
        self.sub_admins = SubCommunityAdminRepository(session)
        self.invites = InviteRepository(session)

    # =====================================================================
    # Communities
    # =====================================================================

    async def list_communities(self, parent_id: Optional[str] = None) -> List[Community]:
        return await self.communities.list_active(parent_id)

    async def get_community(self, community_id: str, active_only: bool = False) -> Community:
        community = await self.communities.get_by_id(community_id)
        if community is None or (active_only and not community.is_active):
            raise NotFoundError("Community")
        return community

    async def _unique_slug(self, requested: Optional[str], name: str) -> str:
        slug = slugify(requested or name)
        if not slug:
            raise ValidationError("Community name must contain letters or digits")
        if await self.communities.get_by_slug(slug) is not None:
            raise ConflictError("Community slug already exists")
        return slug

    async def create_community(self, user: User, payload: CommunityCreate) -> Community:
        community_id = new_uuid()
        community = Community(
            id=community_id,
            name=payload.name,
            slug=await self._unique_slug(payload.slug, payload.name),
            description=payload.description,
            image_url=payload.image_url,
            created_by=user.id,
            level=0,
            path=f"/{community_id}",
        )
        community = await self.communities.create(community)
        logger.info(f"Community {community.slug} created by {user.id}")
        return community

    async def update_community(self, community_id: str, payload: CommunityUpdate) -> Community:
        community = await self.get_community(community_id)
        for key, value in payload.model_dump(exclude_unset=True).items():
            setattr(community, key, value)
        return await self.communities.update(community)

    async def delete_community(self, community_id: str) -> Community:
        community = await self.get_community(community_id)
        community.is_active = False
        logger.info(f"Community {community_id} deactivated")
        return await self.communities.update(community)

    # =====================================================================
    # Membership
    # =====================================================================

    async def join(self, user: User, community_id: str, role: CommunityRole = CommunityRole.member) -> UserCommunity:
        community = await self.get_community(community_id, active_only=True)
        if await self.memberships.get_membership(user.id, community.id) is not None:
            raise ValidationError("Already a member")
        return await self.memberships.create(
            UserCommunity(user_id=user.id, community_id=community.id, role=role.value)
        )

    async def leave(self, user: User, community_id: str) -> None:
        membership = await self.memberships.get_membership(user.id, community_id)
        if membership is None:
            raise NotFoundError("Membership")
        await self.memberships.delete(membership.id)

    async def members(self, community_id: str) -> List[UserCommunity]:
        await self.get_community(community_id)
        return await self.memberships.list_members(community_id)

    async def memberships_for(self, user: User) -> List[UserCommunity]:
        return await self.memberships.list_for_user(user.id)

    # =====================================================================
    # Admins
    # =====================================================================

    async def assign_admin(self, actor: User, community_id: str, user_id: str) -> CommunityAdmin:
        """Make ``user_id`` an admin of the community, joining them if needed."""
        community = await self.get_community(community_id)
        users = UserRepository(self.session)
        target = await users.get_by_id(user_id)
        if target is None:
            raise NotFoundError("User")
        if await self.admins.is_admin(target.id, community.id):
            raise ConflictError("User is already an admin of this community")

        assignment = await self.admins.create(
            CommunityAdmin(user_id=target.id, community_id=community.id, assigned_by=actor.id), commit=False
        )
        membership = await self.memberships.get_membership(target.id, community.id)
        if membership is None:
            membership = UserCommunity(user_id=target.id, community_id=community.id)
        membership.role = CommunityRole.admin.value
        await self.memberships.update(membership, commit=False)

        if target.role == UserRole.user.value:
            target.role = UserRole.community_admin.value
            await users.update(target, commit=False)

        await self.session.commit()
        await self.session.refresh(assignment)
        logger.info(f"User {target.id} assigned as admin of community {community.id}")
        return assignment

    async def remove_admin(self, community_id: str, user_id: str) -> None:
        assignment = await self.admins.get_assignment(user_id, community_id)
        if assignment is None:
            raise NotFoundError("Admin assignment")
        await self.admins.delete(assignment.id, commit=False)
        membership = await self.memberships.get_membership(user_id, community_id)
        if membership is not None and membership.role == CommunityRole.admin.value:
            membership.role = CommunityRole.member.value
            await self.memberships.update(membership, commit=False)
        await self.session.commit()

    # =====================================================================
    # Sub-communities
    # =====================================================================

    async def create_sub_community(self, user: User, parent_id: str, payload: CommunityCreate) -> Community:
        parent = await self.get_community(parent_id, active_only=True)
        await ensure_community_admin(self.session, user, parent.id)
        if parent.level + 1 > MAX_COMMUNITY_LEVEL:
            raise ValidationError("Maximum sub-community depth reached")

        community_id = new_uuid()
        community = Community(
            id=community_id,
            name=payload.name,
            slug=await self._unique_slug(payload.slug, payload.name),
            description=payload.description,
            image_url=payload.image_url,
            created_by=user.id,
            parent_community_id=parent.id,
            level=parent.level + 1,
            path=f"{parent.path}/{community_id}",
        )
        return await self.communities.create(community)

    async def hierarchy(self, community_id: str) -> Tuple[Community, Optional[Community], List[Community]]:
        community = await self.get_community(community_id)
        parent = None
        if community.parent_community_id:
            parent = await self.communities.get_by_id(community.parent_community_id)
        children = await self.communities.list_active(community.id)
        return community, parent, children

    async def _get_sub_community(self, sub_community_id: str) -> Community:
        community = await self.get_community(sub_community_id)
        if not community.is_sub_community:
            raise ValidationError("Community is not a sub-community")
        return community

    async def assign_sub_community_admin(
        self, actor: User, sub_community_id: str, payload: SubCommunityAdminAssign
    ) -> SubCommunityAdmin:
        sub_community = await self._get_sub_community(sub_community_id)
        await ensure_community_admin(self.session, actor, sub_community.parent_community_id)
        if not await self.memberships.is_member(payload.user_id, sub_community.id):
            raise ValidationError("User must be a member of the sub-community")
        if await self.sub_admins.get_assignment(payload.user_id, sub_community.id) is not None:
            raise ConflictError("User is already an admin of this sub-community")
        return await self.sub_admins.create(
            SubCommunityAdmin(
                user_id=payload.user_id,
                sub_community_id=sub_community.id,
                assigned_by=actor.id,
                permissions=payload.permissions,
                expires_at=as_naive_utc(payload.expires_at),
            )
        )

    async def sub_community_prompts(self, sub_community_id: str, viewer: Optional[User]) -> List[Prompt]:
        """Prompts shared into a sub-community that the viewer may see."""
        sub_community = await self._get_sub_community(sub_community_id)
        visibilities = [SubCommunityVisibility.public.value]
        if viewer is not None:
            in_sub = is_super_admin(viewer) or await self.memberships.is_member(viewer.id, sub_community.id)
            in_parent = await self.memberships.is_member(viewer.id, sub_community.parent_community_id)
            if in_sub or in_parent:
                visibilities.append(SubCommunityVisibility.parent_community.value)
            if in_sub:
                visibilities.append(SubCommunityVisibility.private.value)
        return await PromptRepository(self.session).list_for_sub_community(sub_community.id, visibilities)

    # =====================================================================
    # Invites
    # =====================================================================

    async def create_invite(self, user: User, community_id: str, payload: InviteCreate) -> CommunityInvite:
        community = await self.get_community(community_id, active_only=True)
        code = generate_invite_code()
        attempts = 1
        while await self.invites.get_by_code(code) is not None:
            if attempts >= 5:
                raise AppError("Could not allocate an invite code", is_operational=False)
            code = generate_invite_code()
            attempts += 1

        return await self.invites.create(
            CommunityInvite(
                code=code,
                community_id=community.id,
                created_by=user.id,
                role=payload.role.value,
                max_uses=payload.max_uses,
                expires_at=as_naive_utc(payload.expires_at),
            )
        )

    async def list_invites(self, community_id: str) -> List[CommunityInvite]:
        return await self.invites.list_for_community(community_id)

    async def validate_invite(self, code: str) -> Tuple[bool, Optional[Community], Optional[str]]:
        invite = await self.invites.get_by_code(code.upper())
        if invite is None:
            return False, None, INVALID_INVITE
        problem = invite_problem(invite, utc_now())
        if problem is not None:
            return False, None, problem
        community = await self.communities.get_by_id(invite.community_id)
        if community is None or not community.is_active:
            return False, None, INVALID_INVITE
        return True, community, None

    async def accept_invite(self, user: User, code: str) -> UserCommunity:
        invite = await self.invites.get_by_code(code.upper())
        if invite is None:
            raise NotFoundError("Invite")
        problem = invite_problem(invite, utc_now())
        if problem is not None:
            raise ValidationError(problem)
        community = await self.get_community(invite.community_id, active_only=True)
        if await self.memberships.get_membership(user.id, community.id) is not None:
            raise ValidationError("Already a member")

        membership = await self.memberships.create(
            UserCommunity(user_id=user.id, community_id=community.id, role=invite.role), commit=False
        )
        invite.current_uses += 1
        if invite.is_used_up:
            invite.is_active = False
        await self.invites.update(invite, commit=False)
        await self.session.commit()
        await self.session.refresh(membership)
        logger.info(f"User {user.id} joined community {community.id} with invite {invite.code}")
        return membership

    async def deactivate_invite(self, user: User, invite_id: str) -> CommunityInvite:
        invite = await self.invites.get_by_id(invite_id)
        if invite is None:
            raise NotFoundError("Invite")
        await ensure_community_admin(self.session, user, invite.community_id)
        invite.is_active = False
        return await self.invites.update(invite)

    async def invite_stats(self, community_id: str) -> InviteStats:
        invites = await self.invites.list_for_community(community_id)
        now = utc_now()
        counts: Dict[str, int] = {"active": 0, "used": 0, "expired": 0}
        for invite in invites:
            if invite.is_used_up:
                counts["used"] += 1
            elif invite.is_expired(now):
                counts["expired"] += 1
            elif invite.is_active:
                counts["active"] += 1
        return InviteStats(total=len(invites), **counts)
