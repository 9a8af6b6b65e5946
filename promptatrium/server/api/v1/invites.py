"""
Community Invite Endpoints.

Invite codes are eight uppercase alphanumerics. A code stops working once it
is deactivated, expires or reaches its maximum number of uses.
"""

from typing import Annotated, List

from fastapi import APIRouter, Depends, status

from promptatrium.core.database.entities import CommunityInvite, User, UserCommunity
from promptatrium.core.models.io.communities import (
    CommunityRead,
    InviteCreate,
    InviteRead,
    InviteStats,
    InviteValidation,
    MembershipRead,
)
from promptatrium.server.services.communities import CommunityService
from promptatrium.server.services.deps import CurrentUser, SessionDep
from promptatrium.server.services.permissions import require_community_admin_role

router = APIRouter()


def get_community_service(session: SessionDep) -> CommunityService:
    return CommunityService(session)


CommunityServiceDep = Annotated[CommunityService, Depends(get_community_service)]


@router.post(
    "/communities/{community_id}/invites",
    response_model=InviteRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Invite",
)
async def create_invite(
    community_id: str,
    payload: InviteCreate,
    service: CommunityServiceDep,
    admin: User = Depends(require_community_admin_role),
) -> CommunityInvite:
    return await service.create_invite(admin, community_id, payload)


@router.get("/communities/{community_id}/invites", response_model=List[InviteRead], summary="List Invites")
async def list_invites(
    community_id: str, service: CommunityServiceDep, _admin: User = Depends(require_community_admin_role)
) -> List[CommunityInvite]:
    return await service.list_invites(community_id)


@router.get("/communities/{community_id}/invites/stats", response_model=InviteStats, summary="Invite Stats")
async def invite_stats(
    community_id: str, service: CommunityServiceDep, _admin: User = Depends(require_community_admin_role)
) -> InviteStats:
    return await service.invite_stats(community_id)


@router.get("/invites/{code}/validate", response_model=InviteValidation, summary="Validate Invite")
async def validate_invite(code: str, service: CommunityServiceDep) -> InviteValidation:
    """
    Check an invite code without consuming it.

    Invalid codes are not an error: the response says why the code cannot be used.
    """
    valid, community, reason = await service.validate_invite(code)
    return InviteValidation(
        valid=valid,
        community=CommunityRead.model_validate(community) if community is not None else None,
        reason=reason,
    )


@router.post(
    "/invites/{code}/accept",
    response_model=MembershipRead,
    status_code=status.HTTP_201_CREATED,
    summary="Accept Invite",
)
async def accept_invite(code: str, user: CurrentUser, service: CommunityServiceDep) -> UserCommunity:
    return await service.accept_invite(user, code)


@router.delete("/invites/{invite_id}", response_model=InviteRead, summary="Deactivate Invite")
async def deactivate_invite(invite_id: str, user: CurrentUser, service: CommunityServiceDep) -> CommunityInvite:
    return await service.deactivate_invite(user, invite_id)
