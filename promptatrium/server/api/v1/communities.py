"""
Community and Sub-community Endpoints.

Communities form a tree: root communities are created by super admins, and
community admins create sub-communities beneath them. Membership, admin
assignment and the prompts shared into sub-communities are managed here.
"""

from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from promptatrium.core.database.entities import Community, CommunityAdmin, Prompt, SubCommunityAdmin, User, UserCommunity
from promptatrium.core.models.io.communities import (
    AdminAssign,
    CommunityAdminRead,
    CommunityCreate,
    CommunityHierarchy,
    CommunityRead,
    CommunityUpdate,
    MembershipRead,
    SubCommunityAdminAssign,
    SubCommunityAdminRead,
)
from promptatrium.core.models.io.prompts import PromptRead
from promptatrium.server.services.communities import CommunityService
from promptatrium.server.services.deps import CurrentUser, OptionalUser, SessionDep
from promptatrium.server.services.permissions import (
    require_community_admin_role,
    require_community_member,
    require_super_admin,
)

router = APIRouter()


def get_community_service(session: SessionDep) -> CommunityService:
    return CommunityService(session)


CommunityServiceDep = Annotated[CommunityService, Depends(get_community_service)]


@router.get("/communities", response_model=List[CommunityRead], summary="List Communities")
async def list_communities(
    service: CommunityServiceDep,
    parent_id: Optional[str] = Query(default=None, alias="parentId"),
) -> List[Community]:
    """
    List active communities.

    Without ``parentId`` the root communities are returned; with it, the
    sub-communities directly below that parent.
    """
    return await service.list_communities(parent_id)


@router.get("/communities/{community_id}", response_model=CommunityRead, summary="Get Community")
async def get_community(community_id: str, service: CommunityServiceDep) -> Community:
    return await service.get_community(community_id)


@router.post(
    "/communities",
    response_model=CommunityRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Community",
)
async def create_community(
    payload: CommunityCreate, service: CommunityServiceDep, admin: User = Depends(require_super_admin)
) -> Community:
    return await service.create_community(admin, payload)


@router.put("/communities/{community_id}", response_model=CommunityRead, summary="Update Community")
async def update_community(
    community_id: str,
    payload: CommunityUpdate,
    service: CommunityServiceDep,
    _admin: User = Depends(require_community_admin_role),
) -> Community:
    return await service.update_community(community_id, payload)


@router.delete("/communities/{community_id}", response_model=CommunityRead, summary="Deactivate Community")
async def delete_community(
    community_id: str, service: CommunityServiceDep, _admin: User = Depends(require_super_admin)
) -> Community:
    return await service.delete_community(community_id)


# =====================================================================
# Membership
# =====================================================================


@router.post(
    "/communities/{community_id}/join",
    response_model=MembershipRead,
    status_code=status.HTTP_201_CREATED,
    summary="Join Community",
)
async def join_community(community_id: str, user: CurrentUser, service: CommunityServiceDep) -> UserCommunity:
    return await service.join(user, community_id)


@router.post("/communities/{community_id}/leave", summary="Leave Community")
async def leave_community(community_id: str, user: CurrentUser, service: CommunityServiceDep):
    await service.leave(user, community_id)
    return {"success": True}


@router.get("/communities/{community_id}/members", response_model=List[MembershipRead], summary="List Members")
async def list_members(
    community_id: str, service: CommunityServiceDep, _member: User = Depends(require_community_member)
) -> List[UserCommunity]:
    return await service.members(community_id)


@router.get("/user/communities", response_model=List[MembershipRead], summary="My Communities")
async def my_communities(user: CurrentUser, service: CommunityServiceDep) -> List[UserCommunity]:
    return await service.memberships_for(user)


# =====================================================================
# Admins
# =====================================================================


@router.post(
    "/communities/{community_id}/admins",
    response_model=CommunityAdminRead,
    status_code=status.HTTP_201_CREATED,
    summary="Assign Community Admin",
)
async def assign_admin(
    community_id: str,
    payload: AdminAssign,
    service: CommunityServiceDep,
    admin: User = Depends(require_super_admin),
) -> CommunityAdmin:
    """
    Make a user an admin of the community.

    The user joins the community if needed, and a plain ``user`` is promoted
    to the ``community_admin`` platform role.
    """
    return await service.assign_admin(admin, community_id, payload.user_id)


@router.delete(
    "/communities/{community_id}/admins/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove Community Admin",
)
async def remove_admin(
    community_id: str, user_id: str, service: CommunityServiceDep, _admin: User = Depends(require_super_admin)
):
    await service.remove_admin(community_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =====================================================================
# Sub-communities
# =====================================================================


@router.post(
    "/communities/{community_id}/sub-communities",
    response_model=CommunityRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Sub-community",
)
async def create_sub_community(
    community_id: str, payload: CommunityCreate, user: CurrentUser, service: CommunityServiceDep
) -> Community:
    return await service.create_sub_community(user, community_id, payload)


@router.get("/communities/{community_id}/hierarchy", response_model=CommunityHierarchy, summary="Community Hierarchy")
async def community_hierarchy(community_id: str, service: CommunityServiceDep) -> CommunityHierarchy:
    community, parent, children = await service.hierarchy(community_id)
    return CommunityHierarchy(
        community=CommunityRead.model_validate(community),
        parent=CommunityRead.model_validate(parent) if parent is not None else None,
        children=[CommunityRead.model_validate(child) for child in children],
    )


@router.post(
    "/sub-communities/{sub_community_id}/admins",
    response_model=SubCommunityAdminRead,
    status_code=status.HTTP_201_CREATED,
    summary="Assign Sub-community Admin",
)
async def assign_sub_community_admin(
    sub_community_id: str, payload: SubCommunityAdminAssign, user: CurrentUser, service: CommunityServiceDep
) -> SubCommunityAdmin:
    return await service.assign_sub_community_admin(user, sub_community_id, payload)


@router.get(
    "/sub-communities/{sub_community_id}/prompts",
    response_model=List[PromptRead],
    summary="Sub-community Prompts",
)
async def sub_community_prompts(
    sub_community_id: str, viewer: OptionalUser, service: CommunityServiceDep
) -> List[Prompt]:
    return await service.sub_community_prompts(sub_community_id, viewer)
