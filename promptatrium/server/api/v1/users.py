"""
User Profile and Social Endpoints.

This module serves the signed-in user's profile, public profiles and stats,
the follow graph, the activity feed and admin role management.
"""

from typing import Annotated, List

from fastapi import APIRouter, Depends, Query

from promptatrium.core.database.entities import User
from promptatrium.core.models.io.users import (
    ActivityRead,
    CurrentUserRead,
    FollowResult,
    RoleUpdate,
    UserRead,
    UserStats,
    UserUpdate,
)
from promptatrium.server.services.credits import CreditService
from promptatrium.server.services.deps import CurrentUser, SessionDep
from promptatrium.server.services.permissions import require_super_admin
from promptatrium.server.services.users import UserService

router = APIRouter()


def get_user_service(session: SessionDep) -> UserService:
    return UserService(session)


UserServiceDep = Annotated[UserService, Depends(get_user_service)]


@router.get(
    "/auth/user",
    response_model=CurrentUserRead,
    summary="Current User",
    description="Return the authenticated user's profile together with their credit balance.",
)
async def current_user(user: CurrentUser, session: SessionDep) -> CurrentUserRead:
    wallet = await CreditService(session).get_balance(user.id)
    result = CurrentUserRead.model_validate(user)
    result.credit_balance = wallet.balance
    return result


@router.put("/users/me", response_model=UserRead, summary="Update Profile")
async def update_me(payload: UserUpdate, user: CurrentUser, service: UserServiceDep) -> User:
    """
    Update the caller's profile.

    Only the fields present in the body change. Usernames must be unique.
    """
    return await service.update_profile(user, payload)


@router.get("/users/{user_id}", response_model=UserRead, summary="Get User")
async def get_user(user_id: str, service: UserServiceDep) -> User:
    return await service.get_user(user_id)


@router.get("/users/{user_id}/stats", response_model=UserStats, summary="User Stats")
async def user_stats(user_id: str, service: UserServiceDep) -> UserStats:
    return await service.stats(user_id)


@router.post("/users/{user_id}/follow", response_model=FollowResult, summary="Toggle Follow")
async def toggle_follow(user_id: str, user: CurrentUser, service: UserServiceDep) -> FollowResult:
    """
    Follow or unfollow a user.

    A new follow notifies the followed user and is recorded in the activity feed.
    """
    return FollowResult(following=await service.toggle_follow(user, user_id))


@router.get("/users/{user_id}/followers", response_model=List[UserRead], summary="List Followers")
async def followers(user_id: str, service: UserServiceDep) -> List[User]:
    return await service.followers(user_id)


@router.get("/users/{user_id}/following", response_model=List[UserRead], summary="List Followed Users")
async def following(user_id: str, service: UserServiceDep) -> List[User]:
    return await service.following(user_id)


@router.get("/activities", response_model=List[ActivityRead], summary="Recent Activity")
async def recent_activities(service: UserServiceDep, limit: int = Query(default=20, ge=1, le=100)):
    return await service.recent_activities(limit=limit)


@router.patch(
    "/admin/users/{user_id}/role",
    response_model=UserRead,
    summary="Set User Role",
    description="Change a user's platform role. Super admins only.",
)
async def set_role(
    user_id: str,
    payload: RoleUpdate,
    service: UserServiceDep,
    _admin: User = Depends(require_super_admin),
) -> User:
    return await service.set_role(user_id, payload.role)
