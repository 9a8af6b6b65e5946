"""
Prompt Library Endpoints.

This module handles listing, reading and authoring prompts as well as the
social actions on them: forks, likes, favorites, ratings and usage counts.
"""

from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from promptatrium.core.database.entities import Prompt, PromptRating, User
from promptatrium.core.database.repositories import PromptFilters
from promptatrium.core.models.io.prompts import (
    FavoriteResult,
    LikeResult,
    PromptCreate,
    PromptRead,
    PromptUpdate,
    RatingCreate,
    RatingRead,
    RatingSummary,
    SubCommunityShare,
)
from promptatrium.server.services.deps import CurrentUser, OptionalUser, SessionDep
from promptatrium.server.services.permissions import require_super_admin
from promptatrium.server.services.prompts import PromptService
from promptatrium.server.services.rate_limit import rate_limit

router = APIRouter()

MAX_PAGE_SIZE = 100


def get_prompt_service(session: SessionDep) -> PromptService:
    return PromptService(session)


PromptServiceDep = Annotated[PromptService, Depends(get_prompt_service)]


def prompt_filters(
    user_id: Optional[str] = Query(default=None, alias="userId"),
    is_public: Optional[bool] = Query(default=None, alias="isPublic"),
    is_featured: Optional[bool] = Query(default=None, alias="isFeatured"),
    category: Optional[str] = None,
    status_: Optional[str] = Query(default=None, alias="status"),
    status_not_equal: Optional[str] = Query(default=None, alias="statusNotEqual"),
    tags: Optional[str] = Query(default=None, description="Comma separated; matches prompts with any of them"),
    search: Optional[str] = None,
    collection_id: Optional[str] = Query(default=None, alias="collectionId"),
    community_id: Optional[str] = Query(default=None, alias="communityId"),
    limit: int = Query(default=20, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(default=0, ge=0),
) -> PromptFilters:
    return PromptFilters(
        user_id=user_id,
        is_public=is_public,
        is_featured=is_featured,
        category=category,
        status=status_,
        status_not_equal=status_not_equal,
        tags=[tag.strip() for tag in tags.split(",") if tag.strip()] if tags else [],
        search=search,
        collection_id=collection_id,
        community_id=community_id,
        limit=limit,
        offset=offset,
    )


@router.get("/prompts", response_model=List[PromptRead], summary="List Prompts")
async def list_prompts(
    viewer: OptionalUser,
    service: PromptServiceDep,
    filters: PromptFilters = Depends(prompt_filters),
) -> List[Prompt]:
    """
    List prompts visible to the caller, newest first.

    Anonymous callers see public, published prompts; signed-in callers also see
    their own drafts and private prompts.
    """
    return await service.list_prompts(filters, viewer)


@router.get("/prompts/{prompt_id}", response_model=PromptRead, summary="Get Prompt")
async def get_prompt(prompt_id: str, viewer: OptionalUser, service: PromptServiceDep) -> Prompt:
    return await service.get_visible(prompt_id, viewer)


@router.post(
    "/prompts",
    response_model=PromptRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Prompt",
    dependencies=[Depends(rate_limit("prompt_creation"))],
)
async def create_prompt(payload: PromptCreate, user: CurrentUser, service: PromptServiceDep) -> Prompt:
    return await service.create(user, payload)


@router.put("/prompts/{prompt_id}", response_model=PromptRead, summary="Update Prompt")
async def update_prompt(prompt_id: str, payload: PromptUpdate, user: CurrentUser, service: PromptServiceDep) -> Prompt:
    return await service.update(user, prompt_id, payload)


@router.delete("/prompts/{prompt_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete Prompt")
async def delete_prompt(prompt_id: str, user: CurrentUser, service: PromptServiceDep):
    await service.delete(user, prompt_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/prompts/{prompt_id}/fork",
    response_model=PromptRead,
    status_code=status.HTTP_201_CREATED,
    summary="Fork Prompt",
)
async def fork_prompt(prompt_id: str, user: CurrentUser, service: PromptServiceDep) -> Prompt:
    """
    Copy a visible prompt into the caller's library.

    The fork starts as a private draft and keeps a reference to its source.
    """
    return await service.fork(user, prompt_id)


@router.post("/prompts/{prompt_id}/like", response_model=LikeResult, summary="Toggle Like")
async def toggle_like(prompt_id: str, user: CurrentUser, service: PromptServiceDep) -> LikeResult:
    liked, likes = await service.toggle_like(user, prompt_id)
    return LikeResult(liked=liked, likes=likes)


@router.post("/prompts/{prompt_id}/favorite", response_model=FavoriteResult, summary="Toggle Favorite")
async def toggle_favorite(prompt_id: str, user: CurrentUser, service: PromptServiceDep) -> FavoriteResult:
    return FavoriteResult(favorited=await service.toggle_favorite(user, prompt_id))


@router.post("/prompts/{prompt_id}/rate", response_model=RatingRead, summary="Rate Prompt")
async def rate_prompt(
    prompt_id: str, payload: RatingCreate, user: CurrentUser, service: PromptServiceDep
) -> PromptRating:
    return await service.rate(user, prompt_id, payload)


@router.get("/prompts/{prompt_id}/ratings", response_model=RatingSummary, summary="Prompt Ratings")
async def prompt_ratings(prompt_id: str, viewer: OptionalUser, service: PromptServiceDep) -> RatingSummary:
    average, count, ratings = await service.rating_summary(prompt_id, viewer)
    return RatingSummary(
        average=average, count=count, ratings=[RatingRead.model_validate(rating) for rating in ratings]
    )


@router.post("/prompts/{prompt_id}/archive", response_model=PromptRead, summary="Toggle Archive")
async def toggle_archive(prompt_id: str, user: CurrentUser, service: PromptServiceDep) -> Prompt:
    return await service.toggle_archive(user, prompt_id)


@router.post("/prompts/{prompt_id}/visibility", response_model=PromptRead, summary="Toggle Visibility")
async def toggle_visibility(prompt_id: str, user: CurrentUser, service: PromptServiceDep) -> Prompt:
    return await service.toggle_visibility(user, prompt_id)


@router.post("/prompts/{prompt_id}/use", response_model=PromptRead, summary="Record Prompt Use")
async def record_use(prompt_id: str, viewer: OptionalUser, service: PromptServiceDep) -> Prompt:
    return await service.record_use(prompt_id, viewer)


@router.post("/prompts/{prompt_id}/feature", response_model=PromptRead, summary="Toggle Featured")
async def toggle_featured(
    prompt_id: str, service: PromptServiceDep, _admin: User = Depends(require_super_admin)
) -> Prompt:
    return await service.toggle_featured(prompt_id)


@router.put("/prompts/{prompt_id}/sub-community", response_model=PromptRead, summary="Share To Sub-community")
async def share_to_sub_community(
    prompt_id: str, payload: SubCommunityShare, user: CurrentUser, service: PromptServiceDep
) -> Prompt:
    return await service.share_to_sub_community(user, prompt_id, payload)


@router.get("/users/{user_id}/favorites", response_model=List[PromptRead], summary="User Favorites")
async def user_favorites(user_id: str, viewer: OptionalUser, service: PromptServiceDep) -> List[Prompt]:
    return await service.favorites_for_user(user_id, viewer)


@router.get("/users/{user_id}/liked-prompts", response_model=List[PromptRead], summary="User Liked Prompts")
async def user_liked_prompts(user_id: str, viewer: OptionalUser, service: PromptServiceDep) -> List[Prompt]:
    return await service.liked_for_user(user_id, viewer)
