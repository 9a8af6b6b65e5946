"""
Prompt library service.

Visibility rules: anonymous callers see public, published prompts; signed-in
callers additionally see their own prompts; a private prompt is visible only
to its owner and to super admins. Prompts the caller may not see are
reported as missing rather than forbidden.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from promptatrium.core.database import new_prompt_id
from promptatrium.core.database.entities import Prompt, PromptFavorite, PromptLike, PromptRating, User
from promptatrium.core.database.repositories import (
    CommunityRepository,
    MembershipRepository,
    PromptFavoriteRepository,
    PromptFilters,
    PromptLikeRepository,
    PromptRatingRepository,
    PromptRepository,
)
from promptatrium.core.errors import AppError, AuthorizationError, NotFoundError, ValidationError
from promptatrium.core.logging_config import get_logger
from promptatrium.core.models.domain import NotificationType, PromptStatus
from promptatrium.core.models.io.prompts import PromptCreate, PromptUpdate, RatingCreate, SubCommunityShare

from .notifications import NotificationService, record_activity
from .permissions import is_super_admin

logger = get_logger(__name__)

MAX_ID_ATTEMPTS = 5


def can_view_prompt(prompt: Prompt, viewer: Optional[User]) -> bool:
    """Same rule as the prompt listing: anonymous callers only see published public prompts."""
    if viewer is None:
        return prompt.is_public and prompt.status == "published"
    return prompt.is_public or prompt.user_id == viewer.id or is_super_admin(viewer)


def can_manage_prompt(prompt: Prompt, user: User) -> bool:
    return prompt.user_id == user.id or is_super_admin(user)


class PromptService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.prompts = PromptRepository(session)
        self.likes = PromptLikeRepository(session)
        self.favorites = PromptFavoriteRepository(session)
        self.ratings = PromptRatingRepository(session)
        self.notifications = NotificationService(session)

    # =====================================================================
    # Reads
    # =====================================================================

    async def list_prompts(self, filters: PromptFilters, viewer: Optional[User]) -> List[Prompt]:
        filters.viewer_id = viewer.id if viewer else None
        filters.unrestricted = is_super_admin(viewer)
        return await self.prompts.search(filters)

    async def get_visible(self, prompt_id: str, viewer: Optional[User]) -> Prompt:
        prompt = await self.prompts.get_by_id(prompt_id)
        if prompt is None or not can_view_prompt(prompt, viewer):
            raise NotFoundError("Prompt")
        return prompt

    async def get_managed(self, prompt_id: str, user: User) -> Prompt:
        prompt = await self.prompts.get_by_id(prompt_id)
        if prompt is None:
            raise NotFoundError("Prompt")
        if not can_manage_prompt(prompt, user):
            raise AuthorizationError("You can only modify your own prompts")
        return prompt

    async def favorites_for_user(self, user_id: str, viewer: Optional[User]) -> List[Prompt]:
        prompts = await self.prompts.list_by_ids(await self.favorites.prompt_ids_for_user(user_id))
        return [p for p in prompts if can_view_prompt(p, viewer)]

    async def liked_for_user(self, user_id: str, viewer: Optional[User]) -> List[Prompt]:
        prompts = await self.prompts.list_by_ids(await self.likes.prompt_ids_for_user(user_id))
        return [p for p in prompts if can_view_prompt(p, viewer)]

    async def rating_summary(self, prompt_id: str, viewer: Optional[User]) -> Tuple[float, int, List[PromptRating]]:
        await self.get_visible(prompt_id, viewer)
        average, count = await self.ratings.summary(prompt_id)
        return average, count, await self.ratings.list_for_prompt(prompt_id)

    # =====================================================================
    # Writes
    # =====================================================================

    async def _new_id(self) -> str:
        for _ in range(MAX_ID_ATTEMPTS):
            candidate = new_prompt_id()
            if await self.prompts.get_by_id(candidate) is None:
                return candidate
        raise AppError("Could not allocate a prompt id", is_operational=False)

    async def create(self, user: User, payload: PromptCreate) -> Prompt:
        data = payload.model_dump()
        data["status"] = payload.status.value
        prompt = Prompt(id=await self._new_id(), user_id=user.id, **data)
        await self.prompts.create(prompt, commit=False)
        await record_activity(
            self.session, user.id, "created_prompt", target_type="prompt", target_id=prompt.id, commit=False
        )
        await self.session.commit()
        await self.session.refresh(prompt)
        logger.info(f"Prompt {prompt.id} created by {user.id}")
        return prompt

    async def update(self, user: User, prompt_id: str, payload: PromptUpdate) -> Prompt:
        prompt = await self.get_managed(prompt_id, user)
        changes = payload.model_dump(exclude_unset=True)
        if payload.status is not None:
            changes["status"] = payload.status.value
        for key, value in changes.items():
            setattr(prompt, key, value)
        return await self.prompts.update(prompt)

    async def delete(self, user: User, prompt_id: str) -> None:
        prompt = await self.get_managed(prompt_id, user)
        await self.likes.delete_for_prompt(prompt.id)
        await self.favorites.delete_for_prompt(prompt.id)
        await self.ratings.delete_for_prompt(prompt.id)
        await self.prompts.delete(prompt.id, commit=False)
        await self.session.commit()
        logger.info(f"Prompt {prompt_id} deleted by {user.id}")

    async def fork(self, user: User, prompt_id: str) -> Prompt:
        source = await self.get_visible(prompt_id, user)
        fork = Prompt(
            id=await self._new_id(),
            name=f"{source.name} (Fork)",
            description=source.description,
            prompt_content=source.prompt_content,
            negative_prompt=source.negative_prompt,
            category=source.category,
            prompt_type=source.prompt_type,
            prompt_style=source.prompt_style,
            intended_generator=source.intended_generator,
            recommended_models=list(source.recommended_models or []),
            tags=list(source.tags or []),
            is_public=False,
            is_nsfw=source.is_nsfw,
            status=PromptStatus.draft.value,
            user_id=user.id,
            fork_of=source.id,
            version=1,
            likes=0,
            usage_count=0,
        )
        await self.prompts.create(fork, commit=False)
        if source.user_id != user.id:
            await self.notifications.notify(
                source.user_id,
                NotificationType.fork,
                f'{user.display_name} forked your prompt "{source.name}"',
                related_user_id=user.id,
                related_prompt_id=source.id,
                commit=False,
            )
        await record_activity(
            self.session,
            user.id,
            "forked_prompt",
            target_type="prompt",
            target_id=fork.id,
            details={"source_prompt_id": source.id},
            commit=False,
        )
        await self.session.commit()
        await self.session.refresh(fork)
        return fork

    async def toggle_like(self, user: User, prompt_id: str) -> Tuple[bool, int]:
        prompt = await self.get_visible(prompt_id, user)
        existing = await self.likes.get_for(user.id, prompt.id)
        if existing is not None:
            await self.likes.delete(existing.id, commit=False)
            liked = False
        else:
            await self.likes.create(PromptLike(user_id=user.id, prompt_id=prompt.id), commit=False)
            liked = True
            if prompt.user_id != user.id:
                await self.notifications.notify(
                    prompt.user_id,
                    NotificationType.like,
                    f'{user.display_name} liked your prompt "{prompt.name}"',
                    related_user_id=user.id,
                    related_prompt_id=prompt.id,
                    commit=False,
                )

        prompt.likes = await self.likes.count_for_prompt(prompt.id)
        await self.prompts.update(prompt, commit=False)
        await self.session.commit()
        return liked, prompt.likes

    async def toggle_favorite(self, user: User, prompt_id: str) -> bool:
        prompt = await self.get_visible(prompt_id, user)
        existing = await self.favorites.get_for(user.id, prompt.id)
        if existing is not None:
            await self.favorites.delete(existing.id)
            return False
        await self.favorites.create(PromptFavorite(user_id=user.id, prompt_id=prompt.id))
        return True

    async def rate(self, user: User, prompt_id: str, payload: RatingCreate) -> PromptRating:
        if not 1 <= payload.rating <= 5:
            raise ValidationError("Rating must be between 1 and 5")
        prompt = await self.get_visible(prompt_id, user)
        rating = await self.ratings.get_for(user.id, prompt.id)
        if rating is None:
            rating = PromptRating(user_id=user.id, prompt_id=prompt.id, rating=payload.rating, review=payload.review)
            return await self.ratings.create(rating)
        rating.rating = payload.rating
        rating.review = payload.review
        return await self.ratings.update(rating)

    async def toggle_archive(self, user: User, prompt_id: str) -> Prompt:
        prompt = await self.get_managed(prompt_id, user)
        archived = prompt.status == PromptStatus.archived.value
        prompt.status = PromptStatus.published.value if archived else PromptStatus.archived.value
        return await self.prompts.update(prompt)

    async def toggle_visibility(self, user: User, prompt_id: str) -> Prompt:
        prompt = await self.get_managed(prompt_id, user)
        prompt.is_public = not prompt.is_public
        return await self.prompts.update(prompt)

    async def toggle_featured(self, prompt_id: str) -> Prompt:
        prompt = await self.prompts.get_by_id(prompt_id)
        if prompt is None:
            raise NotFoundError("Prompt")
        prompt.is_featured = not prompt.is_featured
        return await self.prompts.update(prompt)

    async def record_use(self, prompt_id: str, viewer: Optional[User]) -> Prompt:
        prompt = await self.get_visible(prompt_id, viewer)
        prompt.usage_count += 1
        return await self.prompts.update(prompt)

    async def share_to_sub_community(self, user: User, prompt_id: str, payload: SubCommunityShare) -> Prompt:
        """Place a prompt in a sub-community with the requested visibility."""
        prompt = await self.get_managed(prompt_id, user)
        sub_community = await CommunityRepository(self.session).get_by_id(payload.sub_community_id)
        if sub_community is None or not sub_community.is_sub_community:
            raise NotFoundError("Sub-community")
        if not await MembershipRepository(self.session).is_member(prompt.user_id, sub_community.id):
            raise AuthorizationError("You must be a member of this sub-community")
        prompt.sub_community_id = sub_community.id
        prompt.sub_community_visibility = payload.visibility.value
        return await self.prompts.update(prompt)
