"""
Prompt repository interface and implementation.

This module provides data access operations for prompts and the per-user
rows hanging off them (likes, favorites, ratings), including the filtered
listing used by the prompt browser.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from sqlalchemy import and_, delete, func, or_, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.prompts import Prompt, PromptFavorite, PromptLike, PromptRating
from .base import QueryBuilder, SQLModelRepository


@dataclass
class PromptFilters:
    """Filters accepted by ``PromptRepository.search``.

    ``viewer_id`` restricts results to what that user may see: public
    prompts plus the viewer's own. ``None`` means anonymous, which only
    sees public, published prompts.
    ``unrestricted`` disables visibility filtering (super admins).
    """

    user_id: Optional[str] = None
    is_public: Optional[bool] = None
    is_featured: Optional[bool] = None
    category: Optional[str] = None
    status: Optional[str] = None
    status_not_equal: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    search: Optional[str] = None
    collection_id: Optional[str] = None
    community_id: Optional[str] = None
    viewer_id: Optional[str] = None
    unrestricted: bool = False
    limit: int = 20
    offset: int = 0


class PromptRepository(SQLModelRepository[Prompt]):
    """Repository for prompt data access operations using SQLModel."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Prompt)

    @staticmethod
    def _visible_to(viewer_id: Optional[str]):
        if viewer_id is None:
            return and_(Prompt.is_public == True, Prompt.status == "published")  # noqa: E712
        return or_(Prompt.is_public == True, Prompt.user_id == viewer_id)  # noqa: E712

    def _has_any_tag(self, tags: List[str]):
        # Postgres json columns expand with json_array_elements_text, SQLite with json_each
        if self.session.get_bind().dialect.name == "postgresql":
            elements = func.json_array_elements_text(Prompt.tags).table_valued("value")
        else:
            elements = func.json_each(Prompt.tags).table_valued("value")
        return select(elements.c.value).where(elements.c.value.in_(tags)).correlate(Prompt).exists()

    async def search(self, filters: PromptFilters) -> List[Prompt]:
        """List prompts matching the filters, newest first."""
        stmt = select(Prompt)

        if not filters.unrestricted:
            if filters.viewer_id is None or filters.user_id != filters.viewer_id:
                stmt = stmt.where(self._visible_to(filters.viewer_id))

        stmt = QueryBuilder.apply_filters(
            stmt,
            Prompt,
            {
                "user_id": filters.user_id,
                "is_public": filters.is_public,
                "is_featured": filters.is_featured,
                "category": filters.category,
                "status": filters.status,
                "collection_id": filters.collection_id,
                "community_id": filters.community_id,
            },
        )
        if filters.status_not_equal:
            stmt = stmt.where(Prompt.status != filters.status_not_equal)
        if filters.tags:
            stmt = stmt.where(self._has_any_tag(filters.tags))
        if filters.search:
            pattern = f"%{filters.search}%"
            stmt = stmt.where(
                or_(
                    Prompt.name.ilike(pattern),
                    Prompt.description.ilike(pattern),
                    Prompt.prompt_content.ilike(pattern),
                )
            )

        stmt = stmt.order_by(Prompt.created_at.desc(), Prompt.id)
        stmt = QueryBuilder.apply_pagination(stmt, filters.limit, filters.offset)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_by_ids(self, prompt_ids: List[str]) -> List[Prompt]:
        if not prompt_ids:
            return []
        stmt = select(Prompt).where(Prompt.id.in_(prompt_ids)).order_by(Prompt.created_at.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_for_collection(self, collection_id: str) -> List[Prompt]:
        stmt = select(Prompt).where(Prompt.collection_id == collection_id).order_by(Prompt.created_at.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_for_sub_community(self, sub_community_id: str, visibilities: List[str]) -> List[Prompt]:
        stmt = (
            select(Prompt)
            .where(Prompt.sub_community_id == sub_community_id)
            .where(Prompt.sub_community_visibility.in_(visibilities))
            .order_by(Prompt.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def detach_collection(self, collection_id: str, commit: bool = True) -> None:
        stmt = update(Prompt).where(Prompt.collection_id == collection_id).values(collection_id=None)
        await self.session.execute(stmt)
        if commit:
            await self.session.commit()

    async def count_by_user(self, user_id: str) -> int:
        stmt = select(func.count()).select_from(Prompt).where(Prompt.user_id == user_id)
        return int((await self.session.execute(stmt)).scalar_one())

    async def count_forks_by_user(self, user_id: str) -> int:
        stmt = select(func.count()).select_from(Prompt).where(Prompt.user_id == user_id, Prompt.fork_of.is_not(None))
        return int((await self.session.execute(stmt)).scalar_one())

    async def total_likes_for_user(self, user_id: str) -> int:
        stmt = select(func.coalesce(func.sum(Prompt.likes), 0)).where(Prompt.user_id == user_id)
        return int((await self.session.execute(stmt)).scalar_one())


class _UserPromptRowRepository:
    """Shared queries for tables keyed by (user_id, prompt_id)."""

    session: AsyncSession
    model: type

    async def get_for(self, user_id: str, prompt_id: str):
        stmt = select(self.model).where(self.model.user_id == user_id, self.model.prompt_id == prompt_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def count_for_prompt(self, prompt_id: str) -> int:
        stmt = select(func.count()).select_from(self.model).where(self.model.prompt_id == prompt_id)
        return int((await self.session.execute(stmt)).scalar_one())

    async def prompt_ids_for_user(self, user_id: str) -> List[str]:
        stmt = select(self.model.prompt_id).where(self.model.user_id == user_id).order_by(self.model.created_at.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def delete_for_prompt(self, prompt_id: str) -> None:
        await self.session.execute(delete(self.model).where(self.model.prompt_id == prompt_id))


class PromptLikeRepository(_UserPromptRowRepository, SQLModelRepository[PromptLike]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, PromptLike)


class PromptFavoriteRepository(_UserPromptRowRepository, SQLModelRepository[PromptFavorite]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, PromptFavorite)


class PromptRatingRepository(_UserPromptRowRepository, SQLModelRepository[PromptRating]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, PromptRating)

    async def list_for_prompt(self, prompt_id: str) -> List[PromptRating]:
        stmt = select(PromptRating).where(PromptRating.prompt_id == prompt_id).order_by(PromptRating.created_at.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def summary(self, prompt_id: str) -> Tuple[float, int]:
        """Return (average rating, rating count) for a prompt."""
        stmt = select(func.avg(PromptRating.rating), func.count(PromptRating.id)).where(
            PromptRating.prompt_id == prompt_id
        )
        average, count = (await self.session.execute(stmt)).one()
        return (round(float(average), 2) if average is not None else 0.0, int(count))
