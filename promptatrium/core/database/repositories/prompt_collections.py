"""
Collection repository.
"""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.prompt_collections import Collection
from .base import SQLModelRepository


class CollectionRepository(SQLModelRepository[Collection]):
    """Repository for prompt collections."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Collection)

    async def list_for_user(self, user_id: str, collection_type: Optional[str] = None) -> List[Collection]:
        stmt = select(Collection).where(Collection.user_id == user_id)
        if collection_type:
            stmt = stmt.where(Collection.type == collection_type)
        stmt = stmt.order_by(Collection.created_at.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
