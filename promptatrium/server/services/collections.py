"""
Prompt collections.

Collections come in three types: ``user`` (personal), ``community`` (owned
by a community and readable by its members) and ``global`` (curated by
community admins).
"""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from promptatrium.core.database.entities import Collection, Prompt, User
from promptatrium.core.database.repositories import CollectionRepository, CommunityRepository, PromptRepository
from promptatrium.core.errors import AuthorizationError, NotFoundError, ValidationError
from promptatrium.core.models.domain import CollectionType, UserRole
from promptatrium.core.models.io.prompt_collections import CollectionCreate, CollectionUpdate

from .permissions import can_access_collection, ensure_community_admin, is_super_admin


class CollectionService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.collections = CollectionRepository(session)

    async def list_for_user(self, user: User, collection_type: Optional[str] = None) -> List[Collection]:
        return await self.collections.list_for_user(user.id, collection_type)

    async def get_accessible(self, collection_id: str, user: Optional[User]) -> Collection:
        collection = await self.collections.get_by_id(collection_id)
        if collection is None:
            raise NotFoundError("Collection")
        if not await can_access_collection(self.session, user, collection):
            raise AuthorizationError("Access denied to this collection")
        return collection

    async def _get_owned(self, collection_id: str, user: User) -> Collection:
        collection = await self.collections.get_by_id(collection_id)
        if collection is None:
            raise NotFoundError("Collection")
        if collection.user_id != user.id and not is_super_admin(user):
            raise AuthorizationError("You can only modify your own collections")
        return collection

    async def create(self, user: User, payload: CollectionCreate) -> Collection:
        if payload.type == CollectionType.community:
            if not payload.community_id:
                raise ValidationError("Community ID required")
            if await CommunityRepository(self.session).get_by_id(payload.community_id) is None:
                raise NotFoundError("Community")
            await ensure_community_admin(self.session, user, payload.community_id)
        elif payload.type == CollectionType.global_:
            if user.role not in (UserRole.super_admin.value, UserRole.community_admin.value):
                raise AuthorizationError()

        collection = Collection(
            name=payload.name,
            description=payload.description,
            user_id=user.id,
            community_id=payload.community_id if payload.type == CollectionType.community else None,
            type=payload.type.value,
            is_public=payload.is_public,
        )
        return await self.collections.create(collection)

    async def update(self, user: User, collection_id: str, payload: CollectionUpdate) -> Collection:
        collection = await self._get_owned(collection_id, user)
        for key, value in payload.model_dump(exclude_unset=True).items():
            setattr(collection, key, value)
        return await self.collections.update(collection)

    async def delete(self, user: User, collection_id: str) -> None:
        collection = await self._get_owned(collection_id, user)
        await PromptRepository(self.session).detach_collection(collection.id, commit=False)
        await self.collections.delete(collection.id)

    async def prompts(self, collection_id: str, user: Optional[User]) -> List[Prompt]:
        collection = await self.get_accessible(collection_id, user)
        return await PromptRepository(self.session).list_for_collection(collection.id)
