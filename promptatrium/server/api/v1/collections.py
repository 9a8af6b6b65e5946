"""
Prompt Collection Endpoints.
"""

from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from promptatrium.core.database.entities import Collection, Prompt
from promptatrium.core.models.domain import CollectionType
from promptatrium.core.models.io.prompt_collections import CollectionCreate, CollectionRead, CollectionUpdate
from promptatrium.core.models.io.prompts import PromptRead
from promptatrium.server.services.collections import CollectionService
from promptatrium.server.services.deps import CurrentUser, OptionalUser, SessionDep

router = APIRouter()


def get_collection_service(session: SessionDep) -> CollectionService:
    return CollectionService(session)


CollectionServiceDep = Annotated[CollectionService, Depends(get_collection_service)]


@router.get("/collections", response_model=List[CollectionRead], summary="List My Collections")
async def list_collections(
    user: CurrentUser,
    service: CollectionServiceDep,
    collection_type: Optional[CollectionType] = Query(default=None, alias="type"),
) -> List[Collection]:
    return await service.list_for_user(user, collection_type.value if collection_type else None)


@router.get("/collections/{collection_id}", response_model=CollectionRead, summary="Get Collection")
async def get_collection(collection_id: str, viewer: OptionalUser, service: CollectionServiceDep) -> Collection:
    return await service.get_accessible(collection_id, viewer)


@router.post(
    "/collections",
    response_model=CollectionRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Collection",
)
async def create_collection(payload: CollectionCreate, user: CurrentUser, service: CollectionServiceDep) -> Collection:
    """
    Create a collection.

    Community collections need a ``communityId`` and admin rights in that
    community; global collections need the community_admin role or above.
    """
    return await service.create(user, payload)


@router.put("/collections/{collection_id}", response_model=CollectionRead, summary="Update Collection")
async def update_collection(
    collection_id: str, payload: CollectionUpdate, user: CurrentUser, service: CollectionServiceDep
) -> Collection:
    return await service.update(user, collection_id, payload)


@router.delete("/collections/{collection_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete Collection")
async def delete_collection(collection_id: str, user: CurrentUser, service: CollectionServiceDep):
    await service.delete(user, collection_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/collections/{collection_id}/prompts", response_model=List[PromptRead], summary="Collection Prompts")
async def collection_prompts(collection_id: str, viewer: OptionalUser, service: CollectionServiceDep) -> List[Prompt]:
    return await service.prompts(collection_id, viewer)
