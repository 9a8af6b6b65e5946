"""Tests for prompt collections."""

import pytest
import pytest_asyncio

from promptatrium.core.database.entities import Community, CommunityAdmin, Prompt, UserCommunity
from promptatrium.core.errors import AuthorizationError, NotFoundError, ValidationError
from promptatrium.core.models.domain import CollectionType
from promptatrium.core.models.io.prompt_collections import CollectionCreate, CollectionUpdate
from promptatrium.server.services.collections import CollectionService


@pytest.fixture
def service(session):
    return CollectionService(session)


@pytest_asyncio.fixture
async def community(session):
    community = Community(name="Sketchers", slug="sketchers", path="/")
    session.add(community)
    await session.commit()
    return community


class TestCreate:
    async def test_user_collection(self, service, make_user):
        owner = await make_user()

        collection = await service.create(owner, CollectionCreate(name="Favourites"))

        assert collection.type == "user"
        assert collection.user_id == owner.id
        assert collection.community_id is None
        assert [c.id for c in await service.list_for_user(owner)] == [collection.id]

    async def test_community_collection_requires_community_id(self, service, make_user):
        owner = await make_user()

        with pytest.raises(ValidationError, match="Community ID required"):
            await service.create(owner, CollectionCreate(name="Shared", type=CollectionType.community))

    async def test_community_collection_requires_existing_community(self, service, make_user):
        owner = await make_user()

        with pytest.raises(NotFoundError, match="Community not found"):
            await service.create(
                owner, CollectionCreate(name="Shared", type=CollectionType.community, community_id="missing")
            )

    async def test_community_collection_requires_admin(self, session, service, make_user, community):
        member = await make_user()
        admin = await make_user()
        session.add(UserCommunity(user_id=member.id, community_id=community.id))
        session.add(CommunityAdmin(user_id=admin.id, community_id=community.id))
        await session.commit()
        payload = CollectionCreate(name="Shared", type=CollectionType.community, community_id=community.id)

        with pytest.raises(AuthorizationError):
            await service.create(member, payload)
        collection = await service.create(admin, payload)

        assert collection.community_id == community.id

    async def test_global_collection_requires_role(self, service, make_user):
        user = await make_user()
        curator = await make_user(role="community_admin")
        payload = CollectionCreate(name="Staff picks", type=CollectionType.global_)

        with pytest.raises(AuthorizationError):
            await service.create(user, payload)
        assert (await service.create(curator, payload)).type == "global"


class TestAccess:
    async def test_private_collection_denied_to_others(self, service, make_user):
        owner = await make_user()
        stranger = await make_user()
        collection = await service.create(owner, CollectionCreate(name="Private"))

        assert (await service.get_accessible(collection.id, owner)).id == collection.id
        with pytest.raises(AuthorizationError, match="Access denied to this collection"):
            await service.get_accessible(collection.id, stranger)
        with pytest.raises(NotFoundError):
            await service.get_accessible("missing", owner)

    async def test_only_owner_modifies(self, service, make_user):
        owner = await make_user()
        stranger = await make_user()
        collection = await service.create(owner, CollectionCreate(name="Mine"))

        updated = await service.update(owner, collection.id, CollectionUpdate(is_public=True))
        assert updated.is_public is True
        with pytest.raises(AuthorizationError, match="You can only modify your own collections"):
            await service.update(stranger, collection.id, CollectionUpdate(name="Theirs"))

    async def test_delete_detaches_prompts(self, session, service, make_user):
        owner = await make_user()
        collection = await service.create(owner, CollectionCreate(name="Temporary", is_public=True))
        prompt = Prompt(name="Kept", prompt_content="x", user_id=owner.id, collection_id=collection.id)
        session.add(prompt)
        await session.commit()
        assert [p.id for p in await service.prompts(collection.id, None)] == [prompt.id]

        await service.delete(owner, collection.id)

        await session.refresh(prompt)
        assert prompt.collection_id is None
        with pytest.raises(NotFoundError):
            await service.get_accessible(collection.id, owner)
