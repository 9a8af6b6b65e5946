"""Tests for role and community permission checks."""

import pytest
import pytest_asyncio

from promptatrium.core.database.entities import Collection, Community, CommunityAdmin, UserCommunity
from promptatrium.core.errors import AuthorizationError, ValidationError
from promptatrium.core.models.domain import UserRole
from promptatrium.server.services.permissions import (
    can_access_collection,
    ensure_community_admin,
    ensure_community_member,
    is_community_admin,
    is_super_admin,
    require_community_admin,
    require_role,
)


@pytest_asyncio.fixture
async def community(session):
    community = Community(name="Painters", slug="painters", path="/")
    session.add(community)
    await session.commit()
    return community


class TestRoleChecks:
    async def test_super_admin_passes_every_role(self, make_user):
        root = await make_user(role="super_admin")

        assert is_super_admin(root) is True
        assert await require_role(UserRole.developer)(user=root) is root
        assert await require_community_admin(user=root) is root

    async def test_matching_role_passes(self, make_user):
        developer = await make_user(role="developer")

        assert await require_role(UserRole.developer)(user=developer) is developer

    async def test_other_roles_are_rejected(self, make_user):
        user = await make_user()

        assert is_super_admin(user) is False
        assert is_super_admin(None) is False
        with pytest.raises(AuthorizationError):
            await require_role(UserRole.super_admin)(user=user)
        with pytest.raises(AuthorizationError):
            await require_community_admin(user=user)


class TestCommunityChecks:
    async def test_admin_via_assignment(self, session, make_user, community):
        user = await make_user()
        session.add(CommunityAdmin(user_id=user.id, community_id=community.id))
        await session.commit()

        assert await is_community_admin(session, user.id, community.id) is True
        await ensure_community_admin(session, user, community.id)

    async def test_admin_via_membership_role(self, session, make_user, community):
        user = await make_user()
        session.add(UserCommunity(user_id=user.id, community_id=community.id, role="admin"))
        await session.commit()

        assert await is_community_admin(session, user.id, community.id) is True

    async def test_plain_member_is_not_admin(self, session, make_user, community):
        user = await make_user()
        session.add(UserCommunity(user_id=user.id, community_id=community.id))
        await session.commit()

        await ensure_community_member(session, user, community.id)
        with pytest.raises(AuthorizationError, match="Not authorized for this community"):
            await ensure_community_admin(session, user, community.id)

    async def test_non_member(self, session, make_user, community):
        user = await make_user()

        with pytest.raises(AuthorizationError, match="Not a member of this community"):
            await ensure_community_member(session, user, community.id)

    async def test_missing_community_id(self, session, make_user):
        user = await make_user()

        with pytest.raises(ValidationError, match="Community ID required"):
            await ensure_community_admin(session, user, None)
        with pytest.raises(ValidationError, match="Community ID required"):
            await ensure_community_member(session, user, "")

    async def test_super_admin_skips_lookups(self, session, make_user):
        root = await make_user(role="super_admin")

        await ensure_community_admin(session, root, None)
        await ensure_community_member(session, root, "anything")


class TestCollectionAccess:
    async def test_public_collections_are_open(self, session):
        collection = Collection(name="Open", user_id="owner", is_public=True)

        assert await can_access_collection(session, None, collection) is True

    async def test_private_collection_owner_only(self, session, make_user):
        owner = await make_user()
        stranger = await make_user()
        collection = Collection(name="Mine", user_id=owner.id)

        assert await can_access_collection(session, None, collection) is False
        assert await can_access_collection(session, owner, collection) is True
        assert await can_access_collection(session, stranger, collection) is False

    async def test_community_collection_members(self, session, make_user, community):
        member = await make_user()
        outsider = await make_user()
        session.add(UserCommunity(user_id=member.id, community_id=community.id))
        await session.commit()
        collection = Collection(name="Shared", user_id="owner", type="community", community_id=community.id)

        assert await can_access_collection(session, member, collection) is True
        assert await can_access_collection(session, outsider, collection) is False

    async def test_global_collection_for_community_admins(self, session, make_user):
        curator = await make_user(role="community_admin")
        user = await make_user()
        collection = Collection(name="Staff picks", user_id="owner", type="global")

        assert await can_access_collection(session, curator, collection) is True
        assert await can_access_collection(session, user, collection) is False
