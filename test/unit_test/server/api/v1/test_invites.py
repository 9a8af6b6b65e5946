"""Unit tests for community invite endpoints."""

import re
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

pytestmark = pytest.mark.asyncio


@pytest_asyncio.fixture
async def community(client, make_user, headers_for):
    """A root community and its super admin: (admin, community)."""
    admin = await make_user(role="super_admin")
    response = await client.post("/api/communities", json={"name": "Pixel Art"}, headers=headers_for(admin))
    return admin, response.json()


@pytest.fixture
def create_invite(client, headers_for):
    async def _create(user, community_id, **payload):
        return await client.post(f"/api/communities/{community_id}/invites", json=payload, headers=headers_for(user))

    return _create


class TestCreateInvite:
    async def test_admin_creates_invite(self, community, create_invite):
        admin, data = community

        response = await create_invite(admin, data["id"], maxUses=3)

        assert response.status_code == 201
        invite = response.json()
        assert re.fullmatch(r"[A-Z0-9]{8}", invite["code"])
        assert invite["maxUses"] == 3
        assert invite["currentUses"] == 0
        assert invite["role"] == "member"
        assert invite["isActive"] is True

    async def test_members_cannot_create(self, client, make_user, headers_for, community, create_invite):
        _, data = community
        member = await make_user()
        await client.post(f"/api/communities/{data['id']}/join", headers=headers_for(member))

        response = await create_invite(member, data["id"])

        assert response.status_code == 403

    async def test_max_uses_must_be_positive(self, community, create_invite):
        admin, data = community

        response = await create_invite(admin, data["id"], maxUses=0)

        assert response.status_code == 400
        assert response.json()["error"]["message"].startswith("maxUses")


class TestValidateAndAccept:
    async def test_single_use_invite(self, client, make_user, headers_for, community, create_invite):
        admin, data = community
        invite = (await create_invite(admin, data["id"])).json()
        user = await make_user()

        before = await client.get(f"/api/invites/{invite['code']}/validate")
        accepted = await client.post(f"/api/invites/{invite['code']}/accept", headers=headers_for(user))
        after = await client.get(f"/api/invites/{invite['code']}/validate")

        assert before.json()["valid"] is True
        assert before.json()["community"]["id"] == data["id"]
        assert accepted.status_code == 201
        assert accepted.json()["communityId"] == data["id"]
        assert after.json() == {"valid": False, "community": None, "reason": "Invite is no longer active"}

    async def test_codes_are_case_insensitive(self, client, make_user, headers_for, community, create_invite):
        admin, data = community
        invite = (await create_invite(admin, data["id"])).json()
        user = await make_user()

        response = await client.post(f"/api/invites/{invite['code'].lower()}/accept", headers=headers_for(user))

        assert response.status_code == 201

    async def test_invite_grants_role(self, client, make_user, headers_for, community, create_invite):
        admin, data = community
        invite = (await create_invite(admin, data["id"], role="admin")).json()
        user = await make_user()

        response = await client.post(f"/api/invites/{invite['code']}/accept", headers=headers_for(user))

        assert response.json()["role"] == "admin"

    async def test_existing_member(self, client, make_user, headers_for, community, create_invite):
        admin, data = community
        invite = (await create_invite(admin, data["id"], maxUses=5)).json()
        user = await make_user()
        await client.post(f"/api/communities/{data['id']}/join", headers=headers_for(user))

        response = await client.post(f"/api/invites/{invite['code']}/accept", headers=headers_for(user))

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Already a member"

    async def test_expired_invite(self, client, make_user, headers_for, community, create_invite):
        admin, data = community
        yesterday = (datetime.now(timezone.utc) - timedelta(days=1)).isoformat()
        invite = (await create_invite(admin, data["id"], expiresAt=yesterday)).json()
        user = await make_user()

        validation = await client.get(f"/api/invites/{invite['code']}/validate")
        response = await client.post(f"/api/invites/{invite['code']}/accept", headers=headers_for(user))

        assert validation.json()["reason"] == "Invite has expired"
        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Invite has expired"

    async def test_unknown_code(self, client, make_user, headers_for):
        user = await make_user()

        validation = await client.get("/api/invites/NOPE1234/validate")
        response = await client.post("/api/invites/NOPE1234/accept", headers=headers_for(user))

        assert validation.status_code == 200
        assert validation.json()["reason"] == "Invalid invite code"
        assert response.status_code == 404


class TestManageInvites:
    async def test_list_and_stats(self, client, make_user, headers_for, community, create_invite):
        admin, data = community
        used = (await create_invite(admin, data["id"])).json()
        await create_invite(admin, data["id"], maxUses=10)
        yesterday = (datetime.now(timezone.utc) - timedelta(days=1)).isoformat()
        await create_invite(admin, data["id"], expiresAt=yesterday)
        user = await make_user()
        await client.post(f"/api/invites/{used['code']}/accept", headers=headers_for(user))

        listed = await client.get(f"/api/communities/{data['id']}/invites", headers=headers_for(admin))
        stats = await client.get(f"/api/communities/{data['id']}/invites/stats", headers=headers_for(admin))

        assert len(listed.json()) == 3
        assert stats.json() == {"total": 3, "active": 1, "used": 1, "expired": 1}

    async def test_deactivate(self, client, make_user, headers_for, community, create_invite):
        admin, data = community
        invite = (await create_invite(admin, data["id"], maxUses=10)).json()
        stranger = await make_user()

        denied = await client.delete(f"/api/invites/{invite['id']}", headers=headers_for(stranger))
        response = await client.delete(f"/api/invites/{invite['id']}", headers=headers_for(admin))
        validation = await client.get(f"/api/invites/{invite['code']}/validate")

        assert denied.status_code == 403
        assert response.json()["isActive"] is False
        assert validation.json()["reason"] == "Invite is no longer active"
