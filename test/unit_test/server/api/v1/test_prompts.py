"""
Unit tests for prompt library endpoints.

Tests cover:
- Creating prompts (camelCase payloads, validation, rate limiting)
- Visibility of private and draft prompts
- Owner-only updates, deletes, archive and visibility toggles
- Forks, likes, favorites, ratings and usage counts
- Admin featuring
"""

from unittest.mock import patch

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio

PROMPT = {
    "name": "Misty castle",
    "promptContent": "a misty castle at dawn, volumetric light, matte painting",
    "tags": ["castle", "fantasy"],
    "category": "landscape",
}


@pytest.fixture
def create_prompt(client, headers_for):
    async def _create(user, **overrides):
        response = await client.post("/api/prompts", json={**PROMPT, **overrides}, headers=headers_for(user))
        assert response.status_code == 201, response.text
        return response.json()

    return _create


class TestCreatePrompt:
    """Test prompt creation endpoint."""

    async def test_create_prompt_success(self, client: AsyncClient, make_user, create_prompt):
        user = await make_user()

        data = await create_prompt(user)

        assert len(data["id"]) == 10
        assert data["promptContent"] == PROMPT["promptContent"]
        assert data["userId"] == user.id
        assert data["status"] == "published"
        assert data["isPublic"] is True
        assert data["likes"] == 0
        assert data["version"] == 1

    async def test_create_requires_identity(self, client: AsyncClient):
        response = await client.post("/api/prompts", json=PROMPT)

        assert response.status_code == 401

    async def test_create_validation_error(self, client, make_user, headers_for):
        user = await make_user()

        response = await client.post("/api/prompts", json={"name": "No content"}, headers=headers_for(user))

        assert response.status_code == 400
        assert response.json()["error"]["message"].startswith("promptContent: ")

    async def test_creation_is_rate_limited(self, client, make_user, headers_for):
        user = await make_user()

        with patch("promptatrium.server.services.rate_limit._is_enforced", return_value=True):
            statuses = [
                (await client.post("/api/prompts", json=PROMPT, headers=headers_for(user))).status_code
                for _ in range(21)
            ]
            blocked = await client.post("/api/prompts", json=PROMPT, headers=headers_for(user))

        assert statuses[:20] == [201] * 20
        assert statuses[20] == 429
        assert blocked.json()["error"]["message"].startswith("Too many prompts created")
        assert int(blocked.headers["Retry-After"]) > 0


class TestReadPrompts:
    async def test_private_prompt_hidden_from_others(self, client, make_user, headers_for, create_prompt):
        owner = await make_user()
        other = await make_user()
        prompt = await create_prompt(owner, isPublic=False)

        as_owner = await client.get(f"/api/prompts/{prompt['id']}", headers=headers_for(owner))
        as_other = await client.get(f"/api/prompts/{prompt['id']}", headers=headers_for(other))
        anonymous = await client.get(f"/api/prompts/{prompt['id']}")

        assert as_owner.status_code == 200
        assert as_other.status_code == 404
        assert anonymous.status_code == 404

    async def test_list_filters(self, client, make_user, headers_for, create_prompt):
        owner = await make_user()
        castle = await create_prompt(owner)
        await create_prompt(owner, name="Robot", promptContent="a chrome robot", tags=["scifi"], category="portrait")
        draft = await create_prompt(owner, name="Draft", status="draft")

        by_tag = await client.get("/api/prompts", params={"tags": "fantasy, other"})
        by_search = await client.get("/api/prompts", params={"search": "CASTLE"})
        anonymous = await client.get("/api/prompts")
        own = await client.get("/api/prompts", params={"userId": owner.id}, headers=headers_for(owner))

        assert [p["id"] for p in by_tag.json()] == [castle["id"]]
        assert [p["id"] for p in by_search.json()] == [castle["id"]]
        assert draft["id"] not in [p["id"] for p in anonymous.json()]
        assert draft["id"] in [p["id"] for p in own.json()]

    async def test_page_size_is_bounded(self, client):
        response = await client.get("/api/prompts", params={"limit": 500})

        assert response.status_code == 400


class TestManagePrompts:
    async def test_owner_updates(self, client, make_user, headers_for, create_prompt):
        owner = await make_user()
        prompt = await create_prompt(owner)

        response = await client.put(
            f"/api/prompts/{prompt['id']}", json={"name": "Foggy castle"}, headers=headers_for(owner)
        )

        assert response.status_code == 200
        assert response.json()["name"] == "Foggy castle"
        assert response.json()["promptContent"] == PROMPT["promptContent"]

    async def test_other_users_cannot_modify(self, client, make_user, headers_for, create_prompt):
        owner = await make_user()
        other = await make_user()
        prompt = await create_prompt(owner)

        updated = await client.put(f"/api/prompts/{prompt['id']}", json={"name": "Mine"}, headers=headers_for(other))
        deleted = await client.delete(f"/api/prompts/{prompt['id']}", headers=headers_for(other))

        assert updated.status_code == 403
        assert updated.json()["error"]["message"] == "You can only modify your own prompts"
        assert deleted.status_code == 403

    async def test_delete(self, client, make_user, headers_for, create_prompt):
        owner = await make_user()
        prompt = await create_prompt(owner)

        response = await client.delete(f"/api/prompts/{prompt['id']}", headers=headers_for(owner))
        missing = await client.get(f"/api/prompts/{prompt['id']}", headers=headers_for(owner))

        assert response.status_code == 204
        assert missing.status_code == 404

    async def test_archive_and_visibility_toggles(self, client, make_user, headers_for, create_prompt):
        owner = await make_user()
        prompt = await create_prompt(owner)

        archived = await client.post(f"/api/prompts/{prompt['id']}/archive", headers=headers_for(owner))
        restored = await client.post(f"/api/prompts/{prompt['id']}/archive", headers=headers_for(owner))
        hidden = await client.post(f"/api/prompts/{prompt['id']}/visibility", headers=headers_for(owner))

        assert archived.json()["status"] == "archived"
        assert restored.json()["status"] == "published"
        assert hidden.json()["isPublic"] is False

    async def test_feature_requires_super_admin(self, client, make_user, headers_for, create_prompt):
        owner = await make_user()
        admin = await make_user(role="super_admin")
        prompt = await create_prompt(owner)

        denied = await client.post(f"/api/prompts/{prompt['id']}/feature", headers=headers_for(owner))
        featured = await client.post(f"/api/prompts/{prompt['id']}/feature", headers=headers_for(admin))

        assert denied.status_code == 403
        assert featured.json()["isFeatured"] is True


class TestSocialActions:
    async def test_fork(self, client, make_user, headers_for, create_prompt):
        owner = await make_user()
        forker = await make_user()
        prompt = await create_prompt(owner)

        response = await client.post(f"/api/prompts/{prompt['id']}/fork", headers=headers_for(forker))
        notifications = await client.get("/api/notifications", headers=headers_for(owner))

        assert response.status_code == 201
        fork = response.json()
        assert fork["name"] == "Misty castle (Fork)"
        assert fork["forkOf"] == prompt["id"]
        assert fork["isPublic"] is False
        assert fork["status"] == "draft"
        assert fork["userId"] == forker.id
        assert [n["type"] for n in notifications.json()] == ["fork"]

    async def test_like_toggle(self, client, make_user, headers_for, create_prompt):
        owner = await make_user()
        fan = await make_user()
        prompt = await create_prompt(owner)

        liked = await client.post(f"/api/prompts/{prompt['id']}/like", headers=headers_for(fan))
        listed = await client.get(f"/api/users/{fan.id}/liked-prompts")
        unliked = await client.post(f"/api/prompts/{prompt['id']}/like", headers=headers_for(fan))

        assert liked.json() == {"liked": True, "likes": 1}
        assert [p["id"] for p in listed.json()] == [prompt["id"]]
        assert unliked.json() == {"liked": False, "likes": 0}

    async def test_favorite_toggle(self, client, make_user, headers_for, create_prompt):
        owner = await make_user()
        prompt = await create_prompt(owner)

        favorited = await client.post(f"/api/prompts/{prompt['id']}/favorite", headers=headers_for(owner))
        favorites = await client.get(f"/api/users/{owner.id}/favorites", headers=headers_for(owner))

        assert favorited.json() == {"favorited": True}
        assert [p["id"] for p in favorites.json()] == [prompt["id"]]

    async def test_rating(self, client, make_user, headers_for, create_prompt):
        owner = await make_user()
        first = await make_user()
        second = await make_user()
        prompt = await create_prompt(owner)

        await client.post(f"/api/prompts/{prompt['id']}/rate", json={"rating": 5}, headers=headers_for(first))
        await client.post(
            f"/api/prompts/{prompt['id']}/rate", json={"rating": 2, "review": "meh"}, headers=headers_for(second)
        )
        invalid = await client.post(f"/api/prompts/{prompt['id']}/rate", json={"rating": 6}, headers=headers_for(first))
        summary = await client.get(f"/api/prompts/{prompt['id']}/ratings")

        assert invalid.status_code == 400
        assert invalid.json()["error"]["message"] == "Rating must be between 1 and 5"
        data = summary.json()
        assert data["average"] == 3.5
        assert data["count"] == 2
        assert len(data["ratings"]) == 2

    async def test_record_use(self, client, make_user, create_prompt):
        owner = await make_user()
        prompt = await create_prompt(owner)

        await client.post(f"/api/prompts/{prompt['id']}/use")
        response = await client.post(f"/api/prompts/{prompt['id']}/use")

        assert response.json()["usageCount"] == 2
