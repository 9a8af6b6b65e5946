"""Unit tests for credit wallet endpoints."""

import pytest

pytestmark = pytest.mark.asyncio


async def _grant(client, headers, user_id, amount, **extra):
    return await client.post("/api/admin/credits/grant", json={"userId": user_id, "amount": amount, **extra}, headers=headers)


class TestBalance:
    async def test_new_wallet_is_empty(self, client, make_user, headers_for):
        user = await make_user()

        response = await client.get("/api/credits/balance", headers=headers_for(user))

        assert response.status_code == 200
        assert response.json() == {"userId": user.id, "balance": 0, "lifetimeEarned": 0, "lifetimeSpent": 0}

    async def test_requires_identity(self, client):
        response = await client.get("/api/credits/balance")

        assert response.status_code == 401


class TestGrant:
    async def test_super_admin_grants_credits(self, client, make_user, headers_for):
        admin = await make_user(role="super_admin")
        user = await make_user()

        granted = await _grant(client, headers_for(admin), user.id, 250, description="Welcome bonus")
        balance = await client.get("/api/credits/balance", headers=headers_for(user))
        history = await client.get("/api/credits/history", headers=headers_for(user))

        assert granted.status_code == 200
        assert granted.json()["source"] == "admin_grant"
        assert granted.json()["balanceBefore"] == 0
        assert granted.json()["balanceAfter"] == 250
        assert balance.json()["balance"] == 250
        assert balance.json()["lifetimeEarned"] == 250
        assert [(tx["type"], tx["amount"], tx["description"]) for tx in history.json()] == [
            ("earn", 250, "Welcome bonus")
        ]

    async def test_regular_user_cannot_grant(self, client, make_user, headers_for):
        user = await make_user()

        response = await _grant(client, headers_for(user), user.id, 250)

        assert response.status_code == 403

    async def test_unknown_user(self, client, make_user, headers_for):
        admin = await make_user(role="super_admin")

        response = await _grant(client, headers_for(admin), "missing", 250)

        assert response.status_code == 404
        assert response.json()["error"]["message"] == "User not found"

    async def test_amount_must_be_positive(self, client, make_user, headers_for):
        admin = await make_user(role="super_admin")

        response = await _grant(client, headers_for(admin), admin.id, 0)

        assert response.status_code == 400


class TestHistory:
    async def test_limit_bounds(self, client, make_user, headers_for):
        user = await make_user()

        response = await client.get("/api/credits/history", params={"limit": 500}, headers=headers_for(user))

        assert response.status_code == 400
