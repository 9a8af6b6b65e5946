"""Unit tests for marketplace dispute endpoints."""

import pytest
import pytest_asyncio

pytestmark = pytest.mark.asyncio


@pytest_asyncio.fixture
async def sale(client, make_user, headers_for, make_listing):
    """A completed PayPal order: (buyer headers, seller headers, admin headers, order)."""
    listing = await make_listing(price_cents=1000)
    buyer = await make_user()
    admin = await make_user(role="super_admin")
    buyer_headers, admin_headers = headers_for(buyer), headers_for(admin)
    seller_headers = {"X-User-Id": listing.seller_id}
    order = (
        await client.post(
            "/api/marketplace/orders", json={"listingId": listing.id, "paymentMethod": "paypal"}, headers=buyer_headers
        )
    ).json()
    await client.post(f"/api/marketplace/orders/{order['id']}/complete", headers=admin_headers)
    return buyer_headers, seller_headers, admin_headers, order


async def _open(client, headers, order_id):
    return await client.post(
        "/api/marketplace/disputes",
        json={"orderId": order_id, "reason": "Not as described", "description": "The prompt is different"},
        headers=headers,
    )


class TestOpenDispute:
    async def test_buyer_opens(self, client, sale):
        buyer, seller, _, order = sale

        response = await _open(client, buyer, order["id"])
        duplicate = await _open(client, seller, order["id"])
        order_after = await client.get(f"/api/marketplace/orders/{order['id']}", headers=buyer)

        assert response.status_code == 201
        assert response.json()["status"] == "open"
        assert response.json()["initiatedBy"] == "buyer"
        assert duplicate.status_code == 400
        assert order_after.json()["status"] == "disputed"

    async def test_stranger_cannot_open(self, client, make_user, headers_for, sale):
        _, _, _, order = sale
        stranger = await make_user()

        response = await _open(client, headers_for(stranger), order["id"])

        assert response.status_code == 403

    async def test_reason_required(self, client, sale):
        buyer, _, _, order = sale

        response = await client.post(
            "/api/marketplace/disputes",
            json={"orderId": order["id"], "reason": "", "description": "x"},
            headers=buyer,
        )

        assert response.status_code == 400
        assert response.json()["error"]["message"].startswith("reason")


class TestDisputeConversation:
    async def test_messages_appear_in_detail(self, client, sale):
        buyer, seller, admin, order = sale
        dispute = (await _open(client, buyer, order["id"])).json()

        posted = await client.post(
            f"/api/marketplace/disputes/{dispute['id']}/messages", json={"message": "Happy to help"}, headers=seller
        )
        await client.post(
            f"/api/marketplace/disputes/{dispute['id']}/messages", json={"message": "Reviewing"}, headers=admin
        )
        detail = await client.get(f"/api/marketplace/disputes/{dispute['id']}", headers=buyer)

        assert posted.status_code == 201
        assert [(m["message"], m["isAdminMessage"]) for m in detail.json()["messages"]] == [
            ("Happy to help", False),
            ("Reviewing", True),
        ]

    async def test_list_filters_by_status(self, client, sale):
        buyer, _, admin, order = sale
        dispute = (await _open(client, buyer, order["id"])).json()

        open_disputes = await client.get("/api/marketplace/disputes", params={"status": "open"}, headers=buyer)
        closed = await client.get("/api/marketplace/disputes", params={"status": "closed"}, headers=admin)

        assert [d["id"] for d in open_disputes.json()] == [dispute["id"]]
        assert closed.json() == []


class TestDisputeLifecycle:
    async def test_only_super_admin_updates_status(self, client, sale):
        buyer, _, _, order = sale
        dispute = (await _open(client, buyer, order["id"])).json()

        response = await client.patch(
            f"/api/marketplace/disputes/{dispute['id']}/status", json={"status": "closed"}, headers=buyer
        )

        assert response.status_code == 403

    async def test_escalate_then_resolve_with_refund(self, client, sale):
        buyer, _, admin, order = sale
        dispute = (await _open(client, buyer, order["id"])).json()

        escalated = await client.post(f"/api/marketplace/disputes/{dispute['id']}/escalate", headers=buyer)
        missing_resolution = await client.patch(
            f"/api/marketplace/disputes/{dispute['id']}/status", json={"status": "resolved"}, headers=admin
        )
        resolved = await client.patch(
            f"/api/marketplace/disputes/{dispute['id']}/status",
            json={"status": "resolved", "resolution": "Refunded", "refundAmountCents": 1000},
            headers=admin,
        )
        order_after = await client.get(f"/api/marketplace/orders/{order['id']}", headers=buyer)

        assert escalated.json()["status"] == "in_progress"
        assert missing_resolution.status_code == 400
        assert resolved.json()["status"] == "resolved"
        assert resolved.json()["refundAmountCents"] == 1000
        assert order_after.json()["status"] == "refunded"

    async def test_closed_is_final(self, client, sale):
        buyer, _, admin, order = sale
        dispute = (await _open(client, buyer, order["id"])).json()
        await client.patch(f"/api/marketplace/disputes/{dispute['id']}/status", json={"status": "closed"}, headers=admin)

        reopened = await client.patch(
            f"/api/marketplace/disputes/{dispute['id']}/status", json={"status": "in_progress"}, headers=admin
        )
        message = await client.post(
            f"/api/marketplace/disputes/{dispute['id']}/messages", json={"message": "Hello?"}, headers=buyer
        )

        assert reopened.status_code == 400
        assert reopened.json()["error"]["message"] == "Invalid status transition from closed to in_progress"
        assert message.status_code == 400

    async def test_unknown_dispute(self, client, sale):
        buyer, _, _, _ = sale

        response = await client.get("/api/marketplace/disputes/missing", headers=buyer)

        assert response.status_code == 404
