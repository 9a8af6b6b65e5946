"""Tests for the credit wallet service."""

import pytest

from promptatrium.core.errors import ValidationError
from promptatrium.server.services.credits import CreditService


@pytest.fixture
def service(session):
    return CreditService(session)


class TestCreditService:
    async def test_wallet_is_created_lazily(self, service):
        wallet = await service.get_balance("user-1")

        assert wallet.balance == 0
        assert (await service.get_balance("user-1")).id == wallet.id

    async def test_add_credits(self, service):
        transaction = await service.add_credits("user-1", 100, "daily_login", description="Welcome back")

        wallet = await service.get_balance("user-1")
        assert (transaction.balance_before, transaction.balance_after) == (0, 100)
        assert transaction.type == "earn"
        assert wallet.balance == 100
        assert wallet.lifetime_earned == 100

    async def test_spend_credits(self, service):
        await service.add_credits("user-1", 100, "daily_login")

        transaction = await service.spend_credits(
            "user-1", 40, "marketplace_purchase", reference_id="order-1", reference_type="order"
        )

        wallet = await service.get_balance("user-1")
        assert transaction.balance_after == 60
        assert transaction.reference_id == "order-1"
        assert wallet.lifetime_spent == 40

    async def test_insufficient_credits(self, service):
        await service.add_credits("user-1", 10, "daily_login")

        with pytest.raises(ValidationError, match="Insufficient credits"):
            await service.spend_credits("user-1", 11, "marketplace_purchase")

        assert (await service.get_balance("user-1")).balance == 10

    @pytest.mark.parametrize("amount", [0, -5])
    async def test_amount_must_be_positive(self, service, amount):
        with pytest.raises(ValidationError, match="Amount must be positive"):
            await service.add_credits("user-1", amount, "daily_login")

    async def test_refund_only_changes_balance(self, service):
        await service.add_credits("user-1", 50, "daily_login")
        await service.spend_credits("user-1", 50, "marketplace_purchase")

        await service.refund_credits("user-1", 50, "marketplace_refund")

        wallet = await service.get_balance("user-1")
        assert wallet.balance == 50
        assert wallet.lifetime_earned == 50
        assert wallet.lifetime_spent == 50

    async def test_history_newest_first(self, service):
        await service.add_credits("user-1", 10, "daily_login")
        await service.add_credits("user-1", 20, "admin_grant")

        history = await service.history("user-1")

        assert len(history) == 2
        assert {t.source for t in history} == {"daily_login", "admin_grant"}
