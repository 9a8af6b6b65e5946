"""Tests for ledger, payout batch and platform setting repositories."""

from datetime import timedelta

from promptatrium.core.database import utc_now
from promptatrium.core.database.entities.ledger import PayoutBatch, TransactionLedger
from promptatrium.core.database.repositories import (
    LedgerRepository,
    PayoutBatchRepository,
    PlatformSettingRepository,
)


def _purchase(seller_id, net, method="paypal", age_days=10, status="completed", **fields):
    return TransactionLedger(
        type="purchase",
        status=status,
        from_user_id="buyer",
        to_user_id=seller_id,
        amount_cents=net,
        net_amount_cents=net,
        payment_method=method,
        created_at=utc_now() - timedelta(days=age_days),
        **fields,
    )


class TestEligiblePayouts:
    async def test_groups_net_amounts_per_seller(self, session):
        repo = LedgerRepository(session)
        rows = [
            _purchase("seller-a", 1000),
            _purchase("seller-a", 500),
            _purchase("seller-b", 700),
        ]
        for row in rows:
            await repo.create(row)

        payouts = await repo.eligible_payouts("paypal", utc_now() - timedelta(days=7))

        by_seller = {p["seller_id"]: p for p in payouts}
        assert by_seller["seller-a"]["amount_cents"] == 1500
        assert len(by_seller["seller-a"]["transaction_ids"]) == 2
        assert by_seller["seller-b"]["amount_cents"] == 700

    async def test_excludes_recent_batched_and_other_methods(self, session):
        repo = LedgerRepository(session)
        await repo.create(_purchase("seller-a", 1000, age_days=1))
        await repo.create(_purchase("seller-a", 1000, payout_batch_id="batch-1"))
        await repo.create(_purchase("seller-a", 1000, method="stripe"))
        await repo.create(_purchase("seller-a", 1000, status="pending"))

        payouts = await repo.eligible_payouts("paypal", utc_now() - timedelta(days=7))

        assert payouts == []

    async def test_pending_amount_ignores_payment_method(self, session):
        repo = LedgerRepository(session)
        await repo.create(_purchase("seller-a", 1000))
        await repo.create(_purchase("seller-a", 250, method="stripe"))
        await repo.create(_purchase("seller-b", 999))

        assert await repo.pending_amount("seller-a", utc_now()) == 1250
        assert await repo.pending_amount("nobody", utc_now()) == 0


class TestBatchLinking:
    async def test_link_and_complete_batch_keeps_failed_rows(self, session):
        repo = LedgerRepository(session)
        ok = await repo.create(_purchase("seller-a", 1000))
        failed = await repo.create(_purchase("seller-b", 500))

        await repo.link_to_batch([ok.id, failed.id], "batch-1")
        await repo.set_status([failed.id], "failed", failure_reason="Seller PayPal email not found")
        await repo.set_status_for_batch("batch-1", "completed")
        await session.commit()

        await session.refresh(ok)
        await session.refresh(failed)
        assert ok.payout_batch_id == "batch-1"
        assert ok.status == "completed"
        assert ok.completed_at is not None
        assert failed.status == "failed"
        assert failed.failure_reason == "Seller PayPal email not found"
        assert {row.id for row in await repo.list_for_batch("batch-1")} == {ok.id, failed.id}

    async def test_link_with_no_ids_is_a_noop(self, session):
        await LedgerRepository(session).link_to_batch([], "batch-1")


class TestPayoutBatchRepository:
    async def test_lookup_by_paypal_batch_id(self, session):
        repo = PayoutBatchRepository(session)
        batch = await repo.create(PayoutBatch(batch_number="BATCH-1-PAYPAL", payout_method="paypal", paypal_batch_id="PP-1"))

        assert (await repo.get_by_paypal_batch_id("PP-1")).id == batch.id
        assert await repo.get_by_paypal_batch_id("PP-2") is None
        assert [b.id for b in await repo.list_recent()] == [batch.id]


class TestPlatformSettings:
    async def test_values_round_trip_as_json(self, session):
        repo = PlatformSettingRepository(session)

        await repo.set_value("payout_delay_days", 3)
        await repo.set_value("enable_auto_payouts", True, description="Run payouts automatically")
        await repo.set_value("payout_delay_days", 5)

        assert await repo.get_value("payout_delay_days") == 5
        assert await repo.get_value("enable_auto_payouts") is True
        assert await repo.get_value("missing", default="weekly") == "weekly"
