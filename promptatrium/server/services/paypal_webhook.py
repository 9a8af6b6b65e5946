"""
PayPal payouts webhook handling.

PayPal reports the outcome of a payouts batch asynchronously. Batch-level
events settle the local ``PayoutBatch`` and its ledger rows; item-level
failures mark the batch as partially paid.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from promptatrium.core.database import utc_now
from promptatrium.core.database.entities import PayoutBatch
from promptatrium.core.database.repositories import LedgerRepository, PayoutBatchRepository
from promptatrium.core.logging_config import get_logger
from promptatrium.core.models.domain import LedgerEntryStatus, PayoutBatchStatus
from promptatrium.core.monitoring import log_payout_event

logger = get_logger(__name__)

BATCH_SUCCESS = "PAYMENT.PAYOUTS-BATCH.SUCCESS"
BATCH_DENIED = "PAYMENT.PAYOUTS-BATCH.DENIED"
BATCH_FAILED = "PAYMENT.PAYOUTS-BATCH.FAILED"
ITEM_SUCCEEDED = "PAYMENT.PAYOUTS-ITEM.SUCCEEDED"
ITEM_FAILURE_EVENTS = frozenset(
    {
        "PAYMENT.PAYOUTS-ITEM.FAILED",
        "PAYMENT.PAYOUTS-ITEM.UNCLAIMED",
        "PAYMENT.PAYOUTS-ITEM.RETURNED",
        "PAYMENT.PAYOUTS-ITEM.BLOCKED",
    }
)


class PayPalWebhookHandler:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.batches = PayoutBatchRepository(session)
        self.ledger = LedgerRepository(session)

    async def _find_batch(self, paypal_batch_id: Optional[str], event_type: str) -> Optional[PayoutBatch]:
        if not paypal_batch_id:
            logger.warning(f"PayPal webhook {event_type} carried no payout batch id")
            return None
        batch = await self.batches.get_by_paypal_batch_id(paypal_batch_id)
        if batch is None:
            logger.warning(f"PayPal webhook {event_type} for unknown batch {paypal_batch_id}")
        return batch

    async def handle(self, event: Dict[str, Any]) -> None:
        """Apply one webhook event; unknown events and batches are logged and ignored."""
        event_type = event["event_type"]
        resource = event.get("resource") or {}

        if event_type in (BATCH_SUCCESS, BATCH_DENIED, BATCH_FAILED):
            header = resource.get("batch_header") or {}
            batch = await self._find_batch(header.get("payout_batch_id"), event_type)
            if batch is not None:
                await self._settle_batch(batch, event_type, header.get("batch_status"))
        elif event_type == ITEM_SUCCEEDED:
            logger.info(f"PayPal payout item succeeded for batch {resource.get('payout_batch_id')}")
        elif event_type in ITEM_FAILURE_EVENTS:
            batch = await self._find_batch(resource.get("payout_batch_id"), event_type)
            if batch is not None:
                await self._record_item_failure(batch, event_type, resource)
        else:
            logger.info(f"Unhandled PayPal webhook event: {event_type}")

    async def _settle_batch(self, batch: PayoutBatch, event_type: str, batch_status: Optional[str]) -> None:
        if event_type == BATCH_SUCCESS:
            status = PayoutBatchStatus.completed.value
        else:
            status = PayoutBatchStatus.failed.value
            batch.error_log = [f"PayPal batch failed: {batch_status}"]

        batch.status = status
        batch.completed_at = utc_now()
        await self.batches.update(batch, commit=False)
        ledger_status = LedgerEntryStatus.completed if status == PayoutBatchStatus.completed.value else LedgerEntryStatus.failed
        await self.ledger.set_status_for_batch(batch.id, ledger_status.value)
        await self.session.commit()
        log_payout_event(event_type, batch.id, status)
        logger.info(f"PayPal batch {batch.paypal_batch_id} settled as {status}")

    async def _record_item_failure(self, batch: PayoutBatch, event_type: str, resource: Dict[str, Any]) -> None:
        batch.failed_payouts += 1
        batch.status = PayoutBatchStatus.partial.value
        item_id = resource.get("payout_item_id") or resource.get("sender_item_id")
        batch.error_log = [*(batch.error_log or []), f"{event_type}: {item_id or 'unknown item'}"]
        await self.batches.update(batch)
        log_payout_event(event_type, batch.id, batch.status)
        logger.warning(f"PayPal payout item {item_id} failed in batch {batch.paypal_batch_id} ({event_type})")
