"""
Transaction ledger, payout batch and platform setting repositories.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..base import utc_now
from ..entities.ledger import PayoutBatch, PlatformSetting, TransactionLedger
from .base import SQLModelRepository


class LedgerRepository(SQLModelRepository[TransactionLedger]):
    """Repository for ledger rows."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, TransactionLedger)

    def _eligible(self, cutoff: datetime, payment_method: Optional[str] = None):
        conditions = [
            TransactionLedger.type == "purchase",
            TransactionLedger.status == "completed",
            TransactionLedger.created_at <= cutoff,
            TransactionLedger.payout_batch_id.is_(None),
        ]
        if payment_method is not None:
            conditions.append(TransactionLedger.payment_method == payment_method)
        return conditions

    async def eligible_payouts(self, payment_method: str, cutoff: datetime) -> List[Dict[str, Any]]:
        """Sum unpaid net amounts per seller for one payment method.

        Returns:
            One ``{"seller_id", "amount_cents", "transaction_ids"}`` dict per seller,
            ordered by seller id.
        """
        stmt = (
            select(TransactionLedger)
            .where(*self._eligible(cutoff, payment_method))
            .order_by(TransactionLedger.to_user_id, TransactionLedger.created_at)
        )
        rows = (await self.session.execute(stmt)).scalars().all()

        grouped: Dict[str, Dict[str, Any]] = {}
        for row in rows:
            if row.to_user_id is None:
                continue
            entry = grouped.setdefault(
                row.to_user_id, {"seller_id": row.to_user_id, "amount_cents": 0, "transaction_ids": []}
            )
            entry["amount_cents"] += row.net_amount_cents or 0
            entry["transaction_ids"].append(row.id)
        return list(grouped.values())

    async def pending_amount(self, seller_id: str, cutoff: datetime) -> int:
        stmt = select(func.coalesce(func.sum(TransactionLedger.net_amount_cents), 0)).where(
            TransactionLedger.to_user_id == seller_id, *self._eligible(cutoff)
        )
        return int((await self.session.execute(stmt)).scalar_one())

    async def link_to_batch(self, transaction_ids: List[str], batch_id: str) -> None:
        if not transaction_ids:
            return
        stmt = (
            update(TransactionLedger)
            .where(TransactionLedger.id.in_(transaction_ids))
            .values(payout_batch_id=batch_id, processed_at=utc_now())
        )
        await self.session.execute(stmt)

    async def set_status(
        self, transaction_ids: List[str], status: str, failure_reason: Optional[str] = None
    ) -> None:
        if not transaction_ids:
            return
        values: Dict[str, Any] = {"status": status}
        if failure_reason is not None:
            values["failure_reason"] = failure_reason
        stmt = update(TransactionLedger).where(TransactionLedger.id.in_(transaction_ids)).values(**values)
        await self.session.execute(stmt)

    async def set_status_for_batch(self, batch_id: str, status: str) -> None:
        """Move every row of a batch to ``status``; rows that already failed keep their status."""
        values: Dict[str, Any] = {"status": status}
        if status == "completed":
            values["completed_at"] = utc_now()
        stmt = (
            update(TransactionLedger)
            .where(TransactionLedger.payout_batch_id == batch_id, TransactionLedger.status != "failed")
            .values(**values)
        )
        await self.session.execute(stmt)

    async def list_for_batch(self, batch_id: str) -> List[TransactionLedger]:
        stmt = (
            select(TransactionLedger)
            .where(TransactionLedger.payout_batch_id == batch_id)
            .order_by(TransactionLedger.created_at)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_for_order(self, order_id: str) -> List[TransactionLedger]:
        stmt = select(TransactionLedger).where(TransactionLedger.order_id == order_id).order_by(TransactionLedger.created_at)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class PayoutBatchRepository(SQLModelRepository[PayoutBatch]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, PayoutBatch)

    async def get_by_paypal_batch_id(self, paypal_batch_id: str) -> Optional[PayoutBatch]:
        stmt = select(PayoutBatch).where(PayoutBatch.paypal_batch_id == paypal_batch_id)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_recent(self, limit: int = 50) -> List[PayoutBatch]:
        stmt = select(PayoutBatch).order_by(PayoutBatch.created_at.desc()).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class PlatformSettingRepository(SQLModelRepository[PlatformSetting]):
    """Key/value settings stored as JSON text."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, PlatformSetting)

    async def get_value(self, key: str, default: Any = None) -> Any:
        setting = await self.get_by_id(key)
        if setting is None:
            return default
        try:
            return json.loads(setting.value)
        except ValueError:
            return setting.value

    async def set_value(self, key: str, value: Any, description: Optional[str] = None, commit: bool = True) -> PlatformSetting:
        setting = await self.get_by_id(key)
        if setting is None:
            setting = PlatformSetting(key=key, value=json.dumps(value), description=description)
        else:
            setting.value = json.dumps(value)
            if description is not None:
                setting.description = description
        return await self.update(setting, commit=commit)
