"""
Transaction ledger, payout batch and platform setting entity models.

The ledger is append-mostly: a completed order writes one ``purchase`` row
(buyer to seller, with commission and net amount) and one ``commission`` row
(seller to platform). Purchase rows stay unattached until the payout
scheduler links them to a ``PayoutBatch``; ``payout_batch_id`` being null is
what makes a row eligible for the next payout.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlmodel import JSON, Field, Text

from ..base import Base, new_uuid, utc_now


class TransactionLedger(Base, table=True):
    """Table: transaction_ledger"""

    __tablename__ = "transaction_ledger"

    id: str = Field(default_factory=new_uuid, primary_key=True, max_length=64)
    order_id: Optional[str] = Field(default=None, max_length=64, index=True)
    type: str = Field(max_length=16, index=True)
    status: str = Field(default="pending", max_length=16, index=True)
    from_user_id: Optional[str] = Field(default=None, max_length=64)
    to_user_id: Optional[str] = Field(default=None, max_length=64, index=True)

    amount_cents: int = Field(default=0)
    commission_cents: Optional[int] = Field(default=None)
    net_amount_cents: Optional[int] = Field(default=None)
    payment_method: Optional[str] = Field(default=None, max_length=16, index=True)

    payout_batch_id: Optional[str] = Field(default=None, max_length=64, index=True)
    external_reference: Optional[str] = Field(default=None, max_length=128)
    failure_reason: Optional[str] = Field(default=None, sa_type=Text)
    description: Optional[str] = Field(default=None, sa_type=Text)
    details: Dict[str, Any] = Field(default_factory=dict, sa_type=JSON)

    created_at: datetime = Field(default_factory=utc_now, index=True)
    processed_at: Optional[datetime] = Field(default=None)
    completed_at: Optional[datetime] = Field(default=None)

    def __repr__(self) -> str:
        return (
            f"TransactionLedger(id={self.id}, type={self.type}, status={self.status}, "
            f"amount_cents={self.amount_cents}, batch={self.payout_batch_id})"
        )


class PayoutBatch(Base, table=True):
    """Group of seller payouts submitted together.

    Table: payout_batches
    """

    __tablename__ = "payout_batches"

    id: str = Field(default_factory=new_uuid, primary_key=True, max_length=64)
    batch_number: str = Field(max_length=64, index=True)
    payout_method: str = Field(max_length=16)
    status: str = Field(default="pending", max_length=16, index=True)
    total_amount_cents: int = Field(default=0)
    total_payouts: int = Field(default=0)
    successful_payouts: int = Field(default=0)
    failed_payouts: int = Field(default=0)
    paypal_batch_id: Optional[str] = Field(default=None, max_length=128, index=True)
    error_log: List[str] = Field(default_factory=list, sa_type=JSON)
    details: Dict[str, Any] = Field(default_factory=dict, sa_type=JSON)

    created_at: datetime = Field(default_factory=utc_now)
    processed_at: Optional[datetime] = Field(default=None)
    completed_at: Optional[datetime] = Field(default=None)
    updated_at: datetime = Field(default_factory=utc_now)

    def __repr__(self) -> str:
        return f"PayoutBatch(id={self.id}, method={self.payout_method}, status={self.status})"


class PlatformSetting(Base, table=True):
    """Key/value platform configuration editable at runtime.

    Values are stored JSON-encoded so numbers, booleans and strings round-trip.

    Table: platform_settings
    """

    __tablename__ = "platform_settings"

    key: str = Field(primary_key=True, max_length=64)
    value: str = Field(sa_type=Text)
    description: Optional[str] = Field(default=None, sa_type=Text)
    updated_at: datetime = Field(default_factory=utc_now)
