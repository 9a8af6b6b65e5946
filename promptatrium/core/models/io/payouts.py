"""
Payout administration I/O models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field

from promptatrium.core.models.domain import PayoutFrequency

from .base import ApiModel


class PayoutSettingsRead(ApiModel):
    payout_frequency: str
    enable_auto_payouts: bool
    payout_delay_days: int
    min_payout_amount_cents: int
    default_commission_rate: int


class PayoutSettingsUpdate(ApiModel):
    payout_frequency: Optional[PayoutFrequency] = None
    enable_auto_payouts: Optional[bool] = None
    payout_delay_days: Optional[int] = Field(default=None, ge=0)
    min_payout_amount_cents: Optional[int] = Field(default=None, ge=0)
    default_commission_rate: Optional[int] = Field(default=None, ge=0, le=100)


class LedgerEntryRead(ApiModel):
    id: str
    order_id: Optional[str] = None
    type: str
    status: str
    from_user_id: Optional[str] = None
    to_user_id: Optional[str] = None
    amount_cents: int
    commission_cents: Optional[int] = None
    net_amount_cents: Optional[int] = None
    payment_method: Optional[str] = None
    payout_batch_id: Optional[str] = None
    external_reference: Optional[str] = None
    failure_reason: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None


class PayoutBatchRead(ApiModel):
    id: str
    batch_number: str
    payout_method: str
    status: str
    total_amount_cents: int
    total_payouts: int
    successful_payouts: int
    failed_payouts: int
    paypal_batch_id: Optional[str] = None
    error_log: List[str] = Field(default_factory=list)
    details: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    processed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class PayoutBatchDetail(PayoutBatchRead):
    transactions: List[LedgerEntryRead] = Field(default_factory=list)


class NextPayout(ApiModel):
    date: Optional[datetime] = None
    amount: int = 0
