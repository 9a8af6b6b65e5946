"""
Marketplace dispute I/O models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field

from promptatrium.core.models.domain import DisputeStatus

from .base import ApiModel


class DisputeCreate(ApiModel):
    order_id: str
    reason: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)


class DisputeRead(ApiModel):
    id: str
    order_id: str
    initiated_by: str
    initiator_id: str
    respondent_id: str
    status: str
    reason: str
    description: str
    resolution: Optional[str] = None
    refund_amount_cents: Optional[int] = None
    credit_refund_amount: Optional[int] = None
    escalated_at: Optional[datetime] = None
    last_responded_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    resolved_at: Optional[datetime] = None


class DisputeMessageCreate(ApiModel):
    message: str = Field(min_length=1)
    attachments: List[Dict[str, Any]] = Field(default_factory=list)


class DisputeMessageRead(ApiModel):
    id: str
    dispute_id: str
    sender_id: str
    message: str
    is_admin_message: bool
    attachments: List[Dict[str, Any]] = Field(default_factory=list)
    created_at: datetime


class DisputeDetail(DisputeRead):
    messages: List[DisputeMessageRead] = Field(default_factory=list)


class DisputeStatusUpdate(ApiModel):
    status: DisputeStatus
    resolution: Optional[str] = None
    refund_amount_cents: Optional[int] = Field(default=None, gt=0)
    credit_refund_amount: Optional[int] = Field(default=None, gt=0)
