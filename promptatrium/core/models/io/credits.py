"""
Credit wallet I/O models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field

from .base import ApiModel


class CreditBalance(ApiModel):
    user_id: str
    balance: int
    lifetime_earned: int
    lifetime_spent: int


class CreditTransactionRead(ApiModel):
    id: str
    user_id: str
    type: str
    amount: int
    balance_before: int
    balance_after: int
    source: str
    reference_id: Optional[str] = None
    reference_type: Optional[str] = None
    description: Optional[str] = None
    created_at: datetime


class CreditGrant(ApiModel):
    user_id: str
    amount: int = Field(gt=0)
    description: Optional[str] = None
