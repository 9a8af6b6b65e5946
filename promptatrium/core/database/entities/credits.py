"""
Credit wallet entity models.

Every balance change writes a ``CreditTransaction`` that records the balance
before and after, so the wallet history can be audited row by row.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field, Text

from ..base import Base, new_uuid, utc_now


class UserCredits(Base, table=True):
    """Table: user_credits"""

    __tablename__ = "user_credits"

    id: str = Field(default_factory=new_uuid, primary_key=True, max_length=64)
    user_id: str = Field(max_length=64, unique=True, index=True)
    balance: int = Field(default=0)
    lifetime_earned: int = Field(default=0)
    lifetime_spent: int = Field(default=0)
    last_activity: datetime = Field(default_factory=utc_now)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class CreditTransaction(Base, table=True):
    """Table: credit_transactions"""

    __tablename__ = "credit_transactions"

    id: str = Field(default_factory=new_uuid, primary_key=True, max_length=64)
    user_id: str = Field(max_length=64, index=True)
    type: str = Field(max_length=16)
    amount: int
    balance_before: int
    balance_after: int
    source: str = Field(max_length=64)
    reference_id: Optional[str] = Field(default=None, max_length=64)
    reference_type: Optional[str] = Field(default=None, max_length=32)
    description: Optional[str] = Field(default=None, sa_type=Text)
    created_at: datetime = Field(default_factory=utc_now, index=True)
