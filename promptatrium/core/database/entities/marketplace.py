"""
Marketplace entity models.

Sellers list prompts for sale priced in USD cents, platform credits, or
both. An order is created per purchase; a completed order can be disputed
once. Money movement for orders is recorded separately in the transaction
ledger (see ``ledger.py``).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlmodel import JSON, Field, Text

from ..base import Base, new_uuid, utc_now


class SellerProfile(Base, table=True):
    """Seller onboarding state, payout destination and sales totals.

    Table: seller_profiles
    """

    __tablename__ = "seller_profiles"

    id: str = Field(default_factory=new_uuid, primary_key=True, max_length=64)
    user_id: str = Field(max_length=64, unique=True, index=True)
    onboarding_status: str = Field(default="not_started", max_length=16)
    business_type: Optional[str] = Field(default="individual", max_length=32)
    payout_method: Optional[str] = Field(default=None, max_length=16)
    paypal_email: Optional[str] = Field(default=None, max_length=255)
    stripe_account_id: Optional[str] = Field(default=None, max_length=128)

    total_sales: int = Field(default=0)
    total_revenue_cents: int = Field(default=0)
    total_credits_earned: int = Field(default=0)
    # None falls back to the platform default commission
    commission_rate: Optional[int] = Field(default=None)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class MarketplaceListing(Base, table=True):
    """Prompt offered for sale.

    Table: marketplace_listings
    """

    __tablename__ = "marketplace_listings"

    id: str = Field(default_factory=new_uuid, primary_key=True, max_length=64)
    prompt_id: str = Field(max_length=10, unique=True, index=True)
    seller_id: str = Field(max_length=64, index=True)
    title: str = Field(max_length=255)
    description: Optional[str] = Field(default=None, sa_type=Text)
    price_cents: Optional[int] = Field(default=None)
    credit_price: Optional[int] = Field(default=None)
    accepts_money: bool = Field(default=True)
    accepts_credits: bool = Field(default=True)
    preview_percentage: int = Field(default=20)
    tags: List[str] = Field(default_factory=list, sa_type=JSON)
    category: Optional[str] = Field(default=None, max_length=128, index=True)
    status: str = Field(default="draft", max_length=16, index=True)
    sales_count: int = Field(default=0)

    created_at: datetime = Field(default_factory=utc_now, index=True)
    updated_at: datetime = Field(default_factory=utc_now)


class MarketplaceOrder(Base, table=True):
    """Table: marketplace_orders"""

    __tablename__ = "marketplace_orders"

    id: str = Field(default_factory=new_uuid, primary_key=True, max_length=64)
    order_number: str = Field(max_length=32, unique=True, index=True)
    buyer_id: str = Field(max_length=64, index=True)
    seller_id: str = Field(max_length=64, index=True)
    listing_id: str = Field(max_length=64, index=True)
    payment_method: str = Field(max_length=16)
    payment_reference: Optional[str] = Field(default=None, max_length=128)

    amount_cents: Optional[int] = Field(default=None)
    credit_amount: Optional[int] = Field(default=None)
    platform_fee_cents: Optional[int] = Field(default=None)
    platform_fee_credits: Optional[int] = Field(default=None)
    seller_payout_cents: Optional[int] = Field(default=None)
    seller_payout_credits: Optional[int] = Field(default=None)

    status: str = Field(default="pending", max_length=16, index=True)
    delivered_at: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now, index=True)

    def is_party(self, user_id: str) -> bool:
        return user_id in (self.buyer_id, self.seller_id)


class MarketplaceDispute(Base, table=True):
    """Buyer/seller disagreement over a completed order.

    Table: marketplace_disputes
    """

    __tablename__ = "marketplace_disputes"

    id: str = Field(default_factory=new_uuid, primary_key=True, max_length=64)
    order_id: str = Field(max_length=64, unique=True, index=True)
    initiated_by: str = Field(max_length=16)
    initiator_id: str = Field(max_length=64, index=True)
    respondent_id: str = Field(max_length=64, index=True)
    status: str = Field(default="open", max_length=16, index=True)
    reason: str = Field(max_length=255)
    description: str = Field(sa_type=Text)
    resolution: Optional[str] = Field(default=None, sa_type=Text)
    refund_amount_cents: Optional[int] = Field(default=None)
    credit_refund_amount: Optional[int] = Field(default=None)

    escalated_at: Optional[datetime] = Field(default=None)
    last_responded_at: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    resolved_at: Optional[datetime] = Field(default=None)

    def is_party(self, user_id: str) -> bool:
        return user_id in (self.initiator_id, self.respondent_id)


class DisputeMessage(Base, table=True):
    """Table: dispute_messages"""

    __tablename__ = "dispute_messages"

    id: str = Field(default_factory=new_uuid, primary_key=True, max_length=64)
    dispute_id: str = Field(max_length=64, index=True)
    sender_id: str = Field(max_length=64)
    message: str = Field(sa_type=Text)
    is_admin_message: bool = Field(default=False)
    attachments: List[Dict[str, Any]] = Field(default_factory=list, sa_type=JSON)
    created_at: datetime = Field(default_factory=utc_now, index=True)
