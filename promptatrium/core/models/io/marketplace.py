"""
Marketplace I/O models: seller profiles, listings and orders.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from promptatrium.core.models.domain import ListingStatus, PaymentMethod

from .base import ApiModel


class SellerOnboard(ApiModel):
    payout_method: PaymentMethod
    paypal_email: Optional[str] = None
    business_type: Optional[str] = None


class SellerProfileRead(ApiModel):
    id: str
    user_id: str
    onboarding_status: str
    business_type: Optional[str] = None
    payout_method: Optional[str] = None
    paypal_email: Optional[str] = None
    total_sales: int
    total_revenue_cents: int
    total_credits_earned: int
    commission_rate: Optional[int] = None
    created_at: datetime


class ListingCreate(ApiModel):
    prompt_id: str
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    price_cents: Optional[int] = Field(default=None, ge=0)
    credit_price: Optional[int] = Field(default=None, ge=0)
    accepts_money: bool = True
    accepts_credits: bool = True
    preview_percentage: int = Field(default=20, ge=0, le=100)
    tags: List[str] = Field(default_factory=list)
    category: Optional[str] = None
    status: ListingStatus = ListingStatus.active


class ListingUpdate(ApiModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    price_cents: Optional[int] = Field(default=None, ge=0)
    credit_price: Optional[int] = Field(default=None, ge=0)
    accepts_money: Optional[bool] = None
    accepts_credits: Optional[bool] = None
    preview_percentage: Optional[int] = Field(default=None, ge=0, le=100)
    tags: Optional[List[str]] = None
    category: Optional[str] = None
    status: Optional[ListingStatus] = None


class ListingRead(ApiModel):
    id: str
    prompt_id: str
    seller_id: str
    title: str
    description: Optional[str] = None
    price_cents: Optional[int] = None
    credit_price: Optional[int] = None
    accepts_money: bool
    accepts_credits: bool
    preview_percentage: int
    tags: List[str] = Field(default_factory=list)
    category: Optional[str] = None
    status: str
    sales_count: int
    created_at: datetime
    updated_at: datetime


class ListingDetail(ListingRead):
    preview: str = ""


class OrderCreate(ApiModel):
    listing_id: str
    payment_method: PaymentMethod


class OrderRead(ApiModel):
    id: str
    order_number: str
    buyer_id: str
    seller_id: str
    listing_id: str
    payment_method: str
    payment_reference: Optional[str] = None
    amount_cents: Optional[int] = None
    credit_amount: Optional[int] = None
    platform_fee_cents: Optional[int] = None
    platform_fee_credits: Optional[int] = None
    seller_payout_cents: Optional[int] = None
    seller_payout_credits: Optional[int] = None
    status: str
    delivered_at: Optional[datetime] = None
    created_at: datetime


class OrderDetail(OrderRead):
    # Only filled in for the buyer of a completed order.
    prompt_content: Optional[str] = None


class OrderComplete(ApiModel):
    payment_reference: Optional[str] = None
