"""Domain enums shared by entities, services and I/O schemas."""

from __future__ import annotations

from enum import Enum


class UserRole(str, Enum):
    """
    Platform-wide role of a user.

    ``super_admin`` passes every permission check.
    """

    user = "user"
    community_admin = "community_admin"
    super_admin = "super_admin"
    developer = "developer"


class CommunityRole(str, Enum):
    """Role of a user inside one community."""

    member = "member"
    admin = "admin"


class PromptStatus(str, Enum):
    draft = "draft"
    published = "published"
    archived = "archived"


class SubCommunityVisibility(str, Enum):
    """Who can see a prompt shared into a sub-community."""

    public = "public"
    parent_community = "parent_community"  # Members of the parent or of the sub-community.
    private = "private"  # Sub-community members only.


class CollectionType(str, Enum):
    user = "user"
    community = "community"
    global_ = "global"


class NotificationType(str, Enum):
    follow = "follow"
    like = "like"
    fork = "fork"
    approval = "approval"
    dispute = "dispute"
    system = "system"


class CreditTransactionType(str, Enum):
    earn = "earn"
    spend = "spend"
    refund = "refund"


class OnboardingStatus(str, Enum):
    not_started = "not_started"
    pending = "pending"
    completed = "completed"


class PaymentMethod(str, Enum):
    stripe = "stripe"
    paypal = "paypal"
    credits = "credits"


class ListingStatus(str, Enum):
    draft = "draft"
    active = "active"
    paused = "paused"
    sold_out = "sold_out"
    removed = "removed"


class OrderStatus(str, Enum):
    pending = "pending"
    completed = "completed"
    refunded = "refunded"
    cancelled = "cancelled"
    disputed = "disputed"


class DisputeStatus(str, Enum):
    """Lifecycle of a marketplace dispute."""

    open = "open"
    in_progress = "in_progress"
    resolved = "resolved"
    closed = "closed"


class DisputeInitiator(str, Enum):
    buyer = "buyer"
    seller = "seller"


class LedgerEntryType(str, Enum):
    purchase = "purchase"
    commission = "commission"
    payout = "payout"
    refund = "refund"


class LedgerEntryStatus(str, Enum):
    pending = "pending"
    processing = "processing"
    completed = "completed"
    failed = "failed"


class PayoutBatchStatus(str, Enum):
    pending = "pending"
    processing = "processing"
    completed = "completed"
    partial = "partial"
    failed = "failed"


class PayoutFrequency(str, Enum):
    daily = "daily"
    weekly = "weekly"
    biweekly = "biweekly"
    monthly = "monthly"
