"""Domain models (enums) for PromptAtrium."""

from .enums import (
    CollectionType,
    CommunityRole,
    CreditTransactionType,
    DisputeInitiator,
    DisputeStatus,
    LedgerEntryStatus,
    LedgerEntryType,
    ListingStatus,
    NotificationType,
    OnboardingStatus,
    OrderStatus,
    PaymentMethod,
    PayoutBatchStatus,
    PayoutFrequency,
    PromptStatus,
    SubCommunityVisibility,
    UserRole,
)

__all__ = [
    "CollectionType",
    "CommunityRole",
    "CreditTransactionType",
    "DisputeInitiator",
    "DisputeStatus",
    "LedgerEntryStatus",
    "LedgerEntryType",
    "ListingStatus",
    "NotificationType",
    "OnboardingStatus",
    "OrderStatus",
    "PaymentMethod",
    "PayoutBatchStatus",
    "PayoutFrequency",
    "PromptStatus",
    "SubCommunityVisibility",
    "UserRole",
]
