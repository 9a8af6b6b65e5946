"""
Data access layer for PromptAtrium.

Each repository wraps one table and is constructed with the request's
``AsyncSession``. See ``base.SQLModelRepository`` for the commit semantics.
"""

from .activity import ActivityRepository, NotificationRepository
from .base import AsyncBaseRepository, QueryBuilder, SQLModelRepository
from .communities import (
    CommunityAdminRepository,
    CommunityRepository,
    InviteRepository,
    MembershipRepository,
    SubCommunityAdminRepository,
)
from .credits import CreditTransactionRepository, UserCreditsRepository
from .ledger import LedgerRepository, PayoutBatchRepository, PlatformSettingRepository
from .marketplace import (
    DisputeMessageRepository,
    DisputeRepository,
    ListingRepository,
    OrderRepository,
    SellerProfileRepository,
)
from .prompt_collections import CollectionRepository
from .prompts import (
    PromptFavoriteRepository,
    PromptFilters,
    PromptLikeRepository,
    PromptRatingRepository,
    PromptRepository,
)
from .users import FollowRepository, UserRepository

__all__ = [
    "ActivityRepository",
    "AsyncBaseRepository",
    "CollectionRepository",
    "CommunityAdminRepository",
    "CommunityRepository",
    "CreditTransactionRepository",
    "DisputeMessageRepository",
    "DisputeRepository",
    "FollowRepository",
    "InviteRepository",
    "LedgerRepository",
    "ListingRepository",
    "MembershipRepository",
    "NotificationRepository",
    "OrderRepository",
    "PayoutBatchRepository",
    "PlatformSettingRepository",
    "PromptFavoriteRepository",
    "PromptFilters",
    "PromptLikeRepository",
    "PromptRatingRepository",
    "PromptRepository",
    "QueryBuilder",
    "SellerProfileRepository",
    "SQLModelRepository",
    "SubCommunityAdminRepository",
    "UserCreditsRepository",
    "UserRepository",
]
