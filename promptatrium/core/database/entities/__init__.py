"""
Database entities for PromptAtrium.

Importing this package registers every table on ``Base.metadata``.

Modules:
- users: users and follow edges
- communities: communities, memberships, admins and invites
- prompt_collections: prompt collections
- prompts: prompts, likes, favorites and ratings
- activity: activity feed and notifications
- credits: credit wallets and credit transactions
- marketplace: seller profiles, listings, orders and disputes
- ledger: transaction ledger, payout batches and platform settings
"""

from .activity import Activity, Notification
from .communities import (
    Community,
    CommunityAdmin,
    CommunityInvite,
    SubCommunityAdmin,
    UserCommunity,
)
from .credits import CreditTransaction, UserCredits
from .ledger import PayoutBatch, PlatformSetting, TransactionLedger
from .marketplace import (
    DisputeMessage,
    MarketplaceDispute,
    MarketplaceListing,
    MarketplaceOrder,
    SellerProfile,
)
from .prompt_collections import Collection
from .prompts import Prompt, PromptFavorite, PromptLike, PromptRating
from .users import Follow, User

__all__ = [
    "Activity",
    "Collection",
    "Community",
    "CommunityAdmin",
    "CommunityInvite",
    "CreditTransaction",
    "DisputeMessage",
    "Follow",
    "MarketplaceDispute",
    "MarketplaceListing",
    "MarketplaceOrder",
    "Notification",
    "PayoutBatch",
    "PlatformSetting",
    "Prompt",
    "PromptFavorite",
    "PromptLike",
    "PromptRating",
    "SellerProfile",
    "SubCommunityAdmin",
    "TransactionLedger",
    "User",
    "UserCommunity",
    "UserCredits",
]
