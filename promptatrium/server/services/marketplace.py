"""
Prompt marketplace: seller onboarding, listings and orders.

Credit purchases settle immediately against the credit wallets. Card and
PayPal purchases are created ``pending`` and settled later through
``PaymentService.process_order_completion`` once the provider confirms the
payment.
"""

from __future__ import annotations

import secrets
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from promptatrium.core.database import utc_now
from promptatrium.core.database.entities import MarketplaceListing, MarketplaceOrder, SellerProfile, User
from promptatrium.core.database.repositories import (
    ListingRepository,
    OrderRepository,
    PromptRepository,
    SellerProfileRepository,
)
from promptatrium.core.errors import AppError, AuthorizationError, ConflictError, NotFoundError, ValidationError
from promptatrium.core.logging_config import get_logger
from promptatrium.core.models.domain import ListingStatus, OnboardingStatus, OrderStatus, PaymentMethod
from promptatrium.core.models.io.marketplace import ListingCreate, ListingUpdate, OrderCreate, SellerOnboard

from .credits import CreditService
from .payments import PaymentService, resolve_commission_rate, split_commission
from .permissions import is_super_admin

logger = get_logger(__name__)

MAX_ORDER_NUMBER_ATTEMPTS = 5


def generate_order_number() -> str:
    return f"ORD-{utc_now():%Y%m%d}-{secrets.token_hex(3).upper()}"


def listing_preview(content: str, percentage: int) -> str:
    """The leading ``percentage`` percent of a prompt, by characters."""
    return content[: len(content) * percentage // 100]


def accepts_method(listing: MarketplaceListing, method: PaymentMethod) -> bool:
    if method == PaymentMethod.credits:
        return listing.accepts_credits and bool(listing.credit_price)
    return listing.accepts_money and bool(listing.price_cents)


class MarketplaceService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.sellers = SellerProfileRepository(session)
        self.listings = ListingRepository(session)
        self.orders = OrderRepository(session)
        self.prompts = PromptRepository(session)

    # =====================================================================
    # Sellers
    # =====================================================================

    async def onboard(self, user: User, payload: SellerOnboard) -> SellerProfile:
        if payload.payout_method == PaymentMethod.paypal and not payload.paypal_email:
            raise ValidationError("PayPal email is required for PayPal payouts")

        profile = await self.sellers.get_by_user(user.id)
        if profile is None:
            profile = SellerProfile(user_id=user.id)
        profile.payout_method = payload.payout_method.value
        profile.paypal_email = payload.paypal_email
        if payload.business_type:
            profile.business_type = payload.business_type
        profile.onboarding_status = OnboardingStatus.completed.value
        profile = await self.sellers.update(profile)
        logger.info(f"Seller {user.id} onboarded with {profile.payout_method} payouts")
        return profile

    async def get_profile(self, user_id: str) -> SellerProfile:
        profile = await self.sellers.get_by_user(user_id)
        if profile is None:
            raise NotFoundError("Seller profile")
        return profile

    # =====================================================================
    # Listings
    # =====================================================================

    async def create_listing(self, user: User, payload: ListingCreate) -> MarketplaceListing:
        profile = await self.sellers.get_by_user(user.id)
        if profile is None or profile.onboarding_status != OnboardingStatus.completed.value:
            raise AuthorizationError("Complete seller onboarding before listing prompts")

        prompt = await self.prompts.get_by_id(payload.prompt_id)
        if prompt is None:
            raise NotFoundError("Prompt")
        if prompt.user_id != user.id:
            raise AuthorizationError("You can only list your own prompts")
        if await self.listings.get_by_prompt(prompt.id) is not None:
            raise ConflictError("This prompt is already listed")

        listing = MarketplaceListing(seller_id=user.id, **payload.model_dump())
        listing.status = payload.status.value
        if not (accepts_method(listing, PaymentMethod.stripe) or accepts_method(listing, PaymentMethod.credits)):
            raise ValidationError("A listing needs a price or a credit price")
        return await self.listings.create(listing)

    async def search_listings(self, **filters) -> List[MarketplaceListing]:
        return await self.listings.search(**filters)

    async def get_listing(self, listing_id: str) -> MarketplaceListing:
        listing = await self.listings.get_by_id(listing_id)
        if listing is None:
            raise NotFoundError("Listing")
        return listing

    async def preview(self, listing: MarketplaceListing) -> str:
        prompt = await self.prompts.get_by_id(listing.prompt_id)
        if prompt is None:
            return ""
        return listing_preview(prompt.prompt_content, listing.preview_percentage)

    async def _get_own_listing(self, user: User, listing_id: str) -> MarketplaceListing:
        listing = await self.get_listing(listing_id)
        if listing.seller_id != user.id and not is_super_admin(user):
            raise AuthorizationError("You can only modify your own listings")
        return listing

    async def update_listing(self, user: User, listing_id: str, payload: ListingUpdate) -> MarketplaceListing:
        listing = await self._get_own_listing(user, listing_id)
        changes = payload.model_dump(exclude_unset=True)
        if payload.status is not None:
            changes["status"] = payload.status.value
        for key, value in changes.items():
            setattr(listing, key, value)
        if not (accepts_method(listing, PaymentMethod.stripe) or accepts_method(listing, PaymentMethod.credits)):
            raise ValidationError("A listing needs a price or a credit price")
        return await self.listings.update(listing)

    async def remove_listing(self, user: User, listing_id: str) -> MarketplaceListing:
        listing = await self._get_own_listing(user, listing_id)
        listing.status = ListingStatus.removed.value
        return await self.listings.update(listing)

    # =====================================================================
    # Orders
    # =====================================================================

    async def _new_order_number(self) -> str:
        for _ in range(MAX_ORDER_NUMBER_ATTEMPTS):
            candidate = generate_order_number()
            if await self.orders.get_by_number(candidate) is None:
                return candidate
        raise AppError("Could not allocate an order number", is_operational=False)

    async def create_order(self, user: User, payload: OrderCreate) -> MarketplaceOrder:
        """Place an order for a listing.

        Raises:
            NotFoundError: the listing does not exist.
            ValidationError: own listing, inactive listing, unaccepted payment
                method or insufficient credits.
        """
        listing = await self.get_listing(payload.listing_id)
        if listing.seller_id == user.id:
            raise ValidationError("You cannot purchase your own listing")
        if listing.status != ListingStatus.active.value:
            raise ValidationError("This listing is not available")
        if not accepts_method(listing, payload.payment_method):
            raise ValidationError(f"This listing does not accept {payload.payment_method.value} payments")

        order = MarketplaceOrder(
            order_number=await self._new_order_number(),
            buyer_id=user.id,
            seller_id=listing.seller_id,
            listing_id=listing.id,
            payment_method=payload.payment_method.value,
        )
        if payload.payment_method != PaymentMethod.credits:
            order.amount_cents = listing.price_cents
            order = await self.orders.create(order)
            logger.info(f"Order {order.order_number} created pending {order.payment_method} payment")
            return order

        return await self._purchase_with_credits(user, listing, order)

    async def _purchase_with_credits(
        self, user: User, listing: MarketplaceListing, order: MarketplaceOrder
    ) -> MarketplaceOrder:
        seller = await self.sellers.get_by_user(listing.seller_id)
        price = listing.credit_price or 0
        rate = await resolve_commission_rate(self.session, seller)
        fee, earned = split_commission(price, rate)
        credits = CreditService(self.session)

        try:
            order.credit_amount = price
            order.platform_fee_credits = fee
            order.seller_payout_credits = earned
            order.status = OrderStatus.completed.value
            order.delivered_at = utc_now()
            await self.orders.create(order, commit=False)

            await credits.spend_credits(
                user.id,
                price,
                source="marketplace_purchase",
                description=f"Purchase of {listing.title}",
                reference_id=order.id,
                reference_type="order",
                commit=False,
            )
            if earned > 0:
                await credits.add_credits(
                    listing.seller_id,
                    earned,
                    source="marketplace_sale",
                    description=f"Sale of {listing.title}",
                    reference_id=order.id,
                    reference_type="order",
                    commit=False,
                )

            if seller is not None:
                seller.total_sales += 1
                seller.total_credits_earned += earned
                await self.sellers.update(seller, commit=False)
            listing.sales_count += 1
            await self.listings.update(listing, commit=False)

            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        await self.session.refresh(order)
        logger.info(f"Order {order.order_number} paid with {price} credits (fee {fee})")
        return order

    async def complete_order(self, order_id: str, payment_reference: Optional[str] = None) -> MarketplaceOrder:
        await PaymentService(self.session).process_order_completion(order_id, payment_reference)
        order = await self.orders.get_by_id(order_id)
        await self.session.refresh(order)
        return order

    async def list_orders(self, user: User, role: str = "buyer") -> List[MarketplaceOrder]:
        return await self.orders.list_for_user(user.id, role=role)

    async def get_order(self, user: User, order_id: str) -> MarketplaceOrder:
        order = await self.orders.get_by_id(order_id)
        if order is None:
            raise NotFoundError("Order")
        if not order.is_party(user.id) and not is_super_admin(user):
            raise AuthorizationError("Access denied to this order")
        return order

    async def delivered_content(self, user: User, order: MarketplaceOrder) -> Optional[str]:
        """Full prompt text, released only to the buyer of a completed order."""
        if order.buyer_id != user.id or order.status != OrderStatus.completed.value:
            return None
        listing = await self.listings.get_by_id(order.listing_id)
        if listing is None:
            return None
        prompt = await self.prompts.get_by_id(listing.prompt_id)
        return prompt.prompt_content if prompt is not None else None
