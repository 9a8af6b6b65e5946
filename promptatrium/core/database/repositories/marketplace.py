"""
Marketplace repositories: seller profiles, listings, orders and disputes.
"""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.marketplace import (
    DisputeMessage,
    MarketplaceDispute,
    MarketplaceListing,
    MarketplaceOrder,
    SellerProfile,
)
from .base import QueryBuilder, SQLModelRepository

LISTING_SORTS = {
    "newest": (MarketplaceListing.created_at.desc(),),
    "price_asc": (MarketplaceListing.price_cents.asc(), MarketplaceListing.created_at.desc()),
    "price_desc": (MarketplaceListing.price_cents.desc(), MarketplaceListing.created_at.desc()),
    "popular": (MarketplaceListing.sales_count.desc(), MarketplaceListing.created_at.desc()),
}


class SellerProfileRepository(SQLModelRepository[SellerProfile]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, SellerProfile)

    async def get_by_user(self, user_id: str) -> Optional[SellerProfile]:
        stmt = select(SellerProfile).where(SellerProfile.user_id == user_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()


class ListingRepository(SQLModelRepository[MarketplaceListing]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, MarketplaceListing)

    async def get_by_prompt(self, prompt_id: str) -> Optional[MarketplaceListing]:
        stmt = select(MarketplaceListing).where(MarketplaceListing.prompt_id == prompt_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def search(
        self,
        category: Optional[str] = None,
        search: Optional[str] = None,
        min_price: Optional[int] = None,
        max_price: Optional[int] = None,
        seller_id: Optional[str] = None,
        sort: str = "newest",
        limit: int = 20,
        offset: int = 0,
    ) -> List[MarketplaceListing]:
        """List active listings with optional filtering and sorting."""
        stmt = select(MarketplaceListing).where(MarketplaceListing.status == "active")
        stmt = QueryBuilder.apply_filters(
            stmt, MarketplaceListing, {"category": category, "seller_id": seller_id}
        )
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(
                or_(MarketplaceListing.title.ilike(pattern), MarketplaceListing.description.ilike(pattern))
            )
        if min_price is not None:
            stmt = stmt.where(MarketplaceListing.price_cents >= min_price)
        if max_price is not None:
            stmt = stmt.where(MarketplaceListing.price_cents <= max_price)
        stmt = stmt.order_by(*LISTING_SORTS.get(sort, LISTING_SORTS["newest"]))
        stmt = QueryBuilder.apply_pagination(stmt, limit, offset)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class OrderRepository(SQLModelRepository[MarketplaceOrder]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, MarketplaceOrder)

    async def get_by_number(self, order_number: str) -> Optional[MarketplaceOrder]:
        stmt = select(MarketplaceOrder).where(MarketplaceOrder.order_number == order_number)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for_user(self, user_id: str, role: str = "buyer") -> List[MarketplaceOrder]:
        column = MarketplaceOrder.seller_id if role == "seller" else MarketplaceOrder.buyer_id
        stmt = select(MarketplaceOrder).where(column == user_id).order_by(MarketplaceOrder.created_at.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class DisputeRepository(SQLModelRepository[MarketplaceDispute]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, MarketplaceDispute)

    async def get_by_order(self, order_id: str) -> Optional[MarketplaceDispute]:
        stmt = select(MarketplaceDispute).where(MarketplaceDispute.order_id == order_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_disputes(self, user_id: Optional[str] = None, status: Optional[str] = None) -> List[MarketplaceDispute]:
        """List disputes, optionally limited to those a user is party to."""
        stmt = select(MarketplaceDispute)
        if user_id is not None:
            stmt = stmt.where(
                or_(MarketplaceDispute.initiator_id == user_id, MarketplaceDispute.respondent_id == user_id)
            )
        if status:
            stmt = stmt.where(MarketplaceDispute.status == status)
        stmt = stmt.order_by(MarketplaceDispute.created_at.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class DisputeMessageRepository(SQLModelRepository[DisputeMessage]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, DisputeMessage)

    async def list_for_dispute(self, dispute_id: str) -> List[DisputeMessage]:
        stmt = select(DisputeMessage).where(DisputeMessage.dispute_id == dispute_id).order_by(DisputeMessage.created_at)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
