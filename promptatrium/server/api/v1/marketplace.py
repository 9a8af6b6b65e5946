"""
Marketplace Endpoints.

This module handles seller onboarding, prompt listings and orders. Orders paid
with credits complete immediately; money orders stay pending until the payment
is confirmed through the complete endpoint.
"""

from typing import Annotated, List, Literal, Optional

from fastapi import APIRouter, Depends, Query, status

from promptatrium.core.database.entities import MarketplaceListing, MarketplaceOrder, SellerProfile, User
from promptatrium.core.models.io.marketplace import (
    ListingCreate,
    ListingDetail,
    ListingRead,
    ListingUpdate,
    OrderComplete,
    OrderCreate,
    OrderDetail,
    OrderRead,
    SellerOnboard,
    SellerProfileRead,
)
from promptatrium.core.models.io.payouts import NextPayout
from promptatrium.server.services.deps import CurrentUser, SessionDep
from promptatrium.server.services.marketplace import MarketplaceService
from promptatrium.server.services.payouts import next_payout_for_seller
from promptatrium.server.services.permissions import require_super_admin

router = APIRouter()

MAX_PAGE_SIZE = 100


def get_marketplace_service(session: SessionDep) -> MarketplaceService:
    return MarketplaceService(session)


MarketplaceServiceDep = Annotated[MarketplaceService, Depends(get_marketplace_service)]


# =====================================================================
# Sellers
# =====================================================================


@router.post("/marketplace/seller/onboard", response_model=SellerProfileRead, summary="Seller Onboarding")
async def onboard_seller(payload: SellerOnboard, user: CurrentUser, service: MarketplaceServiceDep) -> SellerProfile:
    """
    Create or update the caller's seller profile.

    PayPal payouts need a PayPal email. The profile is marked as onboarded.
    """
    return await service.onboard(user, payload)


@router.get("/marketplace/seller/profile", response_model=SellerProfileRead, summary="Seller Profile")
async def seller_profile(user: CurrentUser, service: MarketplaceServiceDep) -> SellerProfile:
    return await service.get_profile(user.id)


@router.get("/marketplace/seller/next-payout", response_model=NextPayout, summary="Next Payout")
async def seller_next_payout(user: CurrentUser, session: SessionDep) -> NextPayout:
    upcoming = await next_payout_for_seller(session, user.id)
    if upcoming is None:
        return NextPayout(date=None, amount=0)
    return NextPayout(date=upcoming["date"], amount=upcoming["amount"])


# =====================================================================
# Listings
# =====================================================================


@router.post(
    "/marketplace/listings",
    response_model=ListingRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Listing",
)
async def create_listing(payload: ListingCreate, user: CurrentUser, service: MarketplaceServiceDep) -> MarketplaceListing:
    return await service.create_listing(user, payload)


@router.get("/marketplace/listings", response_model=List[ListingRead], summary="Search Listings")
async def search_listings(
    service: MarketplaceServiceDep,
    category: Optional[str] = None,
    search: Optional[str] = None,
    min_price: Optional[int] = Query(default=None, alias="minPrice", ge=0),
    max_price: Optional[int] = Query(default=None, alias="maxPrice", ge=0),
    seller_id: Optional[str] = Query(default=None, alias="sellerId"),
    sort: Literal["newest", "price_asc", "price_desc", "popular"] = "newest",
    limit: int = Query(default=20, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(default=0, ge=0),
) -> List[MarketplaceListing]:
    return await service.search_listings(
        category=category,
        search=search,
        min_price=min_price,
        max_price=max_price,
        seller_id=seller_id,
        sort=sort,
        limit=limit,
        offset=offset,
    )


@router.get("/marketplace/listings/{listing_id}", response_model=ListingDetail, summary="Get Listing")
async def get_listing(listing_id: str, service: MarketplaceServiceDep) -> ListingDetail:
    listing = await service.get_listing(listing_id)
    detail = ListingDetail.model_validate(listing)
    detail.preview = await service.preview(listing)
    return detail


@router.put("/marketplace/listings/{listing_id}", response_model=ListingRead, summary="Update Listing")
async def update_listing(
    listing_id: str, payload: ListingUpdate, user: CurrentUser, service: MarketplaceServiceDep
) -> MarketplaceListing:
    return await service.update_listing(user, listing_id, payload)


@router.delete("/marketplace/listings/{listing_id}", response_model=ListingRead, summary="Remove Listing")
async def remove_listing(listing_id: str, user: CurrentUser, service: MarketplaceServiceDep) -> MarketplaceListing:
    return await service.remove_listing(user, listing_id)


# =====================================================================
# Orders
# =====================================================================


@router.post(
    "/marketplace/orders",
    response_model=OrderRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Order",
)
async def create_order(payload: OrderCreate, user: CurrentUser, service: MarketplaceServiceDep) -> MarketplaceOrder:
    """
    Buy a listing.

    Credit purchases are settled at once; stripe and paypal orders are created
    pending with the listing's price.
    """
    return await service.create_order(user, payload)


@router.post("/marketplace/orders/{order_id}/complete", response_model=OrderRead, summary="Complete Order")
async def complete_order(
    order_id: str,
    service: MarketplaceServiceDep,
    payload: Optional[OrderComplete] = None,
    _admin: User = Depends(require_super_admin),
) -> MarketplaceOrder:
    payment_reference = payload.payment_reference if payload is not None else None
    return await service.complete_order(order_id, payment_reference)


@router.get("/marketplace/orders", response_model=List[OrderRead], summary="List Orders")
async def list_orders(
    user: CurrentUser,
    service: MarketplaceServiceDep,
    role: Literal["buyer", "seller"] = "buyer",
) -> List[MarketplaceOrder]:
    return await service.list_orders(user, role)


@router.get("/marketplace/orders/{order_id}", response_model=OrderDetail, summary="Get Order")
async def get_order(order_id: str, user: CurrentUser, service: MarketplaceServiceDep) -> OrderDetail:
    order = await service.get_order(user, order_id)
    detail = OrderDetail.model_validate(order)
    detail.prompt_content = await service.delivered_content(user, order)
    return detail
