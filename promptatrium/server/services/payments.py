"""
Order settlement and refunds.

Completing a paid order writes two ledger rows inside one transaction: a
``purchase`` row (buyer to seller, carrying the commission and the seller's
net amount) and a ``commission`` row (seller to the platform). The purchase
row is what the payout scheduler later sums per seller.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from promptatrium.core.database import utc_now
from promptatrium.core.database.entities import MarketplaceOrder, SellerProfile, TransactionLedger
from promptatrium.core.database.repositories import (
    LedgerRepository,
    ListingRepository,
    OrderRepository,
    PlatformSettingRepository,
    SellerProfileRepository,
)
from promptatrium.core.errors import NotFoundError, ValidationError
from promptatrium.core.logging_config import get_logger
from promptatrium.core.models.domain import LedgerEntryStatus, LedgerEntryType, OrderStatus, PaymentMethod

from .credits import CreditService

logger = get_logger(__name__)

DEFAULT_COMMISSION_RATE = 15


async def resolve_commission_rate(session: AsyncSession, seller: Optional[SellerProfile]) -> int:
    """Seller override, else the platform setting, else 15 percent."""
    if seller is not None and seller.commission_rate is not None:
        return seller.commission_rate
    value = await PlatformSettingRepository(session).get_value("default_commission_rate", DEFAULT_COMMISSION_RATE)
    return int(value)


def split_commission(total: int, rate: int) -> tuple[int, int]:
    """Return (commission, net) for a total; the commission is rounded down."""
    commission = total * rate // 100
    return commission, total - commission


class PaymentService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.orders = OrderRepository(session)
        self.sellers = SellerProfileRepository(session)
        self.listings = ListingRepository(session)
        self.ledger = LedgerRepository(session)

    async def _get_order(self, order_id: str) -> MarketplaceOrder:
        order = await self.orders.get_by_id(order_id)
        if order is None:
            raise NotFoundError("Order")
        return order

    async def process_order_completion(self, order_id: str, payment_reference: Optional[str] = None) -> Dict[str, Any]:
        """Settle a paid order and record it in the ledger.

        Only pending orders are settled. A completed or disputed order was
        already settled, so completing it again is a no-op that still reports
        success.

        Args:
            order_id: Order to settle
            payment_reference: Provider payment id, kept on the order and ledger rows

        Returns:
            ``{"success", "order_id", "transaction_ids"}``

        Raises:
            NotFoundError: the order or the seller profile does not exist.
            ValidationError: the order was refunded or cancelled.
        """
        order = await self._get_order(order_id)
        result: Dict[str, Any] = {"success": True, "order_id": order.id, "transaction_ids": []}
        if order.status in (OrderStatus.completed.value, OrderStatus.disputed.value):
            logger.info(f"Order {order.order_number} already settled ({order.status})")
            return result
        if order.status != OrderStatus.pending.value:
            raise ValidationError(f"Cannot complete a {order.status} order")

        seller = await self.sellers.get_by_user(order.seller_id)
        if seller is None:
            raise NotFoundError("Seller profile")

        total = order.amount_cents or 0
        rate = await resolve_commission_rate(self.session, seller)
        commission, net = split_commission(total, rate)
        now = utc_now()

        try:
            purchase = await self.ledger.create(
                TransactionLedger(
                    order_id=order.id,
                    type=LedgerEntryType.purchase.value,
                    status=LedgerEntryStatus.completed.value,
                    from_user_id=order.buyer_id,
                    to_user_id=order.seller_id,
                    amount_cents=total,
                    commission_cents=commission,
                    net_amount_cents=net,
                    payment_method=order.payment_method,
                    external_reference=payment_reference,
                    description=f"Purchase of order {order.order_number}",
                    details={"commissionRate": rate},
                    processed_at=now,
                    completed_at=now,
                ),
                commit=False,
            )
            fee = await self.ledger.create(
                TransactionLedger(
                    order_id=order.id,
                    type=LedgerEntryType.commission.value,
                    status=LedgerEntryStatus.completed.value,
                    from_user_id=order.seller_id,
                    to_user_id=None,
                    amount_cents=commission,
                    payment_method=order.payment_method,
                    description=f"Platform commission ({rate}%) for order {order.order_number}",
                    processed_at=now,
                    completed_at=now,
                ),
                commit=False,
            )

            order.status = OrderStatus.completed.value
            order.delivered_at = now
            order.platform_fee_cents = commission
            order.seller_payout_cents = net
            if payment_reference:
                order.payment_reference = payment_reference
            await self.orders.update(order, commit=False)

            seller.total_sales += 1
            seller.total_revenue_cents += net
            await self.sellers.update(seller, commit=False)

            listing = await self.listings.get_by_id(order.listing_id)
            if listing is not None:
                listing.sales_count += 1
                await self.listings.update(listing, commit=False)

            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        result["transaction_ids"] = [purchase.id, fee.id]
        logger.info(f"Order {order.order_number} completed: total={total} commission={commission} net={net}")
        return result

    async def process_refund(
        self,
        order_id: str,
        refund_amount_cents: Optional[int] = None,
        reason: Optional[str] = None,
        credit_refund_amount: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Refund an order to its buyer.

        Money orders get a ``refund`` ledger row from seller to buyer; credit
        orders are paid back into the buyer's wallet. Defaults refund the full
        order amount.

        Raises:
            NotFoundError: the order does not exist.
            ValidationError: the order was already refunded.
        """
        order = await self._get_order(order_id)
        if order.status == OrderStatus.refunded.value:
            raise ValidationError("Order already refunded")

        transaction_ids: List[str] = []
        description = reason or f"Refund for order {order.order_number}"
        revenue_delta = 0
        credits_delta = 0
        now = utc_now()

        try:
            if order.payment_method == PaymentMethod.credits.value:
                credits_delta = credit_refund_amount or order.credit_amount or 0
                if credits_delta > 0:
                    transaction = await CreditService(self.session).refund_credits(
                        order.buyer_id,
                        credits_delta,
                        source="marketplace_refund",
                        description=description,
                        reference_id=order.id,
                        reference_type="order",
                        commit=False,
                    )
                    transaction_ids.append(transaction.id)
            else:
                revenue_delta = refund_amount_cents or order.amount_cents or 0
                if revenue_delta > 0:
                    refund = await self.ledger.create(
                        TransactionLedger(
                            order_id=order.id,
                            type=LedgerEntryType.refund.value,
                            status=LedgerEntryStatus.completed.value,
                            from_user_id=order.seller_id,
                            to_user_id=order.buyer_id,
                            amount_cents=revenue_delta,
                            payment_method=order.payment_method,
                            external_reference=order.payment_reference,
                            description=description,
                            processed_at=now,
                            completed_at=now,
                        ),
                        commit=False,
                    )
                    transaction_ids.append(refund.id)

            order.status = OrderStatus.refunded.value
            await self.orders.update(order, commit=False)

            seller = await self.sellers.get_by_user(order.seller_id)
            if seller is not None:
                seller.total_sales = max(0, seller.total_sales - 1)
                seller.total_revenue_cents = max(0, seller.total_revenue_cents - revenue_delta)
                seller.total_credits_earned = max(0, seller.total_credits_earned - credits_delta)
                await self.sellers.update(seller, commit=False)

            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info(f"Order {order.order_number} refunded ({order.payment_method})")
        return {"success": True, "order_id": order.id, "transaction_ids": transaction_ids}
