"""
Marketplace dispute workflow.

A buyer or seller may open one dispute per completed order. Disputes move
through ``open -> in_progress -> resolved -> closed``; only the transitions
in ``ALLOWED_TRANSITIONS`` are accepted.
"""

from __future__ import annotations

from typing import Dict, FrozenSet, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from promptatrium.core.database import utc_now
from promptatrium.core.database.entities import DisputeMessage, MarketplaceDispute, MarketplaceOrder, User
from promptatrium.core.database.repositories import DisputeMessageRepository, DisputeRepository, OrderRepository
from promptatrium.core.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from promptatrium.core.logging_config import get_logger
from promptatrium.core.models.domain import DisputeInitiator, DisputeStatus, NotificationType, OrderStatus
from promptatrium.core.models.io.disputes import DisputeCreate, DisputeMessageCreate, DisputeStatusUpdate

from .notifications import NotificationService
from .payments import PaymentService
from .permissions import is_super_admin

logger = get_logger(__name__)

ALLOWED_TRANSITIONS: Dict[DisputeStatus, FrozenSet[DisputeStatus]] = {
    DisputeStatus.open: frozenset({DisputeStatus.in_progress, DisputeStatus.resolved, DisputeStatus.closed}),
    DisputeStatus.in_progress: frozenset({DisputeStatus.resolved, DisputeStatus.closed}),
    DisputeStatus.resolved: frozenset({DisputeStatus.closed}),
    DisputeStatus.closed: frozenset(),
}


def check_transition(current: str, target: DisputeStatus) -> None:
    if target not in ALLOWED_TRANSITIONS[DisputeStatus(current)]:
        raise ValidationError(f"Invalid status transition from {current} to {target.value}")


class DisputeService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.disputes = DisputeRepository(session)
        self.messages = DisputeMessageRepository(session)
        self.orders = OrderRepository(session)
        self.notifications = NotificationService(session)

    async def open_dispute(self, user: User, payload: DisputeCreate) -> MarketplaceDispute:
        """Open a dispute on a completed order.

        Raises:
            NotFoundError: the order does not exist.
            AuthorizationError: the caller is neither buyer nor seller.
            ValidationError: the order is not completed.
            ConflictError: the order already has a dispute.
        """
        order = await self.orders.get_by_id(payload.order_id)
        if order is None:
            raise NotFoundError("Order")
        if not order.is_party(user.id):
            raise AuthorizationError("Only the buyer or seller can open a dispute")
        if order.status != OrderStatus.completed.value:
            raise ValidationError("Disputes can only be opened for completed orders")
        if await self.disputes.get_by_order(order.id) is not None:
            raise ConflictError("A dispute already exists for this order")

        is_buyer = order.buyer_id == user.id
        dispute = MarketplaceDispute(
            order_id=order.id,
            initiated_by=(DisputeInitiator.buyer if is_buyer else DisputeInitiator.seller).value,
            initiator_id=user.id,
            respondent_id=order.seller_id if is_buyer else order.buyer_id,
            reason=payload.reason,
            description=payload.description,
        )
        await self.disputes.create(dispute, commit=False)
        order.status = OrderStatus.disputed.value
        await self.orders.update(order, commit=False)
        await self.notifications.notify(
            dispute.respondent_id,
            NotificationType.dispute,
            f"A dispute was opened on order {order.order_number}: {payload.reason}",
            related_user_id=user.id,
            details={"disputeId": dispute.id, "orderId": order.id},
            commit=False,
        )
        await self.session.commit()
        await self.session.refresh(dispute)
        logger.info(f"Dispute {dispute.id} opened on order {order.order_number} by {dispute.initiated_by}")
        return dispute

    async def list_disputes(self, user: User, status: Optional[DisputeStatus] = None) -> List[MarketplaceDispute]:
        user_id = None if is_super_admin(user) else user.id
        return await self.disputes.list_disputes(user_id=user_id, status=status.value if status else None)

    async def get_dispute(self, user: User, dispute_id: str) -> MarketplaceDispute:
        dispute = await self.disputes.get_by_id(dispute_id)
        if dispute is None:
            raise NotFoundError("Dispute")
        if not dispute.is_party(user.id) and not is_super_admin(user):
            raise AuthorizationError("Access denied to this dispute")
        return dispute

    async def list_messages(self, dispute_id: str) -> List[DisputeMessage]:
        return await self.messages.list_for_dispute(dispute_id)

    async def post_message(self, user: User, dispute_id: str, payload: DisputeMessageCreate) -> DisputeMessage:
        dispute = await self.get_dispute(user, dispute_id)
        if dispute.status == DisputeStatus.closed.value:
            raise ValidationError("Cannot post messages to a closed dispute")

        message = DisputeMessage(
            dispute_id=dispute.id,
            sender_id=user.id,
            message=payload.message,
            is_admin_message=not dispute.is_party(user.id) and is_super_admin(user),
            attachments=payload.attachments,
        )
        await self.messages.create(message, commit=False)
        dispute.last_responded_at = utc_now()
        await self.disputes.update(dispute, commit=False)

        recipients = [uid for uid in (dispute.initiator_id, dispute.respondent_id) if uid != user.id]
        for recipient in recipients:
            await self.notifications.notify(
                recipient,
                NotificationType.dispute,
                f"New message on dispute: {dispute.reason}",
                related_user_id=user.id,
                details={"disputeId": dispute.id},
                commit=False,
            )
        await self.session.commit()
        await self.session.refresh(message)
        return message

    async def _restore_order(self, order: Optional[MarketplaceOrder]) -> None:
        if order is not None and order.status == OrderStatus.disputed.value:
            order.status = OrderStatus.completed.value
            await self.orders.update(order, commit=False)

    async def update_status(self, admin: User, dispute_id: str, payload: DisputeStatusUpdate) -> MarketplaceDispute:
        """Move a dispute to a new status, refunding the order when amounts are given."""
        dispute = await self.get_dispute(admin, dispute_id)
        check_transition(dispute.status, payload.status)
        if payload.status == DisputeStatus.resolved and not payload.resolution:
            raise ValidationError("A resolution is required to resolve a dispute")

        now = utc_now()
        dispute.status = payload.status.value
        if payload.resolution is not None:
            dispute.resolution = payload.resolution
        if payload.status == DisputeStatus.in_progress:
            dispute.escalated_at = now
        if payload.status == DisputeStatus.resolved:
            dispute.resolved_at = now

        refund_requested = payload.refund_amount_cents is not None or payload.credit_refund_amount is not None
        if refund_requested:
            dispute.refund_amount_cents = payload.refund_amount_cents
            dispute.credit_refund_amount = payload.credit_refund_amount
        await self.disputes.update(dispute, commit=False)

        if refund_requested:
            # process_refund commits the dispute changes with the refund.
            await PaymentService(self.session).process_refund(
                dispute.order_id,
                refund_amount_cents=payload.refund_amount_cents,
                reason=payload.resolution or f"Dispute refund: {dispute.reason}",
                credit_refund_amount=payload.credit_refund_amount,
            )
        else:
            if payload.status in (DisputeStatus.resolved, DisputeStatus.closed):
                await self._restore_order(await self.orders.get_by_id(dispute.order_id))
            await self.session.commit()

        await self.session.refresh(dispute)
        for party in (dispute.initiator_id, dispute.respondent_id):
            await self.notifications.notify(
                party,
                NotificationType.dispute,
                f"Dispute status changed to {dispute.status}",
                details={"disputeId": dispute.id},
            )
        logger.info(f"Dispute {dispute.id} moved to {dispute.status} by {admin.id}")
        return dispute

    async def escalate(self, user: User, dispute_id: str) -> MarketplaceDispute:
        dispute = await self.get_dispute(user, dispute_id)
        if not dispute.is_party(user.id):
            raise AuthorizationError("Only the parties of a dispute can escalate it")
        if dispute.status != DisputeStatus.open.value:
            raise ValidationError("Only open disputes can be escalated")
        dispute.status = DisputeStatus.in_progress.value
        dispute.escalated_at = utc_now()
        return await self.disputes.update(dispute)
