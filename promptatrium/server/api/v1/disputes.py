"""
Marketplace Dispute Endpoints.
"""

from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Query, status

from promptatrium.core.database.entities import DisputeMessage, MarketplaceDispute, User
from promptatrium.core.models.domain import DisputeStatus
from promptatrium.core.models.io.disputes import (
    DisputeCreate,
    DisputeDetail,
    DisputeMessageCreate,
    DisputeMessageRead,
    DisputeRead,
    DisputeStatusUpdate,
)
from promptatrium.server.services.deps import CurrentUser, SessionDep
from promptatrium.server.services.disputes import DisputeService
from promptatrium.server.services.permissions import require_super_admin

router = APIRouter()


def get_dispute_service(session: SessionDep) -> DisputeService:
    return DisputeService(session)


DisputeServiceDep = Annotated[DisputeService, Depends(get_dispute_service)]


@router.post(
    "/marketplace/disputes",
    response_model=DisputeRead,
    status_code=status.HTTP_201_CREATED,
    summary="Open Dispute",
)
async def open_dispute(payload: DisputeCreate, user: CurrentUser, service: DisputeServiceDep) -> MarketplaceDispute:
    """
    Open a dispute on a completed order.

    Only the buyer or the seller of the order may open it, and each order can
    carry a single dispute. The other party is notified.
    """
    return await service.open_dispute(user, payload)


@router.get("/marketplace/disputes", response_model=List[DisputeRead], summary="List Disputes")
async def list_disputes(
    user: CurrentUser,
    service: DisputeServiceDep,
    status_: Optional[DisputeStatus] = Query(default=None, alias="status"),
) -> List[MarketplaceDispute]:
    return await service.list_disputes(user, status_)


@router.get("/marketplace/disputes/{dispute_id}", response_model=DisputeDetail, summary="Get Dispute")
async def get_dispute(dispute_id: str, user: CurrentUser, service: DisputeServiceDep) -> DisputeDetail:
    dispute = await service.get_dispute(user, dispute_id)
    detail = DisputeDetail.model_validate(dispute)
    detail.messages = [
        DisputeMessageRead.model_validate(message) for message in await service.list_messages(dispute.id)
    ]
    return detail


@router.post(
    "/marketplace/disputes/{dispute_id}/messages",
    response_model=DisputeMessageRead,
    status_code=status.HTTP_201_CREATED,
    summary="Post Dispute Message",
)
async def post_message(
    dispute_id: str, payload: DisputeMessageCreate, user: CurrentUser, service: DisputeServiceDep
) -> DisputeMessage:
    return await service.post_message(user, dispute_id, payload)


@router.patch("/marketplace/disputes/{dispute_id}/status", response_model=DisputeRead, summary="Update Dispute Status")
async def update_status(
    dispute_id: str,
    payload: DisputeStatusUpdate,
    service: DisputeServiceDep,
    admin: User = Depends(require_super_admin),
) -> MarketplaceDispute:
    """
    Move a dispute through its lifecycle.

    Resolving needs a resolution text. Refund amounts refund the order; without
    them a disputed order returns to completed once the dispute is resolved or
    closed.
    """
    return await service.update_status(admin, dispute_id, payload)


@router.post("/marketplace/disputes/{dispute_id}/escalate", response_model=DisputeRead, summary="Escalate Dispute")
async def escalate_dispute(dispute_id: str, user: CurrentUser, service: DisputeServiceDep) -> MarketplaceDispute:
    return await service.escalate(user, dispute_id)
