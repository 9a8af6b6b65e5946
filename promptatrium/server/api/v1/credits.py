"""
Credit Wallet Endpoints.
"""

from typing import Annotated, List

from fastapi import APIRouter, Depends, Query

from promptatrium.core.database.entities import CreditTransaction, User, UserCredits
from promptatrium.core.database.repositories import UserRepository
from promptatrium.core.errors import NotFoundError
from promptatrium.core.models.io.credits import CreditBalance, CreditGrant, CreditTransactionRead
from promptatrium.server.services.credits import CreditService
from promptatrium.server.services.deps import CurrentUserId, SessionDep
from promptatrium.server.services.permissions import require_super_admin

router = APIRouter()


def get_credit_service(session: SessionDep) -> CreditService:
    return CreditService(session)


CreditServiceDep = Annotated[CreditService, Depends(get_credit_service)]


@router.get("/credits/balance", response_model=CreditBalance, summary="Credit Balance")
async def credit_balance(user_id: CurrentUserId, service: CreditServiceDep) -> UserCredits:
    return await service.get_balance(user_id)


@router.get("/credits/history", response_model=List[CreditTransactionRead], summary="Credit History")
async def credit_history(
    user_id: CurrentUserId,
    service: CreditServiceDep,
    limit: int = Query(default=50, ge=1, le=200),
) -> List[CreditTransaction]:
    return await service.history(user_id, limit=limit)


@router.post("/admin/credits/grant", response_model=CreditTransactionRead, summary="Grant Credits")
async def grant_credits(
    payload: CreditGrant,
    session: SessionDep,
    service: CreditServiceDep,
    _admin: User = Depends(require_super_admin),
) -> CreditTransaction:
    if await UserRepository(session).get_by_id(payload.user_id) is None:
        raise NotFoundError("User")
    return await service.add_credits(payload.user_id, payload.amount, "admin_grant", description=payload.description)
