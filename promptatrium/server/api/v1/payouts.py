"""
Payout Administration Endpoints.

Super admins tune the payout settings, trigger a payout run by hand and
inspect the resulting batches with their ledger rows.
"""

from typing import Annotated, List

from fastapi import APIRouter, Depends, Query

from promptatrium.core.database.entities import PayoutBatch, User
from promptatrium.core.database.repositories import LedgerRepository, PayoutBatchRepository
from promptatrium.core.errors import NotFoundError
from promptatrium.core.logging_config import get_logger
from promptatrium.core.models.io.payouts import (
    LedgerEntryRead,
    PayoutBatchDetail,
    PayoutBatchRead,
    PayoutSettingsRead,
    PayoutSettingsUpdate,
)
from promptatrium.server.services.deps import SessionDep
from promptatrium.server.services.payouts import (
    PayoutScheduler,
    get_payout_scheduler,
    load_payout_settings,
    save_payout_settings,
)
from promptatrium.server.services.permissions import require_super_admin

logger = get_logger(__name__)

router = APIRouter()

PayoutSchedulerDep = Annotated[PayoutScheduler, Depends(get_payout_scheduler)]


@router.get("/admin/payouts/settings", response_model=PayoutSettingsRead, summary="Payout Settings")
async def get_payout_settings(session: SessionDep, _admin: User = Depends(require_super_admin)) -> PayoutSettingsRead:
    return PayoutSettingsRead(**await load_payout_settings(session))


@router.put("/admin/payouts/settings", response_model=PayoutSettingsRead, summary="Update Payout Settings")
async def update_payout_settings(
    payload: PayoutSettingsUpdate, session: SessionDep, admin: User = Depends(require_super_admin)
) -> PayoutSettingsRead:
    config = await save_payout_settings(session, payload)
    logger.info(f"Payout settings updated by {admin.id}")
    return PayoutSettingsRead(**config)


@router.post(
    "/admin/payouts/run",
    summary="Run Payouts",
    description="Process pending seller payouts now, even when automatic payouts are disabled.",
)
async def run_payouts(scheduler: PayoutSchedulerDep, admin: User = Depends(require_super_admin)):
    logger.info(f"Manual payout run requested by {admin.id}")
    return await scheduler.process_scheduled_payouts(force=True)


@router.get("/admin/payouts/batches", response_model=List[PayoutBatchRead], summary="List Payout Batches")
async def list_batches(
    session: SessionDep,
    limit: int = Query(default=50, ge=1, le=200),
    _admin: User = Depends(require_super_admin),
) -> List[PayoutBatch]:
    return await PayoutBatchRepository(session).list_recent(limit=limit)


@router.get("/admin/payouts/batches/{batch_id}", response_model=PayoutBatchDetail, summary="Get Payout Batch")
async def get_batch(
    batch_id: str, session: SessionDep, _admin: User = Depends(require_super_admin)
) -> PayoutBatchDetail:
    batch = await PayoutBatchRepository(session).get_by_id(batch_id)
    if batch is None:
        raise NotFoundError("Payout batch")
    detail = PayoutBatchDetail.model_validate(batch)
    detail.transactions = [
        LedgerEntryRead.model_validate(entry) for entry in await LedgerRepository(session).list_for_batch(batch.id)
    ]
    return detail
