"""
Seller payout scheduling.

Completed purchases accumulate in the transaction ledger. On every run the
scheduler collects, per payment method, the purchase rows older than the
payout delay that are not yet attached to a batch, sums each seller's net
earnings and pays out every seller above the minimum through the method's
``PayoutGateway``.

Payout behaviour is controlled by platform settings (``PAYOUT_SETTING_DEFAULTS``)
which admins edit at runtime.
"""

from __future__ import annotations

import asyncio
import contextlib
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from promptatrium.core.database import async_session_maker, utc_now
from promptatrium.core.database.entities import PayoutBatch, SellerProfile, TransactionLedger
from promptatrium.core.database.repositories import (
    LedgerRepository,
    PayoutBatchRepository,
    PlatformSettingRepository,
    SellerProfileRepository,
)
from promptatrium.core.errors import ExternalServiceError
from promptatrium.core.logging_config import get_logger
from promptatrium.core.models.domain import (
    LedgerEntryStatus,
    LedgerEntryType,
    PaymentMethod,
    PayoutBatchStatus,
    PayoutFrequency,
)
from promptatrium.core.models.io.payouts import PayoutSettingsUpdate
from promptatrium.core.monitoring import log_payout_event

from .payout_gateways import (
    GatewaySubmission,
    PayoutGateway,
    PayoutItem,
    UnconfiguredPayoutGateway,
    default_gateways,
)

logger = get_logger(__name__)

PAYOUT_SETTING_DEFAULTS: Dict[str, Any] = {
    "payout_frequency": PayoutFrequency.weekly.value,
    "enable_auto_payouts": False,
    "payout_delay_days": 7,
    "min_payout_amount_cents": 1000,
    "default_commission_rate": 15,
}

PAYOUT_SETTING_DESCRIPTIONS = {
    "payout_frequency": "How often automatic payouts run (daily, weekly, biweekly, monthly)",
    "enable_auto_payouts": "Whether the scheduler pays sellers automatically",
    "payout_delay_days": "Days a purchase must age before it is paid out",
    "min_payout_amount_cents": "Smallest seller balance that is paid out",
    "default_commission_rate": "Platform commission percentage for sellers without an override",
}

PAYOUT_INTERVALS = {
    PayoutFrequency.daily.value: timedelta(days=1),
    PayoutFrequency.weekly.value: timedelta(days=7),
    PayoutFrequency.biweekly.value: timedelta(days=14),
    PayoutFrequency.monthly.value: timedelta(days=30),
}

# Methods are processed in this order on every run.
PAYOUT_METHODS = (PaymentMethod.stripe.value, PaymentMethod.paypal.value)

EPOCH = datetime(1970, 1, 1)


# =====================================================================
# Settings
# =====================================================================


def _coerce_setting(key: str, value: Any) -> Any:
    default = PAYOUT_SETTING_DEFAULTS[key]
    if isinstance(default, bool):
        return value if isinstance(value, bool) else str(value).lower() == "true"
    if isinstance(default, int):
        try:
            return int(value)
        except (TypeError, ValueError):
            logger.warning(f"Invalid value {value!r} for platform setting {key}, using {default}")
            return default
    return str(value)


async def load_payout_settings(session: AsyncSession) -> Dict[str, Any]:
    repo = PlatformSettingRepository(session)
    return {
        key: _coerce_setting(key, await repo.get_value(key, default)) for key, default in PAYOUT_SETTING_DEFAULTS.items()
    }


async def save_payout_settings(session: AsyncSession, payload: PayoutSettingsUpdate) -> Dict[str, Any]:
    repo = PlatformSettingRepository(session)
    for key, value in payload.model_dump(mode="json", exclude_none=True).items():
        await repo.set_value(key, value, description=PAYOUT_SETTING_DESCRIPTIONS[key], commit=False)
    await session.commit()
    return await load_payout_settings(session)


# =====================================================================
# Schedule arithmetic
# =====================================================================


def get_interval(frequency: str) -> timedelta:
    """Run interval for a payout frequency; unknown values behave as weekly."""
    return PAYOUT_INTERVALS.get(frequency, PAYOUT_INTERVALS[PayoutFrequency.weekly.value])


def next_payout_date(frequency: str, now: datetime) -> datetime:
    """Date of the next scheduled payout after ``now``.

    Weekly payouts land on the next Monday (never today); biweekly ones on the
    Monday of an odd fortnight counted from the epoch.
    """
    if frequency == PayoutFrequency.daily.value:
        return now + timedelta(days=1)
    if frequency == PayoutFrequency.monthly.value:
        if now.month == 12:
            return now.replace(year=now.year + 1, month=1, day=1)
        return now.replace(month=now.month + 1, day=1)

    days_until_monday = (7 - now.weekday()) % 7 or 7
    date = now + timedelta(days=days_until_monday)
    if frequency == PayoutFrequency.biweekly.value and ((now - EPOCH) // timedelta(days=14)) % 2 == 0:
        date += timedelta(days=7)
    return date


def batch_number_for(method: str, now: datetime) -> str:
    millis = (now - EPOCH) // timedelta(milliseconds=1)
    return f"BATCH-{millis}-{method.upper()}"


async def next_payout_for_seller(
    session: AsyncSession, seller_id: str, now: Optional[datetime] = None
) -> Optional[Dict[str, Any]]:
    """Next payout date and the amount that will be paid on it.

    Returns:
        ``{"date", "amount"}``, or None when nothing is pending for the seller.
    """
    now = now or utc_now()
    config = await load_payout_settings(session)
    date = next_payout_date(config["payout_frequency"], now)
    cutoff = date - timedelta(days=config["payout_delay_days"])
    amount = await LedgerRepository(session).pending_amount(seller_id, cutoff)
    if amount <= 0:
        return None
    return {"date": date, "amount": amount}


def _receiver_for(profile: Optional[SellerProfile], method: str) -> Optional[str]:
    if profile is None:
        return None
    if method == PaymentMethod.paypal.value:
        return profile.paypal_email
    return profile.stripe_account_id


def _missing_receiver_reason(method: str) -> str:
    if method == PaymentMethod.paypal.value:
        return "Seller PayPal email not found"
    return "Seller Stripe account not found"


# =====================================================================
# Scheduler
# =====================================================================


class PayoutScheduler:
    """Runs payout batches on demand or on a background asyncio loop.

    Args:
        session_factory: Opens the sessions used by each run.
        gateways: Gateway per payment method; built from settings on every run when omitted.
    """

    def __init__(
        self,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
        gateways: Optional[Dict[str, PayoutGateway]] = None,
    ) -> None:
        self.session_factory = session_factory or async_session_maker
        self._gateways = gateways
        self.is_processing = False
        self._task: Optional[asyncio.Task] = None

    get_interval = staticmethod(get_interval)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def process_scheduled_payouts(self, now: Optional[datetime] = None, force: bool = False) -> Dict[str, Any]:
        """Run one payout cycle for every payment method.

        Args:
            now: Reference time, defaults to the current UTC time.
            force: Run even when automatic payouts are disabled.

        Returns:
            ``{"skipped": True}`` when a run is already in progress; otherwise
            the cutoff used and one summary (or None) per payment method.
        """
        if self.is_processing:
            logger.info("Payout processing already in progress, skipping this run")
            return {"skipped": True}

        self.is_processing = True
        gateways = self._gateways if self._gateways is not None else default_gateways()
        try:
            now = now or utc_now()
            async with self.session_factory() as session:
                config = await load_payout_settings(session)
                if not config["enable_auto_payouts"] and not force:
                    logger.info("Automatic payouts are disabled")
                    return {"skipped": False, "enabled": False}

                cutoff = now - timedelta(days=config["payout_delay_days"])
                result: Dict[str, Any] = {"skipped": False, "enabled": config["enable_auto_payouts"], "cutoff": cutoff}
                for method in PAYOUT_METHODS:
                    gateway = gateways.get(method) or UnconfiguredPayoutGateway(method)
                    result[method] = await self._process_method(
                        session, method, gateway, cutoff, config["min_payout_amount_cents"], now
                    )
                return result
        finally:
            self.is_processing = False
            if self._gateways is None:
                for gateway in gateways.values():
                    aclose = getattr(gateway, "aclose", None)
                    if aclose is not None:
                        await aclose()

    async def _process_method(
        self,
        session: AsyncSession,
        method: str,
        gateway: PayoutGateway,
        cutoff: datetime,
        minimum: int,
        now: datetime,
    ) -> Optional[Dict[str, Any]]:
        ledger = LedgerRepository(session)
        batches = PayoutBatchRepository(session)
        sellers = SellerProfileRepository(session)

        payouts = [p for p in await ledger.eligible_payouts(method, cutoff) if p["amount_cents"] >= minimum]
        if not payouts:
            logger.debug(f"No {method} payouts due for cutoff {cutoff.isoformat()}")
            return None

        batch = PayoutBatch(
            batch_number=batch_number_for(method, now),
            payout_method=method,
            status=PayoutBatchStatus.processing.value,
            total_amount_cents=sum(p["amount_cents"] for p in payouts),
            total_payouts=len(payouts),
            details={"scheduled": True, "cutoffDate": cutoff.isoformat()},
            processed_at=now,
        )
        await batches.create(batch, commit=False)
        for payout in payouts:
            await ledger.link_to_batch(payout["transaction_ids"], batch.id)

        items: List[PayoutItem] = []
        failures: Dict[str, str] = {}
        for payout in payouts:
            receiver = _receiver_for(await sellers.get_by_user(payout["seller_id"]), method)
            if not receiver:
                failures[payout["seller_id"]] = _missing_receiver_reason(method)
                continue
            items.append(
                PayoutItem(
                    seller_id=payout["seller_id"],
                    receiver=receiver,
                    amount_cents=payout["amount_cents"],
                    transaction_ids=payout["transaction_ids"],
                )
            )

        if not gateway.is_configured:
            return await self._park_for_manual_processing(session, batch, payouts, items)

        submission = GatewaySubmission()
        if items:
            try:
                submission = await gateway.submit(batch.batch_number, items)
            except Exception as e:
                reason = e.metadata["reason"] if isinstance(e, ExternalServiceError) else str(e)
                logger.error(f"{method} payout submission for batch {batch.batch_number} failed: {reason}", exc_info=True)
                submission = GatewaySubmission(failures={item.seller_id: reason for item in items})
        failures.update(submission.failures)

        paid_cents = 0
        successful = 0
        for item in items:
            if item.seller_id in failures:
                continue
            await ledger.create(
                TransactionLedger(
                    type=LedgerEntryType.payout.value,
                    status=LedgerEntryStatus.processing.value,
                    to_user_id=item.seller_id,
                    amount_cents=item.amount_cents,
                    net_amount_cents=item.amount_cents,
                    payment_method=method,
                    payout_batch_id=batch.id,
                    external_reference=submission.reference,
                    description=f"Payout {batch.batch_number}",
                    details={"sourceTransactionIds": item.transaction_ids},
                    processed_at=now,
                ),
                commit=False,
            )
            successful += 1
            paid_cents += item.amount_cents

        errors: List[str] = []
        for payout in payouts:
            reason = failures.get(payout["seller_id"])
            if reason is None:
                continue
            errors.append(f"{payout['seller_id']}: {reason}")
            await ledger.set_status(payout["transaction_ids"], LedgerEntryStatus.failed.value, failure_reason=reason)

        batch.successful_payouts = successful
        batch.failed_payouts = len(errors)
        batch.error_log = errors
        if submission.reference:
            batch.details = {**batch.details, "gatewayReference": submission.reference}
            if method == PaymentMethod.paypal.value:
                batch.paypal_batch_id = submission.reference

        if successful == 0:
            batch.status = PayoutBatchStatus.failed.value
        elif method == PaymentMethod.paypal.value:
            # PayPal confirms asynchronously through the payouts webhook.
            batch.status = PayoutBatchStatus.processing.value
        elif errors:
            batch.status = PayoutBatchStatus.partial.value
        else:
            batch.status = PayoutBatchStatus.completed.value
        if batch.status != PayoutBatchStatus.processing.value:
            batch.completed_at = now

        await batches.update(batch, commit=False)
        await session.commit()
        log_payout_event("batch.processed", batch.id, batch.status)
        logger.info(
            f"Payout batch {batch.batch_number}: {successful} paid ({paid_cents} cents), {len(errors)} failed"
        )
        return {"batch_id": batch.id, "payout_count": successful, "total_amount_cents": paid_cents, "errors": errors}

    async def _park_for_manual_processing(
        self, session: AsyncSession, batch: PayoutBatch, payouts: List[Dict[str, Any]], items: List[PayoutItem]
    ) -> Dict[str, Any]:
        receivers = {item.seller_id: item.receiver for item in items}
        batch.status = PayoutBatchStatus.pending.value
        batch.details = {
            **batch.details,
            "requiresManualProcessing": True,
            "sellers": [
                {"sellerId": p["seller_id"], "amount": p["amount_cents"], "email": receivers.get(p["seller_id"])}
                for p in payouts
            ],
        }
        await PayoutBatchRepository(session).update(batch, commit=False)
        await session.commit()
        log_payout_event("batch.manual", batch.id, batch.status)
        logger.warning(f"{batch.payout_method} payouts are not configured; batch {batch.batch_number} needs manual processing")
        return {"batch_id": batch.id, "payout_count": 0, "total_amount_cents": 0, "errors": []}

    async def get_next_payout_date(self, seller_id: str, now: Optional[datetime] = None) -> Optional[Dict[str, Any]]:
        async with self.session_factory() as session:
            return await next_payout_for_seller(session, seller_id, now)

    # =====================================================================
    # Background loop
    # =====================================================================

    async def _run_forever(self, interval: timedelta) -> None:
        while True:
            try:
                await self.process_scheduled_payouts()
            except Exception as e:
                logger.error(f"Scheduled payout run failed: {e}", exc_info=True)
            await asyncio.sleep(interval.total_seconds())

    async def start(self) -> None:
        if self.running:
            return
        async with self.session_factory() as session:
            config = await load_payout_settings(session)
        interval = self.get_interval(config["payout_frequency"])
        logger.info(f"Starting payout scheduler ({config['payout_frequency']}, every {interval})")
        self._task = asyncio.create_task(self._run_forever(interval))

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Payout scheduler stopped")


payout_scheduler = PayoutScheduler()


def get_payout_scheduler() -> PayoutScheduler:
    return payout_scheduler
