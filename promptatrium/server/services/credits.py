"""
Credit wallet service.

Every balance change writes a ``credit_transactions`` row that records the
balance before and after the change. Wallets are created lazily with a zero
balance the first time a user's balance is read or changed.
"""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from promptatrium.core.database import utc_now
from promptatrium.core.database.entities import CreditTransaction, UserCredits
from promptatrium.core.database.repositories import CreditTransactionRepository, UserCreditsRepository
from promptatrium.core.errors import ValidationError
from promptatrium.core.logging_config import get_logger
from promptatrium.core.models.domain import CreditTransactionType

logger = get_logger(__name__)


class CreditService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.wallets = UserCreditsRepository(session)
        self.transactions = CreditTransactionRepository(session)

    async def get_balance(self, user_id: str, commit: bool = True) -> UserCredits:
        wallet = await self.wallets.get_by_user(user_id)
        if wallet is None:
            wallet = await self.wallets.create(UserCredits(user_id=user_id), commit=commit)
        return wallet

    async def _apply(
        self,
        user_id: str,
        amount: int,
        tx_type: CreditTransactionType,
        source: str,
        description: Optional[str],
        reference_id: Optional[str],
        reference_type: Optional[str],
        commit: bool,
    ) -> CreditTransaction:
        if amount <= 0:
            raise ValidationError("Amount must be positive")

        wallet = await self.get_balance(user_id, commit=False)
        before = wallet.balance
        if tx_type == CreditTransactionType.spend:
            if before < amount:
                raise ValidationError("Insufficient credits")
            wallet.balance = before - amount
            wallet.lifetime_spent += amount
        else:
            wallet.balance = before + amount
            if tx_type == CreditTransactionType.earn:
                wallet.lifetime_earned += amount
        wallet.last_activity = utc_now()
        await self.wallets.update(wallet, commit=False)

        transaction = await self.transactions.create(
            CreditTransaction(
                user_id=user_id,
                type=tx_type.value,
                amount=amount,
                balance_before=before,
                balance_after=wallet.balance,
                source=source,
                description=description,
                reference_id=reference_id,
                reference_type=reference_type,
            ),
            commit=False,
        )
        if commit:
            await self.session.commit()
        logger.debug(f"Credits {tx_type.value} {amount} for {user_id}: {before} -> {wallet.balance}")
        return transaction

    async def add_credits(
        self,
        user_id: str,
        amount: int,
        source: str,
        description: Optional[str] = None,
        reference_id: Optional[str] = None,
        reference_type: Optional[str] = None,
        commit: bool = True,
    ) -> CreditTransaction:
        return await self._apply(
            user_id, amount, CreditTransactionType.earn, source, description, reference_id, reference_type, commit
        )

    async def spend_credits(
        self,
        user_id: str,
        amount: int,
        source: str,
        description: Optional[str] = None,
        reference_id: Optional[str] = None,
        reference_type: Optional[str] = None,
        commit: bool = True,
    ) -> CreditTransaction:
        """Debit credits.

        Raises:
            ValidationError: the balance is lower than ``amount``.
        """
        return await self._apply(
            user_id, amount, CreditTransactionType.spend, source, description, reference_id, reference_type, commit
        )

    async def refund_credits(
        self,
        user_id: str,
        amount: int,
        source: str,
        description: Optional[str] = None,
        reference_id: Optional[str] = None,
        reference_type: Optional[str] = None,
        commit: bool = True,
    ) -> CreditTransaction:
        return await self._apply(
            user_id, amount, CreditTransactionType.refund, source, description, reference_id, reference_type, commit
        )

    async def history(self, user_id: str, limit: int = 50) -> List[CreditTransaction]:
        return await self.transactions.history(user_id, limit=limit)
