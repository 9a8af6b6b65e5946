"""
Credit wallet repositories.
"""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.credits import CreditTransaction, UserCredits
from .base import SQLModelRepository


class UserCreditsRepository(SQLModelRepository[UserCredits]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, UserCredits)

    async def get_by_user(self, user_id: str) -> Optional[UserCredits]:
        stmt = select(UserCredits).where(UserCredits.user_id == user_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()


class CreditTransactionRepository(SQLModelRepository[CreditTransaction]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, CreditTransaction)

    async def history(self, user_id: str, limit: int = 50) -> List[CreditTransaction]:
        stmt = (
            select(CreditTransaction)
            .where(CreditTransaction.user_id == user_id)
            .order_by(CreditTransaction.created_at.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
