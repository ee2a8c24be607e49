"""
Subscription and usage repositories.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..entities.subscriptions import Subscription, UsageRecord
from .base import SqlRepository


class SubscriptionRepository(SqlRepository[Subscription]):
    """Repository for user subscriptions."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Subscription)

    async def get_for_user(self, user_id: str) -> Optional[Subscription]:
        stmt = select(Subscription).where(Subscription.user_id == user_id)
        result = await self.session.exec(stmt)
        return result.first()


class UsageRepository(SqlRepository[UsageRecord]):
    """Repository for the append-only usage ledger."""

    order_by = col(UsageRecord.created_at).desc()

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, UsageRecord)

    async def record(self, user_id: str, metric: str, amount: int = 1) -> UsageRecord:
        return await self.create(UsageRecord(user_id=user_id, metric=metric, amount=amount))

    async def total_for_period(self, user_id: str, metric: str, since: datetime) -> int:
        """Sum of ``amount`` for one metric recorded at or after ``since``."""
        stmt = (
            select(func.coalesce(func.sum(UsageRecord.amount), 0))
            .where(UsageRecord.user_id == user_id)
            .where(UsageRecord.metric == metric)
            .where(UsageRecord.created_at >= since)
        )
        result = await self.session.exec(stmt)
        return int(result.one())
