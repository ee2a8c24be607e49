"""
Subscription and usage entity models.

A subscription row holds the tier of a signed-in user. Users without a row
are on the free tier. Usage is an append-only ledger summed per calendar
month when limits are checked.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field

from ..base import Base, utc_now


class Subscription(Base, table=True):
    """Entity for a user's subscription.

    Table: muse_subscriptions
    """

    __tablename__ = "muse_subscriptions"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(max_length=128, unique=True, index=True)

    tier: str = Field(default="free", max_length=16)
    status: str = Field(default="active", max_length=16)
    current_period_start: Optional[datetime] = Field(default=None)
    current_period_end: Optional[datetime] = Field(default=None)
    cancel_at_period_end: bool = Field(default=False)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def __repr__(self) -> str:
        return f"Subscription(user_id={self.user_id}, tier={self.tier}, status={self.status})"


class UsageRecord(Base, table=True):
    """Entity for one metered use of a gated feature.

    Table: muse_usage_records
    """

    __tablename__ = "muse_usage_records"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(max_length=128, index=True)
    metric: str = Field(max_length=32, index=True)
    amount: int = Field(default=1)
    created_at: datetime = Field(default_factory=utc_now, index=True)

    def __repr__(self) -> str:
        return f"UsageRecord(user_id={self.user_id}, metric={self.metric}, amount={self.amount})"
