"""Paywall service backed by the subscription and usage tables."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlmodel.ext.asyncio.session import AsyncSession

from muse_ai.core.database.base import utc_now
from muse_ai.core.database.repositories import (
    ProductionBibleRepository,
    StoryProjectRepository,
    SubscriptionRepository,
    UsageRepository,
)
from muse_ai.core.errors import FeatureLockedError
from muse_ai.core.logging_config import get_logger

from .gate import FeatureGate, PaywallResult, UserProfile
from .tiers import TIER_LIMITS, SubscriptionStatus, SubscriptionTier, UsageLimits

logger = get_logger(__name__)

EPOCH = datetime(1970, 1, 1)
BILLABLE_STATUSES = (SubscriptionStatus.active, SubscriptionStatus.trialing)


class UsageMetric(str, Enum):
    arc_analyses = "arc_analyses"
    exports = "exports"
    knowledge_files = "knowledge_files"
    storage_bytes = "storage_bytes"


def month_start(now: Optional[datetime] = None) -> datetime:
    now = now or utc_now()
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


class PaywallService:
    """Resolve a user's tier and usage, and enforce feature access.

    Analyses and exports are limited per calendar month; projects, knowledge
    files and storage are lifetime totals.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.subscriptions = SubscriptionRepository(session)
        self.usage_records = UsageRepository(session)
        self.projects = StoryProjectRepository(session)
        self.documents = ProductionBibleRepository(session)

    async def get_profile(self, user_id: str) -> UserProfile:
        subscription = await self.subscriptions.get_for_user(user_id)
        if subscription is None:
            return UserProfile.without_subscription(user_id)

        status = SubscriptionStatus(subscription.status)
        tier = SubscriptionTier(subscription.tier)
        if status not in BILLABLE_STATUSES and tier != SubscriptionTier.guest:
            tier = SubscriptionTier.free
        return UserProfile(id=user_id, tier=tier, status=status, is_guest=tier == SubscriptionTier.guest)

    async def get_usage(self, profile: UserProfile) -> UsageLimits:
        usage = TIER_LIMITS[profile.tier].model_copy(deep=True)
        since = month_start()
        usage.arc_analyses.used = await self.usage_records.total_for_period(
            profile.id, UsageMetric.arc_analyses.value, since
        )
        usage.exports.used = await self.usage_records.total_for_period(profile.id, UsageMetric.exports.value, since)
        usage.knowledge_files.used = await self.usage_records.total_for_period(
            profile.id, UsageMetric.knowledge_files.value, EPOCH
        )
        usage.storage_size.used = await self.usage_records.total_for_period(
            profile.id, UsageMetric.storage_bytes.value, EPOCH
        )
        usage.projects.used = len(await self.projects.list_for_user(profile.id))
        return usage

    async def gate(self, user_id: str) -> FeatureGate:
        profile = await self.get_profile(user_id)
        return FeatureGate(profile, await self.get_usage(profile))

    async def check(self, user_id: str, feature: str, *, file_size: Optional[int] = None) -> PaywallResult:
        gate = await self.gate(user_id)
        if feature == "saveProjects":
            return gate.check_save_project()
        if feature == "knowledgeBase" and file_size is not None:
            return gate.check_knowledge_base_upload(file_size)
        return gate.check_feature_access(feature)

    async def require(self, user_id: str, feature: str, *, file_size: Optional[int] = None) -> None:
        """Raise ``FeatureLockedError`` unless ``user_id`` may use ``feature``."""
        result = await self.check(user_id, feature, file_size=file_size)
        if not result.allowed:
            trigger = result.trigger.model_dump(mode="json") if result.trigger else None
            logger.info(f"Paywall blocked {feature} for {user_id}")
            raise FeatureLockedError(feature, trigger)

    async def track(self, user_id: str, metric: UsageMetric, amount: int = 1) -> None:
        await self.usage_records.record(user_id, metric.value, amount)
