"""Feature gating against a user's tier and current usage.

``FeatureGate`` is pure: it decides from a profile and a usage snapshot and
never records anything. :class:`muse_ai.paywall.service.PaywallService`
builds both from the database and tracks usage after an allowed call.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from muse_ai.core.logging_config import get_logger

from .tiers import (
    FEATURES,
    PAYWALL_TRIGGERS,
    TIER_FEATURES,
    PaywallTrigger,
    SubscriptionStatus,
    SubscriptionTier,
    UsageLimits,
    tier_rank,
)

logger = get_logger(__name__)

GUEST_PREFIX = "guest"


class UserProfile(BaseModel):
    id: str
    tier: SubscriptionTier
    status: SubscriptionStatus = SubscriptionStatus.active
    is_guest: bool = False

    @classmethod
    def without_subscription(cls, user_id: str) -> "UserProfile":
        """Profile of a user with no subscription row: guest ids are guests, everyone else is free."""
        if user_id.startswith(GUEST_PREFIX):
            return cls(id=user_id, tier=SubscriptionTier.guest, is_guest=True)
        return cls(id=user_id, tier=SubscriptionTier.free)


class PaywallResult(BaseModel):
    allowed: bool
    trigger: Optional[PaywallTrigger] = None


def trigger_for(feature: str) -> Optional[PaywallTrigger]:
    return next((t for t in PAYWALL_TRIGGERS.values() if t.feature == feature), None)


class FeatureGate:
    def __init__(self, profile: UserProfile, usage: UsageLimits) -> None:
        self.profile = profile
        self.usage = usage

    @property
    def features(self) -> dict[str, bool]:
        return dict(TIER_FEATURES[self.profile.tier])

    def can_use_feature(self, feature: str) -> bool:
        if feature not in FEATURES:
            raise ValueError(f"Unknown feature: {feature}")
        if not TIER_FEATURES[self.profile.tier][feature]:
            return False

        if feature == "arcGenerator":
            return not self.usage.arc_analyses.exhausted
        if feature == "saveProjects":
            return not self.usage.projects.exhausted
        if feature == "advancedExports":
            return not self.usage.exports.exhausted
        return True

    def check_feature_access(self, feature: str) -> PaywallResult:
        if self.can_use_feature(feature):
            return PaywallResult(allowed=True)
        logger.debug(f"Feature {feature} denied for {self.profile.id} on tier {self.profile.tier.value}")
        return PaywallResult(allowed=False, trigger=trigger_for(feature))

    def check_save_project(self) -> PaywallResult:
        if self.profile.is_guest:
            return PaywallResult(allowed=False, trigger=PAYWALL_TRIGGERS["saveProject"])
        return self.check_feature_access("saveProjects")

    def check_arc_analysis(self) -> PaywallResult:
        return self.check_feature_access("arcGenerator")

    def check_export(self) -> PaywallResult:
        return self.check_feature_access("advancedExports")

    def check_knowledge_base_upload(self, file_size: int = 0) -> PaywallResult:
        result = self.check_feature_access("knowledgeBase")
        if not result.allowed:
            return result
        storage = self.usage.storage_size
        if not storage.unlimited and storage.used + file_size > storage.limit:
            return PaywallResult(allowed=False, trigger=PAYWALL_TRIGGERS["knowledgeBaseLimit"])
        return PaywallResult(allowed=True)

    def check_multiple_projects(self) -> PaywallResult:
        if self.usage.projects.exhausted:
            return PaywallResult(allowed=False, trigger=PAYWALL_TRIGGERS["multipleProjects"])
        return PaywallResult(allowed=True)

    def upgrade_required(self, tier: SubscriptionTier) -> bool:
        """Whether the user's tier is below ``tier``."""
        return tier_rank(self.profile.tier) < tier_rank(tier)
