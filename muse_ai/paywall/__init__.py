"""Subscription tiers and feature gating."""

from .gate import FeatureGate, PaywallResult, UserProfile
from .service import PaywallService, UsageMetric
from .tiers import (
    PAYWALL_TRIGGERS,
    PRICING_PLANS,
    TIER_FEATURES,
    TIER_LIMITS,
    SubscriptionTier,
    UsageLimits,
)

__all__ = [
    "FeatureGate",
    "PAYWALL_TRIGGERS",
    "PRICING_PLANS",
    "PaywallResult",
    "PaywallService",
    "SubscriptionTier",
    "TIER_FEATURES",
    "TIER_LIMITS",
    "UsageLimits",
    "UsageMetric",
    "UserProfile",
]
