"""Subscription tiers, feature access and usage limits."""

from __future__ import annotations

from enum import Enum
from typing import Dict, List

from pydantic import BaseModel


class SubscriptionTier(str, Enum):
    guest = "guest"
    free = "free"
    pro = "pro"
    team = "team"


class SubscriptionStatus(str, Enum):
    active = "active"
    canceled = "canceled"
    past_due = "past_due"
    trialing = "trialing"
    incomplete = "incomplete"


TIER_ORDER: List[SubscriptionTier] = [
    SubscriptionTier.guest,
    SubscriptionTier.free,
    SubscriptionTier.pro,
    SubscriptionTier.team,
]

FEATURES = (
    "basicWriting",
    "arcGenerator",
    "knowledgeBase",
    "phaseWorkflow",
    "canvasEditing",
    "unlimitedProjects",
    "advancedExports",
    "prioritySupport",
    "betaFeatures",
    "collaboration",
    "customTraining",
    "advancedAnalytics",
    "saveProjects",
    "cloudSync",
    "versionHistory",
)

_CORE = {"basicWriting", "arcGenerator", "knowledgeBase", "phaseWorkflow", "canvasEditing"}
_FREE = _CORE | {"saveProjects", "cloudSync"}
_PRO = _FREE | {"unlimitedProjects", "advancedExports", "prioritySupport", "betaFeatures", "versionHistory"}
_TEAM = set(FEATURES)

TIER_FEATURES: Dict[SubscriptionTier, Dict[str, bool]] = {
    tier: {feature: feature in enabled for feature in FEATURES}
    for tier, enabled in (
        (SubscriptionTier.guest, _CORE),
        (SubscriptionTier.free, _FREE),
        (SubscriptionTier.pro, _PRO),
        (SubscriptionTier.team, _TEAM),
    )
}

MB = 1024 * 1024


class UsageLimit(BaseModel):
    used: int = 0
    limit: int = 0
    unlimited: bool = False

    @property
    def exhausted(self) -> bool:
        return not self.unlimited and self.used >= self.limit


class UsageLimits(BaseModel):
    arc_analyses: UsageLimit
    projects: UsageLimit
    exports: UsageLimit
    knowledge_files: UsageLimit
    storage_size: UsageLimit


def _limits(arc: int, projects: int, exports: int, files: int, storage: int) -> UsageLimits:
    return UsageLimits(
        arc_analyses=UsageLimit(limit=arc),
        projects=UsageLimit(limit=projects),
        exports=UsageLimit(limit=exports),
        knowledge_files=UsageLimit(limit=files),
        storage_size=UsageLimit(limit=storage),
    )


def _unlimited() -> UsageLimits:
    return UsageLimits(
        arc_analyses=UsageLimit(unlimited=True),
        projects=UsageLimit(unlimited=True),
        exports=UsageLimit(unlimited=True),
        knowledge_files=UsageLimit(unlimited=True),
        storage_size=UsageLimit(unlimited=True),
    )


TIER_LIMITS: Dict[SubscriptionTier, UsageLimits] = {
    SubscriptionTier.guest: _limits(5, 0, 0, 3, 10 * MB),
    SubscriptionTier.free: _limits(10, 1, 3, 10, 50 * MB),
    SubscriptionTier.pro: _unlimited(),
    SubscriptionTier.team: _unlimited(),
}


class PaywallTrigger(BaseModel):
    feature: str
    title: str
    description: str
    required_tier: SubscriptionTier
    upgrade_message: str
    cta_text: str


PAYWALL_TRIGGERS: Dict[str, PaywallTrigger] = {
    "saveProject": PaywallTrigger(
        feature="saveProjects",
        title="Love what you created?",
        description="Sign up to save your project and continue working on it anytime.",
        required_tier=SubscriptionTier.free,
        upgrade_message="Create a free account to save your work and access it from anywhere.",
        cta_text="Sign up to save",
    ),
    "multipleProjects": PaywallTrigger(
        feature="unlimitedProjects",
        title="Ready for your next story?",
        description="Upgrade to Pro to create unlimited projects and manage multiple stories.",
        required_tier=SubscriptionTier.pro,
        upgrade_message="Pro users can create and manage unlimited projects.",
        cta_text="Upgrade to Pro",
    ),
    "advancedExport": PaywallTrigger(
        feature="advancedExports",
        title="Export your masterpiece",
        description="Export to professional formats like Final Draft, PDF, and more.",
        required_tier=SubscriptionTier.pro,
        upgrade_message="Get unlimited exports and professional format options with Pro.",
        cta_text="Upgrade for exports",
    ),
    "arcAnalysisLimit": PaywallTrigger(
        feature="arcGenerator",
        title="ARC analysis limit reached",
        description="You've used all your free ARC Generator analyses this month.",
        required_tier=SubscriptionTier.pro,
        upgrade_message="Get unlimited ARC Generator analyses with Pro.",
        cta_text="Upgrade for unlimited",
    ),
    "knowledgeBaseLimit": PaywallTrigger(
        feature="knowledgeBase",
        title="Knowledge base full",
        description="You've reached your file storage limit.",
        required_tier=SubscriptionTier.pro,
        upgrade_message="Pro users get unlimited knowledge base storage.",
        cta_text="Upgrade for more storage",
    ),
}


class PricingPlan(BaseModel):
    name: str
    price: int
    currency: str = "USD"
    interval: str = "month"
    features: List[str]
    cta: str
    popular: bool = False


PRICING_PLANS: Dict[SubscriptionTier, PricingPlan] = {
    SubscriptionTier.free: PricingPlan(
        name="Story Starter",
        price=0,
        features=[
            "Basic Snow Leopard writing features",
            "Limited ARC Generator (10/month)",
            "Single project support",
            "Community support",
            "Up to 10 knowledge files",
        ],
        cta="Get Started Free",
    ),
    SubscriptionTier.pro: PricingPlan(
        name="Story Master",
        price=19,
        features=[
            "Full ARC Generator intelligence",
            "Unlimited projects and analyses",
            "Advanced export options",
            "Priority support",
            "Beta feature access",
            "Unlimited knowledge base",
        ],
        cta="Upgrade to Pro",
        popular=True,
    ),
    SubscriptionTier.team: PricingPlan(
        name="Story Studio",
        price=39,
        features=[
            "Multi-user collaboration",
            "Shared story universes",
            "Advanced analytics",
            "Custom training options",
            "Dedicated support",
            "All Pro features",
        ],
        cta="Upgrade to Team",
    ),
}


def tier_rank(tier: SubscriptionTier) -> int:
    return TIER_ORDER.index(tier)
