"""
Paywall API Endpoints.

Pricing, the caller's tier and usage, and per-feature access checks.
"""

from fastapi import APIRouter, HTTPException, status

from muse_ai.paywall import PRICING_PLANS
from muse_ai.paywall.tiers import FEATURES
from muse_ai.server.schemas import FeatureAccessRead, ProfileRead
from muse_ai.server.services.deps import CurrentUserDep, PaywallServiceDep

router = APIRouter()


@router.get("/plans", summary="Pricing Plans")
async def pricing_plans():
    return {tier.value: plan.model_dump() for tier, plan in PRICING_PLANS.items()}


@router.get("/profile", response_model=ProfileRead, summary="Current Profile")
async def current_profile(user_id: CurrentUserDep, paywall: PaywallServiceDep):
    gate = await paywall.gate(user_id)
    return ProfileRead(profile=gate.profile, features=gate.features, usage=gate.usage)


@router.get(
    "/features/{feature}",
    response_model=FeatureAccessRead,
    summary="Check Feature Access",
    responses={404: {"description": "Unknown feature"}},
)
async def check_feature(feature: str, user_id: CurrentUserDep, paywall: PaywallServiceDep):
    if feature not in FEATURES:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown feature: {feature}")
    result = await paywall.check(user_id, feature)
    return FeatureAccessRead(feature=feature, allowed=result.allowed, trigger=result.trigger)
