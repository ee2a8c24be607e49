from __future__ import annotations

import pytest

from muse_ai.core.database.entities.subscriptions import Subscription
from muse_ai.core.errors import FeatureLockedError
from muse_ai.paywall import PaywallService, SubscriptionTier, UsageMetric
from muse_ai.paywall.tiers import MB, SubscriptionStatus

pytestmark = pytest.mark.asyncio


async def _subscribe(session, user_id: str, tier: str, status: str = "active") -> Subscription:
    subscription = Subscription(user_id=user_id, tier=tier, status=status)
    session.add(subscription)
    await session.commit()
    return subscription


class TestGetProfile:
    async def test_without_subscription(self, session):
        service = PaywallService(session)

        assert (await service.get_profile("user-1")).tier == SubscriptionTier.free
        guest = await service.get_profile("guest-7")
        assert guest.tier == SubscriptionTier.guest
        assert guest.is_guest is True

    async def test_active_subscription(self, session):
        await _subscribe(session, "user-1", "pro")

        profile = await PaywallService(session).get_profile("user-1")

        assert profile.tier == SubscriptionTier.pro
        assert profile.status == SubscriptionStatus.active

    async def test_trialing_subscription_keeps_tier(self, session):
        await _subscribe(session, "user-1", "team", "trialing")
        assert (await PaywallService(session).get_profile("user-1")).tier == SubscriptionTier.team

    @pytest.mark.parametrize("status", ["canceled", "past_due", "incomplete"])
    async def test_lapsed_subscription_drops_to_free(self, session, status):
        await _subscribe(session, "user-1", "pro", status)

        profile = await PaywallService(session).get_profile("user-1")

        assert profile.tier == SubscriptionTier.free
        assert profile.status == SubscriptionStatus(status)


class TestUsage:
    async def test_usage_snapshot(self, session, project):
        service = PaywallService(session)
        await service.track("user-1", UsageMetric.arc_analyses)
        await service.track("user-1", UsageMetric.arc_analyses, 2)
        await service.track("user-1", UsageMetric.storage_bytes, 4 * MB)
        await service.track("user-2", UsageMetric.arc_analyses, 5)

        usage = await service.get_usage(await service.get_profile("user-1"))

        assert usage.arc_analyses.used == 3
        assert usage.arc_analyses.limit == 10
        assert usage.storage_size.used == 4 * MB
        assert usage.exports.used == 0
        assert usage.projects.used == 1

    async def test_tier_limits_are_not_mutated(self, session):
        service = PaywallService(session)
        await service.track("user-1", UsageMetric.exports, 2)

        await service.get_usage(await service.get_profile("user-1"))
        second = await service.get_usage(await service.get_profile("user-2"))

        assert second.exports.used == 0


class TestEnforcement:
    async def test_check_counts_saved_projects(self, session, project):
        result = await PaywallService(session).check("user-1", "saveProjects")
        assert result.allowed is False

    async def test_check_upload_size(self, session):
        service = PaywallService(session)

        assert (await service.check("user-1", "knowledgeBase", file_size=MB)).allowed is True
        result = await service.check("user-1", "knowledgeBase", file_size=51 * MB)
        assert result.allowed is False
        assert result.trigger.feature == "knowledgeBase"

    async def test_require_raises_with_trigger(self, session):
        with pytest.raises(FeatureLockedError) as exc_info:
            await PaywallService(session).require("user-1", "advancedExports")

        assert exc_info.value.feature == "advancedExports"
        assert exc_info.value.trigger["required_tier"] == "pro"
        assert exc_info.value.trigger["cta_text"] == "Upgrade for exports"

    async def test_require_passes_for_pro(self, session):
        await _subscribe(session, "user-1", "pro")
        await PaywallService(session).require("user-1", "advancedExports")

    async def test_arc_limit_after_tracking(self, session):
        service = PaywallService(session)
        await service.track("user-1", UsageMetric.arc_analyses, 10)

        with pytest.raises(FeatureLockedError):
            await service.require("user-1", "arcGenerator")
