import pytest
from httpx import AsyncClient

from muse_ai.core.database.entities.subscriptions import Subscription

pytestmark = pytest.mark.asyncio

HEADERS = {"X-User-Id": "user-1"}
BASE = "/api/v1/paywall"


class TestPaywallAPI:
    async def test_plans(self, client: AsyncClient):
        response = await client.get(f"{BASE}/plans")

        assert response.status_code == 200
        plans = response.json()
        assert list(plans) == ["free", "pro", "team"]
        assert plans["pro"]["price"] == 19
        assert plans["pro"]["popular"] is True

    async def test_profile_defaults_to_free(self, client: AsyncClient):
        response = await client.get(f"{BASE}/profile", headers=HEADERS)

        body = response.json()
        assert body["profile"]["tier"] == "free"
        assert body["profile"]["is_guest"] is False
        assert body["features"]["advancedExports"] is False
        assert body["usage"]["arc_analyses"]["limit"] == 10
        assert body["usage"]["arc_analyses"]["used"] == 0

    async def test_profile_requires_user(self, client: AsyncClient):
        response = await client.get(f"{BASE}/profile")
        assert response.status_code == 401

    async def test_pro_profile(self, client: AsyncClient, session):
        session.add(Subscription(user_id="user-1", tier="pro"))
        await session.commit()

        response = await client.get(f"{BASE}/profile", headers=HEADERS)

        assert response.json()["profile"]["tier"] == "pro"
        assert response.json()["usage"]["exports"]["unlimited"] is True

    async def test_allowed_feature(self, client: AsyncClient):
        response = await client.get(f"{BASE}/features/arcGenerator", headers=HEADERS)

        assert response.json() == {"feature": "arcGenerator", "allowed": True, "trigger": None}

    async def test_denied_feature_has_trigger(self, client: AsyncClient):
        response = await client.get(f"{BASE}/features/advancedExports", headers=HEADERS)

        body = response.json()
        assert body["allowed"] is False
        assert body["trigger"]["required_tier"] == "pro"
        assert body["trigger"]["cta_text"] == "Upgrade for exports"

    async def test_unknown_feature(self, client: AsyncClient):
        response = await client.get(f"{BASE}/features/timeTravel", headers=HEADERS)
        assert response.status_code == 404
