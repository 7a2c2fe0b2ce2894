"""Tests for the health checks and the developer liveness view."""

from unittest.mock import AsyncMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from liveshop.api.dependencies import get_settings_dep
from liveshop.core.cache import LivenessCache
from tests.factories import OTHER_SHOP, LiveStreamFactory, StreamFactory


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "service": "liveshop-streams"}

    @pytest.mark.asyncio
    async def test_database_health(self, client):
        response = await client.get("/health/db")

        assert response.json() == {"status": "healthy", "database": "connected"}

    @pytest.mark.asyncio
    async def test_redis_health(self, client):
        with patch("liveshop.api.routes.health.cache") as mock_cache:
            mock_cache.ping = AsyncMock(return_value=True)
            response = await client.get("/health/redis")

        assert response.json() == {"status": "healthy", "redis": "connected"}

    @pytest.mark.asyncio
    async def test_redis_unhealthy(self, client):
        with patch("liveshop.api.routes.health.cache") as mock_cache:
            mock_cache.ping = AsyncMock(side_effect=RedisConnectionError("refused"))
            response = await client.get("/health/redis")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "unhealthy"
        assert body["error"] == "refused"


class TestDebugLiveness:
    URL = "/api/v1/debug/liveness"

    @pytest.mark.asyncio
    async def test_lists_cache_state_per_stream(
        self, client, seed, shop_headers, fake_redis
    ):
        live = await seed(LiveStreamFactory())
        draft = await seed(StreamFactory())
        await seed(StreamFactory(shop=OTHER_SHOP))
        fake_redis.store[LivenessCache.key_for(live.id)] = "live"

        response = await client.get(self.URL, headers=shop_headers)

        assert response.status_code == 200
        states = {s["id"]: s["cache_state"] for s in response.json()["streams"]}
        assert states == {live.id: "live", draft.id: None}

    @pytest.mark.asyncio
    async def test_hidden_in_production(self, app, client, shop_headers, test_settings):
        settings = test_settings.model_copy(update={"environment": "production"})
        app.dependency_overrides[get_settings_dep] = lambda: settings

        response = await client.get(self.URL, headers=shop_headers)

        assert response.status_code == 404
