"""Pytest configuration and fixtures."""

import json
import time
from typing import AsyncGenerator, Dict, List, Optional
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from redis.exceptions import ConnectionError as RedisConnectionError

from liveshop.api.dependencies import (
    get_database,
    get_liveness_cache,
    get_mux_client,
    get_settings_dep,
)
from liveshop.core.cache import LivenessCache, RedisCache
from liveshop.core.config import Settings
from liveshop.domain.models import Stream, StreamProduct
from liveshop.infrastructure.mux import MuxAsset, MuxClient, MuxLiveStream
from liveshop.infrastructure.persistence.database import Database
from liveshop.infrastructure.persistence.repositories import (
    StreamClipRepository,
    StreamEventRepository,
    StreamProductRepository,
    StreamRepository,
)
from liveshop.infrastructure.security import MuxWebhookValidator
from liveshop.main import create_app
from tests.factories import SHOP

WEBHOOK_SECRET = "test-webhook-secret"
JOB_SECRET = "test-job-secret"


class FakeRedis:
    """In-memory stand-in for ``redis.asyncio.Redis`` covering the calls the cache makes."""

    def __init__(self):
        self.store: Dict[str, str] = {}
        self.ttls: Dict[str, int] = {}
        self.fail_reads = False
        self.fail_writes = False

    async def get(self, key):
        if self.fail_reads:
            raise RedisConnectionError("redis unavailable")
        return self.store.get(key)

    async def mget(self, keys):
        if self.fail_reads:
            raise RedisConnectionError("redis unavailable")
        return [self.store.get(key) for key in keys]

    async def set(self, key, value):
        if self.fail_writes:
            raise RedisConnectionError("redis unavailable")
        self.store[key] = value
        self.ttls.pop(key, None)
        return True

    async def setex(self, key, ttl, value):
        if self.fail_writes:
            raise RedisConnectionError("redis unavailable")
        self.store[key] = value
        self.ttls[key] = ttl
        return True

    async def delete(self, key):
        return 1 if self.store.pop(key, None) is not None else 0

    async def ping(self):
        return True

    async def aclose(self):
        return None


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with overrides."""
    return Settings(
        environment="test",
        database_url="sqlite+aiosqlite:///:memory:",
        mux_token_id="test-token-id",
        mux_token_secret="test-token-secret",
        mux_webhook_signing_secret=WEBHOOK_SECRET,
        migration_job_secret=JOB_SECRET,
        liveness_ttl_seconds=3600,
        logfire_enabled=False,
        log_level="DEBUG",
    )


@pytest_asyncio.fixture
async def database(test_settings) -> AsyncGenerator[Database, None]:
    """In-memory SQLite database with all tables created."""
    db = Database(test_settings.database_url)
    await db.create_tables()
    yield db
    await db.drop_tables()
    await db.close()


@pytest_asyncio.fixture
async def db_session(database):
    """Database session committed when the test finishes."""
    async with database.session() as session:
        yield session


@pytest.fixture
def stream_repo(db_session) -> StreamRepository:
    return StreamRepository(db_session)


@pytest.fixture
def product_repo(db_session) -> StreamProductRepository:
    return StreamProductRepository(db_session)


@pytest.fixture
def event_repo(db_session) -> StreamEventRepository:
    return StreamEventRepository(db_session)


@pytest.fixture
def clip_repo(db_session) -> StreamClipRepository:
    return StreamClipRepository(db_session)


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def redis_cache(fake_redis) -> RedisCache:
    """RedisCache already "connected" to the in-memory fake."""
    redis_cache = RedisCache(url="redis://localhost:6379/15")
    redis_cache._client = fake_redis
    return redis_cache


@pytest.fixture
def liveness(redis_cache) -> LivenessCache:
    return LivenessCache(redis_cache, ttl_seconds=3600)


@pytest.fixture
def mux() -> AsyncMock:
    """Mux client double with realistic default responses."""
    client = AsyncMock(spec=MuxClient)
    client.create_live_stream.return_value = MuxLiveStream(
        id="mux-live-1",
        stream_key="sk-secret-1",
        playback_id="pb-live-1",
        status="idle",
        latency_mode="low",
        rtmp_url="rtmps://global-live.mux.com:443/app",
    )
    client.get_live_stream.return_value = MuxLiveStream(
        id="mux-live-1",
        stream_key="sk-secret-1",
        playback_id="pb-live-1",
        status="idle",
        latency_mode="low",
        rtmp_url="rtmps://global-live.mux.com:443/app",
    )
    client.create_clip.return_value = MuxAsset(
        id="clip-asset-1", playback_id="pb-clip-1", status="preparing"
    )
    client.get_asset.return_value = MuxAsset(
        id="asset-1", playback_id="pb-asset-1", status="ready", duration=3600.0
    )
    return client


@pytest.fixture
def validator() -> MuxWebhookValidator:
    return MuxWebhookValidator(WEBHOOK_SECRET, max_age_seconds=300)


@pytest.fixture
def sign_webhook(validator):
    """Build a signed (body, headers) pair for a webhook payload."""

    def _sign(payload: dict, timestamp: Optional[int] = None):
        body = json.dumps(payload).encode("utf-8")
        header = validator.sign(body, timestamp or int(time.time()))
        return body, {"Mux-Signature": header, "Content-Type": "application/json"}

    return _sign


@pytest.fixture
def seed(database):
    """Persist a stream (and optional lineup) in its own committed session."""

    async def _seed(
        stream: Stream, products: Optional[List[StreamProduct]] = None
    ) -> Stream:
        async with database.session() as session:
            StreamRepository(session).add(stream)
            await session.flush()
            if products:
                StreamProductRepository(session).add_all(products)
        return stream

    return _seed


@pytest.fixture
def app(test_settings, database, liveness, mux):
    """Application with storage, cache and Mux replaced by test doubles."""
    application = create_app(test_settings)

    async def override_get_database():
        return database

    application.dependency_overrides[get_settings_dep] = lambda: test_settings
    application.dependency_overrides[get_database] = override_get_database
    application.dependency_overrides[get_liveness_cache] = lambda: liveness
    application.dependency_overrides[get_mux_client] = lambda: mux

    yield application

    application.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create test client against the ASGI app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def shop_headers() -> Dict[str, str]:
    return {"X-Shopify-Shop-Domain": SHOP}

