"""Tests for the Mux webhook endpoint."""

import json
import time
from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest

from liveshop.api.dependencies import get_settings_dep
from liveshop.api.routes.webhooks import run_auto_clips
from liveshop.core.cache import LivenessCache
from liveshop.domain.models import StreamStatus
from liveshop.infrastructure.persistence.repositories import (
    StreamClipRepository,
    StreamEventRepository,
    StreamRepository,
)
from tests.factories import (
    LiveStreamFactory,
    PreparedStreamFactory,
    StreamFactory,
    StreamProductFactory,
)

URL = "/webhooks/mux"


async def load(database, stream_id):
    async with database.session() as session:
        stream = await StreamRepository(session).get(stream_id)
        events = await StreamEventRepository(session).list_for_stream(stream_id)
    return stream, events


class TestSignature:
    @pytest.mark.asyncio
    async def test_get_is_not_allowed(self, client):
        response = await client.get(URL)
        assert response.status_code == 405

    @pytest.mark.asyncio
    async def test_missing_signature(self, client):
        response = await client.post(URL, content=b"{}")

        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Missing Mux-Signature header"

    @pytest.mark.asyncio
    async def test_bad_signature(self, client, seed, database, fake_redis):
        stream = await seed(LiveStreamFactory())
        body = json.dumps(
            {"type": "video.live_stream.idle", "data": {"id": stream.mux_stream_id}}
        ).encode()

        response = await client.post(
            URL,
            content=body,
            headers={"Mux-Signature": f"t={int(time.time())},v1={'a' * 64}"},
        )

        assert response.status_code == 401
        stored, events = await load(database, stream.id)
        assert stored.status == StreamStatus.LIVE
        assert events == []
        assert fake_redis.store == {}

    @pytest.mark.asyncio
    async def test_stale_signature(self, client, sign_webhook):
        body, headers = sign_webhook(
            {"type": "video.live_stream.idle"}, timestamp=int(time.time()) - 3600
        )
        response = await client.post(URL, content=body, headers=headers)
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_unconfigured_secret(self, app, client, sign_webhook, test_settings):
        unsigned_settings = test_settings.model_copy(
            update={"mux_webhook_signing_secret": None}
        )
        app.dependency_overrides[get_settings_dep] = lambda: unsigned_settings
        body, headers = sign_webhook({"type": "video.live_stream.idle"})

        response = await client.post(URL, content=body, headers=headers)

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_malformed_body(self, client, validator):
        body = b"not json"
        response = await client.post(
            URL,
            content=body,
            headers={"Mux-Signature": validator.sign(body, int(time.time()))},
        )
        assert response.status_code == 400


class TestLifecycleEvents:
    @pytest.mark.asyncio
    async def test_active_only_flags_liveness(
        self, client, seed, sign_webhook, database, fake_redis
    ):
        stream = await seed(PreparedStreamFactory(status=StreamStatus.SCHEDULED))
        body, headers = sign_webhook(
            {"type": "video.live_stream.active", "data": {"id": stream.mux_stream_id}}
        )

        response = await client.post(URL, content=body, headers=headers)

        assert response.status_code == 200
        assert response.json() == {"received": True}
        assert fake_redis.store[LivenessCache.key_for(stream.id)] == "live"
        assert fake_redis.ttls[LivenessCache.key_for(stream.id)] == 3600

        stored, events = await load(database, stream.id)
        assert stored.status == StreamStatus.SCHEDULED
        assert events == []

    @pytest.mark.asyncio
    async def test_idle_ends_stream(self, client, seed, sign_webhook, database, fake_redis):
        stream = await seed(LiveStreamFactory())
        body, headers = sign_webhook(
            {"type": "video.live_stream.idle", "data": {"id": stream.mux_stream_id}}
        )

        first = await client.post(URL, content=body, headers=headers)
        second = await client.post(URL, content=body, headers=headers)

        assert first.status_code == second.status_code == 200
        assert fake_redis.store[LivenessCache.key_for(stream.id)] == "ended"
        stored, events = await load(database, stream.id)
        assert stored.status == StreamStatus.ENDED
        assert len(events) == 1

    @pytest.mark.asyncio
    async def test_unknown_stream_is_not_found(
        self, client, seed, sign_webhook, database, fake_redis
    ):
        stream = await seed(LiveStreamFactory())
        body, headers = sign_webhook(
            {"type": "video.live_stream.active", "data": {"id": "mux-unknown"}}
        )

        response = await client.post(URL, content=body, headers=headers)

        assert response.status_code == 404
        stored, events = await load(database, stream.id)
        assert stored.status == StreamStatus.LIVE
        assert events == []
        assert fake_redis.store == {}

    @pytest.mark.asyncio
    async def test_idle_for_unknown_session_leaves_draft_alone(
        self, client, seed, sign_webhook, database, fake_redis
    ):
        draft = await seed(StreamFactory())
        body, headers = sign_webhook(
            {"type": "video.live_stream.idle", "data": {"id": "mux-unrelated"}}
        )

        response = await client.post(URL, content=body, headers=headers)

        assert response.status_code == 404
        stored, events = await load(database, draft.id)
        assert stored.status == StreamStatus.DRAFT
        assert stored.mux_stream_id is None
        assert events == []
        assert fake_redis.store == {}

    @pytest.mark.asyncio
    async def test_cache_write_failure_is_server_error(
        self, client, seed, sign_webhook, database, fake_redis
    ):
        stream = await seed(LiveStreamFactory())
        fake_redis.fail_writes = True
        body, headers = sign_webhook(
            {"type": "video.live_stream.idle", "data": {"id": stream.mux_stream_id}}
        )

        response = await client.post(URL, content=body, headers=headers)

        assert response.status_code == 500
        envelope = response.json()
        assert envelope["success"] is False
        assert envelope["error"]["code"] == "INTERNAL_SERVER_ERROR"
        stored, events = await load(database, stream.id)
        assert stored.status == StreamStatus.LIVE
        assert events == []

    @pytest.mark.asyncio
    async def test_unhandled_type_is_acknowledged(self, client, sign_webhook):
        body, headers = sign_webhook({"type": "video.upload.created", "data": {}})

        response = await client.post(URL, content=body, headers=headers)

        assert response.status_code == 200
        assert response.json() == {"received": True, "ignored": True}


class TestAssetReady:
    @pytest.mark.asyncio
    async def test_asset_ready_schedules_auto_clips(
        self, client, seed, sign_webhook, database, mux
    ):
        stream = await seed(LiveStreamFactory(status=StreamStatus.ENDED))
        body, headers = sign_webhook(
            {
                "type": "video.asset.ready",
                "data": {
                    "id": "asset-1",
                    "live_stream_id": stream.mux_stream_id,
                    "playback_ids": [{"id": "pb-asset-1"}],
                },
            }
        )

        with patch(
            "liveshop.api.routes.webhooks.run_auto_clips", new=AsyncMock()
        ) as auto_clips:
            response = await client.post(URL, content=body, headers=headers)

        assert response.status_code == 200
        auto_clips.assert_awaited_once()
        assert auto_clips.await_args.args[2] == stream.id

        stored, _ = await load(database, stream.id)
        assert stored.mux_asset_id == "asset-1"

    @pytest.mark.asyncio
    async def test_replayed_asset_does_not_reschedule(
        self, client, seed, sign_webhook
    ):
        stream = LiveStreamFactory(status=StreamStatus.ENDED)
        stream.record_asset("asset-1", "pb-asset-1")
        await seed(stream)
        body, headers = sign_webhook(
            {
                "type": "video.asset.ready",
                "data": {"id": "asset-1", "live_stream_id": stream.mux_stream_id},
            }
        )

        with patch(
            "liveshop.api.routes.webhooks.run_auto_clips", new=AsyncMock()
        ) as auto_clips:
            response = await client.post(URL, content=body, headers=headers)

        assert response.json() == {"received": True, "ignored": True}
        auto_clips.assert_not_awaited()


class TestRunAutoClips:
    @pytest.mark.asyncio
    async def test_failures_are_logged_not_raised(self, database, mux):
        with patch(
            "liveshop.api.routes.webhooks.ClipManager.generate_auto_clips",
            new=AsyncMock(side_effect=RuntimeError("boom")),
        ):
            await run_auto_clips(database, mux, "stream-1", 30, 120)

    @pytest.mark.asyncio
    async def test_clips_featured_products(self, database, mux, seed):
        stream = LiveStreamFactory(status=StreamStatus.ENDED)
        stream.record_asset("asset-1", "pb-asset-1")
        product = StreamProductFactory(
            stream_id=stream.id, featured_at=stream.started_at + timedelta(seconds=60)
        )
        await seed(stream, [product])

        await run_auto_clips(database, mux, stream.id, 30, 120)

        mux.create_clip.assert_awaited_once_with("asset-1", 30, 180)
        async with database.session() as session:
            clips = await StreamClipRepository(session).list_for_stream(stream.id)
        assert [c.product_id for c in clips] == [product.product_id]
