"""Tests for the clip and scheduled job routes."""

from datetime import datetime, timedelta, timezone

import pytest

from liveshop.api.dependencies import get_settings_dep
from liveshop.domain.models import StreamStatus
from liveshop.infrastructure.persistence.repositories import StreamClipRepository
from tests.factories import OTHER_SHOP, LiveStreamFactory, StreamClipFactory

CLIPS = "/api/v1/clips"
MIGRATE = "/api/v1/jobs/migrate-assets"


def recorded_stream(**overrides):
    stream = LiveStreamFactory(status=StreamStatus.ENDED, **overrides)
    stream.record_asset("asset-1", "pb-asset-1")
    return stream


class TestClipRoutes:
    @pytest.mark.asyncio
    async def test_create_clip(self, client, seed, shop_headers, mux):
        stream = await seed(recorded_stream())

        response = await client.post(
            f"{CLIPS}/",
            json={"stream_id": stream.id, "start_time": 10, "end_time": 70},
            headers=shop_headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["duration"] == 60
        assert data["playback_url"] == "https://stream.mux.com/pb-clip-1.m3u8"
        mux.create_clip.assert_awaited_once_with("asset-1", 10, 70)

    @pytest.mark.asyncio
    async def test_invalid_bounds(self, client, seed, shop_headers, mux):
        stream = await seed(recorded_stream())

        response = await client.post(
            f"{CLIPS}/",
            json={"stream_id": stream.id, "start_time": 70, "end_time": 10},
            headers=shop_headers,
        )

        assert response.status_code == 422
        assert "end_time" in response.json()["error"]["details"]["field_errors"]
        mux.create_clip.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_stream_without_recording(self, client, seed, shop_headers):
        stream = await seed(LiveStreamFactory())

        response = await client.post(
            f"{CLIPS}/",
            json={"stream_id": stream.id, "start_time": 0, "end_time": 10},
            headers=shop_headers,
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_list_clips_for_shop(self, client, seed, database, shop_headers):
        mine = await seed(recorded_stream())
        theirs = await seed(recorded_stream(shop=OTHER_SHOP))
        async with database.session() as session:
            StreamClipRepository(session).add_all(
                [
                    StreamClipFactory(stream_id=mine.id),
                    StreamClipFactory(stream_id=theirs.id),
                ]
            )

        response = await client.get(f"{CLIPS}/", headers=shop_headers)

        assert response.status_code == 200
        assert [c["stream_id"] for c in response.json()["items"]] == [mine.id]


class TestMigrationJob:
    @pytest.mark.asyncio
    async def test_requires_token(self, client):
        response = await client.post(MIGRATE)
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_rejects_wrong_token(self, client):
        response = await client.post(MIGRATE, params={"token": "guess"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_rejects_non_ascii_token(self, client, mux):
        response = await client.post(MIGRATE, params={"token": "é"})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "AUTHENTICATION_FAILED"
        mux.get_asset.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unconfigured_secret(self, app, client, test_settings):
        settings = test_settings.model_copy(update={"migration_job_secret": None})
        app.dependency_overrides[get_settings_dep] = lambda: settings

        token = test_settings.migration_job_secret
        response = await client.post(MIGRATE, params={"token": token})

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "CONFIGURATION_ERROR"

    @pytest.mark.asyncio
    async def test_runs_sweep(self, client, seed, mux, test_settings):
        old = LiveStreamFactory(status=StreamStatus.ENDED)
        old.record_asset(
            "asset-old", "pb-old", datetime.now(timezone.utc) - timedelta(days=120)
        )
        await seed(old)

        token = test_settings.migration_job_secret
        response = await client.post(MIGRATE, params={"token": token})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["summary"]["streams_processed"] == 1
        assert body["summary"]["streams_succeeded"] == 1
        mux.get_asset.assert_awaited_once_with("asset-old")
