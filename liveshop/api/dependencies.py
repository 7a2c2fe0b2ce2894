"""FastAPI dependency injection."""

import re
from typing import AsyncGenerator, Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from liveshop.api.exceptions import AuthenticationError
from liveshop.application.use_cases import MuxWebhookUseCase
from liveshop.application.workflows import (
    AssetMigrator,
    ClipManager,
    LineupManager,
    StreamManager,
)
from liveshop.core.cache import LivenessCache, cache
from liveshop.core.config import Settings, get_settings
from liveshop.domain.services.reconciliation import PollPolicy
from liveshop.infrastructure.mux import MuxClient
from liveshop.infrastructure.persistence.database import Database
from liveshop.infrastructure.persistence.repositories import (
    StreamClipRepository,
    StreamEventRepository,
    StreamProductRepository,
    StreamRepository,
)
from liveshop.infrastructure.security import MuxWebhookValidator

SHOP_DOMAIN_PATTERN = re.compile(r"^[a-z0-9][a-z0-9-]*\.myshopify\.com$")


# Settings dependency
def get_settings_dep() -> Settings:
    """Get application settings."""
    return get_settings()


# Database dependencies
_db_instance: Optional[Database] = None


async def get_database() -> Database:
    """Get database instance (singleton)."""
    global _db_instance
    if _db_instance is None:
        settings = get_settings()
        _db_instance = Database(
            settings.database_url,
            echo=settings.database_echo,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
        )
    return _db_instance


async def close_database() -> None:
    global _db_instance
    if _db_instance is not None:
        await _db_instance.close()
        _db_instance = None


async def get_session(
    db: Database = Depends(get_database),
) -> AsyncGenerator[AsyncSession, None]:
    """Get database session."""
    async with db.session() as session:
        yield session


# Repository dependencies
def get_stream_repository(
    session: AsyncSession = Depends(get_session),
) -> StreamRepository:
    return StreamRepository(session)


def get_stream_product_repository(
    session: AsyncSession = Depends(get_session),
) -> StreamProductRepository:
    return StreamProductRepository(session)


def get_stream_event_repository(
    session: AsyncSession = Depends(get_session),
) -> StreamEventRepository:
    return StreamEventRepository(session)


def get_stream_clip_repository(
    session: AsyncSession = Depends(get_session),
) -> StreamClipRepository:
    return StreamClipRepository(session)


# Infrastructure dependencies
def get_liveness_cache(settings: Settings = Depends(get_settings_dep)) -> LivenessCache:
    """Liveness flag store backed by the process-wide Redis handle."""
    return LivenessCache(cache, ttl_seconds=settings.liveness_ttl_seconds)


_mux_client: Optional[MuxClient] = None


def get_mux_client(settings: Settings = Depends(get_settings_dep)) -> MuxClient:
    """Get Mux API client (singleton, owns one aiohttp session)."""
    global _mux_client
    if _mux_client is None:
        _mux_client = MuxClient(
            token_id=settings.mux_token_id,
            token_secret=settings.mux_token_secret,
            base_url=settings.mux_api_base_url,
            timeout_seconds=settings.mux_request_timeout_seconds,
        )
    return _mux_client


async def close_mux_client() -> None:
    global _mux_client
    if _mux_client is not None:
        await _mux_client.close()
        _mux_client = None


def get_webhook_validator(
    settings: Settings = Depends(get_settings_dep),
) -> Optional[MuxWebhookValidator]:
    """Signature validator, or None when no signing secret is configured."""
    if not settings.mux_webhook_signing_secret:
        return None
    return MuxWebhookValidator(
        settings.mux_webhook_signing_secret,
        max_age_seconds=settings.mux_webhook_tolerance_seconds,
    )


# Tenant
def get_current_shop(
    request: Request, settings: Settings = Depends(get_settings_dep)
) -> str:
    """Shop domain of the authenticated merchant session.

    The embedded-app proxy in front of this service authenticates the
    merchant and forwards the shop domain in a header.
    """
    shop = (request.headers.get(settings.shop_header) or "").strip().lower()
    if not shop:
        raise AuthenticationError("Missing shop context")
    if not SHOP_DOMAIN_PATTERN.match(shop):
        raise AuthenticationError("Invalid shop domain", details={"shop": shop})
    return shop


# Workflow dependencies
def get_stream_manager(
    stream_repo: StreamRepository = Depends(get_stream_repository),
    product_repo: StreamProductRepository = Depends(get_stream_product_repository),
    event_repo: StreamEventRepository = Depends(get_stream_event_repository),
    liveness: LivenessCache = Depends(get_liveness_cache),
    mux: MuxClient = Depends(get_mux_client),
    settings: Settings = Depends(get_settings_dep),
) -> StreamManager:
    return StreamManager(
        stream_repo=stream_repo,
        product_repo=product_repo,
        event_repo=event_repo,
        liveness=liveness,
        mux=mux,
        default_rtmp_url=settings.mux_default_rtmp_url,
        poll_policy=PollPolicy(
            waiting_seconds=settings.poll_waiting_seconds,
            pending_seconds=settings.poll_pending_seconds,
            after_end_window_seconds=settings.poll_after_end_window_seconds,
        ),
    )


def get_lineup_manager(
    stream_repo: StreamRepository = Depends(get_stream_repository),
    product_repo: StreamProductRepository = Depends(get_stream_product_repository),
    event_repo: StreamEventRepository = Depends(get_stream_event_repository),
) -> LineupManager:
    return LineupManager(
        stream_repo=stream_repo, product_repo=product_repo, event_repo=event_repo
    )


def get_clip_manager(
    stream_repo: StreamRepository = Depends(get_stream_repository),
    product_repo: StreamProductRepository = Depends(get_stream_product_repository),
    clip_repo: StreamClipRepository = Depends(get_stream_clip_repository),
    mux: MuxClient = Depends(get_mux_client),
    settings: Settings = Depends(get_settings_dep),
) -> ClipManager:
    return ClipManager(
        stream_repo=stream_repo,
        product_repo=product_repo,
        clip_repo=clip_repo,
        mux=mux,
        lead_seconds=settings.auto_clip_lead_seconds,
        tail_seconds=settings.auto_clip_tail_seconds,
    )


def get_asset_migrator(
    stream_repo: StreamRepository = Depends(get_stream_repository),
    clip_repo: StreamClipRepository = Depends(get_stream_clip_repository),
    mux: MuxClient = Depends(get_mux_client),
    settings: Settings = Depends(get_settings_dep),
) -> AssetMigrator:
    return AssetMigrator(
        stream_repo=stream_repo,
        clip_repo=clip_repo,
        mux=mux,
        age_days=settings.asset_migration_age_days,
    )


def get_mux_webhook_use_case(
    stream_repo: StreamRepository = Depends(get_stream_repository),
    event_repo: StreamEventRepository = Depends(get_stream_event_repository),
    liveness: LivenessCache = Depends(get_liveness_cache),
    validator: Optional[MuxWebhookValidator] = Depends(get_webhook_validator),
) -> MuxWebhookUseCase:
    return MuxWebhookUseCase(
        stream_repo=stream_repo,
        event_repo=event_repo,
        liveness=liveness,
        validator=validator,
    )
