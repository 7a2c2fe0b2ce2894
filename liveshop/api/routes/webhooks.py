"""Mux webhook receiver."""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from liveshop.api.dependencies import (
    get_database,
    get_mux_client,
    get_mux_webhook_use_case,
    get_session,
    get_settings_dep,
)
from liveshop.api.exceptions import AuthenticationError, LiveShopException
from liveshop.application.use_cases import (
    MuxWebhookRequest,
    MuxWebhookUseCase,
    ResultStatus,
)
from liveshop.application.workflows import ClipManager
from liveshop.core.config import Settings
from liveshop.infrastructure.mux import MuxClient
from liveshop.infrastructure.persistence.database import Database
from liveshop.infrastructure.persistence.repositories import (
    StreamClipRepository,
    StreamProductRepository,
    StreamRepository,
)

logger = logging.getLogger(__name__)

router = APIRouter()

SIGNATURE_HEADER = "Mux-Signature"


async def run_auto_clips(
    database: Database,
    mux: MuxClient,
    stream_id: str,
    lead_seconds: int,
    tail_seconds: int,
) -> None:
    """Generate auto clips for a stream in a session of its own."""
    try:
        async with database.session() as session:
            manager = ClipManager(
                stream_repo=StreamRepository(session),
                product_repo=StreamProductRepository(session),
                clip_repo=StreamClipRepository(session),
                mux=mux,
                lead_seconds=lead_seconds,
                tail_seconds=tail_seconds,
            )
            await manager.generate_auto_clips(stream_id)
    except Exception as e:
        logger.error(f"Auto-clip generation failed for stream {stream_id}: {e}")


@router.post("/mux", status_code=status.HTTP_200_OK)
async def receive_mux_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    use_case: MuxWebhookUseCase = Depends(get_mux_webhook_use_case),
    session: AsyncSession = Depends(get_session),
    database: Database = Depends(get_database),
    mux: MuxClient = Depends(get_mux_client),
    settings: Settings = Depends(get_settings_dep),
):
    """Apply a signed Mux lifecycle notification."""
    raw_body = await request.body()
    result = await use_case.execute(
        MuxWebhookRequest(
            raw_body=raw_body, signature=request.headers.get(SIGNATURE_HEADER)
        )
    )

    message = result.errors[0] if result.errors else (result.message or "")
    if result.status == ResultStatus.UNAUTHORIZED:
        raise AuthenticationError(message)
    if result.status == ResultStatus.VALIDATION_ERROR:
        raise LiveShopException(
            message, status_code=status.HTTP_400_BAD_REQUEST, error_code="BAD_REQUEST"
        )
    if result.status == ResultStatus.NOT_FOUND:
        raise LiveShopException(
            message,
            status_code=status.HTTP_404_NOT_FOUND,
            error_code="RESOURCE_NOT_FOUND",
        )
    if result.status == ResultStatus.FAILURE:
        raise LiveShopException(message or "Webhook processing failed")

    if result.auto_clip_stream_id:
        # The clip job reads the asset in its own session
        await session.commit()
        background_tasks.add_task(
            run_auto_clips,
            database,
            mux,
            result.auto_clip_stream_id,
            settings.auto_clip_lead_seconds,
            settings.auto_clip_tail_seconds,
        )

    body = {"received": True}
    if result.status == ResultStatus.IGNORED:
        body["ignored"] = True
    return body
