"""Mux webhook processing use case.

Reconciles the stream record and the liveness cache from Mux lifecycle
notifications. Only ``video.live_stream.idle`` changes a stream's status;
``video.live_stream.active`` just flips the liveness flag (going live stays
a merchant decision).
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import logfire

from liveshop.application.use_cases.base import ResultStatus, UseCase, UseCaseResult
from liveshop.domain.models import StreamEvent, StreamEventType
from liveshop.domain.models.stream import utcnow
from liveshop.infrastructure.mux import first_playback_id

logger = logging.getLogger(__name__)

LIVE_STREAM_ACTIVE = "video.live_stream.active"
LIVE_STREAM_IDLE = "video.live_stream.idle"
ASSET_READY = "video.asset.ready"


@dataclass
class MuxWebhookRequest:
    """Raw webhook delivery as received over HTTP."""

    raw_body: bytes
    signature: Optional[str]


@dataclass
class MuxWebhookResult(UseCaseResult):
    """Outcome of one webhook delivery."""

    event_type: Optional[str] = None
    stream_id: Optional[str] = None
    auto_clip_stream_id: Optional[str] = None


def parse_mux_timestamp(value: Any) -> Optional[datetime]:
    """Mux sends ``created_at`` as unix seconds, sometimes as a string."""
    try:
        return datetime.fromtimestamp(int(value), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        return None


class MuxWebhookUseCase(UseCase[MuxWebhookRequest, MuxWebhookResult]):
    """Verify and apply a Mux webhook."""

    def __init__(self, stream_repo, event_repo, liveness, validator):
        """Initialize webhook use case.

        Args:
            stream_repo: Stream repository bound to the request session
            event_repo: Stream event repository on the same session
            liveness: Liveness cache
            validator: MuxWebhookValidator, or None when no secret is configured
        """
        self.stream_repo = stream_repo
        self.event_repo = event_repo
        self.liveness = liveness
        self.validator = validator
        self._handlers = {
            LIVE_STREAM_ACTIVE: self._on_live_stream_active,
            LIVE_STREAM_IDLE: self._on_live_stream_idle,
            ASSET_READY: self._on_asset_ready,
        }

    async def execute(self, request: MuxWebhookRequest) -> MuxWebhookResult:
        if not request.signature:
            logger.warning("Mux webhook rejected: missing signature header")
            return MuxWebhookResult(
                status=ResultStatus.UNAUTHORIZED, errors=["Missing Mux-Signature header"]
            )

        if self.validator is None:
            logger.error("Mux webhook rejected: signing secret is not configured")
            return MuxWebhookResult(
                status=ResultStatus.UNAUTHORIZED,
                errors=["Webhook signing secret not configured"],
            )

        if not self.validator.validate_signature(request.raw_body, request.signature):
            logger.warning("Mux webhook rejected: signature verification failed")
            return MuxWebhookResult(
                status=ResultStatus.UNAUTHORIZED, errors=["Invalid webhook signature"]
            )

        try:
            payload = json.loads(request.raw_body)
        except (ValueError, UnicodeDecodeError):
            payload = None
        if not isinstance(payload, dict):
            return MuxWebhookResult(
                status=ResultStatus.VALIDATION_ERROR, errors=["Malformed webhook body"]
            )

        event_type = payload.get("type")
        data = payload.get("data") or {}

        handler = self._handlers.get(event_type)
        if handler is None:
            logger.info(f"Ignoring unhandled Mux webhook type: {event_type}")
            return MuxWebhookResult(
                status=ResultStatus.IGNORED,
                event_type=event_type,
                message="Unhandled event type",
            )

        with logfire.span("mux webhook {event_type}", event_type=event_type):
            try:
                result = await handler(data)
            except Exception:
                logger.exception(f"Failed to process Mux webhook {event_type}")
                raise

        result.event_type = event_type
        return result

    async def _resolve(self, mux_stream_id: Optional[str]):
        if not mux_stream_id:
            return None
        return await self.stream_repo.get_by_mux_stream_id(mux_stream_id)

    def _not_found(self, mux_stream_id: Optional[str]) -> MuxWebhookResult:
        logger.warning(f"Mux webhook for unknown live stream {mux_stream_id!r}")
        return MuxWebhookResult(
            status=ResultStatus.NOT_FOUND,
            errors=[f"No stream for Mux live stream {mux_stream_id!r}"],
        )

    async def _on_live_stream_active(self, data: Dict[str, Any]) -> MuxWebhookResult:
        mux_stream_id = data.get("id")
        stream = await self._resolve(mux_stream_id)
        if stream is None:
            return self._not_found(mux_stream_id)

        pending = [self.liveness.mark_live(stream.id)]
        if stream.record_playback_id(first_playback_id(data)):
            await self.stream_repo.update(stream)
            pending.append(self.stream_repo.flush())

        await asyncio.gather(*pending)

        logger.info(f"Encoder connected for stream {stream.id}")
        return MuxWebhookResult(status=ResultStatus.SUCCESS, stream_id=stream.id)

    async def _on_live_stream_idle(self, data: Dict[str, Any]) -> MuxWebhookResult:
        mux_stream_id = data.get("id")
        stream = await self._resolve(mux_stream_id)
        if stream is None:
            return self._not_found(mux_stream_id)

        pending = [self.liveness.mark_ended(stream.id)]
        now = utcnow()
        if stream.end_from_encoder(now):
            await self.stream_repo.update(stream)
            self.event_repo.append(
                StreamEvent(
                    stream_id=stream.id,
                    type=StreamEventType.STREAM_ENDED,
                    payload={"muxStreamId": mux_stream_id, "timestamp": now.isoformat()},
                )
            )
            pending.append(self.stream_repo.flush())

        await asyncio.gather(*pending)

        logger.info(f"Encoder went idle for stream {stream.id}; stream ended")
        return MuxWebhookResult(status=ResultStatus.SUCCESS, stream_id=stream.id)

    async def _on_asset_ready(self, data: Dict[str, Any]) -> MuxWebhookResult:
        live_stream_id = data.get("live_stream_id")
        if not live_stream_id:
            return MuxWebhookResult(
                status=ResultStatus.IGNORED, message="Asset is not from a live stream"
            )

        stream = await self._resolve(live_stream_id)
        if stream is None:
            return self._not_found(live_stream_id)

        asset_id = data.get("id")
        if not asset_id:
            return MuxWebhookResult(
                status=ResultStatus.VALIDATION_ERROR, errors=["Asset id missing"]
            )

        recorded = stream.record_asset(
            asset_id,
            first_playback_id(data),
            parse_mux_timestamp(data.get("created_at")),
        )
        if not recorded:
            logger.info(f"Asset for stream {stream.id} already recorded; skipping")
            return MuxWebhookResult(
                status=ResultStatus.IGNORED,
                stream_id=stream.id,
                message="Asset already recorded",
            )

        await self.stream_repo.update(stream)
        await self.stream_repo.flush()

        logger.info(f"Recorded asset {asset_id} for stream {stream.id}")
        return MuxWebhookResult(
            status=ResultStatus.SUCCESS,
            stream_id=stream.id,
            auto_clip_stream_id=stream.id,
        )
