"""Merchant-driven stream lifecycle workflow.

Covers everything a merchant does to a stream outside of the lineup:
drafting, editing, preparing the Mux ingest session, going live, ending,
and reading the merged state snapshot the operator UI polls.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from liveshop.domain.exceptions import (
    BusinessRuleViolation,
    EntityNotFoundError,
    ValidationError,
    ValidationErrors,
)
from liveshop.domain.models import Stream, StreamEvent, StreamEventType, StreamProduct
from liveshop.domain.models.stream import utcnow
from liveshop.domain.services.lineup import build_lineup
from liveshop.domain.services.playback import stream_playback_url
from liveshop.domain.services.reconciliation import (
    PollPolicy,
    UiState,
    desired_ui_state,
    poll_interval,
)

logger = logging.getLogger(__name__)

DEFAULT_RTMP_URL = "rtmps://global-live.mux.com:443/app"

# Merchant-editable fields besides title and schedule
EDITABLE_FIELDS = (
    "description",
    "thumbnail_url",
    "tags",
    "is_recurring",
    "recurring_frequency",
    "multicast_facebook",
    "multicast_instagram",
    "multicast_tiktok",
    "use_obs",
)

CLEARABLE_FIELDS = ("description", "thumbnail_url", "recurring_frequency")


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class StreamDetail:
    stream: Stream
    products: List[StreamProduct]

    @property
    def playback_url(self) -> Optional[str]:
        return stream_playback_url(self.stream)


@dataclass(frozen=True)
class IngestCredentials:
    """What the merchant pastes into their encoder."""

    mux_stream_id: str
    rtmp_url: str
    stream_key: Optional[str]
    status: Optional[str] = None


@dataclass(frozen=True)
class StreamStateSnapshot:
    """Durable status and liveness flag merged for one poll."""

    stream_id: str
    status: str
    cache_state: Optional[str]
    playback_id: Optional[str]
    playback_url: Optional[str]
    ui_state: UiState
    poll_after_seconds: Optional[int]


@dataclass
class StreamManager:
    """Stream lifecycle operations, always scoped to the calling shop."""

    stream_repo: Any
    product_repo: Any
    event_repo: Any
    liveness: Any
    mux: Any
    default_rtmp_url: str = DEFAULT_RTMP_URL
    latency_mode: str = "low"
    poll_policy: PollPolicy = field(default_factory=PollPolicy)

    async def _get(self, shop: str, stream_id: str) -> Stream:
        stream = await self.stream_repo.get_for_shop(stream_id, shop)
        if stream is None:
            raise EntityNotFoundError("Stream", stream_id)
        return stream

    @staticmethod
    def _detail_errors(changes: Dict[str, Any], now: datetime) -> Dict[str, str]:
        errors = {}
        if "title" in changes and not (changes["title"] or "").strip():
            errors["title"] = "Title is required"
        scheduled_at = _aware(changes.get("scheduled_at"))
        if scheduled_at is not None and scheduled_at <= now:
            errors["scheduled_at"] = "Scheduled time must be in the future"
        return errors

    async def create_draft(
        self,
        shop: str,
        title: str,
        product_ids: List[str],
        scheduled_at: Optional[datetime] = None,
        variant_ids: Optional[Dict[str, str]] = None,
        **details: Any,
    ) -> StreamDetail:
        """Create a stream with its initial lineup.

        Args:
            shop: Owning shop domain
            title: Stream title (required)
            product_ids: Lineup in display order (at least one)
            scheduled_at: Optional future start time; makes the stream SCHEDULED
            variant_ids: Optional product id to variant id mapping
            **details: Any of the editable fields

        Raises:
            ValidationError: input rejected; nothing is written
        """
        errors = self._detail_errors(
            {"title": title, "scheduled_at": scheduled_at}, utcnow()
        )
        if not product_ids:
            errors["product_ids"] = "At least one product is required"
        if errors:
            raise ValidationError(ValidationErrors(errors), entity_type="Stream")

        stream = Stream(shop=shop, title=title.strip())
        for name in EDITABLE_FIELDS:
            if details.get(name) is not None:
                setattr(stream, name, details[name])
        stream.apply_schedule(_aware(scheduled_at))

        lineup = build_lineup(stream.id, product_ids, variant_ids)

        self.stream_repo.add(stream)
        await self.stream_repo.flush()
        self.product_repo.add_all(lineup)
        await self.product_repo.flush()

        logger.info(
            f"Created {stream.status.value} stream {stream.id} for {shop} "
            f"with {len(lineup)} products"
        )
        return StreamDetail(stream=stream, products=lineup)

    async def list_streams(
        self, shop: str, limit: int = 50, offset: int = 0
    ) -> List[Stream]:
        return await self.stream_repo.list_for_shop(shop, limit=limit, offset=offset)

    async def get_detail(self, shop: str, stream_id: str) -> StreamDetail:
        stream = await self._get(shop, stream_id)
        products = await self.product_repo.list_for_stream(stream.id)
        return StreamDetail(stream=stream, products=products)

    async def update_details(
        self, shop: str, stream_id: str, changes: Dict[str, Any]
    ) -> Stream:
        """Apply a partial edit. Only keys present in ``changes`` are touched."""
        stream = await self._get(shop, stream_id)
        errors = self._detail_errors(changes, utcnow())
        if errors:
            raise ValidationError(ValidationErrors(errors), entity_type="Stream")

        if "title" in changes:
            stream.title = changes["title"].strip()
        for name in EDITABLE_FIELDS:
            if name not in changes:
                continue
            if changes[name] is None and name not in CLEARABLE_FIELDS:
                continue
            setattr(stream, name, changes[name])
        if "scheduled_at" in changes:
            stream.apply_schedule(_aware(changes["scheduled_at"]))
        stream.updated_at = utcnow()

        await self.stream_repo.update(stream)
        await self.stream_repo.flush()
        return stream

    async def prepare(self, shop: str, stream_id: str) -> Stream:
        """Create the Mux live stream backing this stream's ingest session."""
        stream = await self._get(shop, stream_id)
        stream.ensure_preparable()

        live_stream = await self.mux.create_live_stream(latency_mode=self.latency_mode)
        stream.attach_ingest_session(
            mux_stream_id=live_stream.id,
            playback_id=live_stream.playback_id,
            rtmp_url=live_stream.rtmp_url or self.default_rtmp_url,
            latency_mode=live_stream.latency_mode or self.latency_mode,
        )

        await self.stream_repo.update(stream)
        await self.stream_repo.flush()

        logger.info(f"Prepared stream {stream.id} with Mux live stream {live_stream.id}")
        return stream

    async def ingest_credentials(self, shop: str, stream_id: str) -> IngestCredentials:
        stream = await self._get(shop, stream_id)
        if not stream.is_prepared:
            raise BusinessRuleViolation(
                "Stream has not been prepared for broadcasting",
                entity_type="Stream",
                entity_id=stream.id,
            )

        live_stream = await self.mux.get_live_stream(stream.mux_stream_id)
        return IngestCredentials(
            mux_stream_id=live_stream.id,
            rtmp_url=stream.mux_rtmp_url or live_stream.rtmp_url or self.default_rtmp_url,
            stream_key=live_stream.stream_key,
            status=live_stream.status,
        )

    async def start(self, shop: str, stream_id: str) -> Stream:
        """Go live once the encoder feed is confirmed by the liveness flag."""
        stream = await self._get(shop, stream_id)
        encoder_state = await self.liveness.get_state(stream.id)

        stream.start(encoder_state)

        await self.stream_repo.update(stream)
        self.event_repo.append(
            StreamEvent(
                stream_id=stream.id,
                type=StreamEventType.STREAM_STARTED,
                payload={"startedBy": "merchant"},
            )
        )
        await self.stream_repo.flush()

        logger.info(f"Stream {stream.id} is live")
        return stream

    async def end(self, shop: str, stream_id: str) -> Stream:
        stream = await self._get(shop, stream_id)

        stream.end()

        await self.stream_repo.update(stream)
        self.event_repo.append(
            StreamEvent(
                stream_id=stream.id,
                type=StreamEventType.STREAM_ENDED,
                payload={"endedBy": "merchant"},
            )
        )
        await self.stream_repo.flush()

        logger.info(f"Stream {stream.id} ended by merchant")
        return stream

    async def get_state(
        self, shop: str, stream_id: str, now: Optional[datetime] = None
    ) -> StreamStateSnapshot:
        stream = await self._get(shop, stream_id)
        cache_state = await self.liveness.get_state(stream.id)

        return StreamStateSnapshot(
            stream_id=stream.id,
            status=stream.status.value,
            cache_state=cache_state,
            playback_id=stream.mux_playback_id,
            playback_url=stream_playback_url(stream),
            ui_state=desired_ui_state(stream, cache_state),
            poll_after_seconds=poll_interval(stream, cache_state, self.poll_policy, now),
        )

    async def liveness_overview(self, shop: str) -> List[Dict[str, Any]]:
        """Each of the shop's streams next to its raw liveness flag."""
        streams = await self.stream_repo.list_for_shop(shop, limit=200)
        states = await self.liveness.get_states([s.id for s in streams])
        return [
            {
                "id": stream.id,
                "title": stream.title,
                "status": stream.status.value,
                "cache_state": states.get(stream.id),
            }
            for stream in streams
        ]
