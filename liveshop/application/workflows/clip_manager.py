"""Clip workflow - manual clips and clips cut around featured products."""

import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from liveshop.domain.exceptions import BusinessRuleViolation, EntityNotFoundError
from liveshop.domain.models import ClipWindow, Stream, StreamClip
from liveshop.domain.models.clip import format_offset

logger = logging.getLogger(__name__)


@dataclass
class ClipManager:
    """Creates clips from a stream's recorded Mux asset."""

    stream_repo: Any
    product_repo: Any
    clip_repo: Any
    mux: Any
    lead_seconds: int = 30
    tail_seconds: int = 120

    async def create_clip(
        self,
        shop: str,
        stream_id: str,
        start_time: int,
        end_time: int,
        title: Optional[str] = None,
        description: Optional[str] = None,
        product_id: Optional[str] = None,
    ) -> StreamClip:
        """Cut a merchant-chosen window out of the stream recording.

        Raises:
            ValidationError: bounds are negative or empty
            EntityNotFoundError: stream does not belong to ``shop``
            BusinessRuleViolation: stream has no recording or start time
            MuxError: the clip asset could not be created
        """
        window = ClipWindow(start_time, end_time)

        stream = await self.stream_repo.get_for_shop(stream_id, shop)
        if stream is None:
            raise EntityNotFoundError("Stream", stream_id)
        self._ensure_clippable(stream)

        clip = await self._cut(
            stream,
            window,
            title=title or f"Clip: {window.start_time}s - {window.end_time}s",
            description=description,
            product_id=product_id,
        )
        await self.clip_repo.flush()

        logger.info(
            f"Created clip {clip.id} for stream {stream.id} "
            f"({window.start_time}s-{window.end_time}s)"
        )
        return clip

    async def list_clips(self, shop: str) -> List[StreamClip]:
        return await self.clip_repo.list_for_shop(shop)

    async def generate_auto_clips(self, stream_id: str) -> List[StreamClip]:
        """Clip every featured product that does not have a clip yet.

        A failure for one product is logged and does not stop the others.
        """
        stream = await self.stream_repo.get(stream_id)
        if stream is None:
            logger.warning(f"Auto-clip skipped: stream {stream_id} not found")
            return []
        if not stream.mux_asset_id or not stream.started_at:
            logger.info(f"Auto-clip skipped for stream {stream_id}: no asset or start time")
            return []

        created: List[StreamClip] = []
        for product in await self.product_repo.list_for_stream(stream_id):
            if product.featured_at is None:
                continue
            if await self.clip_repo.exists_for_product(stream_id, product.product_id):
                continue

            try:
                window = ClipWindow.around(
                    product.featured_at,
                    stream.started_at,
                    self.lead_seconds,
                    self.tail_seconds,
                )
                offset = int((product.featured_at - stream.started_at).total_seconds())
                clip = await self._cut(
                    stream,
                    window,
                    title=f"Auto-clip: Product featured at {format_offset(offset)}",
                    description=None,
                    product_id=product.product_id,
                )
                await self.clip_repo.flush()
                created.append(clip)
            except Exception as e:
                logger.error(
                    f"Auto-clip failed for product {product.product_id} "
                    f"in stream {stream_id}: {e}"
                )

        logger.info(f"Generated {len(created)} auto-clips for stream {stream_id}")
        return created

    def _ensure_clippable(self, stream: Stream) -> None:
        if not stream.mux_asset_id:
            raise BusinessRuleViolation(
                "Stream does not have a recorded asset yet",
                entity_type="Stream",
                entity_id=stream.id,
            )
        if not stream.started_at:
            raise BusinessRuleViolation(
                "Stream start time is unknown", entity_type="Stream", entity_id=stream.id
            )

    async def _cut(
        self,
        stream: Stream,
        window: ClipWindow,
        title: str,
        description: Optional[str],
        product_id: Optional[str],
    ) -> StreamClip:
        asset = await self.mux.create_clip(
            stream.mux_asset_id, window.start_time, window.end_time
        )
        clip = StreamClip(
            stream_id=stream.id,
            start_time=window.start_time,
            end_time=window.end_time,
            product_id=product_id,
            mux_clip_id=asset.id,
            mux_clip_playback_id=asset.playback_id,
            title=title,
            description=description,
        )
        return self.clip_repo.add(clip)
