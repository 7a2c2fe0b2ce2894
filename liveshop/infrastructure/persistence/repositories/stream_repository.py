"""SQLAlchemy repositories for streams and their lineup, events and clips."""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from liveshop.domain.models import (
    Stream,
    StreamClip,
    StreamEvent,
    StreamProduct,
    StreamStatus,
)
from liveshop.infrastructure.persistence import mappers
from liveshop.infrastructure.persistence.models import (
    StreamClipRecord,
    StreamEventRecord,
    StreamProductRecord,
    StreamRecord,
)
from liveshop.infrastructure.persistence.repositories.base_repository import BaseRepository


class StreamRepository(BaseRepository[Stream, StreamRecord]):
    """Stream records. Merchant-facing lookups are always scoped by shop."""

    def __init__(self, session: AsyncSession):
        super().__init__(
            session=session,
            model_class=StreamRecord,
            to_domain=mappers.stream_to_domain,
            apply=mappers.apply_stream,
        )

    async def get_for_shop(self, stream_id: str, shop: str) -> Optional[Stream]:
        stmt = select(StreamRecord).where(
            and_(StreamRecord.id == stream_id, StreamRecord.shop == shop)
        )
        return await self._one_or_none(stmt)

    async def get_by_mux_stream_id(self, mux_stream_id: str) -> Optional[Stream]:
        """Resolve a webhook's live stream id. Not shop scoped."""
        stmt = select(StreamRecord).where(StreamRecord.mux_stream_id == mux_stream_id)
        return await self._one_or_none(stmt)

    async def list_for_shop(
        self, shop: str, limit: int = 50, offset: int = 0
    ) -> List[Stream]:
        stmt = (
            select(StreamRecord)
            .where(StreamRecord.shop == shop)
            .order_by(StreamRecord.created_at.desc(), StreamRecord.id)
            .limit(limit)
            .offset(offset)
        )
        return await self._all(stmt)

    async def list_migration_candidates(self, cutoff: datetime) -> List[Stream]:
        """Ended streams with a recording older than ``cutoff`` not yet migrated."""
        stmt = (
            select(StreamRecord)
            .where(
                and_(
                    StreamRecord.status == StreamStatus.ENDED.value,
                    StreamRecord.mux_asset_id.is_not(None),
                    StreamRecord.mux_asset_created_at <= cutoff,
                    StreamRecord.shopify_video_id.is_(None),
                )
            )
            .order_by(StreamRecord.mux_asset_created_at)
        )
        return await self._all(stmt)


class StreamProductRepository(BaseRepository[StreamProduct, StreamProductRecord]):
    """Lineup rows."""

    def __init__(self, session: AsyncSession):
        super().__init__(
            session=session,
            model_class=StreamProductRecord,
            to_domain=mappers.product_to_domain,
            apply=mappers.apply_product,
        )

    async def list_for_stream(self, stream_id: str) -> List[StreamProduct]:
        stmt = (
            select(StreamProductRecord)
            .where(StreamProductRecord.stream_id == stream_id)
            .order_by(StreamProductRecord.position)
        )
        return await self._all(stmt)

    async def update_all(self, products: List[StreamProduct]) -> None:
        for product in products:
            await self.update(product)


class StreamEventRepository(BaseRepository[StreamEvent, StreamEventRecord]):
    """Append-only audit log; exposes no update or delete."""

    def __init__(self, session: AsyncSession):
        super().__init__(
            session=session,
            model_class=StreamEventRecord,
            to_domain=mappers.event_to_domain,
            apply=lambda entity, _record=None: mappers.event_to_record(entity),
        )

    def append(self, event: StreamEvent) -> StreamEvent:
        return self.add(event)

    async def update(self, entity: StreamEvent) -> StreamEvent:
        raise NotImplementedError("Stream events are append-only")

    async def delete(self, id: str) -> bool:
        raise NotImplementedError("Stream events are append-only")

    async def list_for_stream(self, stream_id: str) -> List[StreamEvent]:
        stmt = (
            select(StreamEventRecord)
            .where(StreamEventRecord.stream_id == stream_id)
            .order_by(StreamEventRecord.created_at, StreamEventRecord.id)
        )
        return await self._all(stmt)


class StreamClipRepository(BaseRepository[StreamClip, StreamClipRecord]):
    """Clips, scoped to a shop through their stream."""

    def __init__(self, session: AsyncSession):
        super().__init__(
            session=session,
            model_class=StreamClipRecord,
            to_domain=mappers.clip_to_domain,
            apply=mappers.apply_clip,
        )

    async def list_for_shop(self, shop: str, limit: int = 100) -> List[StreamClip]:
        stmt = (
            select(StreamClipRecord)
            .join(StreamRecord, StreamRecord.id == StreamClipRecord.stream_id)
            .where(StreamRecord.shop == shop)
            .order_by(StreamClipRecord.created_at.desc(), StreamClipRecord.id)
            .limit(limit)
        )
        return await self._all(stmt)

    async def list_for_stream(self, stream_id: str) -> List[StreamClip]:
        stmt = (
            select(StreamClipRecord)
            .where(StreamClipRecord.stream_id == stream_id)
            .order_by(StreamClipRecord.start_time)
        )
        return await self._all(stmt)

    async def exists_for_product(self, stream_id: str, product_id: str) -> bool:
        stmt = (
            select(StreamClipRecord.id)
            .where(
                and_(
                    StreamClipRecord.stream_id == stream_id,
                    StreamClipRecord.product_id == product_id,
                )
            )
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar() is not None

    async def list_unmigrated_for_stream(self, stream_id: str) -> List[StreamClip]:
        stmt = select(StreamClipRecord).where(
            and_(
                StreamClipRecord.stream_id == stream_id,
                StreamClipRecord.shopify_video_id.is_(None),
                StreamClipRecord.mux_clip_id.is_not(None),
            )
        )
        return await self._all(stmt)
