"""Conversion between domain dataclasses and persistence records.

``*_to_domain`` builds a domain object from a row. ``apply_*`` copies a
domain object onto a new or already loaded row so updates go through the
identity map.
"""

from datetime import datetime, timezone
from typing import Optional

from liveshop.domain.models import (
    Stream,
    StreamClip,
    StreamEvent,
    StreamEventType,
    StreamProduct,
    StreamStatus,
)
from liveshop.infrastructure.persistence.models import (
    StreamClipRecord,
    StreamEventRecord,
    StreamProductRecord,
    StreamRecord,
)

_STREAM_FIELDS = (
    "shop",
    "title",
    "description",
    "scheduled_at",
    "thumbnail_url",
    "is_recurring",
    "recurring_frequency",
    "multicast_facebook",
    "multicast_instagram",
    "multicast_tiktok",
    "use_obs",
    "started_at",
    "live_started_at",
    "ended_at",
    "mux_stream_id",
    "mux_playback_id",
    "mux_rtmp_url",
    "mux_latency_mode",
    "mux_asset_id",
    "mux_asset_playback_id",
    "mux_asset_created_at",
    "shopify_video_id",
    "shopify_video_url",
    "migrated_to_shopify_at",
    "created_at",
    "updated_at",
)

_CLIP_FIELDS = (
    "stream_id",
    "product_id",
    "mux_clip_id",
    "mux_clip_playback_id",
    "start_time",
    "end_time",
    "title",
    "description",
    "shopify_video_id",
    "shopify_video_url",
    "migrated_to_shopify_at",
    "created_at",
)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (SQLite drops the offset)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _copy(source, target, names) -> None:
    for name in names:
        value = getattr(source, name)
        if isinstance(value, datetime):
            value = as_utc(value)
        setattr(target, name, value)


def stream_to_domain(record: StreamRecord) -> Stream:
    stream = Stream(shop=record.shop, title=record.title, id=record.id)
    _copy(record, stream, _STREAM_FIELDS)
    stream.status = StreamStatus(record.status)
    stream.tags = list(record.tags or [])
    return stream


def apply_stream(entity: Stream, record: Optional[StreamRecord] = None) -> StreamRecord:
    record = record or StreamRecord(id=entity.id)
    _copy(entity, record, _STREAM_FIELDS)
    record.status = entity.status.value
    record.tags = list(entity.tags)
    return record


def product_to_domain(record: StreamProductRecord) -> StreamProduct:
    return StreamProduct(
        id=record.id,
        stream_id=record.stream_id,
        product_id=record.product_id,
        variant_id=record.variant_id,
        position=record.position,
        featured_at=as_utc(record.featured_at),
    )


def apply_product(
    entity: StreamProduct, record: Optional[StreamProductRecord] = None
) -> StreamProductRecord:
    record = record or StreamProductRecord(id=entity.id)
    record.stream_id = entity.stream_id
    record.product_id = entity.product_id
    record.variant_id = entity.variant_id
    record.position = entity.position
    record.featured_at = entity.featured_at
    return record


def event_to_domain(record: StreamEventRecord) -> StreamEvent:
    return StreamEvent(
        id=record.id,
        stream_id=record.stream_id,
        type=StreamEventType(record.type),
        payload=record.payload,
        created_at=as_utc(record.created_at),
    )


def event_to_record(entity: StreamEvent) -> StreamEventRecord:
    return StreamEventRecord(
        id=entity.id,
        stream_id=entity.stream_id,
        type=entity.type.value,
        payload=entity.payload,
        created_at=entity.created_at,
    )


def clip_to_domain(record: StreamClipRecord) -> StreamClip:
    clip = StreamClip(
        stream_id=record.stream_id,
        start_time=record.start_time,
        end_time=record.end_time,
        id=record.id,
    )
    _copy(record, clip, _CLIP_FIELDS)
    return clip


def apply_clip(
    entity: StreamClip, record: Optional[StreamClipRecord] = None
) -> StreamClipRecord:
    record = record or StreamClipRecord(id=entity.id)
    _copy(entity, record, _CLIP_FIELDS)
    return record
