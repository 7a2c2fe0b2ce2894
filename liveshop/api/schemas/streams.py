"""Stream request/response schemas."""

from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from liveshop.application.workflows import (
    IngestCredentials,
    StreamDetail,
    StreamStateSnapshot,
)
from liveshop.domain.models import Stream, StreamProduct
from liveshop.domain.services.playback import (
    mux_thumbnail_url,
    source_label,
    stream_playback_url,
)


class StreamOptions(BaseModel):
    """Broadcast options shared by create and update."""

    description: Optional[str] = Field(default=None, description="Stream description")
    thumbnail_url: Optional[str] = Field(default=None, description="Custom thumbnail URL")
    tags: Optional[List[str]] = Field(default=None, description="Merchant tags")
    is_recurring: Optional[bool] = Field(default=None, description="Repeats on a schedule")
    recurring_frequency: Optional[str] = Field(
        default=None, description="Recurrence rule, e.g. weekly"
    )
    multicast_facebook: Optional[bool] = Field(default=None)
    multicast_instagram: Optional[bool] = Field(default=None)
    multicast_tiktok: Optional[bool] = Field(default=None)
    use_obs: Optional[bool] = Field(
        default=None, description="Broadcast from an external encoder such as OBS"
    )


class StreamCreate(StreamOptions):
    """Request schema for drafting a new stream."""

    title: str = Field(description="Stream title")
    product_ids: List[str] = Field(description="Lineup, in display order")
    variant_ids: Optional[Dict[str, str]] = Field(
        default=None, description="Optional variant per product id"
    )
    scheduled_at: Optional[datetime] = Field(
        default=None, description="Planned start time; must be in the future"
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Spring collection launch",
                "product_ids": ["gid://shopify/Product/1", "gid://shopify/Product/2"],
                "scheduled_at": "2030-04-01T18:00:00Z",
                "tags": ["spring", "launch"],
            }
        }
    )


class StreamUpdate(StreamOptions):
    """Partial update; omitted fields are left unchanged."""

    title: Optional[str] = Field(default=None, description="Stream title")
    scheduled_at: Optional[datetime] = Field(
        default=None, description="Planned start time; null clears the schedule"
    )


class StreamProductResponse(BaseModel):
    id: str
    product_id: str
    variant_id: Optional[str] = None
    position: int
    featured_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, product: StreamProduct) -> "StreamProductResponse":
        return cls(
            id=product.id,
            product_id=product.product_id,
            variant_id=product.variant_id,
            position=product.position,
            featured_at=product.featured_at,
        )


class StreamResponse(BaseModel):
    """Response schema for stream details."""

    id: str = Field(description="Unique stream identifier")
    shop: str
    title: str
    description: Optional[str] = None
    status: str = Field(description="DRAFT, SCHEDULED, LIVE or ENDED")
    scheduled_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    thumbnail_url: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    is_recurring: bool = False
    recurring_frequency: Optional[str] = None
    multicast_facebook: bool = False
    multicast_instagram: bool = False
    multicast_tiktok: bool = False
    use_obs: bool = True
    is_prepared: bool = Field(description="Whether an ingest session exists")
    playback_id: Optional[str] = None
    playback_url: Optional[str] = None
    playback_source: Optional[str] = Field(default=None, description="shopify or mux")
    has_recording: bool = False
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, stream: Stream) -> "StreamResponse":
        thumbnail = stream.thumbnail_url
        if not thumbnail and stream.mux_playback_id:
            thumbnail = mux_thumbnail_url(stream.mux_playback_id)
        return cls(
            id=stream.id,
            shop=stream.shop,
            title=stream.title,
            description=stream.description,
            status=stream.status.value,
            scheduled_at=stream.scheduled_at,
            started_at=stream.started_at,
            ended_at=stream.ended_at,
            thumbnail_url=thumbnail,
            tags=list(stream.tags or []),
            is_recurring=stream.is_recurring,
            recurring_frequency=stream.recurring_frequency,
            multicast_facebook=stream.multicast_facebook,
            multicast_instagram=stream.multicast_instagram,
            multicast_tiktok=stream.multicast_tiktok,
            use_obs=stream.use_obs,
            is_prepared=stream.is_prepared,
            playback_id=stream.mux_playback_id,
            playback_url=stream_playback_url(stream),
            playback_source=source_label(stream),
            has_recording=stream.has_recording,
            created_at=stream.created_at,
            updated_at=stream.updated_at,
        )


class StreamDetailResponse(StreamResponse):
    """Stream plus its ordered lineup."""

    products: List[StreamProductResponse] = Field(default_factory=list)

    @classmethod
    def from_detail(cls, detail: StreamDetail) -> "StreamDetailResponse":
        base = StreamResponse.from_domain(detail.stream)
        return cls(
            **base.model_dump(),
            products=[StreamProductResponse.from_domain(p) for p in detail.products],
        )


class StreamListResponse(BaseModel):
    items: List[StreamResponse]
    limit: int
    offset: int


class IngestResponse(BaseModel):
    """Encoder settings for a prepared stream."""

    mux_stream_id: str
    rtmp_url: str
    stream_key: Optional[str] = None
    status: Optional[str] = None

    @classmethod
    def from_credentials(cls, credentials: IngestCredentials) -> "IngestResponse":
        return cls(
            mux_stream_id=credentials.mux_stream_id,
            rtmp_url=credentials.rtmp_url,
            stream_key=credentials.stream_key,
            status=credentials.status,
        )


class StreamStateResponse(BaseModel):
    """What the operator UI polls while waiting for a stream to converge."""

    stream_id: str
    status: str
    cache_state: Optional[str] = Field(
        default=None, description="Raw liveness flag: live, ended or null"
    )
    playback_id: Optional[str] = None
    playback_url: Optional[str] = None
    ui_state: Literal["waiting", "live", "ended"]
    poll_after_seconds: Optional[int] = Field(
        default=None, description="Seconds until the next poll; null stops polling"
    )

    @classmethod
    def from_snapshot(cls, snapshot: StreamStateSnapshot) -> "StreamStateResponse":
        return cls(
            stream_id=snapshot.stream_id,
            status=snapshot.status,
            cache_state=snapshot.cache_state,
            playback_id=snapshot.playback_id,
            playback_url=snapshot.playback_url,
            ui_state=snapshot.ui_state.value,
            poll_after_seconds=snapshot.poll_after_seconds,
        )


class AddProductsRequest(BaseModel):
    product_ids: List[str] = Field(description="Products to append to the lineup")


class MoveProductRequest(BaseModel):
    direction: Literal["up", "down"]


class LineupResponse(BaseModel):
    stream_id: str
    products: List[StreamProductResponse]
