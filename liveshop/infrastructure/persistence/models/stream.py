"""Stream tables: streams, lineup rows, audit events and clips.

Status and event type are stored as plain strings so the schema does not
depend on database enum support.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from liveshop.infrastructure.persistence.models.base import Base, TimestampMixin


class StreamRecord(Base, TimestampMixin):
    """Durable record of a live shopping stream."""

    __tablename__ = "streams"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    shop: Mapped[str] = mapped_column(
        String(255), nullable=False, index=True, comment="Owning shop domain"
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="DRAFT", index=True
    )
    scheduled_at: Mapped[Optional[datetime]] = mapped_column(nullable=True)
    thumbnail_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    tags: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    is_recurring: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    recurring_frequency: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    multicast_facebook: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    multicast_instagram: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    multicast_tiktok: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    use_obs: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    started_at: Mapped[Optional[datetime]] = mapped_column(nullable=True)
    live_started_at: Mapped[Optional[datetime]] = mapped_column(nullable=True)
    ended_at: Mapped[Optional[datetime]] = mapped_column(nullable=True)

    mux_stream_id: Mapped[Optional[str]] = mapped_column(
        String(128), nullable=True, unique=True, comment="Mux live stream id"
    )
    mux_playback_id: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    mux_rtmp_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    mux_latency_mode: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    mux_asset_id: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    mux_asset_playback_id: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    mux_asset_created_at: Mapped[Optional[datetime]] = mapped_column(nullable=True, index=True)

    shopify_video_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    shopify_video_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    migrated_to_shopify_at: Mapped[Optional[datetime]] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return f"<StreamRecord(id={self.id}, shop='{self.shop}', status='{self.status}')>"


class StreamProductRecord(Base):
    """Product position within a stream lineup."""

    __tablename__ = "stream_products"
    __table_args__ = (UniqueConstraint("stream_id", "product_id"),)

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    stream_id: Mapped[str] = mapped_column(
        ForeignKey("streams.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id: Mapped[str] = mapped_column(String(255), nullable=False)
    variant_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    featured_at: Mapped[Optional[datetime]] = mapped_column(nullable=True)


class StreamEventRecord(Base):
    """Append-only audit entry."""

    __tablename__ = "stream_events"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    stream_id: Mapped[str] = mapped_column(
        ForeignKey("streams.id", ondelete="CASCADE"), nullable=False, index=True
    )
    type: Mapped[str] = mapped_column(String(40), nullable=False, index=True)
    payload: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class StreamClipRecord(Base):
    """Clip cut from a stream's recording."""

    __tablename__ = "stream_clips"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    stream_id: Mapped[str] = mapped_column(
        ForeignKey("streams.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    mux_clip_id: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    mux_clip_playback_id: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    start_time: Mapped[int] = mapped_column(Integer, nullable=False)
    end_time: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    shopify_video_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    shopify_video_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    migrated_to_shopify_at: Mapped[Optional[datetime]] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
