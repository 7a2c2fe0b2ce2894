"""Clip request/response schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from liveshop.domain.models import StreamClip
from liveshop.domain.services.playback import clip_playback_url, mux_thumbnail_url


class ClipCreate(BaseModel):
    """Request schema for cutting a clip out of a recorded stream."""

    stream_id: str
    start_time: int = Field(description="Offset into the recording, in seconds")
    end_time: int = Field(description="End offset, in seconds; after start_time")
    title: Optional[str] = None
    description: Optional[str] = None
    product_id: Optional[str] = Field(
        default=None, description="Product the clip showcases"
    )


class ClipResponse(BaseModel):
    id: str
    stream_id: str
    product_id: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    start_time: int
    end_time: int
    duration: int
    playback_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_domain(cls, clip: StreamClip) -> "ClipResponse":
        return cls(
            id=clip.id,
            stream_id=clip.stream_id,
            product_id=clip.product_id,
            title=clip.title,
            description=clip.description,
            start_time=clip.start_time,
            end_time=clip.end_time,
            duration=clip.duration,
            playback_url=clip_playback_url(clip),
            thumbnail_url=(
                mux_thumbnail_url(clip.mux_clip_playback_id)
                if clip.mux_clip_playback_id
                else None
            ),
            created_at=clip.created_at,
        )


class ClipListResponse(BaseModel):
    items: List[ClipResponse]
