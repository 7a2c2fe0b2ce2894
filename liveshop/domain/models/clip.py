"""Clip domain model - a time-bounded excerpt of a stream recording."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from liveshop.domain.exceptions import ValidationError, ValidationErrors
from liveshop.domain.models.stream import new_id, utcnow


@dataclass(frozen=True)
class ClipWindow:
    """Start and end offsets, in whole seconds, into a stream recording."""

    start_time: int
    end_time: int

    def __post_init__(self):
        errors = {}
        if self.start_time < 0:
            errors["start_time"] = "Start time cannot be negative"
        if self.end_time <= self.start_time:
            errors["end_time"] = "End time must be after start time"
        if errors:
            raise ValidationError(ValidationErrors(errors), entity_type="StreamClip")

    @property
    def duration(self) -> int:
        return self.end_time - self.start_time

    @classmethod
    def around(
        cls,
        featured_at: datetime,
        started_at: datetime,
        lead_seconds: int,
        tail_seconds: int,
    ) -> "ClipWindow":
        """Window surrounding a featured moment, clamped to the recording start."""
        offset = int((featured_at - started_at).total_seconds())
        return cls(
            start_time=max(0, offset - lead_seconds),
            end_time=max(1, offset + tail_seconds),
        )


def format_offset(seconds: int) -> str:
    """Render an offset as M:SS."""
    minutes, secs = divmod(max(0, seconds), 60)
    return f"{minutes}:{secs:02d}"


@dataclass
class StreamClip:
    """Clip cut from a stream's recorded asset."""

    stream_id: str
    start_time: int
    end_time: int
    id: str = field(default_factory=new_id)
    product_id: Optional[str] = None
    mux_clip_id: Optional[str] = None
    mux_clip_playback_id: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    shopify_video_id: Optional[str] = None
    shopify_video_url: Optional[str] = None
    migrated_to_shopify_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=utcnow)

    @property
    def window(self) -> ClipWindow:
        return ClipWindow(self.start_time, self.end_time)

    @property
    def duration(self) -> int:
        return self.end_time - self.start_time
