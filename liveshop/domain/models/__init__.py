"""Domain models for streams, lineups, clips and audit events."""

from .stream import Stream, StreamStatus, PRE_LIVE_STATUSES
from .product import StreamProduct
from .event import StreamEvent, StreamEventType
from .clip import StreamClip, ClipWindow

__all__ = [
    "Stream",
    "StreamStatus",
    "PRE_LIVE_STATUSES",
    "StreamProduct",
    "StreamEvent",
    "StreamEventType",
    "StreamClip",
    "ClipWindow",
]
