"""Repository implementations."""

from .stream_repository import (
    StreamClipRepository,
    StreamEventRepository,
    StreamProductRepository,
    StreamRepository,
)

__all__ = [
    "StreamRepository",
    "StreamProductRepository",
    "StreamEventRepository",
    "StreamClipRepository",
]
