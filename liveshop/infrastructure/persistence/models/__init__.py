"""SQLAlchemy models. Importing this package registers every table on ``Base``."""

from .base import Base, TimestampMixin
from .stream import StreamClipRecord, StreamEventRecord, StreamProductRecord, StreamRecord

__all__ = [
    "Base",
    "TimestampMixin",
    "StreamRecord",
    "StreamProductRecord",
    "StreamEventRecord",
    "StreamClipRecord",
]
