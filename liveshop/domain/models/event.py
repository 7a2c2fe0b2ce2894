"""Append-only audit entries for a stream."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from liveshop.domain.models.stream import new_id, utcnow


class StreamEventType(str, Enum):
    """Kinds of audit entries recorded against a stream."""

    STREAM_STARTED = "STREAM_STARTED"
    STREAM_ENDED = "STREAM_ENDED"
    PRODUCT_FEATURED = "PRODUCT_FEATURED"
    PRODUCT_UNFEATURED = "PRODUCT_UNFEATURED"
    DEAL_CREATED = "DEAL_CREATED"
    DEAL_ENDED = "DEAL_ENDED"


@dataclass(frozen=True)
class StreamEvent:
    """Immutable audit log entry. Never updated or deleted."""

    stream_id: str
    type: StreamEventType
    payload: Optional[Dict[str, Any]] = None
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)
