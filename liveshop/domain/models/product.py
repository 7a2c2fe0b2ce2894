"""Lineup membership of a catalog product in a stream."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from liveshop.domain.models.stream import new_id


@dataclass
class StreamProduct:
    """Product shown during a stream, ordered by ``position``."""

    stream_id: str
    product_id: str
    position: int
    id: str = field(default_factory=new_id)
    variant_id: Optional[str] = None
    featured_at: Optional[datetime] = None

    @property
    def was_featured(self) -> bool:
        return self.featured_at is not None
