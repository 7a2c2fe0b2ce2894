"""Lineup workflow - adding, removing, reordering and featuring products."""

import logging
from dataclasses import dataclass
from typing import Any, List

from liveshop.domain.exceptions import BusinessRuleViolation, EntityNotFoundError
from liveshop.domain.models import Stream, StreamEvent, StreamEventType, StreamProduct
from liveshop.domain.models.stream import utcnow
from liveshop.domain.services import lineup
from liveshop.domain.services.lineup import Direction

logger = logging.getLogger(__name__)


@dataclass
class LineupManager:
    """Keeps each stream's lineup positions dense after every change."""

    stream_repo: Any
    product_repo: Any
    event_repo: Any

    async def _get_stream(self, shop: str, stream_id: str) -> Stream:
        stream = await self.stream_repo.get_for_shop(stream_id, shop)
        if stream is None:
            raise EntityNotFoundError("Stream", stream_id)
        return stream

    async def add_products(
        self, shop: str, stream_id: str, product_ids: List[str]
    ) -> List[StreamProduct]:
        """Append products not yet in the lineup. Returns the full lineup."""
        stream = await self._get_stream(shop, stream_id)
        existing = await self.product_repo.list_for_stream(stream.id)

        added = lineup.append_products(existing, stream.id, product_ids)
        if added:
            self.product_repo.add_all(added)
            await self.product_repo.flush()
            logger.info(f"Added {len(added)} products to stream {stream.id}")

        return existing + added

    async def remove_product(
        self, shop: str, stream_id: str, product_row_id: str
    ) -> List[StreamProduct]:
        stream = await self._get_stream(shop, stream_id)
        existing = await self.product_repo.list_for_stream(stream.id)

        removed, remaining = lineup.remove_product(existing, product_row_id)
        await self.product_repo.delete(removed.id)
        await self.product_repo.update_all(remaining)
        await self.product_repo.flush()

        logger.info(f"Removed product {removed.product_id} from stream {stream.id}")
        return remaining

    async def move_product(
        self, shop: str, stream_id: str, product_row_id: str, direction: Direction
    ) -> List[StreamProduct]:
        stream = await self._get_stream(shop, stream_id)
        existing = await self.product_repo.list_for_stream(stream.id)

        reordered = lineup.move_product(existing, product_row_id, direction)
        await self.product_repo.update_all(reordered)
        await self.product_repo.flush()
        return reordered

    async def feature_product(
        self, shop: str, stream_id: str, product_row_id: str
    ) -> StreamProduct:
        """Spotlight a product on air. Its timestamp drives auto clips later."""
        stream = await self._get_stream(shop, stream_id)
        if not stream.is_live:
            raise BusinessRuleViolation(
                "Stream must be live to feature products",
                entity_type="Stream",
                entity_id=stream.id,
            )

        existing = await self.product_repo.list_for_stream(stream.id)
        product = lineup.find_product(existing, product_row_id)
        product.featured_at = utcnow()

        await self.product_repo.update(product)
        self.event_repo.append(
            StreamEvent(
                stream_id=stream.id,
                type=StreamEventType.PRODUCT_FEATURED,
                payload={
                    "productId": product.product_id,
                    "streamProductId": product.id,
                    "featuredAt": product.featured_at.isoformat(),
                },
            )
        )
        await self.product_repo.flush()

        logger.info(f"Featured product {product.product_id} on stream {stream.id}")
        return product
