"""Product lineup ordering rules.

A lineup is the ordered list of products for one stream. Positions are
always the dense sequence ``0..N-1``; every function here returns a list
that satisfies that, so callers only persist the result.
"""

from typing import Iterable, Literal, Optional

from liveshop.domain.exceptions import EntityNotFoundError, ValidationError
from liveshop.domain.models.product import StreamProduct

Direction = Literal["up", "down"]


def reindex(products: Iterable[StreamProduct]) -> list[StreamProduct]:
    """Sort by current position and renumber from zero."""
    ordered = sorted(products, key=lambda p: p.position)
    for index, product in enumerate(ordered):
        product.position = index
    return ordered


def build_lineup(
    stream_id: str,
    product_ids: list[str],
    variant_ids: Optional[dict[str, str]] = None,
) -> list[StreamProduct]:
    """Create a fresh lineup in the given order, dropping repeated ids."""
    if not product_ids:
        raise ValidationError.single("product_ids", "At least one product is required")

    variant_ids = variant_ids or {}
    lineup: list[StreamProduct] = []
    seen: set[str] = set()
    for product_id in product_ids:
        if product_id in seen:
            continue
        seen.add(product_id)
        lineup.append(
            StreamProduct(
                stream_id=stream_id,
                product_id=product_id,
                variant_id=variant_ids.get(product_id),
                position=len(lineup),
            )
        )
    return lineup


def append_products(
    existing: list[StreamProduct],
    stream_id: str,
    product_ids: list[str],
) -> list[StreamProduct]:
    """Append products not already in the lineup.

    Returns only the newly created rows; they are positioned after the
    current maximum.
    """
    if not product_ids:
        raise ValidationError.single("product_ids", "No products selected")

    present = {p.product_id for p in existing}
    next_position = max((p.position for p in existing), default=-1) + 1

    added: list[StreamProduct] = []
    for product_id in product_ids:
        if product_id in present:
            continue
        present.add(product_id)
        added.append(
            StreamProduct(stream_id=stream_id, product_id=product_id, position=next_position)
        )
        next_position += 1
    return added


def remove_product(
    existing: list[StreamProduct], product_row_id: str
) -> tuple[StreamProduct, list[StreamProduct]]:
    """Remove one row and close the gap. Returns (removed, remaining)."""
    removed = find_product(existing, product_row_id)
    remaining = reindex(p for p in existing if p.id != product_row_id)
    return removed, remaining


def move_product(
    existing: list[StreamProduct], product_row_id: str, direction: Direction
) -> list[StreamProduct]:
    """Swap a row with its neighbour. Moving past either end is a no-op."""
    if direction not in ("up", "down"):
        raise ValidationError.single("direction", "Direction must be 'up' or 'down'")

    ordered = reindex(existing)
    target = find_product(ordered, product_row_id)
    index = target.position
    neighbour = index - 1 if direction == "up" else index + 1

    if 0 <= neighbour < len(ordered):
        ordered[index].position, ordered[neighbour].position = neighbour, index
    return reindex(ordered)


def find_product(
    products: Iterable[StreamProduct], product_row_id: str
) -> StreamProduct:
    for product in products:
        if product.id == product_row_id:
            return product
    raise EntityNotFoundError("StreamProduct", product_row_id)
