"""Unit tests for lineup ordering."""

import pytest

from liveshop.domain.exceptions import EntityNotFoundError, ValidationError
from liveshop.domain.services.lineup import (
    append_products,
    build_lineup,
    move_product,
    remove_product,
    reindex,
)
from tests.factories import StreamFactory, lineup_for


def positions(products):
    return [p.position for p in sorted(products, key=lambda p: p.position)]


def order(products):
    return [p.product_id for p in sorted(products, key=lambda p: p.position)]


class TestBuildLineup:
    def test_positions_follow_input_order(self):
        lineup = build_lineup("stream-1", ["p1", "p2", "p3"])

        assert order(lineup) == ["p1", "p2", "p3"]
        assert positions(lineup) == [0, 1, 2]
        assert all(p.stream_id == "stream-1" for p in lineup)

    def test_duplicates_are_dropped(self):
        lineup = build_lineup("stream-1", ["p1", "p2", "p1"])
        assert order(lineup) == ["p1", "p2"]
        assert positions(lineup) == [0, 1]

    def test_variants_are_attached(self):
        lineup = build_lineup("stream-1", ["p1", "p2"], {"p2": "v9"})
        assert [p.variant_id for p in lineup] == [None, "v9"]

    def test_empty_lineup_is_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            build_lineup("stream-1", [])
        assert "product_ids" in exc_info.value.errors


class TestAppendProducts:
    def test_appends_after_current_maximum(self):
        stream = StreamFactory()
        existing = lineup_for(stream, 2)

        added = append_products(existing, stream.id, ["new-1", "new-2"])

        assert [p.product_id for p in added] == ["new-1", "new-2"]
        assert positions(added) == [2, 3]

    def test_existing_products_are_skipped(self):
        stream = StreamFactory()
        existing = lineup_for(stream, 2)

        added = append_products(
            existing, stream.id, [existing[0].product_id, "new-1", "new-1"]
        )

        assert [p.product_id for p in added] == ["new-1"]
        assert added[0].position == 2

    def test_no_products_selected(self):
        with pytest.raises(ValidationError):
            append_products([], "stream-1", [])


class TestRemoveProduct:
    def test_remove_closes_gap(self):
        stream = StreamFactory()
        existing = lineup_for(stream, 4)
        target = existing[1]

        removed, remaining = remove_product(existing, target.id)

        assert removed is target
        assert target.id not in {p.id for p in remaining}
        assert positions(remaining) == [0, 1, 2]

    def test_remove_unknown_row(self):
        stream = StreamFactory()
        with pytest.raises(EntityNotFoundError):
            remove_product(lineup_for(stream, 2), "missing")


class TestMoveProduct:
    def test_move_up_swaps_with_previous(self):
        stream = StreamFactory()
        existing = lineup_for(stream, 3)
        before = order(existing)

        result = move_product(existing, existing[2].id, "up")

        assert order(result) == [before[0], before[2], before[1]]
        assert positions(result) == [0, 1, 2]

    def test_move_down_swaps_with_next(self):
        stream = StreamFactory()
        existing = lineup_for(stream, 3)
        before = order(existing)

        result = move_product(existing, existing[0].id, "down")

        assert order(result) == [before[1], before[0], before[2]]

    def test_moving_past_the_ends_is_a_no_op(self):
        stream = StreamFactory()
        existing = lineup_for(stream, 3)
        before = order(existing)

        move_product(existing, existing[0].id, "up")
        result = move_product(existing, existing[2].id, "down")

        assert order(result) == before

    def test_invalid_direction(self):
        stream = StreamFactory()
        existing = lineup_for(stream, 2)
        with pytest.raises(ValidationError):
            move_product(existing, existing[0].id, "sideways")


def test_reindex_renumbers_sparse_positions():
    stream = StreamFactory()
    existing = lineup_for(stream, 3)
    existing[0].position, existing[1].position, existing[2].position = 7, 2, 40

    result = reindex(existing)

    assert [p.position for p in result] == [0, 1, 2]
    assert result[0] is existing[1]
