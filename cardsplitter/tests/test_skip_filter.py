import pytest

from cardsplitter.models.card import CardType
from cardsplitter.models.page import PageDescriptor, PageType, make_pages
from cardsplitter.models.settings import (
    Duplex, ExtractionSettings, FlipEdge, GridSpec, GutterFold, Orientation, Simplex, SkippedCard,
)
from cardsplitter.services.skip_filter import (
    available_ids, card_indices_for, clear_skips, count_by_type, find_paired_card,
    is_card_skipped, skip_column, skip_column_with_pairing, skip_row, skip_row_with_pairing,
    skipped_cards_for_page, toggle_card_skip, toggle_card_skip_with_pairing, total_cards,
)

F, B = CardType.FRONT, CardType.BACK
VERTICAL = GutterFold(Orientation.VERTICAL)


def test_skips_reduce_available_but_not_count():
    ex = ExtractionSettings(grid=GridSpec(2, 2), skipped_cards=(SkippedCard(0, 0, 0),))
    pages = make_pages(1)
    assert available_ids(F, pages, ex, Simplex()).value == [2, 3, 4]
    assert count_by_type(F, pages, ex, Simplex()) == 4


def test_typed_skip_only_matches_its_own_type():
    pages = make_pages(1)
    ex = ExtractionSettings(grid=GridSpec(2, 2), skipped_cards=(SkippedCard(0, 0, 0, B),))
    assert available_ids(F, pages, ex, Simplex()).value == [1, 2, 3, 4]
    assert is_card_skipped((0, 0, 0), ex.skipped_cards)
    assert is_card_skipped((0, 0, 0), ex.skipped_cards, B)
    assert not is_card_skipped((0, 0, 0), ex.skipped_cards, F)


def test_available_ids_without_skips_cover_every_id():
    pages = tuple(PageDescriptor(i, PageType(t), width=612, height=792)
                  for i, t in enumerate(["front", "back", "front"]))
    ex = ExtractionSettings(grid=GridSpec(2, 2))
    mode = Duplex(FlipEdge.SHORT)
    assert available_ids(F, pages, ex, mode).value == list(range(1, 9))
    assert available_ids(B, pages, ex, mode).value == [1, 2, 3, 4]
    assert count_by_type(F, pages, ex, mode) + count_by_type(B, pages, ex, mode) \
        == total_cards(pages, ex.grid)


def test_card_indices_for_orders_by_id():
    pages = tuple(PageDescriptor(i, PageType(t), width=612, height=792)
                  for i, t in enumerate(["front", "back"]))
    ex = ExtractionSettings(grid=GridSpec(2, 2))
    resolved = card_indices_for(B, pages, ex, Duplex(FlipEdge.SHORT))
    assert resolved.value == [(6, 1), (7, 2), (4, 3), (5, 4)]


def test_total_cards():
    assert total_cards(make_pages(3), GridSpec(2, 3)) == 18


def test_toggle_and_bulk_skips():
    one = toggle_card_skip((0, 1, 1), None, ())
    assert one == (SkippedCard(0, 1, 1),)
    assert toggle_card_skip((0, 1, 1), None, one) == ()

    grid = GridSpec(2, 3)
    row = skip_row(0, 1, grid, None, ())
    assert [s.cell for s in row] == [(0, 1, 0), (0, 1, 1), (0, 1, 2)]
    assert skip_row(0, 1, grid, None, row) == row

    col = skip_column(1, 2, grid, F, row)
    assert len(col) == 5
    assert len(skipped_cards_for_page(1, col)) == 2
    assert clear_skips() == ()


# ------------------------------------------------------------
# Gutter-fold pairing
# ------------------------------------------------------------

@pytest.mark.parametrize("cell, expected", [
    ((0, 0, 0), ((0, 0, 3), B)),
    ((0, 0, 1), ((0, 0, 2), B)),
    ((0, 0, 3), ((0, 0, 0), F)),
])
def test_find_paired_card_vertical(cell, expected):
    assert find_paired_card(cell, GridSpec(1, 4), VERTICAL) == expected


def test_find_paired_card_horizontal():
    mode = GutterFold(Orientation.HORIZONTAL)
    assert find_paired_card((2, 0, 1), GridSpec(4, 2), mode) == ((2, 3, 1), B)


def test_no_pairs_outside_gutter_fold():
    assert find_paired_card((0, 0, 0), GridSpec(1, 4), Simplex()) is None


def test_paired_toggle_skips_both_faces():
    grid = GridSpec(1, 4)
    skips = toggle_card_skip_with_pairing((0, 0, 0), F, (), grid, VERTICAL)
    assert set(skips) == {SkippedCard(0, 0, 0, F), SkippedCard(0, 0, 3, B)}

    ex = ExtractionSettings(grid=grid, skipped_cards=skips)
    assert available_ids(F, make_pages(1), ex, VERTICAL).value == [2]
    assert available_ids(B, make_pages(1), ex, VERTICAL).value == [2]

    assert toggle_card_skip_with_pairing((0, 0, 0), F, skips, grid, VERTICAL) == ()


def test_paired_row_and_column_skips():
    grid = GridSpec(2, 4)
    col = skip_column_with_pairing(0, 0, grid, F, (), VERTICAL)
    assert {s.cell for s in col} == {(0, 0, 0), (0, 1, 0), (0, 0, 3), (0, 1, 3)}

    row = skip_row_with_pairing(0, 1, grid, None, (), VERTICAL)
    assert {s.cell for s in row} == {(0, 1, 0), (0, 1, 1), (0, 1, 2), (0, 1, 3)}
    assert len(row) == 4
