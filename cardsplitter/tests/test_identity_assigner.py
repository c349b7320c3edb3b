import pytest

from cardsplitter.models.card import CardType
from cardsplitter.models.page import PageDescriptor, PageType, make_pages
from cardsplitter.models.settings import (
    CardTypeOverride, Duplex, ExtractionSettings, FlipEdge, GridSpec, GutterFold, Orientation,
    Simplex,
)
from cardsplitter.services.identity_assigner import card_identity, identity_table

F, B = CardType.FRONT, CardType.BACK


def letter_pages(*types, width=None, height=None):
    return tuple(PageDescriptor(i, PageType(t), width=width, height=height)
                 for i, t in enumerate(types))


def labels(pages, extraction, mode, page_size=None):
    table = identity_table(pages, extraction, mode, page_size)
    return [str(identity) for identity in table.value]


# ------------------------------------------------------------
# Duplex mirroring
# ------------------------------------------------------------

def test_duplex_portrait_short_edge_mirrors_rows():
    pages = letter_pages("front", "back", width=612, height=792)
    ex = ExtractionSettings(grid=GridSpec(2, 2))
    ids = [card_identity(i, pages, ex, Duplex(FlipEdge.SHORT)) for i in range(8)]
    assert [r.value.sequential_id for r in ids[4:]] == [3, 4, 1, 2]
    assert all(r.value.card_type is B for r in ids[4:])
    assert [r.value.sequential_id for r in ids[:4]] == [1, 2, 3, 4]
    assert all(r.ok for r in ids)


def test_duplex_portrait_long_edge_mirrors_columns():
    pages = letter_pages("front", "back", width=612, height=792)
    ex = ExtractionSettings(grid=GridSpec(2, 2))
    table = identity_table(pages, ex, Duplex(FlipEdge.LONG))
    assert [i.sequential_id for i in table.value[4:]] == [2, 1, 4, 3]


def test_duplex_landscape_short_edge_mirrors_columns():
    pages = letter_pages("back", width=792, height=612)
    ex = ExtractionSettings(grid=GridSpec(2, 2))
    table = identity_table(pages, ex, Duplex(FlipEdge.SHORT))
    assert [i.sequential_id for i in table.value] == [2, 1, 4, 3]


def test_explicit_page_size_wins_over_descriptor():
    pages = letter_pages("front", "back")
    ex = ExtractionSettings(grid=GridSpec(2, 2))
    result = card_identity(4, pages, ex, Duplex(FlipEdge.SHORT), page_size=(612, 792))
    assert result.value.sequential_id == 3
    assert result.ok


def test_missing_dimensions_fall_back_with_warning():
    pages = letter_pages("front", "back")
    ex = ExtractionSettings(grid=GridSpec(2, 2))

    long_edge = identity_table(pages, ex, Duplex(FlipEdge.LONG))
    assert [i.sequential_id for i in long_edge.value[4:]] == [3, 4, 1, 2]
    assert len(long_edge.warnings) == 4
    assert {w.card_index for w in long_edge.warnings} == {4, 5, 6, 7}

    short_edge = identity_table(pages, ex, Duplex(FlipEdge.SHORT))
    assert [i.sequential_id for i in short_edge.value[4:]] == [2, 1, 4, 3]

    front = card_identity(0, pages, ex, Duplex(FlipEdge.LONG))
    assert front.ok
    back = card_identity(4, pages, ex, Duplex(FlipEdge.LONG))
    assert not back.ok
    assert dict(back.warnings[0].detail)["mirror"] == "rows"


def test_back_numbering_continues_across_back_pages():
    pages = letter_pages("front", "back", "front", "back", width=612, height=792)
    ex = ExtractionSettings(grid=GridSpec(1, 2))
    table = identity_table(pages, ex, Duplex(FlipEdge.SHORT))
    # 1x2 portrait short edge: rows mirror onto themselves
    assert labels(pages, ex, Duplex(FlipEdge.SHORT)) == [
        "Front 1", "Front 2", "Back 1", "Back 2",
        "Front 3", "Front 4", "Back 3", "Back 4",
    ]
    assert table.ok


# ------------------------------------------------------------
# Gutter-fold pairing
# ------------------------------------------------------------

def test_vertical_gutter_fold_pairs_across_the_gutter():
    ex = ExtractionSettings(grid=GridSpec(1, 4))
    mode = GutterFold(Orientation.VERTICAL)
    assert labels(make_pages(2), ex, mode) == [
        "Front 1", "Front 2", "Back 2", "Back 1",
        "Front 3", "Front 4", "Back 4", "Back 3",
    ]


def test_horizontal_gutter_fold_pairs_across_the_gutter():
    ex = ExtractionSettings(grid=GridSpec(4, 1))
    mode = GutterFold(Orientation.HORIZONTAL)
    assert labels(make_pages(1), ex, mode) == ["Front 1", "Front 2", "Back 2", "Back 1"]


def test_gutter_fold_two_rows():
    ex = ExtractionSettings(grid=GridSpec(2, 4))
    mode = GutterFold(Orientation.VERTICAL)
    assert labels(make_pages(1), ex, mode) == [
        "Front 1", "Front 2", "Back 2", "Back 1",
        "Front 3", "Front 4", "Back 4", "Back 3",
    ]


# ------------------------------------------------------------
# Overrides
# ------------------------------------------------------------

def test_override_renumbers_sequentially():
    pages = letter_pages("front", "back", "front", "back")
    ex = ExtractionSettings(grid=GridSpec(1, 1),
                            card_type_overrides=(CardTypeOverride(1, 0, 0, F),))
    assert labels(pages, ex, Duplex()) == ["Front 1", "Front 2", "Front 3", "Back 1"]


def test_any_override_disables_gutter_pairing():
    ex = ExtractionSettings(grid=GridSpec(1, 4),
                            card_type_overrides=(CardTypeOverride(0, 0, 0, F),))
    mode = GutterFold(Orientation.VERTICAL)
    assert labels(make_pages(1), ex, mode) == ["Front 1", "Front 2", "Back 1", "Back 2"]


# ------------------------------------------------------------
# Properties
# ------------------------------------------------------------

SCENARIOS = [
    (letter_pages("front", "back", "front", "back", width=612, height=792),
     ExtractionSettings(grid=GridSpec(2, 3)), Duplex(FlipEdge.SHORT)),
    (letter_pages("front", "back", "back"), ExtractionSettings(grid=GridSpec(2, 2)),
     Duplex(FlipEdge.LONG)),
    (make_pages(3), ExtractionSettings(grid=GridSpec(2, 4)), GutterFold(Orientation.VERTICAL)),
    (make_pages(2), ExtractionSettings(grid=GridSpec(3, 3)), Simplex()),
    (letter_pages("front", "back"),
     ExtractionSettings(grid=GridSpec(2, 2),
                        card_type_overrides=(CardTypeOverride(0, 1, 1, B),
                                             CardTypeOverride(1, 0, 0, F))),
     Duplex()),
]


@pytest.mark.parametrize("pages, ex, mode", SCENARIOS)
def test_table_matches_single_lookups(pages, ex, mode):
    table = identity_table(pages, ex, mode)
    for i, identity in enumerate(table.value):
        assert card_identity(i, pages, ex, mode).value == identity


@pytest.mark.parametrize("pages, ex, mode", SCENARIOS)
def test_ids_are_gapless_per_type(pages, ex, mode):
    table = identity_table(pages, ex, mode)
    for card_type in CardType:
        ids = sorted(i.sequential_id for i in table.value if i.card_type is card_type)
        assert ids == list(range(1, len(ids) + 1))


@pytest.mark.parametrize("pages, ex, mode", SCENARIOS)
def test_identity_is_deterministic(pages, ex, mode):
    assert identity_table(pages, ex, mode) == identity_table(pages, ex, mode)
    assert card_identity(1, pages, ex, mode) == card_identity(1, pages, ex, mode)


def test_out_of_range_index_raises():
    with pytest.raises(IndexError):
        card_identity(4, make_pages(1), ExtractionSettings(grid=GridSpec(2, 2)), Simplex())
