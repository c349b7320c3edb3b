from cardsplitter.models.card import CardPosition, CardType
from cardsplitter.models.page import make_pages
from cardsplitter.models.settings import CardTypeOverride, GridSpec, Simplex
from cardsplitter.services.override_resolver import (
    clear_override, effective_card_type, find_override, override_status, set_override,
    toggle_override,
)

CELL = (0, 1, 2)


def test_toggle_cycles_none_front_back_none():
    start = (CardTypeOverride(1, 0, 0, CardType.BACK),)
    first = toggle_override(start, CELL)
    assert find_override(first, CELL).card_type is CardType.FRONT
    second = toggle_override(first, CELL)
    assert find_override(second, CELL).card_type is CardType.BACK
    third = toggle_override(second, CELL)
    assert third == start


def test_set_and_clear_are_idempotent():
    once = set_override((), CELL, CardType.BACK)
    assert set_override(once, CELL, CardType.BACK) == once
    assert len(set_override(once, CELL, CardType.FRONT)) == 1

    cleared = clear_override(once, CELL)
    assert cleared == ()
    assert clear_override(cleared, CELL) == ()


def test_override_status():
    overrides = set_override((), CELL, "front")
    assert override_status(overrides, CELL) == {"has_override": True,
                                                 "override_type": CardType.FRONT}
    assert override_status(overrides, (0, 0, 0)) == {"has_override": False,
                                                     "override_type": None}


def test_override_beats_mode():
    pages = make_pages(1)
    grid = GridSpec(2, 3)
    position = CardPosition.from_index(5, 2, 3)
    assert position.cell == CELL
    overrides = set_override((), CELL, CardType.BACK)
    assert effective_card_type(position, pages, grid, Simplex()) is CardType.FRONT
    assert effective_card_type(position, pages, grid, Simplex(), overrides) is CardType.BACK
