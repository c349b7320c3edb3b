from __future__ import annotations

from typing import Sequence

from cardsplitter.models.card import CardPosition, CardType
from cardsplitter.models.page import PageDescriptor
from cardsplitter.models.settings import (
    Duplex, GridSpec, GutterFold, Orientation, ProcessingMode, Simplex,
)


def locate(card_index: int, pages: Sequence[PageDescriptor], grid: GridSpec) -> CardPosition:
    """Resolve ``card_index`` to a grid cell, checking it lies inside the document."""
    grid.validate()
    position = CardPosition.from_index(card_index, grid.rows, grid.columns)
    if position.page_index >= len(pages):
        raise IndexError(
            f"card index {card_index} is beyond {len(pages)} active pages "
            f"of {grid.cards_per_page} cards")
    return position


def raw_card_type(card_index: int, pages: Sequence[PageDescriptor], grid: GridSpec,
                  mode: ProcessingMode) -> CardType:
    """Front/back assignment dictated by the processing mode alone."""
    position = locate(card_index, pages, grid)
    return card_type_at(position, pages, grid, mode)


def card_type_at(position: CardPosition, pages: Sequence[PageDescriptor], grid: GridSpec,
                 mode: ProcessingMode) -> CardType:
    if isinstance(mode, Simplex):
        return CardType.FRONT

    if isinstance(mode, Duplex):
        declared = pages[position.page_index].page_type.card_type
        return declared or CardType.FRONT

    if isinstance(mode, GutterFold):
        grid.validate_for(mode)
        if mode.orientation is Orientation.VERTICAL:
            first_half = position.grid_column < grid.columns // 2
        else:
            first_half = position.grid_row < grid.rows // 2
        return CardType.FRONT if first_half else CardType.BACK

    raise TypeError(f"Unknown processing mode {mode!r}")
