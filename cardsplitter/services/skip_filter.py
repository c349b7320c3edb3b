"""Per-cell skip exclusions and the card enumerations built on them.

Skips only remove cells from ``available_ids`` (what gets previewed and
exported).  ``count_by_type`` deliberately ignores them: it reports the total
number of cards of a type the layout holds, not how many will be exported.

In gutter-fold mode the two faces of a folded card sit in mirrored cells of
the same page; the ``*_with_pairing`` helpers keep their skip state in step.
"""
from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from cardsplitter.models.card import CardPosition, CardType, Resolved
from cardsplitter.models.page import PageDescriptor
from cardsplitter.models.settings import (
    ExtractionSettings, GridSpec, GutterFold, Orientation, ProcessingMode, SkippedCard,
)
from cardsplitter.services.identity_assigner import PageSize, identity_table

Cell = Tuple[int, int, int]
Skips = Tuple[SkippedCard, ...]


def is_card_skipped(cell: Cell, skipped_cards: Sequence[SkippedCard],
                    card_type: Optional[CardType] = None) -> bool:
    return any(skip.matches(cell, card_type) for skip in skipped_cards)


def skipped_cards_for_page(page_index: int, skipped_cards: Sequence[SkippedCard]) -> Skips:
    return tuple(s for s in skipped_cards if s.page_index == page_index)


def total_cards(pages: Sequence[PageDescriptor], grid: GridSpec) -> int:
    return len(pages) * grid.cards_per_page


# ---------------------------------------------------------------------------
# Enumeration
# ---------------------------------------------------------------------------
def available_ids(card_type: CardType, pages: Sequence[PageDescriptor],
                  extraction: ExtractionSettings, mode: ProcessingMode,
                  page_size: PageSize = None) -> Resolved[List[int]]:
    """Sorted, de-duplicated IDs of ``card_type`` that are not skipped."""
    card_type = CardType(card_type)
    grid = extraction.grid
    table = identity_table(pages, extraction, mode, page_size)
    ids = set()
    for card_index, identity in enumerate(table.value):
        if identity.card_type is not card_type:
            continue
        cell = CardPosition.from_index(card_index, grid.rows, grid.columns).cell
        if is_card_skipped(cell, extraction.skipped_cards, identity.card_type):
            continue
        ids.add(identity.sequential_id)
    return Resolved(sorted(ids), table.warnings)


def count_by_type(card_type: CardType, pages: Sequence[PageDescriptor],
                  extraction: ExtractionSettings, mode: ProcessingMode,
                  page_size: PageSize = None) -> int:
    """How many positions resolve to ``card_type``, skips included."""
    card_type = CardType(card_type)
    table = identity_table(pages, extraction, mode, page_size)
    return sum(1 for identity in table.value if identity.card_type is card_type)


def card_indices_for(card_type: CardType, pages: Sequence[PageDescriptor],
                     extraction: ExtractionSettings, mode: ProcessingMode,
                     page_size: PageSize = None) -> Resolved[List[Tuple[int, int]]]:
    """``(card_index, sequential_id)`` of the first non-skipped position per ID, by ID."""
    card_type = CardType(card_type)
    grid = extraction.grid
    table = identity_table(pages, extraction, mode, page_size)
    first = {}
    for card_index, identity in enumerate(table.value):
        if identity.card_type is not card_type or identity.sequential_id in first:
            continue
        cell = CardPosition.from_index(card_index, grid.rows, grid.columns).cell
        if is_card_skipped(cell, extraction.skipped_cards, card_type):
            continue
        first[identity.sequential_id] = card_index
    return Resolved(sorted(((idx, sid) for sid, idx in first.items()), key=lambda p: p[1]),
                    table.warnings)


# ---------------------------------------------------------------------------
# Skip state transitions
# ---------------------------------------------------------------------------
def toggle_card_skip(cell: Cell, card_type: Optional[CardType],
                     skipped_cards: Sequence[SkippedCard]) -> Skips:
    for i, skip in enumerate(skipped_cards):
        if skip.matches(cell, card_type):
            return tuple(s for j, s in enumerate(skipped_cards) if j != i)
    return tuple(skipped_cards) + (SkippedCard(*cell, card_type=card_type),)


def _skip_cells(cells, card_type: Optional[CardType], skipped_cards: Sequence[SkippedCard]) -> Skips:
    result = list(skipped_cards)
    for cell in cells:
        if not is_card_skipped(cell, result, card_type):
            result.append(SkippedCard(*cell, card_type=card_type))
    return tuple(result)


def skip_row(page_index: int, grid_row: int, grid: GridSpec, card_type: Optional[CardType],
             skipped_cards: Sequence[SkippedCard]) -> Skips:
    cells = [(page_index, grid_row, col) for col in range(grid.columns)]
    return _skip_cells(cells, card_type, skipped_cards)


def skip_column(page_index: int, grid_column: int, grid: GridSpec, card_type: Optional[CardType],
                skipped_cards: Sequence[SkippedCard]) -> Skips:
    cells = [(page_index, row, grid_column) for row in range(grid.rows)]
    return _skip_cells(cells, card_type, skipped_cards)


def clear_skips() -> Skips:
    return ()


# ---------------------------------------------------------------------------
# Gutter-fold pairing
# ---------------------------------------------------------------------------
def find_paired_card(cell: Cell, grid: GridSpec,
                     mode: ProcessingMode) -> Optional[Tuple[Cell, CardType]]:
    """The mirrored cell across the gutter and its face, or None outside gutter-fold."""
    if not isinstance(mode, GutterFold):
        return None
    grid.validate_for(mode)
    page_index, row, col = cell
    if mode.orientation is Orientation.VERTICAL:
        half = grid.columns // 2
        if col < half:
            return (page_index, row, grid.columns - 1 - col), CardType.BACK
        return (page_index, row, grid.columns - 1 - col), CardType.FRONT
    half = grid.rows // 2
    if row < half:
        return (page_index, grid.rows - 1 - row, col), CardType.BACK
    return (page_index, grid.rows - 1 - row, col), CardType.FRONT


def toggle_card_skip_with_pairing(cell: Cell, card_type: Optional[CardType],
                                  skipped_cards: Sequence[SkippedCard], grid: GridSpec,
                                  mode: ProcessingMode) -> Skips:
    """Toggle ``cell`` and bring its gutter-fold partner to the same state."""
    result = toggle_card_skip(cell, card_type, skipped_cards)
    paired = find_paired_card(cell, grid, mode)
    if paired is None:
        return result
    pair_cell, pair_type = paired
    now_skipped = is_card_skipped(cell, result, card_type)
    if now_skipped != is_card_skipped(pair_cell, result, pair_type):
        result = toggle_card_skip(pair_cell, pair_type, result)
    return result


def _paired_cells(cells, grid: GridSpec, mode: ProcessingMode):
    for cell in cells:
        paired = find_paired_card(cell, grid, mode)
        if paired is not None:
            yield paired


def skip_row_with_pairing(page_index: int, grid_row: int, grid: GridSpec,
                          card_type: Optional[CardType], skipped_cards: Sequence[SkippedCard],
                          mode: ProcessingMode) -> Skips:
    result = skip_row(page_index, grid_row, grid, card_type, skipped_cards)
    cells = [(page_index, grid_row, col) for col in range(grid.columns)]
    for pair_cell, pair_type in _paired_cells(cells, grid, mode):
        result = _skip_cells([pair_cell], pair_type, result)
    return result


def skip_column_with_pairing(page_index: int, grid_column: int, grid: GridSpec,
                             card_type: Optional[CardType], skipped_cards: Sequence[SkippedCard],
                             mode: ProcessingMode) -> Skips:
    result = skip_column(page_index, grid_column, grid, card_type, skipped_cards)
    cells = [(page_index, row, grid_column) for row in range(grid.rows)]
    for pair_cell, pair_type in _paired_cells(cells, grid, mode):
        result = _skip_cells([pair_cell], pair_type, result)
    return result
