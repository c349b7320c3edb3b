"""Sequential card identities.

A card's number is its 1-based ordinal among all earlier positions of the same
effective type, scanning pages in order and each page row-major.  While the
document carries no manual override, two layout rules refine that count:

* **Duplex backs** are numbered through the mirrored grid position, so the back
  printed behind front *n* also reads *n*.  Rows are mirrored for short-edge
  portrait and long-edge landscape sheets, columns otherwise.
* **Gutter-fold** halves are mirrored across the gutter so that the two faces
  of a folded card share one number.  Numbering continues across pages with a
  running half-page offset.

Both refinements only permute numbers inside a page, so IDs stay gapless.
Any override anywhere in the document turns them off for every card.
"""
from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

from cardsplitter.models.card import (
    CardIdentity, CardPosition, CardType, DeterminismWarning, Resolved,
)
from cardsplitter.models.page import PageDescriptor
from cardsplitter.models.settings import (
    Duplex, ExtractionSettings, FlipEdge, GridSpec, GutterFold, Orientation, ProcessingMode,
)
from cardsplitter.services.mode_resolver import locate
from cardsplitter.services.override_resolver import effective_card_type, override_map

PageSize = Optional[Tuple[float, float]]

FALLBACK_REASON = "page dimensions unavailable, duplex mirroring used flip-edge fallback"


# ---------------------------------------------------------------------------
# Duplex mirroring
# ---------------------------------------------------------------------------
def _usable(size: PageSize) -> bool:
    return bool(size) and size[0] > 0 and size[1] > 0


def mirror_rows_for(flip_edge: FlipEdge, page_size: PageSize) -> Tuple[bool, bool]:
    """Return ``(mirror_rows, used_fallback)`` for a duplex back page."""
    if _usable(page_size):
        width, height = page_size
        if height > width:
            return flip_edge is FlipEdge.SHORT, False
        return flip_edge is FlipEdge.LONG, False
    return flip_edge is FlipEdge.LONG, True


def mirrored_card_on_page(position: CardPosition, grid: GridSpec, mirror_rows: bool) -> int:
    if mirror_rows:
        return (grid.rows - 1 - position.grid_row) * grid.columns + position.grid_column
    return position.grid_row * grid.columns + (grid.columns - 1 - position.grid_column)


def _page_size(pages: Sequence[PageDescriptor], page_index: int, page_size: PageSize) -> PageSize:
    if _usable(page_size):
        return page_size
    return pages[page_index].size


def _duplex_back_id(card_index: int, position: CardPosition, pages: Sequence[PageDescriptor],
                    grid: GridSpec, mode: Duplex, page_size: PageSize,
                    warnings: List[DeterminismWarning]) -> int:
    size = _page_size(pages, position.page_index, page_size)
    mirror_rows, fallback = mirror_rows_for(mode.flip_edge, size)
    if fallback:
        warnings.append(DeterminismWarning(
            card_index=card_index,
            reason=FALLBACK_REASON,
            detail=(("flip_edge", mode.flip_edge.value),
                    ("mirror", "rows" if mirror_rows else "columns")),
        ))
    back_pages_before = sum(
        1 for page in pages[:position.page_index] if page.page_type.card_type is CardType.BACK)
    return (back_pages_before * grid.cards_per_page
            + mirrored_card_on_page(position, grid, mirror_rows) + 1)


# ---------------------------------------------------------------------------
# Gutter-fold pairing
# ---------------------------------------------------------------------------
def _gutter_fold_id(position: CardPosition, grid: GridSpec, mode: GutterFold,
                    card_type: CardType) -> int:
    if mode.orientation is Orientation.VERTICAL:
        half = grid.columns // 2
        per_half = grid.rows * half
        col = position.grid_column
        if card_type is CardType.BACK:
            col = half - 1 - (col - half)
        in_half = position.grid_row * half + col
    else:
        half = grid.rows // 2
        per_half = half * grid.columns
        row = position.grid_row
        if card_type is CardType.BACK:
            row = half - 1 - (row - half)
        in_half = row * grid.columns + position.grid_column
    return position.page_index * per_half + in_half + 1


def _layout_id(card_index: int, position: CardPosition, card_type: CardType,
               pages: Sequence[PageDescriptor], grid: GridSpec, mode: ProcessingMode,
               page_size: PageSize, warnings: List[DeterminismWarning]) -> Optional[int]:
    """ID from the mirroring rules, or None when plain counting applies."""
    if isinstance(mode, Duplex) and card_type is CardType.BACK:
        return _duplex_back_id(card_index, position, pages, grid, mode, page_size, warnings)
    if isinstance(mode, GutterFold):
        return _gutter_fold_id(position, grid, mode, card_type)
    return None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def card_identity(card_index: int, pages: Sequence[PageDescriptor],
                  extraction: ExtractionSettings, mode: ProcessingMode,
                  page_size: PageSize = None) -> Resolved[CardIdentity]:
    """Identity of the card at ``card_index`` within the active ``pages``.

    ``page_size`` is the physical (width, height) of the pages; when omitted the
    descriptor's own size is used.  A missing size only matters for duplex
    backs and is reported through ``Resolved.warnings``.
    """
    grid = extraction.grid.validate_for(mode)
    position = locate(card_index, pages, grid)
    lookup = override_map(extraction.card_type_overrides)
    card_type = effective_card_type(position, pages, grid, mode, lookup=lookup)

    warnings: List[DeterminismWarning] = []
    if not lookup:
        layout_id = _layout_id(card_index, position, card_type, pages, grid, mode,
                               page_size, warnings)
        if layout_id is not None:
            return Resolved(CardIdentity(card_type, layout_id), tuple(warnings))

    earlier = 0
    for i in range(card_index):
        prior = CardPosition.from_index(i, grid.rows, grid.columns)
        if effective_card_type(prior, pages, grid, mode, lookup=lookup) is card_type:
            earlier += 1
    return Resolved(CardIdentity(card_type, earlier + 1), tuple(warnings))


def identity_table(pages: Sequence[PageDescriptor], extraction: ExtractionSettings,
                   mode: ProcessingMode,
                   page_size: PageSize = None) -> Resolved[Tuple[CardIdentity, ...]]:
    """Identities of every position in the document, computed in one pass.

    Entry *i* equals ``card_identity(i, ...).value``.
    """
    grid = extraction.grid.validate_for(mode)
    lookup = override_map(extraction.card_type_overrides)
    counters: Dict[CardType, int] = {CardType.FRONT: 0, CardType.BACK: 0}
    warnings: List[DeterminismWarning] = []
    identities = []

    for card_index in range(len(pages) * grid.cards_per_page):
        position = CardPosition.from_index(card_index, grid.rows, grid.columns)
        card_type = effective_card_type(position, pages, grid, mode, lookup=lookup)
        counters[card_type] += 1
        layout_id = None
        if not lookup:
            layout_id = _layout_id(card_index, position, card_type, pages, grid, mode,
                                   page_size, warnings)
        identities.append(CardIdentity(card_type, layout_id or counters[card_type]))

    return Resolved(tuple(identities), tuple(warnings))
