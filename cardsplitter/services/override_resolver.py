"""Manual front/back overrides per grid cell.

Every function is a state transition: it takes the current override tuple and
returns a new one, leaving the input untouched.  A cell carries at most one
override.
"""
from __future__ import annotations

from dataclasses import replace
from typing import Dict, Optional, Sequence, Tuple

from cardsplitter.models.card import CardPosition, CardType
from cardsplitter.models.page import PageDescriptor
from cardsplitter.models.settings import CardTypeOverride, GridSpec, ProcessingMode
from cardsplitter.services.mode_resolver import card_type_at

Cell = Tuple[int, int, int]
Overrides = Tuple[CardTypeOverride, ...]


def _index_of(overrides: Sequence[CardTypeOverride], cell: Cell) -> int:
    for i, override in enumerate(overrides):
        if override.cell == tuple(cell):
            return i
    return -1


def find_override(overrides: Sequence[CardTypeOverride], cell: Cell) -> Optional[CardTypeOverride]:
    i = _index_of(overrides, cell)
    return overrides[i] if i >= 0 else None


def toggle_override(overrides: Sequence[CardTypeOverride], cell: Cell) -> Overrides:
    """Cycle a cell through none -> front -> back -> none."""
    i = _index_of(overrides, cell)
    if i < 0:
        return tuple(overrides) + (CardTypeOverride(*cell, card_type=CardType.FRONT),)
    current = overrides[i]
    if current.card_type is CardType.FRONT:
        updated = list(overrides)
        updated[i] = replace(current, card_type=CardType.BACK)
        return tuple(updated)
    return tuple(o for j, o in enumerate(overrides) if j != i)


def set_override(overrides: Sequence[CardTypeOverride], cell: Cell, card_type: CardType) -> Overrides:
    card_type = CardType(card_type)
    i = _index_of(overrides, cell)
    if i < 0:
        return tuple(overrides) + (CardTypeOverride(*cell, card_type=card_type),)
    updated = list(overrides)
    updated[i] = replace(updated[i], card_type=card_type)
    return tuple(updated)


def clear_override(overrides: Sequence[CardTypeOverride], cell: Cell) -> Overrides:
    return tuple(o for o in overrides if o.cell != tuple(cell))


def override_status(overrides: Sequence[CardTypeOverride], cell: Cell) -> Dict[str, object]:
    override = find_override(overrides, cell)
    return {
        "has_override": override is not None,
        "override_type": override.card_type if override else None,
    }


def override_map(overrides: Sequence[CardTypeOverride]) -> Dict[Cell, CardType]:
    """Lookup table keyed by cell; later duplicates win, matching ``set_override``."""
    return {o.cell: o.card_type for o in overrides}


def effective_card_type(position: CardPosition, pages: Sequence[PageDescriptor], grid: GridSpec,
                        mode: ProcessingMode, overrides: Sequence[CardTypeOverride] = (),
                        lookup: Optional[Dict[Cell, CardType]] = None) -> CardType:
    """The override for the cell when there is one, else the mode's answer."""
    if lookup is None:
        lookup = override_map(overrides)
    forced = lookup.get(position.cell)
    if forced is not None:
        return forced
    return card_type_at(position, pages, grid, mode)
