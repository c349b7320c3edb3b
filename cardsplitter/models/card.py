from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, Optional, Tuple, TypeVar

from PySide6.QtCore import QRect

T = TypeVar("T")


class CardType(str, Enum):
    FRONT = "front"
    BACK = "back"

    @property
    def label(self) -> str:
        return self.value.capitalize()


@dataclass(frozen=True)
class CardPosition:
    """Grid cell addressed by a linear card index (row-major, page-major)."""
    page_index: int
    grid_row: int
    grid_column: int
    card_on_page: int

    @classmethod
    def from_index(cls, card_index: int, rows: int, columns: int) -> "CardPosition":
        if card_index < 0:
            raise IndexError(f"card index {card_index} is negative")
        per_page = rows * columns
        card_on_page = card_index % per_page
        return cls(
            page_index=card_index // per_page,
            grid_row=card_on_page // columns,
            grid_column=card_on_page % columns,
            card_on_page=card_on_page,
        )

    @property
    def cell(self) -> Tuple[int, int, int]:
        return (self.page_index, self.grid_row, self.grid_column)


@dataclass(frozen=True)
class CardIdentity:
    card_type: CardType
    sequential_id: int

    def __str__(self) -> str:
        return f"{self.card_type.label} {self.sequential_id}"


@dataclass(frozen=True)
class CardRegion:
    """Pixel rectangle on a page rasterized at extraction DPI."""
    x: int
    y: int
    width: int
    height: int

    def to_qrect(self) -> QRect:
        return QRect(self.x, self.y, self.width, self.height)

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)


@dataclass(frozen=True)
class OutputPlacement:
    """Where a card lands on the output page, in inches.

    ``width``/``height`` are the placement footprint (already swapped for a
    90/270 layout rotation); ``image_width``/``image_height`` are the card
    image size before that rotation is applied.
    """
    width: float
    height: float
    x: float
    y: float
    rotation: int
    image_width: float
    image_height: float

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)


@dataclass(frozen=True)
class DeterminismWarning:
    """Non-fatal notice that a result depended on a heuristic fallback."""
    card_index: int
    reason: str
    detail: Tuple[Tuple[str, object], ...] = ()

    def __str__(self) -> str:
        extra = ", ".join(f"{k}={v}" for k, v in self.detail)
        return f"card {self.card_index}: {self.reason}" + (f" ({extra})" if extra else "")


@dataclass(frozen=True)
class Resolved(Generic[T]):
    """A computed value together with the warnings raised while computing it."""
    value: T
    warnings: Tuple[DeterminismWarning, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return not self.warnings


def merge_warnings(*groups) -> Tuple[DeterminismWarning, ...]:
    seen = []
    for group in groups:
        for w in group:
            if w not in seen:
                seen.append(w)
    return tuple(seen)


def optional_type(value: Optional[str]) -> Optional[CardType]:
    return CardType(value) if value else None
