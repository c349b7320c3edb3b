"""Maps a card position onto the pixel grid of a rasterized page.

All inputs are extraction-DPI pixels.  The crop trims the page edges, the
remaining area is divided into the grid, and under gutter-fold the gutter strip
between the two halves is excluded so no cell ever covers it.
"""
from __future__ import annotations

import logging
import math

from cardsplitter.errors import CropExceedsPage
from cardsplitter.models.card import CardPosition, CardRegion
from cardsplitter.models.settings import CropSpec, GridSpec, GutterFold, GutterSpec, Orientation

log = logging.getLogger(__name__)


def cropped_area(page_width: float, page_height: float, crop: CropSpec):
    crop.validate()
    width = page_width - crop.left - crop.right
    height = page_height - crop.top - crop.bottom
    if width <= 0:
        raise CropExceedsPage(
            "crop.left/crop.right",
            f"horizontal crop {crop.left + crop.right} leaves nothing of a {page_width}px page")
    if height <= 0:
        raise CropExceedsPage(
            "crop.top/crop.bottom",
            f"vertical crop {crop.top + crop.bottom} leaves nothing of a {page_height}px page")
    return width, height


def cell_layout(position: CardPosition, page_width: float, page_height: float, grid: GridSpec,
                crop: CropSpec, gutter: GutterSpec):
    """Unclamped ``(x, y, cell_width, cell_height)`` of a cell, as floats."""
    grid.validate()
    gutter.validate()
    cropped_w, cropped_h = cropped_area(page_width, page_height, crop)
    row, col = position.grid_row, position.grid_column

    if gutter.width > 0 and gutter.orientation is Orientation.VERTICAL:
        grid.validate_for(GutterFold(Orientation.VERTICAL))
        half_cols = grid.columns // 2
        half_w = (cropped_w - gutter.width) / 2
        cell_w = half_w / half_cols
        cell_h = cropped_h / grid.rows
        if col < half_cols:
            x = crop.left + col * cell_w
        else:
            x = crop.left + half_w + gutter.width + (col - half_cols) * cell_w
        y = crop.top + row * cell_h
    elif gutter.width > 0:
        grid.validate_for(GutterFold(Orientation.HORIZONTAL))
        half_rows = grid.rows // 2
        half_h = (cropped_h - gutter.width) / 2
        cell_w = cropped_w / grid.columns
        cell_h = half_h / half_rows
        x = crop.left + col * cell_w
        if row < half_rows:
            y = crop.top + row * cell_h
        else:
            y = crop.top + half_h + gutter.width + (row - half_rows) * cell_h
    else:
        cell_w = cropped_w / grid.columns
        cell_h = cropped_h / grid.rows
        x = crop.left + col * cell_w
        y = crop.top + row * cell_h

    return x, y, cell_w, cell_h


def clamp_region(x: float, y: float, width: float, height: float,
                 page_width: int, page_height: int) -> CardRegion:
    page_width, page_height = int(page_width), int(page_height)
    left = max(0, min(math.floor(x), page_width - 1))
    top = max(0, min(math.floor(y), page_height - 1))
    w = max(1, min(math.floor(width), page_width - left))
    h = max(1, min(math.floor(height), page_height - top))
    return CardRegion(left, top, w, h)


def card_region(card_index: int, page_width: int, page_height: int, grid: GridSpec,
                crop: CropSpec, gutter: GutterSpec) -> CardRegion:
    """Source rectangle of ``card_index`` on its page, clamped to the page."""
    if page_width <= 0 or page_height <= 0:
        raise CropExceedsPage("page", f"rasterized page is {page_width}x{page_height}px")
    position = CardPosition.from_index(card_index, grid.validate().rows, grid.columns)
    x, y, cell_w, cell_h = cell_layout(position, page_width, page_height, grid, crop, gutter)
    if cell_w < 1 or cell_h < 1:
        log.warning("[EXTRACT] card %d: degenerate %.2fx%.2f cell clamped to 1px minimum",
                    card_index, cell_w, cell_h)
    return clamp_region(x, y, cell_w, cell_h, page_width, page_height)
