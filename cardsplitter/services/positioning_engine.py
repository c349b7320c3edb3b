"""Output placement of an extracted card, in inches.

The same function feeds the preview and the PDF export, so whatever the user
sees is exactly what gets printed.
"""
from __future__ import annotations

from typing import Tuple

from PySide6.QtCore import QSizeF

from cardsplitter import config
from cardsplitter.models.card import CardType, OutputPlacement
from cardsplitter.models.settings import OutputSettings
from cardsplitter.utils.unit_converter import px_to_inches


def intrinsic_size_inches(width_px: int, height_px: int,
                          dpi: int = config.EXTRACTION_DPI) -> Tuple[float, float]:
    return px_to_inches(width_px, dpi), px_to_inches(height_px, dpi)


def bleed_target(output: OutputSettings) -> Tuple[float, float]:
    """Card size plus bleed on both sides, before scaling."""
    width, height = output.card_size
    return width + 2 * output.bleed_margin, height + 2 * output.bleed_margin


def fitted_image_size(intrinsic: Tuple[float, float], target: Tuple[float, float],
                      sizing_mode: str) -> Tuple[float, float]:
    aspect = config.SIZING_MODE_FLAGS[sizing_mode]["aspect"]
    if aspect is None or intrinsic[0] <= 0 or intrinsic[1] <= 0:
        return intrinsic
    fitted = QSizeF(*intrinsic).scaled(QSizeF(*target), aspect)
    return fitted.width(), fitted.height()


def card_placement(intrinsic_width: float, intrinsic_height: float, output: OutputSettings,
                   card_type: CardType) -> OutputPlacement:
    """Place a card whose extracted image measures ``intrinsic_width`` x ``intrinsic_height`` inches."""
    output.validate()
    scale = output.card_scale_percent / 100.0
    target_w, target_h = bleed_target(output)

    image_w, image_h = fitted_image_size((intrinsic_width, intrinsic_height),
                                         (target_w, target_h), output.card_image_sizing_mode)
    image_w, image_h = image_w * scale, image_h * scale

    rotation = output.rotation.for_type(card_type) % 360
    footprint_w, footprint_h = target_w * scale, target_h * scale
    if rotation in (90, 270):
        footprint_w, footprint_h = footprint_h, footprint_w

    page_w, page_h = output.page_size
    offset_h, offset_v = output.offset
    return OutputPlacement(
        width=footprint_w,
        height=footprint_h,
        x=(page_w - footprint_w) / 2 + offset_h,
        y=(page_h - footprint_h) / 2 + offset_v,
        rotation=rotation,
        image_width=image_w,
        image_height=image_h,
    )
