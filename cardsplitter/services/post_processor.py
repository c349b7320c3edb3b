from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Tuple

from PySide6.QtGui import QImage, QTransform
from PySide6.QtCore import Qt

from cardsplitter.models.card import CardRegion, CardType
from cardsplitter.models.settings import CropSpec, ExtractionSettings, RotationSpec

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessedCard:
    """Extraction region after the fine crop, plus the rotation to apply to it."""
    region: CardRegion
    rotation: int
    width: int
    height: int
    card_crop_applied: bool


def apply_card_crop(region: CardRegion, card_crop: CropSpec) -> Tuple[CardRegion, bool]:
    """Trim the per-card fine crop, or leave the region alone if nothing would remain."""
    if card_crop.is_empty:
        return region, False
    card_crop.validate("cardCrop")
    width = region.width - card_crop.left - card_crop.right
    height = region.height - card_crop.top - card_crop.bottom
    if width <= 0 or height <= 0:
        log.warning("[POSTPROC] fine crop %s leaves %gx%g of a %dx%d region, skipped",
                    card_crop.to_dict(), width, height, region.width, region.height)
        return region, False
    cropped = CardRegion(
        x=int(region.x + card_crop.left),
        y=int(region.y + card_crop.top),
        width=int(width),
        height=int(height),
    )
    return cropped, True


def extraction_rotation(card_type: CardType, image_rotation: RotationSpec) -> int:
    return image_rotation.for_type(card_type) % 360


def rotated_pixel_size(width: int, height: int, rotation: int) -> Tuple[int, int]:
    if rotation % 180 == 90:
        return height, width
    return width, height


def compose_rotation(*rotations: int) -> int:
    """Extraction and layout rotations add up; neither replaces the other."""
    return sum(rotations) % 360


def process_card(region: CardRegion, card_type: CardType,
                 extraction: ExtractionSettings) -> ProcessedCard:
    extraction.image_rotation.validate("imageRotation")
    final, applied = apply_card_crop(region, extraction.card_crop)
    rotation = extraction_rotation(card_type, extraction.image_rotation)
    width, height = rotated_pixel_size(final.width, final.height, rotation)
    return ProcessedCard(final, rotation, width, height, applied)


def render_card_image(page_image: QImage, processed: ProcessedCard) -> QImage:
    """Cut the processed region out of ``page_image`` and rotate it."""
    card = page_image.copy(processed.region.to_qrect())
    if processed.rotation:
        card = card.transformed(QTransform().rotate(processed.rotation),
                                Qt.TransformationMode.FastTransformation)
    return card
