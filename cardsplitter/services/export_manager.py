# export_manager.py
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Tuple

from PySide6.QtCore import QMarginsF, QPointF, QRectF, QSizeF
from PySide6.QtGui import QImage, QPageLayout, QPageSize, QPainter, QPdfWriter

from cardsplitter import config
from cardsplitter.errors import ExportAborted, ExtractionFailure
from cardsplitter.models.card import CardIdentity, CardType, DeterminismWarning, OutputPlacement
from cardsplitter.services.card_pipeline import CardPipeline
from cardsplitter.services.skip_filter import card_indices_for
from cardsplitter.utils.unit_converter import inches_to_points

log = logging.getLogger(__name__)

SUMMARY_FILE = "export-summary.txt"


def card_image_filename(identity: CardIdentity, source_name: str, extension: str = "png") -> str:
    """``<side>_<id>_<source>.<ext>``, e.g. ``front_07_sheet-1.png``."""
    stem = re.sub(r"\.[^/.]+$", "", source_name)
    stem = re.sub(r"[^a-zA-Z0-9_-]", "-", stem)
    stem = re.sub(r"-+", "-", stem).strip("-")
    return f"{identity.card_type.value}_{identity.sequential_id:02d}_{stem}.{extension}"


@dataclass(frozen=True)
class ExportedCard:
    card_index: int
    identity: CardIdentity
    image: QImage
    placement: OutputPlacement


@dataclass
class ExportBatch:
    card_type: CardType
    cards: List[ExportedCard] = field(default_factory=list)
    failures: List[ExtractionFailure] = field(default_factory=list)
    warnings: Tuple[DeterminismWarning, ...] = ()

    @property
    def total(self) -> int:
        return len(self.cards) + len(self.failures)


class ExportManager:
    def __init__(self, pipeline: CardPipeline):
        self.pipeline = pipeline

    def extract_side(self, card_type: CardType) -> ExportBatch:
        """Extract every available card of one side, one per sequential ID."""
        card_type = CardType(card_type)
        s = self.pipeline.settings
        resolved = card_indices_for(card_type, self.pipeline.pages, s.extraction, s.processing_mode)
        batch = ExportBatch(card_type, warnings=resolved.warnings)

        for card_index, sequential_id in resolved.value:
            try:
                image = self.pipeline.card_image(card_index)
                placement = self.pipeline.placement(card_index)
            except ExtractionFailure as e:
                log.warning("[EXPORT] %s %d skipped: %s", card_type.label, sequential_id, e.reason)
                batch.failures.append(e)
                continue
            batch.cards.append(ExportedCard(
                card_index, CardIdentity(card_type, sequential_id), image, placement))

        if batch.total and len(batch.failures) / batch.total > config.EXPORT_FAILURE_RATIO:
            raise ExportAborted(card_type, batch.failures, batch.total)
        return batch

    def export_pdf(self, pdf_path, card_type: CardType) -> ExportBatch:
        """Write one page per card of ``card_type`` to ``pdf_path``."""
        batch = self.extract_side(card_type)
        output = self.pipeline.settings.output
        page_w, page_h = output.page_size

        writer = QPdfWriter(str(pdf_path))
        writer.setPageSize(QPageSize(QSizeF(inches_to_points(page_w), inches_to_points(page_h)),
                                     QPageSize.Point))
        writer.setPageMargins(QMarginsF(0, 0, 0, 0), QPageLayout.Point)
        writer.setResolution(config.SCREEN_DPI)  # 1pt = 1/72 in

        clip = output.card_image_sizing_mode == "fill-card"
        painter = QPainter(writer)
        painter.setRenderHint(QPainter.SmoothPixmapTransform, True)
        for i, card in enumerate(batch.cards):
            painter.save()
            self.paint_card(painter, card, clip)
            painter.restore()
            if i < len(batch.cards) - 1:
                writer.newPage()
        painter.end()

        log.info("[EXPORT] wrote %d %s cards to %s (%d failed)",
                 len(batch.cards), card_type.value, pdf_path, len(batch.failures))
        return batch

    def export_images(self, directory, card_type: CardType) -> ExportBatch:
        """Save each card of ``card_type`` as a PNG in ``directory``.

        Images are the extracted cards as they are, before output placement.
        When some cards fail, a plain-text summary listing them is written
        next to the images.
        """
        batch = self.extract_side(card_type)
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)

        for card in batch.cards:
            name = card_image_filename(card.identity, self.pipeline.source_name(card.card_index))
            path = directory / name
            if not card.image.save(str(path), "PNG"):
                raise IOError(f"could not write card image {path}")

        if batch.failures:
            lines = [
                "Card Image Export Summary",
                "=" * 30,
                "",
                f"Total cards processed: {batch.total}",
                f"Successful exports: {len(batch.cards)}",
                f"Failed exports: {len(batch.failures)}",
                "",
                "Failed card indices:",
            ]
            lines += [f"- Card {f.card_index + 1}: {f.reason}" for f in batch.failures]
            (directory / SUMMARY_FILE).write_text("\n".join(lines) + "\n", encoding="utf-8")

        log.info("[EXPORT] saved %d %s card images to %s (%d failed)",
                 len(batch.cards), batch.card_type.value, directory, len(batch.failures))
        return batch

    @staticmethod
    def paint_card(painter: QPainter, card: ExportedCard, clip: bool = False) -> None:
        """Draw the card image centred on its placement, rotated about that centre.

        With ``clip`` the image is cut to the card footprint (fill-card overflow).
        """
        placement = card.placement
        cx, cy = placement.center
        w = inches_to_points(placement.image_width)
        h = inches_to_points(placement.image_height)
        painter.translate(QPointF(inches_to_points(cx), inches_to_points(cy)))
        painter.rotate(placement.rotation)
        if clip:
            tw, th = inches_to_points(placement.width), inches_to_points(placement.height)
            if placement.rotation in (90, 270):
                tw, th = th, tw
            painter.setClipRect(QRectF(-tw / 2, -th / 2, tw, th))
        painter.drawImage(QRectF(-w / 2, -h / 2, w, h), card.image)
