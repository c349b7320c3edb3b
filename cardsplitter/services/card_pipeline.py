"""Single entry point tying identity, extraction and placement together.

Preview and batch export both go through :class:`CardPipeline`, which is what
keeps the two byte-for-byte identical.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Tuple

from PySide6.QtGui import QImage

from cardsplitter import config
from cardsplitter.errors import ExtractionFailure
from cardsplitter.models.card import (
    CardIdentity, CardRegion, DeterminismWarning, OutputPlacement, Resolved,
)
from cardsplitter.models.page import active_pages, physical_page_number
from cardsplitter.models.settings import WorkflowSettings
from cardsplitter.services.geometry_extractor import card_region
from cardsplitter.services.identity_assigner import card_identity
from cardsplitter.services.mode_resolver import locate
from cardsplitter.services.page_source import PageRasterizer, RasterPage
from cardsplitter.services.positioning_engine import card_placement, intrinsic_size_inches
from cardsplitter.services.post_processor import ProcessedCard, process_card, render_card_image
from cardsplitter.services.render_cache import RenderCache

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreviewResult:
    card_index: int
    image: Optional[QImage] = None
    identity: Optional[CardIdentity] = None
    region: Optional[CardRegion] = None
    placement: Optional[OutputPlacement] = None
    warnings: Tuple[DeterminismWarning, ...] = field(default_factory=tuple)
    retryable: bool = False
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class CardPipeline:
    def __init__(self, settings: WorkflowSettings, rasterizer: PageRasterizer,
                 cache: Optional[RenderCache] = None):
        self.settings = settings
        self.rasterizer = rasterizer
        self.cache = cache if cache is not None else RenderCache()

    @property
    def pages(self):
        """Active (non-skipped) pages, the ones card indices count over."""
        return active_pages(self.settings.pages)

    @property
    def total_cards(self) -> int:
        return len(self.pages) * self.settings.extraction.grid.cards_per_page

    def identity(self, card_index: int) -> Resolved[CardIdentity]:
        s = self.settings
        return card_identity(card_index, self.pages, s.extraction, s.processing_mode)

    def raster_page(self, card_index: int) -> RasterPage:
        position = locate(card_index, self.pages, self.settings.extraction.grid)
        physical = physical_page_number(position.page_index, self.settings.pages)
        try:
            return self.rasterizer.get_page(physical)
        except (IOError, OSError, IndexError) as e:
            raise ExtractionFailure(card_index, f"page {physical} unavailable: {e}") from e

    def source_name(self, card_index: int) -> str:
        """File name of the card's page, or ``<kind>-page-<n>`` when the source has none."""
        position = locate(card_index, self.pages, self.settings.extraction.grid)
        physical = physical_page_number(position.page_index, self.settings.pages)
        name = self.rasterizer.source_name(physical)
        if name:
            return name
        return f"{self.settings.pages[physical - 1].file_kind.value}-page-{physical}"

    def region(self, card_index: int) -> CardRegion:
        key = RenderCache.card_key("region", card_index, self.settings)
        return self.cache.value(key, lambda: self._region(card_index))

    def _region(self, card_index: int) -> CardRegion:
        extraction = self.settings.extraction
        page = self.raster_page(card_index)
        return card_region(card_index, page.width, page.height, extraction.grid,
                           extraction.crop, extraction.gutter(self.settings.processing_mode))

    def process(self, card_index: int) -> ProcessedCard:
        card_type = self.identity(card_index).value.card_type
        return process_card(self.region(card_index), card_type, self.settings.extraction)

    def card_image(self, card_index: int) -> QImage:
        key = RenderCache.card_key("image", card_index, self.settings)
        return self.cache.image(key, lambda: self._card_image(card_index))

    def _card_image(self, card_index: int) -> QImage:
        processed = self.process(card_index)
        image = render_card_image(self.raster_page(card_index).image, processed)
        if image.isNull():
            raise ExtractionFailure(card_index, "extracted image is empty")
        return image

    def placement(self, card_index: int) -> OutputPlacement:
        processed = self.process(card_index)
        width, height = intrinsic_size_inches(processed.width, processed.height,
                                              config.EXTRACTION_DPI)
        card_type = self.identity(card_index).value.card_type
        return card_placement(width, height, self.settings.output, card_type)

    def preview(self, card_index: int) -> PreviewResult:
        """Everything needed to show one card; extraction failures come back as data."""
        resolved = self.identity(card_index)
        try:
            image = self.card_image(card_index)
            region = self.region(card_index)
            placement = self.placement(card_index)
        except ExtractionFailure as e:
            log.warning("[PREVIEW] %s", e)
            return PreviewResult(card_index, identity=resolved.value, warnings=resolved.warnings,
                                 retryable=True, error=str(e))
        return PreviewResult(card_index, image, resolved.value, region, placement,
                             resolved.warnings)
