"""Sources of rasterized pages.

Rasterization proper (PDF rendering) lives outside the engine; anything that
can hand back a page image at extraction DPI satisfies :class:`PageRasterizer`.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Protocol, Sequence, Tuple

from PySide6.QtGui import QImage

from cardsplitter import config
from cardsplitter.models.page import FileKind, PageDescriptor, PageType
from cardsplitter.utils.unit_converter import px_to_inches, inches_to_points

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class RasterPage:
    image: QImage
    width: int
    height: int

    @classmethod
    def from_image(cls, image: QImage) -> "RasterPage":
        return cls(image, image.width(), image.height())


class PageRasterizer(Protocol):
    def get_page(self, physical_page_number: int) -> RasterPage:
        """Render the 1-based ``physical_page_number`` at extraction DPI."""
        ...

    def source_name(self, physical_page_number: int) -> str:
        """Name of the file the page came from, or an empty string."""
        ...


class ImageFileRasterizer:
    """Serves image files as pages; images are taken to already be at extraction DPI."""

    def __init__(self, paths: Sequence, dpi: int = config.EXTRACTION_DPI):
        self.paths: Tuple[Path, ...] = tuple(Path(p) for p in paths)
        self.dpi = dpi
        self._loaded: Dict[int, RasterPage] = {}

    def __len__(self) -> int:
        return len(self.paths)

    def get_page(self, physical_page_number: int) -> RasterPage:
        if not 1 <= physical_page_number <= len(self.paths):
            raise IndexError(
                f"page {physical_page_number} out of range 1..{len(self.paths)}")
        page = self._loaded.get(physical_page_number)
        if page is not None:
            return page
        path = self.paths[physical_page_number - 1]
        image = QImage(str(path))
        if image.isNull():
            raise IOError(f"could not load image {path}")
        log.debug("[PAGES] loaded %s (%dx%d)", path, image.width(), image.height())
        page = RasterPage.from_image(image)
        self._loaded[physical_page_number] = page
        return page

    def source_name(self, physical_page_number: int) -> str:
        return self.paths[physical_page_number - 1].name

    def descriptors(self, alternate: bool = False) -> Tuple[PageDescriptor, ...]:
        """Page descriptors for the files, physical sizes in points when readable."""
        pages = []
        for i in range(len(self.paths)):
            size = self._size_points(i + 1)
            page_type = PageType.BACK if alternate and i % 2 else PageType.FRONT
            pages.append(PageDescriptor(
                source_index=i, page_type=page_type, file_kind=FileKind.IMAGE,
                width=size[0] if size else None, height=size[1] if size else None))
        return tuple(pages)

    def _size_points(self, physical_page_number: int) -> Optional[Tuple[float, float]]:
        try:
            page = self.get_page(physical_page_number)
        except IOError as e:
            log.warning("[PAGES] %s", e)
            return None
        return (inches_to_points(px_to_inches(page.width, self.dpi)),
                inches_to_points(px_to_inches(page.height, self.dpi)))
