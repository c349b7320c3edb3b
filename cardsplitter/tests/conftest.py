import os
import sys

# Offscreen platform for Qt
os.environ["QT_QPA_PLATFORM"] = "offscreen"

import pytest
from PySide6.QtCore import QRect
from PySide6.QtGui import QColor, QImage, QPainter
from PySide6.QtWidgets import QApplication

from cardsplitter.services.page_source import RasterPage


@pytest.fixture(scope="session")
def qapp():
    app = QApplication.instance() or QApplication(sys.argv)
    yield app


# ── SYNTHETIC PAGES ────────────────────────────────────────────────────────
PALETTE = ["red", "blue", "green", "yellow", "magenta", "cyan", "black", "white"]


def sheet(width, height, rows, columns, colors=None):
    """A page image whose grid cells are filled with distinct solid colours."""
    colors = colors or PALETTE
    image = QImage(width, height, QImage.Format_RGB32)
    image.fill(QColor("gray"))
    painter = QPainter(image)
    cell_w, cell_h = width // columns, height // rows
    for r in range(rows):
        for c in range(columns):
            color = QColor(colors[(r * columns + c) % len(colors)])
            painter.fillRect(QRect(c * cell_w, r * cell_h, cell_w, cell_h), color)
    painter.end()
    return image


class MemoryRasterizer:
    """Serves prepared QImages; ``fail`` lists 1-based page numbers that raise."""

    def __init__(self, images, fail=(), names=()):
        self.images = list(images)
        self.fail = set(fail)
        self.names = list(names)
        self.requests = []

    def get_page(self, physical_page_number):
        self.requests.append(physical_page_number)
        if physical_page_number in self.fail:
            raise IOError(f"page {physical_page_number} failed to render")
        return RasterPage.from_image(self.images[physical_page_number - 1])

    def source_name(self, physical_page_number):
        if physical_page_number <= len(self.names):
            return self.names[physical_page_number - 1]
        return ""


@pytest.fixture
def make_sheet(qapp):
    return sheet


@pytest.fixture
def memory_rasterizer(qapp):
    return MemoryRasterizer
