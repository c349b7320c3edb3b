"""Printer calibration.

A calibration sheet carries one card outline, placed exactly like an exported
card, with a crosshair whose arms measure 1.0 in at the current scale.  The
user prints it, measures three distances, and :func:`calibration_settings`
turns those measurements into corrected offset and scale values.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Tuple

from PySide6.QtCore import QMarginsF, QPointF, QRectF, QSizeF, Qt
from PySide6.QtGui import QColor, QFont, QPageLayout, QPageSize, QPainter, QPdfWriter, QPen

from cardsplitter import config
from cardsplitter.errors import ConfigurationError
from cardsplitter.models.settings import OutputSettings
from cardsplitter.utils.unit_converter import inches_to_points

log = logging.getLogger(__name__)

CROSSHAIR_LENGTH = 1.0     # inches, at 100% scale
CROSSHAIR_GAP = 0.04       # white square in the centre
# Shifts and errors below this are reported as centred / accurate.
TOLERANCE = 0.01


@dataclass(frozen=True)
class CalibrationMeasurement:
    """What the user measured on the printed sheet, in inches.

    ``right_distance`` and ``top_distance`` run from the crosshair centre to
    the right and top card edges; ``crosshair_length`` is one full arm.
    """
    right_distance: float
    top_distance: float
    crosshair_length: float

    def validate(self) -> "CalibrationMeasurement":
        for name, value in (("rightDistance", self.right_distance),
                            ("topDistance", self.top_distance),
                            ("crosshairLength", self.crosshair_length)):
            if value <= 0:
                raise ConfigurationError(name, f"measurement must be positive, got {value}")
        return self


def calibration_shifts(output: OutputSettings,
                       measured: CalibrationMeasurement) -> Tuple[float, float]:
    """Horizontal and vertical offset changes, rounded to a thousandth of an inch."""
    measured.validate()
    width, height = output.card_size
    horizontal = round(measured.right_distance - width / 2, 3)
    vertical = round(height / 2 - measured.top_distance, 3)
    return horizontal, vertical


def calibration_settings(output: OutputSettings,
                         measured: CalibrationMeasurement) -> OutputSettings:
    """New output settings with offset and scale corrected from ``measured``."""
    horizontal, vertical = calibration_shifts(output, measured)
    offset = (round(output.offset[0] + horizontal, 3),
              round(output.offset[1] + vertical, 3))
    scale = round(output.card_scale_percent * CROSSHAIR_LENGTH / measured.crosshair_length)
    calibrated = replace(output, offset=offset, card_scale_percent=float(scale))
    log.info("[CALIBRATE] offset %s -> %s, scale %g%% -> %g%%",
             output.offset, offset, output.card_scale_percent, scale)
    return calibrated.validate()


def calibration_diagnostics(output: OutputSettings,
                            measured: CalibrationMeasurement) -> Tuple[str, str, str]:
    """Human readable (horizontal, vertical, scale) findings."""
    horizontal, vertical = calibration_shifts(output, measured)

    if abs(horizontal) < TOLERANCE:
        h_text = "Well centered"
    else:
        h_text = f'Off by {abs(horizontal):.3f}" {"left" if horizontal > 0 else "right"}'
    if abs(vertical) < TOLERANCE:
        v_text = "Well centered"
    else:
        v_text = f'Off by {abs(vertical):.3f}" {"up" if vertical > 0 else "down"}'

    error = measured.crosshair_length - CROSSHAIR_LENGTH
    if abs(error) < TOLERANCE:
        s_text = "Accurate scale"
    else:
        s_text = f"Printer {'enlarges' if error > 0 else 'shrinks'} by {abs(error) * 100:.1f}%"
    return h_text, v_text, s_text


# ---------------------------------------------------------------------------
# Calibration sheet
# ---------------------------------------------------------------------------
def write_calibration_pdf(pdf_path, output: OutputSettings) -> None:
    """One page of ``output.page_size`` with the card outline and measuring crosshair."""
    output.validate()
    page_w, page_h = output.page_size
    card_w, card_h = output.card_size
    card_x = (page_w - card_w) / 2 + output.offset[0]
    card_y = (page_h - card_h) / 2 + output.offset[1]
    cx, cy = card_x + card_w / 2, card_y + card_h / 2
    arm = CROSSHAIR_LENGTH * output.card_scale_percent / 100.0

    writer = QPdfWriter(str(pdf_path))
    writer.setPageSize(QPageSize(QSizeF(inches_to_points(page_w), inches_to_points(page_h)),
                                 QPageSize.Point))
    writer.setPageMargins(QMarginsF(0, 0, 0, 0), QPageLayout.Point)
    writer.setResolution(config.SCREEN_DPI)

    def pt(x, y):
        return QPointF(inches_to_points(x), inches_to_points(y))

    painter = QPainter(writer)

    # 1) Card outline
    pen = QPen(QColor(200, 200, 200))
    pen.setWidthF(inches_to_points(0.01))
    painter.setPen(pen)
    painter.setBrush(Qt.NoBrush)
    painter.drawRect(QRectF(pt(card_x, card_y), pt(card_x + card_w, card_y + card_h)))

    # 2) Crosshair, split around the centre gap
    pen = QPen(Qt.black)
    pen.setWidthF(inches_to_points(0.04))
    painter.setPen(pen)
    half, gap = arm / 2, CROSSHAIR_GAP / 2
    painter.drawLine(pt(cx - half, cy), pt(cx - gap, cy))
    painter.drawLine(pt(cx + gap, cy), pt(cx + half, cy))
    painter.drawLine(pt(cx, cy - half), pt(cx, cy - gap))
    painter.drawLine(pt(cx, cy + gap), pt(cx, cy + half))

    # 3) Labels
    painter.setFont(QFont("Arial", 10))
    painter.drawText(pt(cx + half + 0.05, cy + 0.05), '1.0"')
    painter.drawText(pt(cx + 0.05, cy - half - 0.05), '1.0"')
    painter.setFont(QFont("Arial", 12))
    title = QRectF(pt(card_x, card_y + 0.1), pt(card_x + card_w, card_y + 0.4))
    painter.drawText(title, Qt.AlignHCenter | Qt.AlignVCenter, "CALIBRATION CARD")
    painter.end()

    log.info("[CALIBRATE] wrote calibration sheet to %s", pdf_path)
