from typing import Tuple

from cardsplitter.config import EXTRACTION_DPI

POINTS_PER_INCH = 72.0


def _check_dpi(dpi: float) -> None:
    if dpi <= 0:
        raise ValueError("DPI must be a positive value.")


def px_to_inches(pixels: float, dpi: float = EXTRACTION_DPI) -> float:
    """
    Converts a measurement in pixels to inches.
    Args:
        pixels (float): The measurement in pixels.
        dpi (float): Dots Per Inch.
    Returns:
        float: The measurement in inches.
    Raises:
        ValueError: If DPI is not positive.
    """
    _check_dpi(dpi)
    return pixels / dpi


def inches_to_px(inches: float, dpi: float = EXTRACTION_DPI) -> float:
    """
    Converts a measurement in inches to pixels (not rounded).
    Raises:
        ValueError: If DPI is not positive.
    """
    _check_dpi(dpi)
    return inches * dpi


def inches_to_points(inches: float) -> float:
    return inches * POINTS_PER_INCH


def points_to_inches(points: float) -> float:
    return points / POINTS_PER_INCH


def points_to_px(points: float, dpi: float = EXTRACTION_DPI) -> float:
    _check_dpi(dpi)
    return points / POINTS_PER_INCH * dpi


def size_px_to_inches(size: Tuple[float, float], dpi: float = EXTRACTION_DPI) -> Tuple[float, float]:
    return px_to_inches(size[0], dpi), px_to_inches(size[1], dpi)
