# cardsplitter/config.py
from PySide6.QtCore import Qt

# All pixel-space geometry is computed at this resolution.
EXTRACTION_DPI = 300
# PDF user space (points).
SCREEN_DPI = 72

MIN_SCALE_PERCENT = 0.0     # exclusive
MAX_SCALE_PERCENT = 200.0   # inclusive

# Share of one side's cards that may fail before its export is aborted.
EXPORT_FAILURE_RATIO = 0.5

VALID_ROTATIONS = (0, 90, 180, 270)

SIZING_MODE_FLAGS = {
    "actual-size": {"aspect": None,                           "desc": "Actual Size (No Scaling)"},
    "fit-to-card": {"aspect": Qt.KeepAspectRatio,             "desc": "Fit to Card"},
    "fill-card":   {"aspect": Qt.KeepAspectRatioByExpanding,  "desc": "Fill Card (Crop to Fit)"},
}

VALID_SIZING_MODES = [m for m in SIZING_MODE_FLAGS]

DEFAULT_GRID = {
    "simplex":               (2, 3),
    "duplex":                (2, 3),
    "gutter-fold:vertical":  (4, 2),
    "gutter-fold:horizontal": (2, 4),
}

# Poker card.
DEFAULT_CARD_SIZE = (2.5, 3.5)
DEFAULT_PAGE_SIZE = (3.5, 3.5)

SETTINGS_VERSION = "1.0"
