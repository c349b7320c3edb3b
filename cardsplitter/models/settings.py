"""Immutable settings structures threaded through the engine.

Each structure knows how to validate itself (raising the typed
:mod:`cardsplitter.errors`) and how to round-trip through the persisted JSON
shape.  Validation is explicit rather than done at construction time so that a
settings store can hold a half-edited value while only the operation that
consumes it fails.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Tuple, Union

from cardsplitter import config
from cardsplitter.errors import (
    ConfigurationError, InvalidGrid, InvalidScale, NegativeBleed, OddGutterGrid,
)
from cardsplitter.models.card import CardType, optional_type
from cardsplitter.models.page import PageDescriptor


# ---------------------------------------------------------------------------
# Processing modes
# ---------------------------------------------------------------------------
class FlipEdge(str, Enum):
    SHORT = "short"
    LONG = "long"


class Orientation(str, Enum):
    VERTICAL = "vertical"
    HORIZONTAL = "horizontal"


@dataclass(frozen=True)
class Simplex:
    key = "simplex"


@dataclass(frozen=True)
class Duplex:
    flip_edge: FlipEdge = FlipEdge.SHORT
    key = "duplex"


@dataclass(frozen=True)
class GutterFold:
    orientation: Orientation = Orientation.VERTICAL
    key = "gutter-fold"


ProcessingMode = Union[Simplex, Duplex, GutterFold]


def mode_to_dict(mode: ProcessingMode) -> dict:
    if isinstance(mode, Simplex):
        return {"type": Simplex.key}
    if isinstance(mode, Duplex):
        return {"type": Duplex.key, "flipEdge": mode.flip_edge.value}
    if isinstance(mode, GutterFold):
        return {"type": GutterFold.key, "orientation": mode.orientation.value}
    raise TypeError(f"Unknown processing mode {mode!r}")


def mode_from_dict(data: dict) -> ProcessingMode:
    kind = data.get("type")
    if kind == Simplex.key:
        return Simplex()
    if kind == Duplex.key:
        return Duplex(FlipEdge(data.get("flipEdge", "short")))
    if kind == GutterFold.key:
        return GutterFold(Orientation(data.get("orientation", "vertical")))
    raise ConfigurationError("processingMode", f"unknown mode type {kind!r}")


def mode_grid_key(mode: ProcessingMode) -> str:
    if isinstance(mode, GutterFold):
        return f"{GutterFold.key}:{mode.orientation.value}"
    return mode_to_dict(mode)["type"]


# ---------------------------------------------------------------------------
# Extraction geometry
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class GridSpec:
    rows: int = 2
    columns: int = 3

    @property
    def cards_per_page(self) -> int:
        return self.rows * self.columns

    def validate(self) -> "GridSpec":
        if self.rows < 1:
            raise InvalidGrid("grid.rows", f"must be at least 1, got {self.rows}")
        if self.columns < 1:
            raise InvalidGrid("grid.columns", f"must be at least 1, got {self.columns}")
        return self

    def validate_for(self, mode: ProcessingMode) -> "GridSpec":
        self.validate()
        if isinstance(mode, GutterFold):
            if mode.orientation is Orientation.VERTICAL and self.columns % 2:
                raise OddGutterGrid(
                    "grid.columns",
                    f"vertical gutter-fold needs an even column count, got {self.columns}")
            if mode.orientation is Orientation.HORIZONTAL and self.rows % 2:
                raise OddGutterGrid(
                    "grid.rows",
                    f"horizontal gutter-fold needs an even row count, got {self.rows}")
        return self

    def to_dict(self) -> dict:
        return {"rows": self.rows, "columns": self.columns}

    @classmethod
    def from_dict(cls, data: dict) -> "GridSpec":
        return cls(rows=int(data["rows"]), columns=int(data["columns"]))


@dataclass(frozen=True)
class CropSpec:
    """Edge crop in extraction-DPI pixels."""
    top: float = 0
    right: float = 0
    bottom: float = 0
    left: float = 0

    def validate(self, name: str = "crop") -> "CropSpec":
        for side in ("top", "right", "bottom", "left"):
            if getattr(self, side) < 0:
                raise ConfigurationError(f"{name}.{side}", "must not be negative")
        return self

    @property
    def is_empty(self) -> bool:
        return not (self.top or self.right or self.bottom or self.left)

    def to_dict(self) -> dict:
        return {"top": self.top, "right": self.right, "bottom": self.bottom, "left": self.left}

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "CropSpec":
        data = data or {}
        return cls(**{k: data.get(k, 0) for k in ("top", "right", "bottom", "left")})


@dataclass(frozen=True)
class GutterSpec:
    width: float = 0
    orientation: Orientation = Orientation.VERTICAL

    @classmethod
    def for_mode(cls, width: float, mode: ProcessingMode) -> "GutterSpec":
        if isinstance(mode, GutterFold):
            return cls(width=width, orientation=mode.orientation)
        return cls(width=0)

    def validate(self) -> "GutterSpec":
        if self.width < 0:
            raise ConfigurationError("gutterWidth", "must not be negative")
        return self


@dataclass(frozen=True)
class RotationSpec:
    """Rotation in degrees per card type."""
    front: int = 0
    back: int = 0

    def for_type(self, card_type: CardType) -> int:
        return self.front if CardType(card_type) is CardType.FRONT else self.back

    def validate(self, name: str) -> "RotationSpec":
        for side in ("front", "back"):
            value = getattr(self, side)
            if value not in config.VALID_ROTATIONS:
                raise ConfigurationError(
                    f"{name}.{side}", f"must be one of {config.VALID_ROTATIONS}, got {value}")
        return self

    def to_dict(self) -> dict:
        return {"front": self.front, "back": self.back}

    @classmethod
    def from_dict(cls, data) -> "RotationSpec":
        if isinstance(data, (int, float)):
            return cls(front=int(data), back=int(data))
        data = data or {}
        return cls(front=int(data.get("front", 0)), back=int(data.get("back", 0)))


# ---------------------------------------------------------------------------
# Per-cell records
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class CardTypeOverride:
    page_index: int
    grid_row: int
    grid_column: int
    card_type: CardType

    @property
    def cell(self) -> Tuple[int, int, int]:
        return (self.page_index, self.grid_row, self.grid_column)

    def to_dict(self) -> dict:
        return {"pageIndex": self.page_index, "gridRow": self.grid_row,
                "gridColumn": self.grid_column, "cardType": self.card_type.value}

    @classmethod
    def from_dict(cls, data: dict) -> "CardTypeOverride":
        return cls(int(data["pageIndex"]), int(data["gridRow"]), int(data["gridColumn"]),
                   CardType(data["cardType"]))


@dataclass(frozen=True)
class SkippedCard:
    page_index: int
    grid_row: int
    grid_column: int
    # None matches both card types.
    card_type: Optional[CardType] = None

    @property
    def cell(self) -> Tuple[int, int, int]:
        return (self.page_index, self.grid_row, self.grid_column)

    def matches(self, cell: Tuple[int, int, int], card_type: Optional[CardType]) -> bool:
        if self.cell != tuple(cell):
            return False
        return card_type is None or self.card_type is None or self.card_type is card_type

    def to_dict(self) -> dict:
        data = {"pageIndex": self.page_index, "gridRow": self.grid_row,
                "gridColumn": self.grid_column}
        if self.card_type is not None:
            data["cardType"] = self.card_type.value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "SkippedCard":
        return cls(int(data["pageIndex"]), int(data["gridRow"]), int(data["gridColumn"]),
                   optional_type(data.get("cardType")))


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class ExtractionSettings:
    grid: GridSpec = field(default_factory=GridSpec)
    crop: CropSpec = field(default_factory=CropSpec)
    gutter_width: float = 0
    card_crop: CropSpec = field(default_factory=CropSpec)
    image_rotation: RotationSpec = field(default_factory=RotationSpec)
    skipped_cards: Tuple[SkippedCard, ...] = ()
    card_type_overrides: Tuple[CardTypeOverride, ...] = ()

    def gutter(self, mode: ProcessingMode) -> GutterSpec:
        return GutterSpec.for_mode(self.gutter_width, mode)

    def validate(self, mode: ProcessingMode) -> "ExtractionSettings":
        self.grid.validate_for(mode)
        self.crop.validate("crop")
        self.card_crop.validate("cardCrop")
        self.image_rotation.validate("imageRotation")
        self.gutter(mode).validate()
        return self

    def to_dict(self) -> dict:
        return {
            "crop": self.crop.to_dict(),
            "grid": self.grid.to_dict(),
            "gutterWidth": self.gutter_width,
            "cardCrop": self.card_crop.to_dict(),
            "imageRotation": self.image_rotation.to_dict(),
            "skippedCards": [s.to_dict() for s in self.skipped_cards],
            "cardTypeOverrides": [o.to_dict() for o in self.card_type_overrides],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ExtractionSettings":
        return cls(
            grid=GridSpec.from_dict(data["grid"]),
            crop=CropSpec.from_dict(data.get("crop")),
            gutter_width=data.get("gutterWidth", 0) or 0,
            card_crop=CropSpec.from_dict(data.get("cardCrop")),
            image_rotation=RotationSpec.from_dict(data.get("imageRotation")),
            skipped_cards=tuple(SkippedCard.from_dict(s) for s in data.get("skippedCards", [])),
            card_type_overrides=tuple(
                CardTypeOverride.from_dict(o) for o in data.get("cardTypeOverrides", [])),
        )


@dataclass(frozen=True)
class OutputSettings:
    card_size: Tuple[float, float] = config.DEFAULT_CARD_SIZE
    bleed_margin: float = 0.0
    card_scale_percent: float = 100.0
    page_size: Tuple[float, float] = config.DEFAULT_PAGE_SIZE
    offset: Tuple[float, float] = (0.0, 0.0)
    rotation: RotationSpec = field(default_factory=RotationSpec)
    card_image_sizing_mode: str = "actual-size"

    def validate(self) -> "OutputSettings":
        width, height = self.card_size
        if width <= 0 or height <= 0:
            raise ConfigurationError("cardSize", f"must be positive, got {width} x {height}")
        if self.bleed_margin < 0:
            raise NegativeBleed("bleedMarginInches", f"must not be negative, got {self.bleed_margin}")
        scale = self.card_scale_percent
        if scale <= config.MIN_SCALE_PERCENT or scale > config.MAX_SCALE_PERCENT:
            raise InvalidScale(
                "cardScalePercent",
                f"must be in ({config.MIN_SCALE_PERCENT:g}, {config.MAX_SCALE_PERCENT:g}], got {scale}")
        page_w, page_h = self.page_size
        if page_w <= 0 or page_h <= 0:
            raise ConfigurationError("pageSize", f"must be positive, got {page_w} x {page_h}")
        for name, value, span in (("horizontal", self.offset[0], page_w),
                                  ("vertical", self.offset[1], page_h)):
            if abs(value) > span / 2:
                raise ConfigurationError(
                    f"offset.{name}", f"{value} moves the card off a {span} in page")
        if self.card_image_sizing_mode not in config.VALID_SIZING_MODES:
            raise ConfigurationError(
                "cardImageSizingMode", f"unknown sizing mode {self.card_image_sizing_mode!r}")
        self.rotation.validate("rotation")
        return self

    def to_dict(self) -> dict:
        return {
            "cardSize": {"widthInches": self.card_size[0], "heightInches": self.card_size[1]},
            "bleedMarginInches": self.bleed_margin,
            "cardScalePercent": self.card_scale_percent,
            "pageSize": {"width": self.page_size[0], "height": self.page_size[1]},
            "offset": {"horizontal": self.offset[0], "vertical": self.offset[1]},
            "rotation": self.rotation.to_dict(),
            "cardImageSizingMode": self.card_image_sizing_mode,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "OutputSettings":
        card = data.get("cardSize") or {}
        page = data.get("pageSize") or {}
        offset = data.get("offset") or {}
        return cls(
            card_size=(card.get("widthInches", config.DEFAULT_CARD_SIZE[0]),
                       card.get("heightInches", config.DEFAULT_CARD_SIZE[1])),
            bleed_margin=data.get("bleedMarginInches", 0.0),
            card_scale_percent=data.get("cardScalePercent", 100.0),
            page_size=(page.get("width", config.DEFAULT_PAGE_SIZE[0]),
                       page.get("height", config.DEFAULT_PAGE_SIZE[1])),
            offset=(offset.get("horizontal", 0.0), offset.get("vertical", 0.0)),
            rotation=RotationSpec.from_dict(data.get("rotation")),
            card_image_sizing_mode=data.get("cardImageSizingMode", "actual-size"),
        )


@dataclass(frozen=True)
class WorkflowSettings:
    processing_mode: ProcessingMode = field(default_factory=Duplex)
    pages: Tuple[PageDescriptor, ...] = ()
    extraction: ExtractionSettings = field(default_factory=ExtractionSettings)
    output: OutputSettings = field(default_factory=OutputSettings)
    version: str = config.SETTINGS_VERSION
    saved_at: Optional[str] = None

    def to_dict(self, stamp: bool = True) -> dict:
        saved_at = self.saved_at
        if stamp:
            saved_at = datetime.now(timezone.utc).isoformat()
        return {
            "processingMode": mode_to_dict(self.processing_mode),
            "pages": [p.to_dict() for p in self.pages],
            "extraction": self.extraction.to_dict(),
            "output": self.output.to_dict(),
            "version": self.version,
            "savedAt": saved_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "WorkflowSettings":
        return cls(
            processing_mode=mode_from_dict(data["processingMode"]),
            pages=tuple(PageDescriptor.from_dict(p, i) for i, p in enumerate(data.get("pages", []))),
            extraction=ExtractionSettings.from_dict(data["extraction"]),
            output=OutputSettings.from_dict(data["output"]),
            version=data.get("version", config.SETTINGS_VERSION),
            saved_at=data.get("savedAt"),
        )


def default_rotation(mode: ProcessingMode) -> RotationSpec:
    """Backs of long-edge duplex and horizontal gutter-fold sheets print upside down."""
    back = 0
    if isinstance(mode, Duplex) and mode.flip_edge is FlipEdge.LONG:
        back = 180
    elif isinstance(mode, GutterFold) and mode.orientation is Orientation.HORIZONTAL:
        back = 180
    return RotationSpec(front=0, back=back)


def default_settings_for_mode(mode: ProcessingMode,
                              pages: Tuple[PageDescriptor, ...] = ()) -> WorkflowSettings:
    rows, columns = config.DEFAULT_GRID[mode_grid_key(mode)]
    return WorkflowSettings(
        processing_mode=mode,
        pages=tuple(pages),
        extraction=ExtractionSettings(grid=GridSpec(rows, columns)),
        output=OutputSettings(rotation=default_rotation(mode)),
    )


def with_extraction(settings: WorkflowSettings, **changes) -> WorkflowSettings:
    return replace(settings, extraction=replace(settings.extraction, **changes))


def with_output(settings: WorkflowSettings, **changes) -> WorkflowSettings:
    return replace(settings, output=replace(settings.output, **changes))
