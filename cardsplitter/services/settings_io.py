"""Reading and writing the persisted workflow settings file.

Reload policy: mode, grid, crop and output layout always reapply.  The
page-specific parts (page list, skipped cards, type overrides) only make sense
for the document they were saved with, so they reapply only when the saved
page count matches the current document and are otherwise left as they are.
Saved pages without a physical size take the size the current document knows.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import List

from cardsplitter.errors import ConfigurationError, InvalidSettingsFile
from cardsplitter.models.page import fill_missing_sizes
from cardsplitter.models.settings import WorkflowSettings, with_extraction
from cardsplitter.utils.validator import SchemaValidator

log = logging.getLogger(__name__)

# Settings groups named in ReloadResult.
ALWAYS_APPLIED = ("processingMode", "grid", "crop", "gutterWidth", "cardCrop",
                  "imageRotation", "output")
PAGE_SPECIFIC = ("pages", "skippedCards", "cardTypeOverrides")


@dataclass(frozen=True)
class ReloadResult:
    settings: WorkflowSettings
    applied: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)

    @property
    def page_count_mismatch(self) -> bool:
        return bool(self.skipped)


def dump_settings(settings: WorkflowSettings, stamp: bool = True) -> str:
    return json.dumps(settings.to_dict(stamp=stamp), indent=2)


def save_settings(settings: WorkflowSettings, path) -> Path:
    path = Path(path)
    path.write_text(dump_settings(settings), encoding="utf-8")
    log.info("[SETTINGS] saved to %s", path)
    return path


def parse_settings(data: dict, validator: SchemaValidator = None) -> WorkflowSettings:
    """Validate a decoded settings document and build the settings from it."""
    validator = validator or SchemaValidator()
    ok, message = validator.validate(data)
    if not ok:
        raise InvalidSettingsFile("settings", message)
    try:
        return WorkflowSettings.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidSettingsFile("settings", f"malformed value: {e}") from e


def load_settings(path, validator: SchemaValidator = None) -> WorkflowSettings:
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise InvalidSettingsFile(str(path), f"not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise InvalidSettingsFile(str(path), "top level must be an object")
    return parse_settings(data, validator)


def apply_loaded_settings(current: WorkflowSettings, loaded: WorkflowSettings,
                          current_page_count: int = None) -> ReloadResult:
    """Merge ``loaded`` into ``current`` following the reload policy."""
    if current_page_count is None:
        current_page_count = len(current.pages)
    ex = loaded.extraction
    merged = replace(current, processing_mode=loaded.processing_mode, output=loaded.output,
                     version=loaded.version, saved_at=loaded.saved_at)
    merged = with_extraction(merged, grid=ex.grid, crop=ex.crop, gutter_width=ex.gutter_width,
                             card_crop=ex.card_crop, image_rotation=ex.image_rotation)
    applied = list(ALWAYS_APPLIED)
    skipped: List[str] = []

    if len(loaded.pages) == current_page_count:
        merged = replace(merged, pages=fill_missing_sizes(loaded.pages, current.pages))
        merged = with_extraction(merged, skipped_cards=ex.skipped_cards,
                                 card_type_overrides=ex.card_type_overrides)
        applied.extend(PAGE_SPECIFIC)
    else:
        skipped.extend(PAGE_SPECIFIC)
        log.warning("[SETTINGS] saved settings cover %d pages, document has %d; "
                    "page-specific settings kept as they are", len(loaded.pages),
                    current_page_count)

    try:
        merged.extraction.validate(merged.processing_mode)
    except ConfigurationError as e:
        raise InvalidSettingsFile(e.setting, e.message) from e
    return ReloadResult(merged, applied, skipped)
