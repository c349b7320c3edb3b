from dataclasses import replace
from typing import Optional

from PySide6.QtCore import QObject, Property, Signal

from cardsplitter import config
from cardsplitter.models.card import CardType
from cardsplitter.models.page import PageType, set_page_type, toggle_page_skip
from cardsplitter.models.settings import (
    GridSpec, ProcessingMode, WorkflowSettings, default_rotation, mode_grid_key,
    with_extraction, with_output,
)
from cardsplitter.services import override_resolver, skip_filter
from cardsplitter.services.render_cache import RenderCache


class AppSettings(QObject):
    """Holds the current immutable :class:`WorkflowSettings` snapshot.

    Every change swaps in a new snapshot, drops cached renders and emits
    ``settings_changed``.  Rasterization callers take a token from
    :meth:`begin_request` and discard their result unless it is still current.
    """
    settings_changed = Signal(object)
    mode_changed = Signal(object)

    def __init__(self, settings: Optional[WorkflowSettings] = None,
                 cache: Optional[RenderCache] = None, parent=None):
        super().__init__(parent)
        self._settings = settings or WorkflowSettings()
        self._cache = cache if cache is not None else RenderCache()
        self._request = 0

    @Property(object)
    def settings(self):
        return self._settings

    @settings.setter
    def settings(self, new):
        self.update(new)

    @property
    def cache(self) -> RenderCache:
        return self._cache

    def update(self, new: WorkflowSettings) -> bool:
        if new == self._settings:
            return False
        old_mode = self._settings.processing_mode
        self._settings = new
        self._cache.clear()
        self._request += 1
        self.settings_changed.emit(new)
        if new.processing_mode != old_mode:
            self.mode_changed.emit(new.processing_mode)
        return True

    # ------------------------------------------------------------------
    # rasterization request tokens
    # ------------------------------------------------------------------
    def begin_request(self) -> int:
        self._request += 1
        return self._request

    def is_current(self, token: int) -> bool:
        return token == self._request

    # ------------------------------------------------------------------
    # transitions
    # ------------------------------------------------------------------
    def set_processing_mode(self, mode: ProcessingMode) -> bool:
        """Switch mode; grid and back rotation fall back to that mode's defaults."""
        rows, columns = config.DEFAULT_GRID[mode_grid_key(mode)]
        s = replace(self._settings, processing_mode=mode)
        s = with_extraction(s, grid=GridSpec(rows, columns), skipped_cards=(),
                            card_type_overrides=())
        s = with_output(s, rotation=default_rotation(mode))
        return self.update(s)

    def set_grid(self, rows: int, columns: int) -> bool:
        grid = GridSpec(rows, columns).validate_for(self._settings.processing_mode)
        return self.update(with_extraction(self._settings, grid=grid, skipped_cards=(),
                                           card_type_overrides=()))

    def toggle_override(self, page_index: int, grid_row: int, grid_column: int) -> bool:
        ex = self._settings.extraction
        overrides = override_resolver.toggle_override(
            ex.card_type_overrides, (page_index, grid_row, grid_column))
        return self.update(with_extraction(self._settings, card_type_overrides=overrides))

    def clear_overrides(self) -> bool:
        return self.update(with_extraction(self._settings, card_type_overrides=()))

    def toggle_skip(self, page_index: int, grid_row: int, grid_column: int,
                    card_type: Optional[CardType] = None) -> bool:
        """Toggle a cell's skip; under gutter-fold its partner follows."""
        s = self._settings
        skips = skip_filter.toggle_card_skip_with_pairing(
            (page_index, grid_row, grid_column), card_type, s.extraction.skipped_cards,
            s.extraction.grid, s.processing_mode)
        return self.update(with_extraction(s, skipped_cards=skips))

    def clear_skips(self) -> bool:
        return self.update(with_extraction(self._settings, skipped_cards=skip_filter.clear_skips()))

    def set_page_type(self, index: int, page_type: PageType) -> bool:
        s = self._settings
        return self.update(replace(s, pages=set_page_type(s.pages, index, page_type)))

    def toggle_page_skip(self, index: int) -> bool:
        s = self._settings
        return self.update(replace(s, pages=toggle_page_skip(s.pages, index)))
