"""Exception types raised by the extraction engine.

``ConfigurationError`` aborts the single requested operation and names the
offending setting.  ``ExtractionFailure`` is scoped to one card; batch export
records it and moves on.  Missing page dimensions are *not* an error: they
surface as :class:`cardsplitter.models.card.DeterminismWarning` records.
"""
from __future__ import annotations

from typing import Sequence


class CardSplitterError(Exception):
    """Base class for every error raised by cardsplitter."""


class ConfigurationError(CardSplitterError):
    def __init__(self, setting: str, message: str):
        self.setting = setting
        self.message = message
        super().__init__(f"{setting}: {message}")


class InvalidGrid(ConfigurationError):
    pass


class OddGutterGrid(ConfigurationError):
    pass


class CropExceedsPage(ConfigurationError):
    pass


class InvalidScale(ConfigurationError):
    pass


class NegativeBleed(ConfigurationError):
    pass


class InvalidSettingsFile(ConfigurationError):
    pass


class ExtractionFailure(CardSplitterError):
    def __init__(self, card_index: int, reason: str):
        self.card_index = card_index
        self.reason = reason
        super().__init__(f"card {card_index}: {reason}")


class ExportAborted(CardSplitterError):
    """Too many cards of one side failed during a batch export."""

    def __init__(self, card_type, failures: Sequence[ExtractionFailure], total: int):
        self.card_type = card_type
        self.failures = tuple(failures)
        self.total = total
        name = getattr(card_type, "value", card_type)
        super().__init__(
            f"{name} export aborted: {len(self.failures)} of {total} cards failed"
        )

    @property
    def failed_indices(self) -> list:
        return [f.card_index for f in self.failures]
