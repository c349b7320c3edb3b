"""Caller-owned cache for extracted card artifacts.

The engine itself is pure and keeps no state.  Preview and export share this
cache so a card is cut out of its page once per settings snapshot.  Keys carry
the card index and a fingerprint of the serialized settings, so any settings
change naturally misses; :meth:`RenderCache.clear` reclaims the memory.
"""

from __future__ import annotations

import json
from typing import Callable, Dict, Optional, Tuple

from PySide6.QtGui import QImage

from cardsplitter.models.settings import WorkflowSettings


class RenderCache:
    """Cache container for extracted card images and regions."""

    def __init__(self) -> None:
        self._image_cache: Dict[Tuple, QImage] = {}
        self._value_cache: Dict[Tuple, object] = {}

    # ------------------------------------------------------------------
    # cache management helpers
    # ------------------------------------------------------------------
    def clear(self) -> None:
        """Drop all cached artifacts."""

        self._image_cache.clear()
        self._value_cache.clear()

    def __len__(self) -> int:
        return len(self._image_cache) + len(self._value_cache)

    # ------------------------------------------------------------------
    # key builders
    # ------------------------------------------------------------------
    @staticmethod
    def fingerprint(settings: WorkflowSettings) -> str:
        return json.dumps(settings.to_dict(stamp=False), sort_keys=True, separators=(",", ":"))

    @staticmethod
    def card_key(kind: str, card_index: int, settings: WorkflowSettings) -> Tuple:
        return (kind, int(card_index), RenderCache.fingerprint(settings))

    # ------------------------------------------------------------------
    # cache accessors
    # ------------------------------------------------------------------
    def image(self, key: Tuple, factory: Callable[[], Optional[QImage]]) -> Optional[QImage]:
        cached = self._image_cache.get(key)
        if cached is not None:
            return cached
        generated = factory()
        if generated is not None and not generated.isNull():
            self._image_cache[key] = generated
        return generated

    def value(self, key: Tuple, factory: Callable[[], object]):
        if key in self._value_cache:
            return self._value_cache[key]
        generated = factory()
        self._value_cache[key] = generated
        return generated
