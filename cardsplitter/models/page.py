"""Page descriptors and the active-page view the engine works on.

Pages are created at import time, then mutated only through the user's
skip/type toggles.  Every toggle here returns a *new* tuple of descriptors.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, Optional, Sequence, Tuple

from cardsplitter.models.card import CardType


class PageType(str, Enum):
    FRONT = "front"
    BACK = "back"
    SKIP = "skip"

    @property
    def card_type(self) -> Optional[CardType]:
        if self is PageType.SKIP:
            return None
        return CardType(self.value)


class FileKind(str, Enum):
    PDF = "pdf"
    IMAGE = "image"


@dataclass(frozen=True)
class PageDescriptor:
    source_index: int
    page_type: PageType = PageType.FRONT
    file_kind: FileKind = FileKind.PDF
    # Physical size in points, when the importer knows it.
    width: Optional[float] = None
    height: Optional[float] = None

    @property
    def skipped(self) -> bool:
        return self.page_type is PageType.SKIP

    @property
    def size(self) -> Optional[Tuple[float, float]]:
        if self.width and self.height and self.width > 0 and self.height > 0:
            return (self.width, self.height)
        return None

    def to_dict(self) -> dict:
        data = {
            "sourceIndex": self.source_index,
            "type": self.page_type.value,
            "fileKind": self.file_kind.value,
        }
        if self.size:
            data["width"] = self.width
            data["height"] = self.height
        return data

    @classmethod
    def from_dict(cls, data: dict, index: int = 0) -> "PageDescriptor":
        page_type = data.get("type", "front")
        if data.get("skip"):
            page_type = "skip"
        return cls(
            source_index=int(data.get("sourceIndex", index)),
            page_type=PageType(page_type),
            file_kind=FileKind(data.get("fileKind", "pdf")),
            width=data.get("width"),
            height=data.get("height"),
        )


def make_pages(count: int, file_kind: FileKind = FileKind.PDF,
               alternate: bool = False) -> Tuple[PageDescriptor, ...]:
    """Build ``count`` fresh descriptors; ``alternate`` gives front/back/front/..."""
    pages = []
    for i in range(count):
        ptype = PageType.BACK if alternate and i % 2 else PageType.FRONT
        pages.append(PageDescriptor(source_index=i, page_type=ptype, file_kind=file_kind))
    return tuple(pages)


def active_pages(pages: Iterable[PageDescriptor]) -> Tuple[PageDescriptor, ...]:
    return tuple(p for p in pages if not p.skipped)


def physical_page_number(active_index: int, pages: Sequence[PageDescriptor]) -> int:
    """Map a 0-based index into the active pages to the 1-based source page."""
    if active_index < 0:
        raise IndexError(f"active page index {active_index} is negative")
    seen = -1
    for position, page in enumerate(pages):
        if page.skipped:
            continue
        seen += 1
        if seen == active_index:
            return position + 1
    raise IndexError(f"active page index {active_index} exceeds {seen + 1} active pages")


def fill_missing_sizes(pages: Sequence[PageDescriptor],
                       sources: Sequence[PageDescriptor]) -> Tuple[PageDescriptor, ...]:
    """Give each page without a usable size the size of the source at the same index."""
    filled = []
    for i, page in enumerate(pages):
        if page.size is None and i < len(sources) and sources[i].size is not None:
            page = replace(page, width=sources[i].width, height=sources[i].height)
        filled.append(page)
    return tuple(filled)


def set_page_type(pages: Sequence[PageDescriptor], index: int,
                  page_type: PageType) -> Tuple[PageDescriptor, ...]:
    updated = list(pages)
    updated[index] = replace(updated[index], page_type=PageType(page_type))
    return tuple(updated)


def toggle_page_skip(pages: Sequence[PageDescriptor], index: int,
                     restore_as: PageType = PageType.FRONT) -> Tuple[PageDescriptor, ...]:
    page = pages[index]
    new_type = restore_as if page.skipped else PageType.SKIP
    return set_page_type(pages, index, new_type)
