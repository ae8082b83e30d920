"""
InkPad Canvas — Page Store
===========================

What:  Ordered collection of serialized page buffers for one handwritten note,
       plus the index of the page being edited.
Who:   Owned by HandwrittenNoteSession; built by PersistenceAdapter.load().

Invariants:
    - 1 <= len(pages) <= max_pages (default 50)
    - 0 <= current_page < len(pages)
    - A failed operation leaves both the pages and the index untouched

The store never touches the drawing surface. Callers flush the live buffer
into it with `store()` before navigating; see HandwrittenNoteSession.
"""

import logging
from typing import Iterable, List, Optional

from inkpad.canvas.stroke_buffer import CanvasDimensions, empty_buffer, optimize
from inkpad.config import settings
from inkpad.exceptions import PageCapacityError

logger = logging.getLogger(__name__)


class PageStore:
    """
    Pages of one note and the active page index.

    Args:
        pages: Initial page buffers, stored as given (legacy data is kept
               verbatim until it is optimized on flush or export).
               Empty or None yields a single empty page.
        dimensions: Canvas size stamped into new empty pages.
        max_pages: Upper bound on the page count.
    """

    def __init__(
        self,
        pages: Optional[Iterable[str]] = None,
        dimensions: Optional[CanvasDimensions] = None,
        max_pages: Optional[int] = None,
    ):
        self.dimensions = dimensions or CanvasDimensions.default()
        self.max_pages = max_pages or settings.max_pages
        self._pages: List[str] = list(pages or [])
        if not self._pages:
            self._pages = [empty_buffer(self.dimensions)]
        if len(self._pages) > self.max_pages:
            raise PageCapacityError(
                message=f"A note can hold at most {self.max_pages} pages",
                page_count=len(self._pages),
            )
        self._current_page = 0

    # ── Read access ───────────────────────────────────────────────────────

    def __len__(self) -> int:
        return len(self._pages)

    @property
    def current_page(self) -> int:
        return self._current_page

    @property
    def pages(self) -> List[str]:
        """Copy of the stored page buffers, unoptimized."""
        return list(self._pages)

    @property
    def current_data(self) -> str:
        return self._pages[self._current_page]

    @property
    def is_full(self) -> bool:
        return len(self._pages) >= self.max_pages

    def page_data(self, index: int) -> str:
        return self._pages[index]

    # ── Mutation ──────────────────────────────────────────────────────────

    def store(self, index: int, raw: str) -> str:
        """
        Write a flushed live buffer into page `index`.

        The buffer passes through optimize() first, so stored pages never hold
        empty strokes once they have been edited. Returns the stored value.
        """
        if not 0 <= index < len(self._pages):
            raise IndexError(f"page index {index} out of range (0..{len(self._pages) - 1})")
        optimized = optimize(raw, self.dimensions)
        self._pages[index] = optimized
        return optimized

    def add_page(self) -> int:
        """
        Append an empty page and make it current.

        The caller must flush the outgoing page first.

        Returns:
            Index of the new page.

        Raises:
            PageCapacityError: the note already has max_pages pages.
        """
        if self.is_full:
            raise PageCapacityError(
                message=f"Maximum {self.max_pages} pages allowed per note",
                page_count=len(self._pages),
            )
        self._pages.append(empty_buffer(self.dimensions))
        self._current_page = len(self._pages) - 1
        logger.debug("Added page %d of %d", self._current_page + 1, len(self._pages))
        return self._current_page

    def go_to_page(self, index: int) -> bool:
        """
        Make page `index` current.

        Returns False (no-op) when index is already current or out of range.
        """
        if index == self._current_page or not 0 <= index < len(self._pages):
            return False
        self._current_page = index
        return True

    def delete_page(self) -> int:
        """
        Remove the current page.

        The following page takes its index; when the last page is removed the
        index moves back by one.

        Returns:
            The new current page index.

        Raises:
            PageCapacityError: only one page remains.
        """
        if len(self._pages) <= 1:
            raise PageCapacityError(
                message="A note must keep at least one page",
                page_count=len(self._pages),
            )
        del self._pages[self._current_page]
        if self._current_page >= len(self._pages):
            self._current_page = len(self._pages) - 1
        return self._current_page

    # ── Export ────────────────────────────────────────────────────────────

    def to_array(self) -> List[str]:
        """All pages, each passed through optimize()."""
        return [optimize(page, self.dimensions) for page in self._pages]

    def __repr__(self) -> str:
        return f"<PageStore(pages={len(self._pages)}, current_page={self._current_page})>"
