"""
InkPad Canvas — Persistence Adapter
====================================

What:  Translates between a note's `drawing_data` string and a PageStore.
Who:   HandwrittenNoteSession (load/save) and the /api/notes/{id}/pages route.

drawing_data formats:
    EMPTY   None or ""                          → one empty page
    PAGED   JSON array of page-buffer strings   → one page per element
            '["{\"lines\":[],...}", ...]'
    LEGACY  anything else (a bare buffer object,
            or text that is not JSON at all)    → the raw string as one page

Loading never raises: malformed data degrades to pages that optimize() turns
into empty buffers when they are exported.
"""

import enum
import json
import logging
from typing import Any, Dict, List, Optional, Tuple

from inkpad.canvas.page_store import PageStore
from inkpad.canvas.stroke_buffer import CanvasDimensions, dumps, empty_buffer
from inkpad.config import settings

logger = logging.getLogger(__name__)

HANDWRITTEN_TYPE = "handwritten"
HANDWRITTEN_CONTENT = "Handwritten Note"
DEFAULT_TITLE = "Untitled Handwritten Note"


class DrawingFormat(enum.Enum):
    EMPTY = "empty"
    PAGED = "paged"
    LEGACY = "legacy"


class PersistenceAdapter:
    """Loads and saves the pages of a handwritten note."""

    def __init__(
        self,
        dimensions: Optional[CanvasDimensions] = None,
        max_pages: Optional[int] = None,
    ):
        self.dimensions = dimensions or CanvasDimensions.default()
        self.max_pages = max_pages or settings.max_pages

    def _decode(self, drawing_data: Optional[str]) -> Tuple[DrawingFormat, List[str]]:
        if not drawing_data:
            return DrawingFormat.EMPTY, [empty_buffer(self.dimensions)]

        try:
            parsed = json.loads(drawing_data)
        except (ValueError, RecursionError):
            return DrawingFormat.LEGACY, [drawing_data]

        if not isinstance(parsed, list):
            return DrawingFormat.LEGACY, [drawing_data]
        if not parsed:
            return DrawingFormat.PAGED, [empty_buffer(self.dimensions)]
        return DrawingFormat.PAGED, [self._page_from_element(item) for item in parsed]

    def _page_from_element(self, item: Any) -> str:
        if isinstance(item, str):
            return item
        if isinstance(item, dict):
            # Some clients stored buffer objects instead of strings
            try:
                return dumps(item)
            except ValueError:
                logger.debug("Discarding page object that is not valid JSON")
        return empty_buffer(self.dimensions)

    def detect_format(self, drawing_data: Optional[str]) -> DrawingFormat:
        return self._decode(drawing_data)[0]

    def load(self, drawing_data: Optional[str]) -> PageStore:
        """Build a PageStore from a note's drawing_data; never raises."""
        fmt, pages = self._decode(drawing_data)
        if len(pages) > self.max_pages:
            logger.warning(
                "Stored drawing has %d pages; keeping the first %d",
                len(pages),
                self.max_pages,
            )
            pages = pages[: self.max_pages]
        if fmt is DrawingFormat.LEGACY:
            logger.info("Loaded legacy single-page drawing (%d chars)", len(drawing_data or ""))
        return PageStore(pages, dimensions=self.dimensions, max_pages=self.max_pages)

    def save(self, store: PageStore) -> str:
        """Serialize every page (optimized) as a JSON array of strings."""
        return dumps(store.to_array())

    def note_payload(
        self,
        store: PageStore,
        title: Optional[str] = None,
        folder: Optional[str] = None,
        tags: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        """
        Request body for creating or updating a handwritten note.

        `content` carries a fixed placeholder so list and search views can
        show the note without decoding its drawing data.
        """
        return {
            "title": (title or "").strip() or DEFAULT_TITLE,
            "content": HANDWRITTEN_CONTENT,
            "type": HANDWRITTEN_TYPE,
            "drawing_data": self.save(store),
            "folder": folder or None,
            "tags": list(tags or []),
        }
