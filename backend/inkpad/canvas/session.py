"""
InkPad Canvas — Handwritten Note Editing Session
=================================================

What:  Orchestrates one editing session of a handwritten note: loading it
       through the storage collaborator, page navigation with the
       flush → clear → load protocol, and saving with an in-flight guard.
Who:   Driven by UI event handlers (pointer released, page buttons, Save).
When:  Created when a note is opened; discarded when the user leaves. There
       is no auto-save: leaving without save() drops all page edits.

Event model:
    Everything runs on one asyncio loop. The only suspension points are the
    storage calls in open() and save(). Page operations and save() refuse to
    run while the surface is capturing a stroke (pointer still down).

Error reporting:
    - PageCapacityError / StrokeInProgressError: raised, state unchanged
    - Storage failure (StorageError or NotFoundError) on open(): degrades
      to one empty page, recorded in `last_error`
    - Storage failure on save(): recorded in `last_error` and re-raised;
      pages are kept so the user can retry
    - A save() while another is in flight returns None and is not reported
"""

import logging
from typing import Any, Dict, List, Optional, Protocol

from inkpad.canvas.binding import CanvasBinding
from inkpad.canvas.page_store import PageStore
from inkpad.canvas.persistence import PersistenceAdapter
from inkpad.canvas.stroke_buffer import CanvasDimensions
from inkpad.canvas.surface import DrawingSurface
from inkpad.exceptions import NotFoundError, StorageError, StrokeInProgressError
from inkpad.schemas.note import NoteResponse

logger = logging.getLogger(__name__)


class NoteStorage(Protocol):
    """Storage collaborator the session loads from and saves to."""

    async def get_note(self, note_id: str) -> NoteResponse: ...

    async def save_note(self, note_id: Optional[str], payload: Dict[str, Any]) -> NoteResponse: ...


class HandwrittenNoteSession:
    """
    Live editing state for one handwritten note.

    Args:
        surface: Drawing surface bound to the active page.
        storage: Collaborator used by open() and save().
        note_id: Existing note id, or None for a new note.
        dimensions: Canvas size for empty pages.
    """

    def __init__(
        self,
        surface: DrawingSurface,
        storage: NoteStorage,
        note_id: Optional[str] = None,
        dimensions: Optional[CanvasDimensions] = None,
    ):
        self.surface = surface
        self.storage = storage
        self.note_id = note_id
        self.dimensions = dimensions or CanvasDimensions.default()
        self.adapter = PersistenceAdapter(dimensions=self.dimensions)
        self.binding = CanvasBinding(surface, dimensions=self.dimensions)
        self.store = PageStore(dimensions=self.dimensions)

        self.title = ""
        self.folder: Optional[str] = None
        self.tags: List[str] = []
        self.last_error: Optional[str] = None
        self._saving = False

    # ── Properties ────────────────────────────────────────────────────────

    @property
    def is_new(self) -> bool:
        return self.note_id is None

    @property
    def is_saving(self) -> bool:
        return self._saving

    @property
    def current_page(self) -> int:
        return self.store.current_page

    @property
    def page_count(self) -> int:
        return len(self.store)

    # ── Loading ───────────────────────────────────────────────────────────

    async def open(self) -> bool:
        """
        Load the note and bind its first page to the surface.

        Returns:
            False if the note could not be loaded (session holds one empty page).
        """
        self.last_error = None
        if self.is_new:
            self.store = PageStore(dimensions=self.dimensions)
            self._rebind()
            return True

        try:
            note = await self.storage.get_note(self.note_id)
        except (StorageError, NotFoundError) as e:
            logger.error("Failed to load note %s: %s", self.note_id, e.message)
            self.last_error = "Failed to load note"
            self.store = PageStore(dimensions=self.dimensions)
            self._rebind()
            return False

        self.title = note.title or ""
        self.folder = note.folder
        self.tags = list(note.tags or [])
        self.store = self.adapter.load(note.drawing_data)
        logger.info("Opened note %s with %d page(s)", self.note_id, len(self.store))
        self._rebind()
        return True

    # ── Page protocol ─────────────────────────────────────────────────────

    def _ensure_pointer_released(self) -> None:
        if self.surface.is_capturing:
            raise StrokeInProgressError()

    def flush(self) -> str:
        """Copy the live surface into the current page of the store."""
        return self.store.store(self.store.current_page, self.binding.extract_live_buffer())

    def _rebind(self) -> None:
        self.binding.clear_surface()
        self.binding.bind_active_page(self.store.current_data)

    def go_to_page(self, index: int) -> bool:
        """Flush the outgoing page, clear the surface, load page `index`."""
        if index == self.store.current_page or not 0 <= index < len(self.store):
            return False
        self._ensure_pointer_released()
        self.flush()
        self.store.go_to_page(index)
        self._rebind()
        return True

    def next_page(self) -> bool:
        return self.go_to_page(self.store.current_page + 1)

    def previous_page(self) -> bool:
        return self.go_to_page(self.store.current_page - 1)

    def add_page(self) -> int:
        """Append an empty page after flushing the current one; returns its index."""
        self._ensure_pointer_released()
        if self.store.is_full:
            # Raises PageCapacityError before anything is flushed
            return self.store.add_page()
        self.flush()
        index = self.store.add_page()
        self._rebind()
        return index

    def delete_page(self) -> int:
        """Drop the current page (its live strokes included); returns the new index."""
        self._ensure_pointer_released()
        index = self.store.delete_page()
        self._rebind()
        return index

    # ── Drawing tools ─────────────────────────────────────────────────────

    def undo(self) -> None:
        self.binding.undo_last_stroke()

    def clear_page(self) -> None:
        self.binding.clear_surface()

    # ── Saving ────────────────────────────────────────────────────────────

    def pages(self) -> List[str]:
        """Optimized pages, including unflushed strokes on the active page."""
        self.flush()
        return self.store.to_array()

    async def save(self) -> Optional[NoteResponse]:
        """
        Persist every page through the storage collaborator.

        Returns:
            The stored note, or None when another save is already in flight.

        Raises:
            StrokeInProgressError: the pointer is still down.
            StorageError: the collaborator failed; pages are preserved.
        """
        if self._saving:
            logger.debug("Save already in flight for note %s; ignoring", self.note_id)
            return None
        self._ensure_pointer_released()

        self._saving = True
        self.last_error = None
        try:
            self.flush()
            payload = self.adapter.note_payload(
                self.store, title=self.title, folder=self.folder, tags=self.tags
            )
            note = await self.storage.save_note(self.note_id, payload)
        except (StorageError, NotFoundError) as e:
            logger.error("Failed to save note %s: %s", self.note_id or "<new>", e.message)
            self.last_error = "Failed to save note"
            raise
        finally:
            self._saving = False

        self.note_id = str(note.id)
        logger.info("Saved note %s (%d page(s))", self.note_id, len(self.store))
        return note

    def discard(self) -> None:
        """Drop all unsaved page state."""
        self.binding.clear_surface()
        self.store = PageStore(dimensions=self.dimensions)
        self.last_error = None
