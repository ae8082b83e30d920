"""
InkPad Canvas — Canvas Binding
===============================

What:  The only component that mutates the live drawing surface. Tracks which
       page buffer is currently rendered and reloads only when that changes.
How:   An explicit synchronous state machine:

           IDLE ──extract──▶ FLUSHING ──▶ IDLE
           IDLE ──bind────▶ CLEARING ──▶ LOADING ──▶ IDLE
                                 └──(no strokes)──────▶ IDLE

       The rendered buffer is remembered as a LoadState value (Unloaded or
       Loaded(digest)); binding the same optimized data twice is a no-op so
       the surface keeps its interaction state.

Ordering on page switch (driven by HandwrittenNoteSession):
    1. extract_live_buffer()  → flush outgoing page into the PageStore
    2. clear_surface()        → wipe strokes, forget LoadState
    3. bind_active_page(new)  → load incoming page
"""

import enum
import hashlib
import logging
from dataclasses import dataclass
from typing import Optional

from inkpad.canvas.stroke_buffer import CanvasDimensions, has_strokes, optimize
from inkpad.canvas.surface import DrawingSurface

logger = logging.getLogger(__name__)


class BindingPhase(enum.Enum):
    IDLE = "idle"
    FLUSHING = "flushing"
    CLEARING = "clearing"
    LOADING = "loading"


@dataclass(frozen=True)
class LoadState:
    """
    What the live surface was last loaded from.

    Unloaded:        LoadState.unloaded() (digest is None)
    Loaded(digest):  LoadState.loaded(optimized_buffer)
    """

    digest: Optional[str] = None

    @classmethod
    def unloaded(cls) -> "LoadState":
        return cls(digest=None)

    @classmethod
    def loaded(cls, optimized: str) -> "LoadState":
        return cls(digest=hashlib.sha256(optimized.encode("utf-8")).hexdigest())

    @property
    def is_loaded(self) -> bool:
        return self.digest is not None


class CanvasBinding:
    """Reconciles the active page's buffer with a live DrawingSurface."""

    def __init__(
        self,
        surface: DrawingSurface,
        dimensions: Optional[CanvasDimensions] = None,
    ):
        self.surface = surface
        self.dimensions = dimensions or CanvasDimensions.default()
        self.load_state = LoadState.unloaded()
        self.phase = BindingPhase.IDLE

    def _enter(self, phase: BindingPhase) -> None:
        logger.debug("Canvas binding %s -> %s", self.phase.value, phase.value)
        self.phase = phase

    def bind_active_page(self, page_data: str) -> bool:
        """
        Render `page_data` on the surface unless it is already rendered.

        Returns:
            True if the surface was cleared/reloaded, False for a no-op.
        """
        optimized = optimize(page_data, self.dimensions)
        target = LoadState.loaded(optimized)
        if target == self.load_state:
            return False

        try:
            self._enter(BindingPhase.CLEARING)
            self.surface.clear()
            if has_strokes(optimized):
                self._enter(BindingPhase.LOADING)
                self.surface.load_serialized_state(optimized)
            self.load_state = target
        except Exception:
            # Surface is in an unknown state; force the next bind to reload
            self.load_state = LoadState.unloaded()
            raise
        finally:
            self._enter(BindingPhase.IDLE)
        return True

    def extract_live_buffer(self) -> str:
        """Surface state verbatim; the page store optimizes it on store()."""
        self._enter(BindingPhase.FLUSHING)
        try:
            return self.surface.get_serialized_state()
        finally:
            self._enter(BindingPhase.IDLE)

    def clear_surface(self) -> None:
        """Wipe the surface and forget what was rendered on it."""
        self._enter(BindingPhase.CLEARING)
        try:
            self.surface.clear()
            self.load_state = LoadState.unloaded()
        finally:
            self._enter(BindingPhase.IDLE)

    def undo_last_stroke(self) -> None:
        """Undo on the surface; what is rendered no longer matches any stored buffer."""
        self.surface.undo_last_stroke()
        self.load_state = LoadState.unloaded()
