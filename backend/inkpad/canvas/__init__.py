# Canvas package init
"""
InkPad — Handwritten Note Paging & Canvas-State Engine
=======================================================

Components (leaf to root):
    - stroke_buffer: optimize() and the empty-buffer form of one page
    - page_store:    ordered pages of one note and the active index
    - surface:       drawing surface interface and an in-memory surface
    - binding:       keeps the live surface in sync with the active page
    - persistence:   drawing_data string <-> PageStore (legacy aware)
    - session:       editing session tying the above to a storage collaborator
"""

from inkpad.canvas.binding import BindingPhase, CanvasBinding, LoadState
from inkpad.canvas.page_store import PageStore
from inkpad.canvas.persistence import DrawingFormat, PersistenceAdapter
from inkpad.canvas.session import HandwrittenNoteSession, NoteStorage
from inkpad.canvas.stroke_buffer import CanvasDimensions, empty_buffer, optimize
from inkpad.canvas.surface import DrawingSurface, MemorySurface

__all__ = [
    "BindingPhase",
    "CanvasBinding",
    "CanvasDimensions",
    "DrawingFormat",
    "DrawingSurface",
    "HandwrittenNoteSession",
    "LoadState",
    "MemorySurface",
    "NoteStorage",
    "PageStore",
    "PersistenceAdapter",
    "empty_buffer",
    "optimize",
]
