"""
InkPad Canvas — Drawing Surface Collaborator
=============================================

What:  The interface the canvas binding drives, plus an in-memory surface.
Who:   DrawingSurface is implemented by whatever renders strokes (a browser
       canvas bridge, a GUI widget); MemorySurface is used headless and in tests.

Pointer protocol (MemorySurface):
    begin_stroke(x, y)  → pointer down, stroke capture starts
    add_point(x, y)     → pointer move
    end_stroke()        → pointer released, stroke committed to `lines`

While a stroke is being captured `is_capturing` is True; the session refuses
to switch pages or save until the pointer is released.
"""

import json
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from inkpad.canvas.stroke_buffer import CanvasDimensions, dumps


@runtime_checkable
class DrawingSurface(Protocol):
    """Operations the canvas binding needs from a live drawing surface."""

    @property
    def is_capturing(self) -> bool: ...

    def clear(self) -> None: ...

    def load_serialized_state(self, data: str) -> None: ...

    def get_serialized_state(self) -> str: ...

    def undo_last_stroke(self) -> None: ...


class MemorySurface:
    """
    Drawing surface that keeps strokes in memory.

    Serializes the same shape the browser canvas does:
        {"lines": [{"points": [{"x":..,"y":..}], "brushColor": "#000000",
                    "brushRadius": 3}], "width": 1900, "height": 1200}
    """

    def __init__(
        self,
        dimensions: Optional[CanvasDimensions] = None,
        brush_color: str = "#000000",
        brush_radius: float = 3,
    ):
        dims = dimensions or CanvasDimensions.default()
        self.width = dims.width
        self.height = dims.height
        self.brush_color = brush_color
        self.brush_radius = brush_radius
        self.lines: List[Dict[str, Any]] = []
        self._active: Optional[Dict[str, Any]] = None

    # ── Pointer input ─────────────────────────────────────────────────────

    @property
    def is_capturing(self) -> bool:
        return self._active is not None

    def begin_stroke(self, x: float, y: float) -> None:
        if self._active is not None:
            self.end_stroke()
        self._active = {
            "points": [{"x": x, "y": y}],
            "brushColor": self.brush_color,
            "brushRadius": self.brush_radius,
        }

    def add_point(self, x: float, y: float) -> None:
        if self._active is None:
            raise RuntimeError("add_point() called with no stroke in progress")
        self._active["points"].append({"x": x, "y": y})

    def end_stroke(self) -> None:
        if self._active is None:
            return
        self.lines.append(self._active)
        self._active = None

    def draw(self, points: List[tuple]) -> None:
        """Capture a whole stroke at once (pointer down, moves, release)."""
        first, *rest = points
        self.begin_stroke(*first)
        for x, y in rest:
            self.add_point(x, y)
        self.end_stroke()

    # ── DrawingSurface ────────────────────────────────────────────────────

    def clear(self) -> None:
        self.lines = []
        self._active = None

    def load_serialized_state(self, data: str) -> None:
        parsed = json.loads(data)
        self.lines = list(parsed.get("lines", []))
        self.width = parsed.get("width", self.width)
        self.height = parsed.get("height", self.height)

    def get_serialized_state(self) -> str:
        return dumps({"lines": self.lines, "width": self.width, "height": self.height})

    def undo_last_stroke(self) -> None:
        if self.lines:
            self.lines.pop()
