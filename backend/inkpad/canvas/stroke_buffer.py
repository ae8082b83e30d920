"""
InkPad Canvas — Stroke Buffer
==============================

What:  Validation and normalization of one page's serialized drawing state.
How:   A buffer is a JSON object `{lines, width, height}`; each line carries a
       `points` list of `{x, y}` plus paint attributes. `optimize()` prunes
       empty strokes and degrades anything malformed to an empty buffer.
Who:   Used by the page store (flush), the canvas binding (load) and the
       persistence adapter (serialize).

Serialized form:
    Compact separators and the incoming key order, so the output is byte-equal to
    what the browser canvas produces with JSON.stringify. This keeps
    optimize() idempotent across the Python and JavaScript sides.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

from inkpad.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CanvasDimensions:
    """Width and height (in canvas pixels) strokes are captured against."""

    width: int
    height: int

    @classmethod
    def default(cls) -> "CanvasDimensions":
        return cls(width=settings.canvas_width, height=settings.canvas_height)


def dumps(value: Any) -> str:
    """
    Serialize the way JSON.stringify does (no spaces, unicode kept).

    Raises ValueError for NaN or Infinity, which JSON.parse rejects.
    """
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False)


def empty_buffer(dimensions: Optional[CanvasDimensions] = None) -> str:
    """Canonical serialization of a page with no strokes."""
    dims = dimensions or CanvasDimensions.default()
    return dumps({"lines": [], "width": dims.width, "height": dims.height})


def _is_drawn_stroke(line: Any) -> bool:
    if not isinstance(line, dict):
        return False
    points = line.get("points")
    return isinstance(points, list) and len(points) > 0


def _parse(raw: Any) -> Optional[dict]:
    """
    Returns the buffer object, or None when raw is not a buffer.

    A buffer must re-serialize to valid UTF-8 JSON: non-finite numbers
    (NaN, Infinity, 1e400) and lone surrogates ("\\ud800") are malformed.
    """
    if not isinstance(raw, str) or not raw.strip():
        return None
    try:
        parsed = json.loads(raw)
        # UnicodeEncodeError is a ValueError
        dumps(parsed).encode("utf-8")
    except (ValueError, RecursionError):
        return None
    if not isinstance(parsed, dict) or not isinstance(parsed.get("lines"), list):
        return None
    return parsed


def optimize(raw: Any, dimensions: Optional[CanvasDimensions] = None) -> str:
    """
    Normalize one page buffer.

    Removes every stroke with a missing or empty `points` list and
    re-serializes, keeping `width`, `height` and any extra attributes.
    Input that is not a buffer object yields `empty_buffer(dimensions)`.

    Never raises; `optimize(optimize(x)) == optimize(x)` for every input.
    """
    parsed = _parse(raw)
    if parsed is None:
        if isinstance(raw, str) and raw.strip():
            logger.debug("Discarding malformed stroke buffer (%d chars)", len(raw))
        return empty_buffer(dimensions)

    # Rebuild in place so "lines" keeps its key position
    cleaned = {
        key: ([line for line in value if _is_drawn_stroke(line)] if key == "lines" else value)
        for key, value in parsed.items()
    }
    return dumps(cleaned)


def stroke_count(raw: Any) -> int:
    """Number of drawn (non-empty) strokes in a serialized buffer."""
    parsed = _parse(raw)
    if parsed is None:
        return 0
    return sum(1 for line in parsed["lines"] if _is_drawn_stroke(line))


def has_strokes(raw: Any) -> bool:
    return stroke_count(raw) > 0
