"""Rendered-width measurement of message spans.

WHY: A hanging indent only lines up if the label overhang is measured the
way the text will actually be drawn. Wide CJK glyphs, combining marks and
styled (e.g. bold) label faces all change the width of a sender label.

HOW: GlyphMetrics supplies per-character advances in pixels: display
cells from unicodedata times a base pixel width, scaled per style.
WidthMeasurer walks a message span, skips invisible characters, and
returns either pixel-equivalent columns (float) or an integer cell count.
probe() temporarily appends a run so callers can measure text that is
not part of the message, and always removes it again.

RULES:
- Invisible runs and blanked labels are never measured
- Column unit: integer display cells (wide/fullwidth = 2, combining = 0)
- Pixel unit: sum of advances divided by GlyphMetrics.char_px
- Negative or non-finite widths are treated as 0 (logged at debug)
- An empty span measures 0
"""

from __future__ import annotations

import logging
import math
import unicodedata
from contextlib import contextmanager
from typing import Dict, Iterator, Optional, Tuple

from chatwrap.config import UNIT_COLUMN, UNIT_PIXEL
from chatwrap.core.ir import Message, Run

logger = logging.getLogger(__name__)


def char_cells(ch: str) -> int:
    """Number of terminal cells a character occupies."""
    if unicodedata.category(ch) in ("Cc", "Cf", "Mn", "Me"):
        return 0
    if unicodedata.east_asian_width(ch) in ("W", "F"):
        return 2
    return 1


def text_cells(text: str) -> int:
    return sum(char_cells(ch) for ch in text)


class GlyphMetrics:
    """Pixel advances for characters in a given style.

    WHY: The host's font knowledge is external. This default derives
    advances from display cells and a per-style scale so pixel mode is
    usable without a real font backend; hosts can subclass and override
    advance() with real font data.

    RULES:
    - char_px: advance of one narrow cell in the default style
    - style_scale: multiplier per style name (unknown styles use 1.0)
    """

    def __init__(
        self,
        char_px: float = 8.0,
        style_scale: Optional[Dict[str, float]] = None,
    ) -> None:
        if char_px <= 0:
            raise ValueError("char_px must be positive, got {}".format(char_px))
        self.char_px = char_px
        self.style_scale = dict(style_scale or {})

    def advance(self, ch: str, style: Optional[str] = None) -> float:
        scale = self.style_scale.get(style, 1.0) if style else 1.0
        return char_cells(ch) * self.char_px * scale


class WidthMeasurer:
    """Measures the rendered width of message spans in the active unit."""

    def __init__(self, unit: str = UNIT_COLUMN, metrics: Optional[GlyphMetrics] = None) -> None:
        if unit not in (UNIT_COLUMN, UNIT_PIXEL):
            raise ValueError("Unknown measurement unit '{}'".format(unit))
        self.unit = unit
        self.metrics = metrics or GlyphMetrics()

    def measure(self, message: Message, start: int = 0, end: Optional[int] = None) -> float:
        """Return the visible width of message text[start:end].

        Args:
            message: Message whose runs are measured.
            start: Start offset (inclusive).
            end: End offset (exclusive), defaults to the message end.

        Returns:
            Integer cells in column mode, float columns in pixel mode.
        """
        if end is not None and end <= start:
            return 0
        if self.unit == UNIT_COLUMN:
            width = sum(
                char_cells(ch)
                for _, ch, _, invisible in message.iter_chars(start, end)
                if not invisible
            )
            return self._sanitize(width)
        pixels = sum(
            self.metrics.advance(ch, style)
            for _, ch, style, invisible in message.iter_chars(start, end)
            if not invisible
        )
        return self._sanitize(pixels / self.metrics.char_px)

    def measure_text(self, text: str, style: Optional[str] = None) -> float:
        """Measure a free-standing string as if it were one visible run."""
        return self.measure(Message(runs=[Run(text, style)]))

    @contextmanager
    def probe(self, message: Message, text: str = " ", style: Optional[str] = None) -> Iterator[Tuple[int, int]]:
        """Temporarily append text to message and yield its (start, end) span."""
        start = len(message)
        run = Run(text, style)
        message.runs.append(run)
        try:
            yield start, start + len(text)
        finally:
            # Remove by identity; an equal run may already exist.
            for i in range(len(message.runs) - 1, -1, -1):
                if message.runs[i] is run:
                    del message.runs[i]
                    break

    def _sanitize(self, width: float) -> float:
        if not math.isfinite(width) or width < 0:
            logger.debug("Discarding invalid width measurement %r", width)
            return 0
        return width
