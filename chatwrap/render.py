"""Plain-text rendering of a laid-out transcript.

WHY: Layout records only describe indentation; something has to resolve
them against the live indent width to show the result. The CLI, the HTTP
API and the tests all use this renderer to turn a view into text.

HOW: For each visible message the covered part of its text is wrapped
with textwrap: the first line gets the resolved line prefix, every other
line the wrap prefix. Presentation edits are applied first (blanked label
hidden, "pre" replacement shown in its place, "post" glyph appended).
Text beyond the covered extent is rendered without indentation, which is
what a partially laid-out message looks like on screen.

RULES:
- Pixel-mode widths are rounded to whole columns
- Negative prefixes render as no indent
- Hidden messages are not rendered
- Messages without a record are rendered flush left
- Style "variable" ignores layout records: first line flush, later lines
  indented by the label width capped at max_variable_indent; a label end
  outside the body gives no indent (logged)
- The "pre" replacement is drawn whenever set, even over an empty label
"""

from __future__ import annotations

import logging
import textwrap
from typing import List, Optional, Tuple

from chatwrap.config import DEFAULT_WINDOW_WIDTH
from chatwrap.core.errors import StructuralError
from chatwrap.core.ir import LayoutRecord, Message, MessageKind
from chatwrap.core.view import TranscriptView

logger = logging.getLogger(__name__)

STYLE_WRAP = "wrap"
STYLE_VARIABLE = "variable"
STYLES = (STYLE_WRAP, STYLE_VARIABLE)


def _columns(width: float) -> int:
    return max(0, int(round(width)))


def visible_text(message: Message, covered: Optional[int] = None) -> Tuple[str, str]:
    """Split a message's displayed text at the covered extent.

    Returns:
        (covered_text, tail_text) with invisible characters removed and
        presentation edits applied.
    """
    if covered is None:
        covered = len(message)
    head: List[str] = []
    tail: List[str] = []
    pres = message.presentation
    if pres.replacement:
        head.append(pres.replacement)
    for pos, ch, _, invisible in message.iter_chars():
        if invisible:
            continue
        (head if pos < covered else tail).append(ch)
    if pres.trailing:
        (tail if tail else head).append(" " + pres.trailing)
    return "".join(head), "".join(tail)


def _wrap(text: str, width: int, first: int, rest: int) -> List[str]:
    lines: List[str] = []
    for i, paragraph in enumerate(text.split("\n")):
        initial = first if i == 0 else rest
        if not paragraph.strip():
            lines.append("")
            continue
        wrapper = textwrap.TextWrapper(
            width=width,
            initial_indent=" " * initial,
            subsequent_indent=" " * rest,
            break_on_hyphens=False,
        )
        lines.extend(wrapper.wrap(paragraph))
    return lines


def render_message(message: Message, record: Optional[LayoutRecord], indent_width: float, width: int) -> List[str]:
    """Render one message with its hanging indent."""
    if record is None:
        head, tail = visible_text(message)
        return _wrap(head + tail, width, 0, 0)
    head, tail = visible_text(message, record.covered)
    lines = _wrap(
        head,
        width,
        _columns(record.line_prefix.resolve(indent_width)),
        _columns(record.wrap_prefix.resolve(indent_width)),
    )
    tail = tail.lstrip()
    if tail:
        lines.extend(_wrap(tail, width, 0, 0))
    return lines


def _render_variable(view: TranscriptView, message: Message, width: int) -> List[str]:
    label = 0
    if message.kind not in (MessageKind.DATESTAMP, MessageKind.UNKNOWN):
        try:
            label = view.measurer.measure(message, 0, view.engine.label_end(message))
        except StructuralError as exc:
            logger.warning("Rendering message %d without label indent: %s", message.seq, exc)
    head, tail = visible_text(message)
    indent = _columns(min(label, view.config.max_variable_indent))
    return _wrap(head + tail, width, 0, indent)


def render_transcript(view: TranscriptView, width: int = DEFAULT_WINDOW_WIDTH, style: str = STYLE_WRAP) -> str:
    """Render every visible message of a view as newline-joined text.

    Raises:
        ValueError: If style is unknown or width is not positive.
    """
    if style not in STYLES:
        raise ValueError("Unknown style '{}'. Available: {}".format(style, ", ".join(STYLES)))
    if width <= 0:
        raise ValueError("width must be positive, got {}".format(width))

    lines: List[str] = []
    for message in view.transcript:
        if message.hidden:
            continue
        if style == STYLE_VARIABLE:
            lines.extend(_render_variable(view, message, width))
        else:
            lines.extend(render_message(
                message, view.record(message.seq), view.state.indent_width, width,
            ))
    return "\n".join(lines) + ("\n" if lines else "")
