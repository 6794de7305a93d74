"""Per-message hanging-indent layout.

WHY: This is the heart of the wrap fill style. Each inserted message
needs a first-line prefix that leaves exactly enough room for its sender
label (the overhang) to end at the shared indent column, and a wrap
prefix that puts every continuation line at that same column.

HOW: layout() works on a single message:
  1. Datestamps reset continuity and measure a one-space probe appended
     to (and removed from) their tail as a neutral overhang.
  2. Other messages locate their label end (explicit offset, else the
     first non-whitespace token plus one separator).
  3. Continuations blank the label and take the merge indicator width
     (or 0) as overhang.
  4. Everything else measures the label.
  5. A LayoutRecord with relative prefixes over the whole body is stored
     and the continuity marker advances.

RULES:
- overhang is frozen at layout time; prefixes stay relative to the live
  indent width (Space expressions)
- Messages of kind "unknown" get overhang None (indent unmodified)
- An empty label gives overhang 0, not an error
- Hidden messages are laid out but never merge and never become the
  continuity marker
- Visible datestamps clear the marker; datestamps never become it
- strip() removes a record and any indicator it placed; a blanked label
  is a document edit and survives strip (only repair undoes it)
"""

from __future__ import annotations

import logging
from typing import Optional

from chatwrap.config import LayoutConfig
from chatwrap.core.continuity import SpeakerContinuityDetector
from chatwrap.core.errors import StructuralError
from chatwrap.core.indicator import MergeIndicatorRenderer
from chatwrap.core.ir import LayoutRecord, Message, MessageKind, Transcript
from chatwrap.core.measure import WidthMeasurer
from chatwrap.core.state import ContinuityTracker

logger = logging.getLogger(__name__)


def _skip_token(text: str, pos: int) -> int:
    """Advance past one non-whitespace token and a single separator."""
    n = len(text)
    while pos < n and not text[pos].isspace():
        pos += 1
    if pos < n:
        pos += 1
    return pos


class MessageLayoutEngine:
    """Computes and attaches layout records one message at a time."""

    def __init__(
        self,
        transcript: Transcript,
        measurer: WidthMeasurer,
        detector: SpeakerContinuityDetector,
        indicator: MergeIndicatorRenderer,
        tracker: ContinuityTracker,
        config: LayoutConfig,
    ) -> None:
        self.transcript = transcript
        self.measurer = measurer
        self.detector = detector
        self.indicator = indicator
        self.tracker = tracker
        self.config = config

    def label_end(self, message: Message) -> int:
        """Return the offset just past the sender label.

        Raises:
            StructuralError: If an explicit label end lies outside the body.
        """
        if message.label_end is not None:
            if not 0 <= message.label_end <= len(message):
                raise StructuralError(
                    "Label end {} outside message {} of length {}".format(
                        message.label_end, message.seq, len(message)
                    )
                )
            return message.label_end

        text = message.text
        if not text or text[0].isspace():
            return 0
        end = _skip_token(text, 0)
        # "* nick does something": dedent hangs the nick with the asterisk
        if message.kind == MessageKind.ACTION and self.config.action_dedent:
            end = _skip_token(text, end)
        return end

    def layout(
        self,
        message: Message,
        covered: Optional[int] = None,
        tracker: Optional[ContinuityTracker] = None,
    ) -> LayoutRecord:
        """Lay out one message and store its record.

        Args:
            message: A message already appended to the transcript.
            covered: Extent the prefixes should cover. Defaults to the
                whole body; rejigger passes the previous extent.
            tracker: Continuity tracker to read and advance. Defaults to
                the view's; rejigger passes its own.

        Returns:
            The stored LayoutRecord.
        """
        if message.seq in self.transcript.layout:
            self.strip(message)

        if tracker is None:
            tracker = self.tracker
        if covered is None:
            covered = len(message)

        if message.kind == MessageKind.DATESTAMP:
            with self.measurer.probe(message) as (start, end):
                overhang = self.measurer.measure(message, start, end)
            record = LayoutRecord(overhang=overhang, covered=covered)
            if not message.hidden:
                tracker.reset()
        elif message.kind == MessageKind.UNKNOWN:
            record = LayoutRecord(overhang=None, covered=covered)
            self._advance(message, tracker)
        else:
            record = self._layout_labeled(message, covered, tracker)
            self._advance(message, tracker)

        self.transcript.layout[message.seq] = record
        return record

    def _layout_labeled(self, message: Message, covered: int, tracker: ContinuityTracker) -> LayoutRecord:
        end = self.label_end(message)
        if self.detector.is_continuation(message, tracker):
            prior = self.detector.prior(tracker)
            message.presentation.blank_end = end
            result = self.indicator.apply(message, prior)
            logger.debug("Message %d continues message %d", message.seq, prior.seq)
            return LayoutRecord(
                overhang=result.width,
                covered=covered,
                merged=True,
                indicator=result.glyph,
                post_target=result.post_target,
            )
        return LayoutRecord(overhang=self.measurer.measure(message, 0, end), covered=covered)

    def _advance(self, message: Message, tracker: ContinuityTracker) -> None:
        if not message.hidden:
            tracker.mark(message.seq)

    def strip(self, message: Message) -> Optional[LayoutRecord]:
        """Remove a message's layout record and any indicator it placed."""
        record = self.transcript.layout.pop(message.seq, None)
        if record is not None:
            self.indicator.remove(message, record)
        return record
