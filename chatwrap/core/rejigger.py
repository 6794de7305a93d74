"""Bulk re-layout ("rejigger") of already inserted messages.

WHY: Revealing hidden messages, changing fonts, or third-party edits can
leave existing layout records stale: a label blanked for a merge that no
longer applies, an overhang measured with the old font, prefixes that stop
short of the message end. Rejigger recomputes a range so the result is the
same as if every message had been inserted one by one.

HOW: iter_rejigger() is a generator that seeds the continuity marker from
the messages preceding the range, then strips and re-lays each message in
order, yielding one RejiggerStep per message. rejigger() drives it to the
end with an optional per-message callback; arejigger() does the same but
yields to the asyncio event loop between messages.

RULES:
- Messages are processed in insertion order
- Without repair, each message keeps its previous covered extent
- With repair, stale blanked labels and orphaned "post" indicators are
  cleared and every extent is widened to the true message boundary
- A StructuralError skips the message (logged) and restores its record
- Stopping the generator between steps leaves every message with either
  its old or its new complete record
- A pass walks its own continuity marker; the view's marker stays on the
  transcript tail, so messages inserted mid-pass lay out as if sequential
- After the pass the view's marker is reseeded from the transcript tail
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from typing import Callable, Iterator, List, Optional

from chatwrap.core.errors import StructuralError
from chatwrap.core.ir import LayoutRecord, Message, MessageKind, Transcript
from chatwrap.core.layout import MessageLayoutEngine
from chatwrap.core.state import ContinuityTracker

logger = logging.getLogger(__name__)


@dataclass
class RejiggerStep:
    """Progress after one message."""

    seq: int
    index: int
    total: int
    skipped: bool = False


@dataclass
class RejiggerReport:
    """Final tally of a rejigger pass."""

    processed: int = 0
    skipped: int = 0
    skipped_seqs: List[int] = field(default_factory=list)

    def add(self, step: RejiggerStep) -> None:
        if step.skipped:
            self.skipped += 1
            self.skipped_seqs.append(step.seq)
        else:
            self.processed += 1


class RejiggerEngine:
    def __init__(self, transcript: Transcript, engine: MessageLayoutEngine, tracker: ContinuityTracker) -> None:
        self.transcript = transcript
        self.engine = engine
        self.tracker = tracker

    def seed_continuity(self, seq: Optional[int], tracker: Optional[ContinuityTracker] = None) -> None:
        """Set the marker to what sequential layout had just before seq.

        None seeds from the end of the transcript. The view's tracker is
        seeded unless another one is given.
        """
        if tracker is None:
            tracker = self.tracker
        if seq is None:
            preceding = reversed(list(self.transcript))
        else:
            preceding = self.transcript.before(seq)
        for prior in preceding:
            if prior.hidden:
                continue
            if prior.kind == MessageKind.DATESTAMP:
                tracker.reset()
            else:
                tracker.mark(prior.seq)
            return
        tracker.reset()

    def iter_rejigger(
        self,
        start_seq: Optional[int] = None,
        end_seq: Optional[int] = None,
        repair: bool = False,
    ) -> Iterator[RejiggerStep]:
        """Re-lay messages start_seq..end_seq, yielding after each one.

        Args:
            start_seq: First message (None = transcript start).
            end_seq: Last message, inclusive (None = transcript end).
            repair: Also undo stale merges and close extent gaps.

        Raises:
            StructuralError: If either endpoint does not exist.
        """
        messages = self.transcript.between(start_seq, end_seq)
        if not messages:
            return
        claimed = {r.post_target for r in self.transcript.layout.values() if r.post_target}
        total = len(messages)
        # Own marker: live inserts during the pass keep using the view's.
        tracker = ContinuityTracker()
        self.seed_continuity(messages[0].seq, tracker)
        try:
            for index, message in enumerate(messages, start=1):
                skipped = not self._relayout(message, repair, claimed, tracker)
                yield RejiggerStep(seq=message.seq, index=index, total=total, skipped=skipped)
        finally:
            self.seed_continuity(None)

    def rejigger(
        self,
        start_seq: Optional[int] = None,
        end_seq: Optional[int] = None,
        repair: bool = False,
        on_message: Optional[Callable[[RejiggerStep], None]] = None,
    ) -> RejiggerReport:
        report = RejiggerReport()
        for step in self.iter_rejigger(start_seq, end_seq, repair):
            report.add(step)
            if on_message is not None:
                on_message(step)
        logger.info(
            "Rejiggered %d messages (%d skipped, repair=%s)",
            report.processed, report.skipped, repair,
        )
        return report

    async def arejigger(
        self,
        start_seq: Optional[int] = None,
        end_seq: Optional[int] = None,
        repair: bool = False,
        on_message: Optional[Callable[[RejiggerStep], None]] = None,
    ) -> RejiggerReport:
        """Like rejigger(), but lets the event loop run between messages."""
        report = RejiggerReport()
        for step in self.iter_rejigger(start_seq, end_seq, repair):
            report.add(step)
            if on_message is not None:
                on_message(step)
            await asyncio.sleep(0)
        logger.info(
            "Rejiggered %d messages (%d skipped, repair=%s)",
            report.processed, report.skipped, repair,
        )
        return report

    def _relayout(self, message: Message, repair: bool, claimed: set, tracker: ContinuityTracker) -> bool:
        record = self.transcript.layout.get(message.seq)
        saved_record = replace(record) if record is not None else None
        saved_presentation = replace(message.presentation)
        try:
            covered = self._extent(message, record, repair)
            if message.kind not in (MessageKind.DATESTAMP, MessageKind.UNKNOWN):
                self.engine.label_end(message)
            if repair:
                message.presentation.blank_end = 0
                if message.presentation.trailing and not self._is_claimed(message.seq, claimed):
                    message.presentation.trailing = None
            self.engine.strip(message)
            self.engine.layout(message, covered=covered, tracker=tracker)
        except StructuralError as exc:
            logger.warning("Skipping message %d during rejigger: %s", message.seq, exc)
            self._restore(message, saved_record, saved_presentation)
            return False
        except Exception:
            logger.exception("Layout failed for message %d during rejigger", message.seq)
            self._restore(message, saved_record, saved_presentation)
            return False
        return True

    def _extent(self, message: Message, record: Optional[LayoutRecord], repair: bool) -> int:
        boundary = self.transcript.boundary(message.seq)
        if repair or record is None:
            return boundary
        if record.covered > boundary:
            raise StructuralError(
                "Layout of message {} covers {} chars past its boundary at {}".format(
                    message.seq, record.covered, boundary
                )
            )
        return record.covered

    def _restore(self, message: Message, record: Optional[LayoutRecord], presentation) -> None:
        message.presentation = presentation
        if record is not None:
            self.transcript.layout[message.seq] = record
        else:
            self.transcript.layout.pop(message.seq, None)

    def _is_claimed(self, seq: int, claimed: set) -> bool:
        """Whether some layout record placed the "post" glyph on seq.

        claimed is the snapshot taken when the pass started; messages
        inserted while the pass is open are only found by the rescan.
        """
        if seq in claimed:
            return True
        return any(r.post_target == seq for r in self.transcript.layout.values())
