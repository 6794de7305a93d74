"""Transcript view: the host-facing session object for wrap layout.

WHY: The indent width, the continuity marker and the measurement cache
all belong to one transcript as it is displayed. Tying them to a view
object (instead of module globals) lets several transcripts be laid out
side by side, each with its own settings and lifetime.

HOW: TranscriptView wires a Transcript to an IndentWidthState,
ContinuityTracker, WidthMeasurer, SpeakerContinuityDetector,
MergeIndicatorRenderer, MessageLayoutEngine and RejiggerEngine built from
one LayoutConfig. Hosts call insert() (or on_message_inserted() for a
message they appended themselves), nudge(), refill_range(), hide() and
reveal().

RULES:
- Wrap layout needs the timestamp feature; a config with stamps disabled
  gets it switched on with a one-time warning
- nudge() and refill_range() raise WrapInactiveError while wrapping is off
- A failing per-message layout is logged and leaves that message without
  a record; later inserts are unaffected
- Messages without a timestamp are stamped from the view's clock
- hide()/reveal() reseed the continuity marker from the transcript tail,
  then rejigger from the affected message to the end (with
  repair) unless refill=False
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Callable, Optional, Set

from chatwrap.config import INDICATOR_NONE, LayoutConfig
from chatwrap.core.continuity import SpeakerContinuityDetector
from chatwrap.core.errors import WrapInactiveError
from chatwrap.core.indicator import MergeIndicatorRenderer
from chatwrap.core.ir import LayoutRecord, Message, Transcript
from chatwrap.core.layout import MessageLayoutEngine
from chatwrap.core.measure import GlyphMetrics, WidthMeasurer
from chatwrap.core.rejigger import RejiggerEngine, RejiggerReport, RejiggerStep
from chatwrap.core.state import ContinuityTracker, IndentWidthState, NudgeResult

logger = logging.getLogger(__name__)

# Dependencies already reported, so each warning is logged once per process.
_warned_dependencies: Set[str] = set()


def _activate_dependency(config: LayoutConfig, name: str) -> None:
    if name not in _warned_dependencies:
        _warned_dependencies.add(name)
        logger.warning("Enabling '%s' feature required by wrap layout", name)
    config.stamps_enabled = True


class TranscriptView:
    """One displayed transcript with its wrap layout state."""

    def __init__(
        self,
        config: Optional[LayoutConfig] = None,
        clock: Callable[[], float] = time.monotonic,
        metrics: Optional[GlyphMetrics] = None,
        view_id: Optional[str] = None,
    ) -> None:
        self.config = config if config is not None else LayoutConfig.from_env()
        self.config.validate()
        if not self.config.stamps_enabled:
            _activate_dependency(self.config, "stamps")

        self.id = view_id or uuid.uuid4().hex
        self.clock = clock
        self.active = True
        self.transcript = Transcript()

        margin = self.config.margin_width or self.config.indent_column
        self.state = IndentWidthState(
            default_width=self.config.indent_column,
            margin_width=margin,
            margin_left=self.config.margin_left,
        )
        self.tracker = ContinuityTracker()
        self.measurer = WidthMeasurer(self.config.unit, metrics)
        self.detector = SpeakerContinuityDetector(self.transcript, self.tracker, self.config)
        mode = self.config.merge_indicator
        self.indicator = MergeIndicatorRenderer(
            self.transcript,
            self.measurer,
            mode,
            self.config.glyph(mode) if mode != INDICATOR_NONE else None,
        )
        self.engine = MessageLayoutEngine(
            self.transcript,
            self.measurer,
            self.detector,
            self.indicator,
            self.tracker,
            self.config,
        )
        self.rejiggerer = RejiggerEngine(self.transcript, self.engine, self.tracker)
        logger.info("Created transcript view %s", self.id)

    # ------------------------------------------------------------------
    # Insertion
    # ------------------------------------------------------------------

    def append(self, message: Message) -> Message:
        """Append a message without laying it out."""
        if message.timestamp is None:
            message.timestamp = self.clock()
        return self.transcript.append(message)

    def insert(self, message: Message) -> Message:
        """Append a message and lay it out."""
        self.append(message)
        self.on_message_inserted(message)
        return message

    def on_message_inserted(self, message: Message) -> Optional[LayoutRecord]:
        if not self.active:
            return None
        try:
            return self.engine.layout(message)
        except Exception:
            logger.exception("Layout failed for message %d", message.seq)
            return None

    # ------------------------------------------------------------------
    # Resize and bulk relayout
    # ------------------------------------------------------------------

    def _require_active(self, action: str) -> None:
        if not self.active:
            raise WrapInactiveError(
                "Cannot {}: wrap layout is not active for this transcript".format(action)
            )

    def nudge(self, delta: float) -> NudgeResult:
        self._require_active("nudge")
        result = self.state.nudge(delta)
        logger.info(
            "Nudged view %s by %s (indent %s, margin %s)",
            self.id, result.delta, result.indent_width, result.margin_width,
        )
        return result

    def refill_range(
        self,
        start_seq: Optional[int] = None,
        end_seq: Optional[int] = None,
        repair: bool = False,
        on_message: Optional[Callable[[RejiggerStep], None]] = None,
    ) -> RejiggerReport:
        self._require_active("refill")
        return self.rejiggerer.rejigger(start_seq, end_seq, repair, on_message)

    async def arefill_range(
        self,
        start_seq: Optional[int] = None,
        end_seq: Optional[int] = None,
        repair: bool = False,
        on_message: Optional[Callable[[RejiggerStep], None]] = None,
    ) -> RejiggerReport:
        self._require_active("refill")
        return await self.rejiggerer.arejigger(start_seq, end_seq, repair, on_message)

    def change_metrics(self, metrics: GlyphMetrics, refill: bool = True) -> Optional[RejiggerReport]:
        """Swap font metrics and re-measure every label.

        The cached "pre" indicator width is kept as is.
        """
        self.measurer.metrics = metrics
        if refill and self.active:
            return self.refill_range()
        return None

    # ------------------------------------------------------------------
    # Visibility
    # ------------------------------------------------------------------

    def hide(self, seq: int, refill: bool = True) -> Optional[RejiggerReport]:
        return self._set_hidden(seq, True, refill)

    def reveal(self, seq: int, refill: bool = True) -> Optional[RejiggerReport]:
        return self._set_hidden(seq, False, refill)

    def _set_hidden(self, seq: int, hidden: bool, refill: bool) -> Optional[RejiggerReport]:
        message = self.transcript.get(seq)
        message.hidden = hidden
        self.rejiggerer.seed_continuity(None)
        if refill and self.active:
            return self.rejiggerer.rejigger(seq, None, repair=True)
        return None

    # ------------------------------------------------------------------
    # Mode
    # ------------------------------------------------------------------

    def disable(self) -> None:
        """Turn wrap layout off; existing records are kept."""
        self.active = False

    def enable(self, refill: bool = True) -> Optional[RejiggerReport]:
        """Turn wrap layout back on, laying out anything inserted meanwhile."""
        self.active = True
        if refill:
            return self.rejiggerer.rejigger(repair=True)
        return None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def record(self, seq: int) -> Optional[LayoutRecord]:
        return self.transcript.layout.get(seq)

    def line_start_indent(self, seq: int) -> Optional[float]:
        """First-line indent of a message against the current indent width."""
        record = self.record(seq)
        if record is None:
            return None
        return record.line_prefix.resolve(self.state.indent_width)

    def continuation_indent(self, seq: int) -> Optional[float]:
        record = self.record(seq)
        if record is None:
            return None
        return record.wrap_prefix.resolve(self.state.indent_width)
