"""Merge indicators shown when a sender label is collapsed.

WHY: A blanked label alone can make a continuation look like part of the
previous message. An optional glyph makes the merge visible, either in
place of the label ("pre") or at the end of the previous message
("post").

HOW: MergeIndicatorRenderer edits Message.presentation only. In "pre"
mode the glyph plus a trailing space replaces the blanked label and its
width becomes the overhang. In "post" mode the glyph is appended to the
prior message, which leaves the overhang at 0.

RULES:
- Only one mode is active per view
- The "pre" width is measured once and cached for the view's lifetime;
  a later font or glyph change does not refresh it
- "post" is skipped when the prior line already ends in a timestamp field
  or already carries the glyph
- remove() undoes a "post" placement recorded in a LayoutRecord
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from chatwrap.config import INDICATOR_NONE, INDICATOR_POST, INDICATOR_PRE
from chatwrap.core.ir import LayoutRecord, Message, Transcript
from chatwrap.core.measure import WidthMeasurer


@dataclass
class IndicatorResult:
    """Overhang contributed by an indicator and where it was placed."""

    width: float = 0
    glyph: Optional[str] = None
    post_target: Optional[int] = None


class MergeIndicatorRenderer:
    def __init__(self, transcript: Transcript, measurer: WidthMeasurer, mode: str, glyph: Optional[str]) -> None:
        self.transcript = transcript
        self.measurer = measurer
        self.mode = mode
        self.glyph = glyph
        self._pre_width: Optional[float] = None

    def pre_width(self) -> float:
        if self._pre_width is None:
            self._pre_width = self.measurer.measure_text(self.glyph + " ")
        return self._pre_width

    def apply(self, message: Message, prior: Optional[Message]) -> IndicatorResult:
        """Render the indicator for a continuation message.

        Args:
            message: The continuation; its label must already be blanked.
            prior: The message it continues.

        Returns:
            IndicatorResult with the overhang width to use.
        """
        if self.mode == INDICATOR_NONE or not self.glyph:
            return IndicatorResult()

        if self.mode == INDICATOR_PRE:
            message.presentation.replacement = self.glyph + " "
            return IndicatorResult(width=self.pre_width(), glyph=self.glyph)

        if self.mode == INDICATOR_POST and prior is not None:
            if prior.stamp_field or prior.presentation.trailing == self.glyph:
                return IndicatorResult()
            prior.presentation.trailing = self.glyph
            return IndicatorResult(glyph=self.glyph, post_target=prior.seq)

        return IndicatorResult()

    def remove(self, message: Message, record: LayoutRecord) -> None:
        """Undo the indicator a record placed."""
        message.presentation.replacement = None
        if record.post_target is None or record.post_target not in self.transcript:
            return
        target = self.transcript.get(record.post_target)
        if target.presentation.trailing == record.indicator:
            target.presentation.trailing = None
