"""Shared indent width and continuity marker for one transcript view.

WHY: Every message body aligns to the same column. Storing that column
once per view (instead of baking it into every message) lets a resize
take effect for the whole transcript by changing a single value.

HOW: IndentWidthState holds the live indent width and the timestamp
margin width; nudge() is the only mutator. ContinuityTracker holds the
seq id of the last eligible message used for speaker merging.

RULES:
- nudge(0) resets to the configured default and returns the signed
  change that was applied
- nudge(n) adds n columns and returns n
- A nudge that would make the indent negative raises ValueError
- The margin follows the indent only when timestamps sit in a left margin
- ContinuityTracker starts uninitialised; the detector lazily initialises
  it to "start of transcript" (no prior message)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class NudgeResult:
    """Outcome of a nudge, for UI feedback."""

    delta: float
    indent_width: float
    margin_width: float


class IndentWidthState:
    """The indent column every laid-out message resolves its prefixes against."""

    def __init__(self, default_width: float, margin_width: float = 0, margin_left: bool = False) -> None:
        self.default_width = default_width
        self.default_margin = margin_width
        self.margin_left = margin_left
        self._indent_width = default_width
        self._margin_width = margin_width

    @property
    def indent_width(self) -> float:
        return self._indent_width

    @property
    def margin_width(self) -> float:
        return self._margin_width

    def nudge(self, delta: float) -> NudgeResult:
        """Widen or narrow the indent by delta columns, or reset it with 0.

        Args:
            delta: Columns to add. Zero restores the configured default.

        Returns:
            NudgeResult with the change applied and the resulting widths.

        Raises:
            ValueError: If the indent would become negative.
        """
        if delta == 0:
            applied = self.default_width - self._indent_width
            self._indent_width = self.default_width
            self._margin_width = self.default_margin
            return NudgeResult(applied, self._indent_width, self._margin_width)

        if self._indent_width + delta < 0:
            raise ValueError(
                "Cannot nudge indent width {} by {}".format(self._indent_width, delta)
            )
        self._indent_width += delta
        if self.margin_left:
            self._margin_width = max(0, self._margin_width + delta)
        return NudgeResult(delta, self._indent_width, self._margin_width)


class ContinuityTracker:
    """Seq id of the last visible, non-datestamp message laid out."""

    def __init__(self) -> None:
        self.initialized = False
        self.last_seq: Optional[int] = None

    def ensure_initialized(self) -> None:
        if not self.initialized:
            self.initialized = True
            self.last_seq = None

    def mark(self, seq: int) -> None:
        self.initialized = True
        self.last_seq = seq

    def reset(self) -> None:
        """Forget the last message, e.g. after a datestamp."""
        self.initialized = True
        self.last_seq = None
