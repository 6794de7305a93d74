"""Transcript dataclasses: messages, styled runs, and per-message layout records.

WHY: The layout engine needs a document it can measure, annotate and
re-annotate without relying on live text positions. Messages are stable
entities addressed by sequence id, and their derived layout lives in a
separate record keyed by that id, so a relayout never has to search raw
text for stale annotations.

HOW: Six types form the model:
  Run: a styled piece of message text (possibly invisible)
  Presentation: display-only edits made by merging (blanked label,
    replacement glyph, trailing indicator)
  Message: one chat entry with its metadata and runs
  Space: a width expression relative to the shared indent width
  LayoutRecord: derived overhang and prefix metadata for one message
  Transcript: the ordered message list, seq index and record table

RULES:
- seq ids are assigned by Transcript.append, strictly increasing from 1
- Document order equals insertion (seq) order
- Message text is never rewritten after insertion; merge effects live in
  Presentation, layout effects in LayoutRecord
- LayoutRecord.overhang is None for messages without structured metadata
  (kind "unknown"): their first line uses the indent width unmodified
- A record's covered extent never exceeds the message length unless the
  document was damaged (rejigger treats that as a structural error)
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from chatwrap.core.errors import StructuralError


class MessageKind(str, enum.Enum):
    """Kinds of transcript entries the layout engine distinguishes."""

    NORMAL = "normal"
    ACTION = "action"
    NOTICE = "notice"
    DATESTAMP = "datestamp"
    UNKNOWN = "unknown"


@dataclass
class Run:
    """A contiguous piece of message text sharing one style.

    Invisible runs are kept in the text (offsets stay stable) but never
    measured or rendered.
    """

    text: str
    style: Optional[str] = None
    invisible: bool = False


@dataclass
class Presentation:
    """Display edits applied on top of a message's text.

    RULES:
    - blank_end > 0 hides text[0:blank_end] (the merged sender label)
    - replacement is shown in place of the blanked label ("pre" mode)
    - trailing is appended after the last line ("post" mode), placed there
      by the layout of the *following* message
    """

    blank_end: int = 0
    replacement: Optional[str] = None
    trailing: Optional[str] = None


@dataclass
class Message:
    """A single chat entry.

    RULES:
    - sender: identity used for continuity, compared case-insensitively
    - timestamp: float seconds on a monotonic clock; stamped on insert
      when missing
    - label_end: explicit end offset of the sender label, else derived
      from the leading token
    - ephemeral: system-injected, never merged onto
    - stamp_field: a trailing timestamp field occupies the last line
    """

    runs: List[Run]
    sender: Optional[str] = None
    timestamp: Optional[float] = None
    kind: MessageKind = MessageKind.NORMAL
    hidden: bool = False
    ephemeral: bool = False
    label_end: Optional[int] = None
    stamp_field: bool = False
    seq: int = 0
    presentation: Presentation = field(default_factory=Presentation)

    @classmethod
    def from_text(cls, text: str, **kwargs) -> "Message":
        """Build a message holding a single unstyled run."""
        return cls(runs=[Run(text)], **kwargs)

    @property
    def text(self) -> str:
        return "".join(run.text for run in self.runs)

    def __len__(self) -> int:
        return sum(len(run.text) for run in self.runs)

    def iter_chars(self, start: int = 0, end: Optional[int] = None) -> Iterator[Tuple[int, str, Optional[str], bool]]:
        """Yield (offset, char, style, invisible) for text[start:end].

        Characters hidden by a blanked label count as invisible.
        """
        if end is None:
            end = len(self)
        offset = 0
        for run in self.runs:
            run_end = offset + len(run.text)
            if run_end > start and offset < end:
                lo = max(start, offset)
                hi = min(end, run_end)
                for pos in range(lo, hi):
                    hidden = run.invisible or pos < self.presentation.blank_end
                    yield pos, run.text[pos - offset], run.style, hidden
            offset = run_end
            if offset >= end:
                break


@dataclass
class Space:
    """Width resolved at render time as ``indent_width - minus``."""

    minus: float = 0.0

    def resolve(self, indent_width: float) -> float:
        return indent_width - self.minus


@dataclass
class LayoutRecord:
    """Derived layout metadata for one message.

    WHY: The indent of every message depends on the shared indent width,
    which can change at any time. Only the overhang is frozen here; the
    prefixes are relative expressions resolved against the live value.

    RULES:
    - line_prefix applies to the first visual line: indent - overhang
    - wrap_prefix applies to every wrapped line: indent
    - merged: the message continues the previous speaker's message
    - indicator: glyph used for the merge, if any
    - covered: number of body characters the prefixes apply to
    - post_target: seq of the message that received a "post" indicator
    """

    overhang: Optional[float]
    covered: int
    merged: bool = False
    indicator: Optional[str] = None
    post_target: Optional[int] = None

    @property
    def line_prefix(self) -> Space:
        return Space(minus=self.overhang or 0.0)

    @property
    def wrap_prefix(self) -> Space:
        return Space()


class Transcript:
    """Ordered, append-only list of messages plus their layout records.

    WHY: Stands in for the scrollable document. Messages are addressed by
    seq id through an index instead of floating positions, and layout
    metadata lives in one table keyed by seq.

    HOW: append() assigns the next seq id and records the list index.
    Range queries resolve seq ids to list slices.

    RULES:
    - get() raises StructuralError for unknown seq ids
    - layout is the only place LayoutRecords are stored
    """

    def __init__(self) -> None:
        self._messages: List[Message] = []
        self._index: Dict[int, int] = {}
        self._next_seq = 1
        self.layout: Dict[int, LayoutRecord] = {}

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(self._messages)

    def __contains__(self, seq: object) -> bool:
        return seq in self._index

    def append(self, message: Message) -> Message:
        message.seq = self._next_seq
        self._next_seq += 1
        self._index[message.seq] = len(self._messages)
        self._messages.append(message)
        return message

    def get(self, seq: int) -> Message:
        try:
            return self._messages[self._index[seq]]
        except KeyError:
            raise StructuralError("No message with seq {}".format(seq)) from None

    def position(self, seq: int) -> int:
        """Return the list index of a message."""
        self.get(seq)
        return self._index[seq]

    def first_seq(self) -> Optional[int]:
        return self._messages[0].seq if self._messages else None

    def last_seq(self) -> Optional[int]:
        return self._messages[-1].seq if self._messages else None

    def between(self, start_seq: Optional[int] = None, end_seq: Optional[int] = None) -> List[Message]:
        """Messages from start_seq to end_seq inclusive, in document order.

        None on either side means the corresponding end of the transcript.
        """
        if not self._messages:
            return []
        lo = 0 if start_seq is None else self.position(start_seq)
        hi = len(self._messages) - 1 if end_seq is None else self.position(end_seq)
        if hi < lo:
            return []
        return self._messages[lo:hi + 1]

    def before(self, seq: int) -> Iterator[Message]:
        """Messages preceding seq, nearest first."""
        for i in range(self.position(seq) - 1, -1, -1):
            yield self._messages[i]

    def boundary(self, seq: int) -> int:
        """Offset where the next message starts, relative to this one.

        Messages are contiguous, so the true end of a message is its length.
        """
        return len(self.get(seq))
